from gobuild.command import Arg, Args, CommandLine, Option


def test_segments_flatten_in_insertion_order() -> None:
    command = (
        CommandLine.of("go", "tool", "compile")
        .option("-o", "out.a")
        .args(["-p", "main"])
        .arg("-pack")
        .args(("a.go", "b.go"))
    )

    assert command.argv() == (
        "go",
        "tool",
        "compile",
        "-o",
        "out.a",
        "-p",
        "main",
        "-pack",
        "a.go",
        "b.go",
    )
    assert command.tool == "go"
    assert str(command) == "go tool compile -o out.a -p main -pack a.go b.go"


def test_builder_methods_do_not_mutate_the_original() -> None:
    base = CommandLine.of("cc")
    extended = base.option("-o", "x.o")

    assert base.argv() == ("cc",)
    assert extended.argv() == ("cc", "-o", "x.o")


def test_empty_repeated_values_add_no_segment() -> None:
    command = CommandLine.of("ar").args([])

    assert command.segments == (Arg("ar"),)


def test_segment_types_are_preserved() -> None:
    command = CommandLine.of("x").option("-I", "inc").args(["a"])

    assert command.segments == (Arg("x"), Option("-I", "inc"), Args(("a",)))
