from collections.abc import Callable

import pytest

from gobuild.errors import ConfigurationError, UnsupportedError
from gobuild.executors import RecordingExecutor
from gobuild.models import Action, BuildMode, Context
from gobuild.toolchains import GccgoToolchain, GcToolchain, select_toolchain
from gobuild.trimpath import trimpath


def test_gc_writes_archive_for_pure_go_package(
    ctx: Context,
    executor: RecordingExecutor,
    make_action: Callable[..., Action],
) -> None:
    action = make_action(go_files=("a.go", "b.go"), importcfg="/tmp/importcfg")
    archive = action.objdir + "_pkg_.a"

    ofile = GcToolchain().gc(
        ctx,
        executor,
        action,
        importcfg=action.importcfg,
        archive=archive,
        symabis="",
        asmhdr=False,
        go_files=action.package.go_files,
    )

    assert ofile == archive
    package_dir = action.package.dir
    assert executor.argvs() == [
        (
            "go",
            "tool",
            "compile",
            "-o",
            archive,
            "-trimpath",
            trimpath(action),
            "-p",
            "example.com/hello",
            "-complete",
            "-importcfg",
            "/tmp/importcfg",
            "-pack",
            f"{package_dir}/a.go",
            f"{package_dir}/b.go",
        )
    ]


def test_gc_without_archive_writes_default_object(
    ctx: Context,
    executor: RecordingExecutor,
    make_action: Callable[..., Action],
) -> None:
    action = make_action(go_files=("a.go",), s_files=("x.s",))

    ofile = GcToolchain().gc(
        ctx,
        executor,
        action,
        importcfg="",
        archive="",
        symabis=action.objdir + "symabis",
        asmhdr=True,
        go_files=action.package.go_files,
    )

    argv = executor.argvs()[0]
    assert ofile == action.objdir + "_go_.o"
    assert "-complete" not in argv
    assert "-pack" not in argv
    assert "-importcfg" not in argv
    assert argv[argv.index("-symabis") + 1] == action.objdir + "symabis"
    assert argv[argv.index("-asmhdr") + 1] == action.objdir + "go_asm.h"


def test_gc_target_specific_flags(
    executor: RecordingExecutor,
    make_action: Callable[..., Action],
) -> None:
    ctx = Context(goroot="/go", goos="js", goarch="wasm", go_version="go1.22.3")
    action = make_action(go_files=("a.go",))

    GcToolchain().gc(
        ctx,
        executor,
        action,
        importcfg="",
        archive="",
        symabis="",
        asmhdr=False,
        go_files=action.package.go_files,
    )

    argv = executor.argvs()[0]
    assert "-dwarf=false" in argv
    assert argv[argv.index("-goversion") + 1] == "go1.22.3"


def test_gc_rejects_plain_c_files(
    ctx: Context,
    executor: RecordingExecutor,
    make_action: Callable[..., Action],
) -> None:
    action = make_action(c_files=("helper.c",))

    with pytest.raises(UnsupportedError) as excinfo:
        GcToolchain().cc(ctx, executor, action, action.objdir + "helper.o", "helper.c")

    assert str(excinfo.value).startswith(f"{action.package.dir}/helper.c: C source files not supported")
    assert executor.commands == []


def test_symabis_writes_placeholder_header_before_scanning(
    ctx: Context,
    executor: RecordingExecutor,
    make_action: Callable[..., Action],
) -> None:
    action = make_action(s_files=("x_amd64.s",))

    path = GcToolchain().symabis(ctx, executor, action, action.package.s_files)

    assert path == action.objdir + "symabis"
    assert executor.files == {action.objdir + "go_asm.h": b""}
    argv = executor.argvs()[0]
    assert argv[:3] == ("go", "tool", "asm")
    assert argv[-4:] == ("-gensymabis", "-o", path, f"{action.package.dir}/x_amd64.s")


def test_symabis_without_assembly_is_empty(
    ctx: Context,
    executor: RecordingExecutor,
    make_action: Callable[..., Action],
) -> None:
    action = make_action()

    assert GcToolchain().symabis(ctx, executor, action, ()) == ""
    assert executor.commands == []
    assert executor.files == {}


def test_asm_uses_shared_include_paths_and_defines(
    ctx: Context,
    executor: RecordingExecutor,
    make_action: Callable[..., Action],
) -> None:
    action = make_action(s_files=("a_amd64.s", "b_amd64.s"))

    ofiles = GcToolchain().asm(ctx, executor, action, action.package.s_files)

    assert ofiles == [action.objdir + "a_amd64.o", action.objdir + "b_amd64.o"]
    assert executor.argvs()[0] == (
        "go",
        "tool",
        "asm",
        "-p",
        "example.com/hello",
        "-trimpath",
        trimpath(action),
        "-I",
        action.objdir,
        "-I",
        "/usr/local/go/pkg/include",
        "-D",
        "GOOS_linux",
        "-D",
        "GOARCH_amd64",
        "-o",
        action.objdir + "a_amd64.o",
        f"{action.package.dir}/a_amd64.s",
    )
    assert len(executor.commands) == 2


def test_pack_resolves_objects_relative_to_objdir(
    ctx: Context,
    executor: RecordingExecutor,
    make_action: Callable[..., Action],
) -> None:
    action = make_action()

    GcToolchain().pack(ctx, executor, action, "_pkg_.a", ["helper.o", "/abs/blob.syso"])

    assert executor.argvs() == [
        (
            "go",
            "tool",
            "pack",
            "r",
            action.objdir + "_pkg_.a",
            action.objdir + "helper.o",
            "/abs/blob.syso",
        )
    ]


def test_ld_forwards_cgo_ldflags_and_trims_goroot(
    ctx: Context,
    executor: RecordingExecutor,
    make_action: Callable[..., Action],
) -> None:
    action = make_action(name="main", cgo_ldflags=("-L/opt/lib", "-lfoo"))

    GcToolchain().ld(ctx, executor, action, "/tmp/hello", "/tmp/importcfg.link", "/tmp/main.a")

    command = executor.commands[0]
    assert command.env == {"GOROOT_FINAL": "go"}
    assert command.argv == (
        "go",
        "tool",
        "link",
        "-o",
        "/tmp/hello",
        "-importcfg",
        "/tmp/importcfg.link",
        "-extldflags",
        "-L/opt/lib -lfoo",
        "/tmp/main.a",
    )


def test_ld_without_trimpath_sets_no_environment(
    ctx: Context,
    executor: RecordingExecutor,
    make_action: Callable[..., Action],
) -> None:
    action = make_action(name="main")

    GcToolchain(trim_paths=False).ld(ctx, executor, action, "/tmp/hello", "/tmp/cfg", "/tmp/main.a")

    assert executor.commands[0].env == {}
    assert "-extldflags" not in executor.commands[0].argv


def test_select_toolchain_builds_configured_back_end() -> None:
    mode = BuildMode(cc="clang", trimpath=False)

    gc = select_toolchain("gc", mode)
    gccgo = select_toolchain("gccgo", mode)

    assert isinstance(gc, GcToolchain)
    assert gc.trim_paths is False
    assert isinstance(gccgo, GccgoToolchain)
    assert gccgo.cc_tool == "clang"
    assert gccgo.tool == "gccgo"

    custom = select_toolchain("gccgo", BuildMode(gccgo="x86_64-linux-gnu-gccgo-13"))
    assert isinstance(custom, GccgoToolchain)
    assert custom.tool == "x86_64-linux-gnu-gccgo-13"


def test_select_toolchain_rejects_unknown_names() -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        select_toolchain("llvm")

    assert excinfo.value.context == {"toolchain": "llvm"}


def test_gc_commands_are_independent_of_call_count(
    ctx: Context,
    make_action: Callable[..., Action],
) -> None:
    action = make_action(go_files=("a.go",))
    runs = []
    for _ in range(2):
        executor = RecordingExecutor()
        GcToolchain().gc(
            ctx,
            executor,
            action,
            importcfg="",
            archive=action.objdir + "_pkg_.a",
            symabis="",
            asmhdr=False,
            go_files=action.package.go_files,
        )
        runs.append(executor.argvs())

    assert runs[0] == runs[1]
