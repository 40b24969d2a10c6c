import pytest

from gobuild.errors import (
    ConfigurationError,
    ErrorCode,
    SecurityError,
    ToolExecutionError,
    UnsupportedError,
    ValidationError,
)
from gobuild.models import DEFAULT_CGO_FLAGS, BuildMode, Package, mk_abs


def test_file_kind_lists_must_be_disjoint() -> None:
    with pytest.raises(ValidationError) as excinfo:
        Package(dir="/src", import_path="p", go_files=("a.go",), cgo_files=("a.go",))

    assert excinfo.value.context["file"] == "a.go"
    assert excinfo.value.context["kinds"] == "go_files, cgo_files"


def test_main_packages_compile_with_main_pkgpath() -> None:
    assert Package(dir="/src", import_path="example.com/cmd/tool", name="main").pkg_path() == "main"
    assert Package(dir="/src", import_path="example.com/lib", name="lib").pkg_path() == "example.com/lib"


def test_external_file_count_covers_every_non_go_kind() -> None:
    package = Package(
        dir="/src",
        import_path="p",
        go_files=("a.go",),
        c_files=("b.c",),
        s_files=("c.s",),
        syso_files=("d.syso",),
    )

    assert package.external_file_count == 3


def test_mk_abs_keeps_absolute_paths() -> None:
    assert mk_abs("/src", "/abs/x.go") == "/abs/x.go"
    assert mk_abs("/src", "x.go") == "/src/x.go"


def test_build_mode_from_env_reads_compilers_and_flags() -> None:
    mode = BuildMode.from_env(
        {
            "CC": "clang",
            "FC": "flang",
            "GCCGO": "/opt/gcc/bin/gccgo",
            "CGO_CFLAGS": "-O3 -DNAME='a b'",
            "CGO_LDFLAGS_ALLOW": "-Wl,--custom.*",
        },
        msan=True,
    )

    assert mode.cc == "clang"
    assert mode.cxx == "g++"
    assert mode.fc == "flang"
    assert mode.gccgo == "/opt/gcc/bin/gccgo"
    assert mode.cgo_cflags == ("-O3", "-DNAME=a b")
    assert mode.cgo_ldflags == DEFAULT_CGO_FLAGS
    assert mode.ldflags_allow == "-Wl,--custom.*"
    assert mode.msan is True


def test_unknown_build_mode_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        BuildMode(buildmode="wasm-module")  # type: ignore[arg-type]

    assert excinfo.value.code == "E_CONFIGURATION"


def test_error_codes_are_stable_and_machine_readable() -> None:
    errors = [
        ValidationError("bad input"),
        UnsupportedError("no C"),
        ConfigurationError("no compiler"),
        SecurityError("bad flag"),
        ToolExecutionError("tool failed"),
    ]
    assert [error.code for error in errors] == [
        ErrorCode.VALIDATION.value,
        ErrorCode.UNSUPPORTED.value,
        ErrorCode.CONFIGURATION.value,
        ErrorCode.SECURITY.value,
        ErrorCode.TOOL_EXECUTION.value,
    ]


def test_error_to_dict_includes_hint_and_context() -> None:
    error = SecurityError("invalid flag", hint="allow it", context={"flag": "-x", "empty": ""})

    payload = error.to_dict()

    assert payload["code"] == "E_SECURITY"
    assert payload["message"] == "invalid flag"
    assert payload["hint"] == "allow it"
    assert payload["context"] == {"flag": "-x", "empty": ""}
    assert "flag: -x" in str(error)
    assert "empty" not in str(error)


def test_package_keeps_its_own_copy_of_caller_lists() -> None:
    files = ["a.go"]
    ldflags = ["-lm"]

    package = Package(dir="/src", import_path="p", go_files=files, cgo_ldflags=ldflags)  # type: ignore[arg-type]
    files.append("b.go")
    ldflags.append("-lpthread")

    assert package.go_files == ("a.go",)
    assert package.cgo_ldflags == ("-lm",)
    same = Package(dir="/src", import_path="p", go_files=("a.go",), cgo_ldflags=("-lm",))
    assert hash(package) == hash(same)


def test_build_mode_is_hashable_and_snapshots_the_overlay() -> None:
    overlay = {"/src/b.go": "/tmp/b.go", "/src/a.go": "/tmp/a.go"}

    mode = BuildMode(overlay=overlay, cgo_ldflags=["-lm"])  # type: ignore[arg-type]
    overlay["/src/c.go"] = "/tmp/c.go"

    same = BuildMode(overlay={"/src/a.go": "/tmp/a.go", "/src/b.go": "/tmp/b.go"}, cgo_ldflags=("-lm",))
    assert mode == same
    assert hash(mode) == hash(same)
    assert mode.overlay == (("/src/a.go", "/tmp/a.go"), ("/src/b.go", "/tmp/b.go"))
    assert mode.overlay_path("/src/a.go") == "/tmp/a.go"
    assert mode.overlay_path("/src/c.go") is None
    assert hash(BuildMode()) == hash(BuildMode())
