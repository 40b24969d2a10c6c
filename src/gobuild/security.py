"""Compiler and linker flag allow-lists.

Flags that come from package sources (``#cgo`` directives) or that appear
in generated files as ``//go:cgo_ldflag`` comments must match one of the
patterns below. Anything else could make the host compiler or linker run
arbitrary code, so it is rejected with ``SecurityError``.
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterable, Sequence

from gobuild.errors import SecurityError

CGO_LDFLAG_MARKER = "//go:cgo_ldflag"


def _patterns(*sources: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(source) for source in sources)


VALID_COMPILER_FLAGS = _patterns(
    r"-D([A-Za-z_][A-Za-z0-9_]*)(=[^@\-]*)?",
    r"-U([A-Za-z_][A-Za-z0-9_]*)",
    r"-F([^@\-].*)",
    r"-I([^@\-].*)",
    r"-O",
    r"-O([^@\-].*)",
    r"-W",
    r"-W([^@,]+)",
    r"-Wa,-mbig-obj",
    r"-Wp,-[DU]([A-Za-z_][A-Za-z0-9_]*)(=[^@,\-]*)?",
    r"-ansi",
    r"-f(no-)?asynchronous-unwind-tables",
    r"-f(no-)?blocks",
    r"-f(no-)builtin-[a-zA-Z0-9_]*",
    r"-f(no-)?common",
    r"-f(no-)?constant-cfstrings",
    r"-fdiagnostics-show-note-include-stack",
    r"-f(no-)?eliminate-unused-debug-types",
    r"-f(no-)?exceptions",
    r"-f(no-)?fast-math",
    r"-f(no-)?inline-functions",
    r"-finput-charset=([^@\-].*)",
    r"-f(no-)?fat-lto-objects",
    r"-f(no-)?keep-inline-dllexport",
    r"-f(no-)?lto",
    r"-fmacro-backtrace-limit=(.+)",
    r"-fmessage-length=(.+)",
    r"-f(no-)?modules",
    r"-f(no-)?objc-arc",
    r"-f(no-)?objc-nonfragile-abi",
    r"-f(no-)?objc-legacy-dispatch",
    r"-f(no-)?omit-frame-pointer",
    r"-f(no-)?openmp(-simd)?",
    r"-f(no-)?permissive",
    r"-f(no-)?(pic|PIC|pie|PIE)",
    r"-f(no-)?plt",
    r"-f(no-)?rtti",
    r"-f(no-)?split-stack",
    r"-f(no-)?stack-(.+)",
    r"-f(no-)?strict-aliasing",
    r"-f(un)signed-char",
    r"-f(no-)?use-linker-plugin",
    r"-f(no-)?visibility-inlines-hidden",
    r"-fsanitize=(.+)",
    r"-ftemplate-depth-(.+)",
    r"-fvisibility=(.+)",
    r"-g([^@\-].*)?",
    r"-m32",
    r"-m64",
    r"-m(abi|arch|cpu|fpu|tune)=([^@\-].*)",
    r"-m(no-)?v?aes",
    r"-marm",
    r"-mfloat-abi=([^@\-].*)",
    r"-mfpmath=[0-9a-z,+]*",
    r"-m(no-)?avx[0-9a-z.]*",
    r"-m(no-)?ms-bitfields",
    r"-m(no-)?stack-(.+)",
    r"-mmacosx-(.+)",
    r"-mios-simulator-version-min=(.+)",
    r"-miphoneos-version-min=(.+)",
    r"-mlarge-data-threshold=[0-9]+",
    r"-mtvos-simulator-version-min=(.+)",
    r"-mtvos-version-min=(.+)",
    r"-mwatchos-simulator-version-min=(.+)",
    r"-mwatchos-version-min=(.+)",
    r"-mnop-fun-dllimport",
    r"-m(no-)?sse[0-9.]*",
    r"-m(no-)?ssse3",
    r"-mthumb(-interwork)?",
    r"-mthreads",
    r"-mwindows",
    r"-no-canonical-prefixes",
    r"--param=ssp-[a-zA-Z0-9_\-]+=[0-9]+",
    r"-pedantic(-errors)?",
    r"-pipe",
    r"-pthread",
    r"-?-std=([^@\-].*)",
    r"-?-stdlib=([^@\-].*)",
    r"--sysroot=([^@\-].*)",
    r"-w",
    r"-x([^@\-].*)",
    r"-v",
)

VALID_COMPILER_FLAGS_WITH_NEXT_ARG = frozenset(
    {
        "-arch",
        "-D",
        "-U",
        "-I",
        "-F",
        "-framework",
        "-include",
        "-isysroot",
        "-isystem",
        "--sysroot",
        "-target",
        "-x",
    }
)

VALID_LINKER_FLAGS = _patterns(
    r"-F([^@\-].*)",
    r"-l([^@\-].*)",
    r"-L([^@\-].*)",
    r"-O",
    r"-O([^@\-].*)",
    r"-f(no-)?(pic|PIC|pie|PIE)",
    r"-f(no-)?openmp(-simd)?",
    r"-fsanitize=([^@\-].*)",
    r"-flat_namespace",
    r"-g([^@\-].*)?",
    r"-headerpad_max_install_names",
    r"-m(abi|arch|cpu|fpu|tune)=([^@\-].*)",
    r"-mfloat-abi=([^@\-].*)",
    r"-mmacosx-(.+)",
    r"-mios-simulator-version-min=(.+)",
    r"-miphoneos-version-min=(.+)",
    r"-mthreads",
    r"-mwindows",
    r"-(pic|PIC|pie|PIE)",
    r"-no-pie",
    r"-pthread",
    r"-rdynamic",
    r"-shared",
    r"-?-static([-a-z0-9+]*)",
    r"-?-stdlib=([^@\-].*)",
    r"-v",
    # Wildcards inside -Wl, must not match a comma, which would smuggle
    # in a second linker option.
    r"-Wl,--(no-)?allow-multiple-definition",
    r"-Wl,--(no-)?allow-shlib-undefined",
    r"-Wl,--(no-)?as-needed",
    r"-Wl,-Bdynamic",
    r"-Wl,-berok",
    r"-Wl,-Bstatic",
    r"-Wl,-Bsymbolic-functions",
    r"-Wl,-O[0-9]+",
    r"-Wl,-d[ny]",
    r"-Wl,--disable-new-dtags",
    r"-Wl,-e[=,][a-zA-Z0-9]+",
    r"-Wl,--enable-new-dtags",
    r"-Wl,--end-group",
    r"-Wl,--(no-)?export-dynamic",
    r"-Wl,-E",
    r"-Wl,-framework,[^,@\-][^,]+",
    r"-Wl,--hash-style=(sysv|gnu|both)",
    r"-Wl,-headerpad_max_install_names",
    r"-Wl,--no-undefined",
    r"-Wl,-R,?([^@\-,][^,@]*$)",
    r"-Wl,--just-symbols[=,]([^,@\-][^,@]+)",
    r"-Wl,-rpath(-link)?[=,]([^,@\-][^,]+)",
    r"-Wl,-s",
    r"-Wl,-search_paths_first",
    r"-Wl,-sectcreate,([^,@\-][^,]+),([^,@\-][^,]+),([^,@\-][^,]+)",
    r"-Wl,--start-group",
    r"-Wl,-?-static",
    r"-Wl,-?-subsystem,(native|windows|console|posix|xbox)",
    r"-Wl,-syslibroot[=,]([^,@\-][^,]+)",
    r"-Wl,-undefined[=,]([^,@\-][^,]+)",
    r"-Wl,-?-unresolved-symbols=[^,]+",
    r"-Wl,--(no-)?warn-([^,]+)",
    r"-Wl,-?-wrap[=,][^,@\-][^,]*",
    r"-Wl,-z,(no)?execstack",
    r"-Wl,-z,relro",
    r"-Wl,-z,now",
    # Direct linker inputs such as x.o or libfoo.so, but not -foo.o or @foo.o.
    r"[a-zA-Z0-9_/].*\.(a|o|obj|dll|dylib|so|tbd)",
    r"\./.*\.(a|o|obj|dll|dylib|so|tbd)",
)

VALID_LINKER_FLAGS_WITH_NEXT_ARG = frozenset(
    {
        "-arch",
        "-F",
        "-l",
        "-L",
        "-framework",
        "-isysroot",
        "--sysroot",
        "-target",
        "-Wl,-framework",
        "-Wl,-rpath",
        "-Wl,-R",
        "-Wl,--just-symbols",
        "-Wl,-undefined",
    }
)

_SAFE_NEXT_ARG = re.compile(r"[^@\-].*")
_SAFE_NEXT_WL_ARG = re.compile(r"-Wl,[^,@\-][^,]*")


def _compile_override(pattern: str | None, *, name: str) -> re.Pattern[str] | None:
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise SecurityError(
            f"Invalid {name} pattern.",
            hint="Fix the regular expression in the build mode.",
            context={"pattern": pattern, "error": str(exc)},
        ) from exc


def _fullmatch(pattern: re.Pattern[str] | None, arg: str) -> bool:
    return pattern is not None and pattern.fullmatch(arg) is not None


def check_flags(
    name: str,
    source: str,
    flags: Sequence[str],
    *,
    valid: Iterable[re.Pattern[str]],
    valid_with_next: frozenset[str],
    allow: str | None = None,
    disallow: str | None = None,
) -> None:
    allow_re = _compile_override(allow, name=f"{name}_ALLOW")
    disallow_re = _compile_override(disallow, name=f"{name}_DISALLOW")
    patterns = tuple(valid)

    i = 0
    while i < len(flags):
        arg = flags[i]
        if _fullmatch(disallow_re, arg):
            raise _invalid_flag(name, source, arg)
        if _fullmatch(allow_re, arg):
            i += 1
            continue
        if any(pattern.fullmatch(arg) for pattern in patterns):
            i += 1
            continue
        if arg in valid_with_next and i + 1 < len(flags):
            following = flags[i + 1]
            if arg.startswith("-Wl,"):
                if _SAFE_NEXT_WL_ARG.fullmatch(following):
                    i += 2
                    continue
            elif _SAFE_NEXT_ARG.fullmatch(following) or os.path.isabs(following):
                i += 2
                continue
            raise _invalid_flag(name, source, f"{arg} {following}")
        raise _invalid_flag(name, source, arg)


def _invalid_flag(name: str, source: str, arg: str) -> SecurityError:
    return SecurityError(
        f"invalid flag in {source}: {arg}",
        hint=f"Set CGO_{name}_ALLOW to a pattern that matches the flag if it is trusted.",
        context={"flags": name, "source": source, "flag": arg},
    )


def check_compiler_flags(
    name: str,
    source: str,
    flags: Sequence[str],
    *,
    allow: str | None = None,
    disallow: str | None = None,
) -> None:
    check_flags(
        name,
        source,
        flags,
        valid=VALID_COMPILER_FLAGS,
        valid_with_next=VALID_COMPILER_FLAGS_WITH_NEXT_ARG,
        allow=allow,
        disallow=disallow,
    )


def check_linker_flags(
    name: str,
    source: str,
    flags: Sequence[str],
    *,
    allow: str | None = None,
    disallow: str | None = None,
) -> None:
    check_flags(
        name,
        source,
        flags,
        valid=VALID_LINKER_FLAGS,
        valid_with_next=VALID_LINKER_FLAGS_WITH_NEXT_ARG,
        allow=allow,
        disallow=disallow,
    )


def extract_cgo_ldflags(source: str) -> list[str]:
    """Return the flags of every ``//go:cgo_ldflag`` line comment in *source*.

    A directive only counts when it is the first line comment on its line.
    ``/* */`` comments are not considered; cgo does not generate them.
    """
    flags = []
    for line in source.splitlines():
        idx = line.find(CGO_LDFLAG_MARKER)
        if idx < 0:
            continue
        if line.find("//") != idx:
            continue
        flag = line[idx + len(CGO_LDFLAG_MARKER) :].strip().strip('"')
        flags.append(flag)
    return flags


def remove_sublist(flags: Sequence[str], expected: Sequence[str]) -> list[str]:
    """Drop the first contiguous occurrence of *expected* from *flags*."""
    remaining = list(flags)
    width = len(expected)
    if width == 0:
        return remaining
    for i in range(len(remaining) - width + 1):
        if remaining[i : i + width] == list(expected):
            del remaining[i : i + width]
            break
    return remaining
