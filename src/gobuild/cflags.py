"""Foreign compiler and linker flag derivation for the bridge step."""

from __future__ import annotations

from dataclasses import dataclass, replace

from gobuild.models import BuildMode, Package
from gobuild.security import check_compiler_flags, check_linker_flags

MSAN_FLAG = "-fsanitize=memory"
OBJC_LDFLAG = "-lobjc"
GFORTRAN_LDFLAG = "-lgfortran"


@dataclass(frozen=True, slots=True)
class CgoFlags:
    cppflags: tuple[str, ...] = ()
    cflags: tuple[str, ...] = ()
    cxxflags: tuple[str, ...] = ()
    fflags: tuple[str, ...] = ()
    ldflags: tuple[str, ...] = ()


def package_flags(package: Package, mode: BuildMode) -> CgoFlags:
    """Merge environment-level flags with the package's ``#cgo`` directives.

    Environment flags are trusted. Directive flags come from source code and
    must pass the allow-lists.
    """
    for name, flags in (
        ("CPPFLAGS", package.cgo_cppflags),
        ("CFLAGS", package.cgo_cflags),
        ("CXXFLAGS", package.cgo_cxxflags),
        ("FFLAGS", package.cgo_fflags),
    ):
        check_compiler_flags(
            name,
            f"#cgo {name}",
            flags,
            allow=mode.cflags_allow,
            disallow=mode.cflags_disallow,
        )
    check_linker_flags(
        "LDFLAGS",
        "#cgo LDFLAGS",
        package.cgo_ldflags,
        allow=mode.ldflags_allow,
        disallow=mode.ldflags_disallow,
    )
    return CgoFlags(
        cppflags=mode.cgo_cppflags + package.cgo_cppflags,
        cflags=mode.cgo_cflags + package.cgo_cflags,
        cxxflags=mode.cgo_cxxflags + package.cgo_cxxflags,
        fflags=mode.cgo_fflags + package.cgo_fflags,
        ldflags=mode.cgo_ldflags + package.cgo_ldflags,
    )


def bridge_flags(package: Package, mode: BuildMode) -> CgoFlags:
    flags = package_flags(package, mode)
    cppflags = flags.cppflags + package.pkg_config_cflags
    cflags = flags.cflags
    ldflags = flags.ldflags + package.pkg_config_ldflags

    if package.m_files:
        ldflags += (OBJC_LDFLAG,)
    # Only gfortran is known; other Fortran compilers pass their runtime
    # through CGO_LDFLAGS.
    if package.f_files and "gfortran" in mode.fc:
        ldflags += (GFORTRAN_LDFLAG,)
    if mode.msan:
        cflags = (MSAN_FLAG, *cflags)
        ldflags = (MSAN_FLAG, *ldflags)

    return replace(flags, cppflags=cppflags, cflags=cflags, ldflags=ldflags)


def go_quote(value: str) -> str:
    """Quote *value* the way Go's strconv.Quote does for printable ASCII."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    escaped = escaped.replace("\n", "\\n").replace("\t", "\\t")
    return f'"{escaped}"'
