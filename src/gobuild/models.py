"""Core typed dataclasses describing what to build and where it goes."""

from __future__ import annotations

import os
import shlex
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal, get_args

from gobuild.errors import ConfigurationError, ValidationError

BuildModeName = Literal[
    "default",
    "archive",
    "c-archive",
    "c-shared",
    "exe",
    "pie",
    "shared",
    "plugin",
]

DEFAULT_CC = "gcc"
DEFAULT_CXX = "g++"
DEFAULT_FC = "gfortran"
DEFAULT_GCCGO = "gccgo"
DEFAULT_CGO_FLAGS = ("-g", "-O2")

# Names of the file-kind lists on Package, in classification order.
FILE_KINDS = (
    "go_files",
    "cgo_files",
    "c_files",
    "s_files",
    "cxx_files",
    "m_files",
    "f_files",
    "syso_files",
)

FLAG_FIELDS = (
    "cgo_cppflags",
    "cgo_cflags",
    "cgo_cxxflags",
    "cgo_fflags",
    "cgo_ldflags",
    "pkg_config_cflags",
    "pkg_config_ldflags",
)


def mk_abs(directory: str, name: str) -> str:
    """Return *name* unchanged when absolute, else joined onto *directory*."""
    if os.path.isabs(name):
        return name
    return os.path.join(directory, name)


@dataclass(frozen=True, slots=True)
class Package:
    dir: str
    import_path: str
    name: str = ""
    module_path: str = ""
    module_version: str = ""
    standard: bool = False
    go_files: tuple[str, ...] = ()
    cgo_files: tuple[str, ...] = ()
    c_files: tuple[str, ...] = ()
    s_files: tuple[str, ...] = ()
    cxx_files: tuple[str, ...] = ()
    m_files: tuple[str, ...] = ()
    f_files: tuple[str, ...] = ()
    syso_files: tuple[str, ...] = ()
    cgo_cppflags: tuple[str, ...] = ()
    cgo_cflags: tuple[str, ...] = ()
    cgo_cxxflags: tuple[str, ...] = ()
    cgo_fflags: tuple[str, ...] = ()
    cgo_ldflags: tuple[str, ...] = ()
    pkg_config_cflags: tuple[str, ...] = ()
    pkg_config_ldflags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Callers may hand in lists; keep private copies.
        for attr in (*FILE_KINDS, *FLAG_FIELDS):
            object.__setattr__(self, attr, tuple(getattr(self, attr)))

        seen: dict[str, str] = {}
        for kind in FILE_KINDS:
            for name in getattr(self, kind):
                if name in seen:
                    raise ValidationError(
                        f"Source file {name} is listed more than once.",
                        hint="Each source file must belong to exactly one file kind.",
                        context={
                            "package": self.import_path,
                            "file": name,
                            "kinds": f"{seen[name]}, {kind}",
                        },
                    )
                seen[name] = kind

    @property
    def external_file_count(self) -> int:
        """Number of non-Go inputs that end up in the package archive."""
        return (
            len(self.cgo_files)
            + len(self.c_files)
            + len(self.cxx_files)
            + len(self.m_files)
            + len(self.f_files)
            + len(self.s_files)
            + len(self.syso_files)
        )

    def pkg_path(self) -> str:
        if self.name == "main":
            return "main"
        return self.import_path


@dataclass(frozen=True, slots=True)
class Action:
    """One package build request.

    ``objdir`` is written with a trailing separator so file names can be
    appended to it directly.
    """

    package: Package
    objdir: str
    importcfg: str = ""


@dataclass(frozen=True, slots=True)
class Context:
    goroot: str
    goos: str
    goarch: str
    go_tool: str = "go"
    go_version: str = ""

    @property
    def include_dir(self) -> str:
        return os.path.join(self.goroot, "pkg", "include")


@dataclass(frozen=True, slots=True)
class BuildMode:
    """Build-wide settings threaded explicitly through every stage.

    ``overlay`` maps source paths to replacement paths. It may be given as a
    mapping and is stored as sorted ``(path, replacement)`` pairs so the mode
    stays immutable and hashable.
    """

    buildmode: BuildModeName = "default"
    msan: bool = False
    dry_run: bool = False
    trimpath: bool = True
    cc: str = DEFAULT_CC
    cxx: str = DEFAULT_CXX
    fc: str = DEFAULT_FC
    gccgo: str = DEFAULT_GCCGO
    cgo_cppflags: tuple[str, ...] = ()
    cgo_cflags: tuple[str, ...] = DEFAULT_CGO_FLAGS
    cgo_cxxflags: tuple[str, ...] = DEFAULT_CGO_FLAGS
    cgo_fflags: tuple[str, ...] = DEFAULT_CGO_FLAGS
    cgo_ldflags: tuple[str, ...] = DEFAULT_CGO_FLAGS
    cflags_allow: str | None = None
    cflags_disallow: str | None = None
    ldflags_allow: str | None = None
    ldflags_disallow: str | None = None
    overlay: tuple[tuple[str, str], ...] = ()

    def __post_init__(self) -> None:
        if self.buildmode not in get_args(BuildModeName):
            raise ConfigurationError(
                f"Unknown build mode {self.buildmode!r}.",
                hint="Use one of: " + ", ".join(get_args(BuildModeName)) + ".",
                context={"buildmode": str(self.buildmode)},
            )
        for name in ("cgo_cppflags", "cgo_cflags", "cgo_cxxflags", "cgo_fflags", "cgo_ldflags"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        overlay = self.overlay
        pairs = overlay.items() if isinstance(overlay, Mapping) else overlay
        object.__setattr__(self, "overlay", tuple(sorted((str(k), str(v)) for k, v in pairs)))

    def overlay_path(self, path: str) -> str | None:
        """Return the replacement for *path*, or None when it is not overlaid."""
        for source, replacement in self.overlay:
            if source == path:
                return replacement
        return None

    @classmethod
    def from_env(cls, environ: Mapping[str, str], **overrides: object) -> BuildMode:
        """Build a mode from CC/CXX/FC/GCCGO and CGO_* variables in *environ*."""

        def flags(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
            value = environ.get(name)
            if value is None:
                return default
            return tuple(shlex.split(value))

        values: dict[str, object] = {
            "cc": environ.get("CC") or DEFAULT_CC,
            "cxx": environ.get("CXX") or DEFAULT_CXX,
            "fc": environ.get("FC") or DEFAULT_FC,
            "gccgo": environ.get("GCCGO") or DEFAULT_GCCGO,
            "cgo_cppflags": flags("CGO_CPPFLAGS", ()),
            "cgo_cflags": flags("CGO_CFLAGS", DEFAULT_CGO_FLAGS),
            "cgo_cxxflags": flags("CGO_CXXFLAGS", DEFAULT_CGO_FLAGS),
            "cgo_fflags": flags("CGO_FFLAGS", DEFAULT_CGO_FLAGS),
            "cgo_ldflags": flags("CGO_LDFLAGS", DEFAULT_CGO_FLAGS),
            "cflags_allow": environ.get("CGO_CFLAGS_ALLOW"),
            "cflags_disallow": environ.get("CGO_CFLAGS_DISALLOW"),
            "ldflags_allow": environ.get("CGO_LDFLAGS_ALLOW"),
            "ldflags_disallow": environ.get("CGO_LDFLAGS_DISALLOW"),
        }
        values.update(overrides)
        return cls(**values)  # type: ignore[arg-type]


@dataclass(frozen=True, slots=True)
class BuildResult:
    archive: str
    objects: tuple[str, ...] = ()
    go_files: tuple[str, ...] = ()
    packed: bool = False
