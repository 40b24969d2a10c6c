"""Compiler-suite back ends.

Exactly one back end is active per build. ``select_toolchain`` constructs it
from a back-end name and the build mode.
"""

from __future__ import annotations

from gobuild.errors import ConfigurationError
from gobuild.models import BuildMode

from .base import Toolchain
from .gc import GcToolchain
from .gccgo import GccgoToolchain, gccgo_pkgpath

TOOLCHAIN_NAMES = ("gc", "gccgo")


def select_toolchain(name: str, mode: BuildMode | None = None) -> Toolchain:
    mode = mode or BuildMode()
    if name == "gc":
        return GcToolchain(trim_paths=mode.trimpath)
    if name == "gccgo":
        return GccgoToolchain(tool=mode.gccgo, cc_tool=mode.cc, trim_paths=mode.trimpath)
    raise ConfigurationError(
        f"Unknown toolchain {name!r}.",
        hint="Use one of: " + ", ".join(TOOLCHAIN_NAMES) + ".",
        context={"toolchain": name},
    )


__all__ = [
    "GcToolchain",
    "GccgoToolchain",
    "TOOLCHAIN_NAMES",
    "Toolchain",
    "gccgo_pkgpath",
    "select_toolchain",
]
