"""Typed interface for compiler-suite back ends."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from gobuild.executors.base import Executor
from gobuild.models import Action, Context

# The GOROOT_FINAL value used at link time when paths are trimmed.
TRIM_PATH_GOROOT_FINAL = "go"


class Toolchain(Protocol):
    name: str

    def symabis(
        self,
        ctx: Context,
        executor: Executor,
        action: Action,
        s_files: Sequence[str],
    ) -> str:
        """Scan symbol ABIs from *s_files*; return the output path, or "" if none."""

    def gc(
        self,
        ctx: Context,
        executor: Executor,
        action: Action,
        *,
        importcfg: str,
        archive: str,
        symabis: str,
        asmhdr: bool,
        go_files: Sequence[str],
    ) -> str:
        """Compile Go sources and return the path of the generated output file."""

    def cc(
        self,
        ctx: Context,
        executor: Executor,
        action: Action,
        ofile: str,
        cfile: str,
    ) -> None:
        """Compile a single plain C file into *ofile*."""

    def asm(
        self,
        ctx: Context,
        executor: Executor,
        action: Action,
        s_files: Sequence[str],
    ) -> list[str]:
        """Assemble *s_files* one by one and return the object paths."""

    def pack(
        self,
        ctx: Context,
        executor: Executor,
        action: Action,
        afile: str,
        ofiles: Sequence[str],
    ) -> None:
        """Append *ofiles* to the archive *afile*."""

    def ld(
        self,
        ctx: Context,
        executor: Executor,
        action: Action,
        out: str,
        importcfg: str,
        mainpkg: str,
    ) -> None:
        """Link an executable starting at *mainpkg*."""
