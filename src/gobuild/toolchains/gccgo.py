"""The gccgo compiler suite."""

from __future__ import annotations

import os
import shlex
from collections.abc import Sequence
from dataclasses import dataclass

from gobuild.ccompiler import C_COMPILER_ENV, compiler_command
from gobuild.command import CommandLine
from gobuild.executors.base import Executor
from gobuild.models import DEFAULT_CC, DEFAULT_GCCGO, Action, Context, Package, mk_abs
from gobuild.toolchains.base import TRIM_PATH_GOROOT_FINAL
from gobuild.toolchains.gc import GO_OBJECT
from gobuild.trimpath import prefix_map_flags


def gccgo_pkgpath(package: Package) -> str:
    if package.name == "main":
        return ""
    return package.import_path


@dataclass(slots=True)
class GccgoToolchain:
    name: str = "gccgo"
    tool: str = DEFAULT_GCCGO
    cc_tool: str = DEFAULT_CC
    ar: str = "ar"
    trim_paths: bool = True

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
        # gccgo never writes the archive itself.
        package = action.package
        ofile = action.objdir + GO_OBJECT

        command = CommandLine.of(*shlex.split(self.tool)).arg("-c", "-g")
        pkgpath = gccgo_pkgpath(package)
        if pkgpath:
            command = command.arg(f"-fgo-pkgpath={pkgpath}")
        if importcfg:
            command = command.arg(f"-fgo-importcfg={importcfg}")
        command = (
            command.args(prefix_map_flags(action))
            .option("-o", ofile)
            .args(mk_abs(package.dir, f) for f in go_files)
        )
        executor.run(action, None, command)
        return ofile

    def cc(
        self,
        ctx: Context,
        executor: Executor,
        action: Action,
        ofile: str,
        cfile: str,
    ) -> None:
        command = (
            compiler_command(ctx, action, self.cc_tool)
            .arg("-Wall", "-g")
            .option("-I", ctx.include_dir)
            .option("-D", f"GOOS_{ctx.goos}")
            .option("-D", f"GOARCH_{ctx.goarch}")
            .option("-o", ofile)
            .option("-c", mk_abs(action.package.dir, cfile))
        )
        executor.run(action, C_COMPILER_ENV, command)

    def asm(
        self,
        ctx: Context,
        executor: Executor,
        action: Action,
        s_files: Sequence[str],
    ) -> list[str]:
        ofiles = []
        for sfile in s_files:
            ofile = action.objdir + os.path.splitext(sfile)[0] + ".o"
            ofiles.append(ofile)
            command = (
                CommandLine.of(*shlex.split(self.tool))
                .arg("-xassembler-with-cpp")
                .option("-I", action.objdir)
                .arg("-c")
                .option("-o", ofile)
                .option("-D", f"GOOS_{ctx.goos}")
                .option("-D", f"GOARCH_{ctx.goarch}")
                .args(prefix_map_flags(action))
                .arg(mk_abs(action.package.dir, sfile))
            )
            executor.run(action, None, command)
        return ofiles

    def symabis(
        self,
        ctx: Context,
        executor: Executor,
        action: Action,
        s_files: Sequence[str],
    ) -> str:
        return ""

    def pack(
        self,
        ctx: Context,
        executor: Executor,
        action: Action,
        afile: str,
        ofiles: Sequence[str],
    ) -> None:
        command = (
            CommandLine.of(self.ar, "rc", mk_abs(action.objdir, afile))
            .args(mk_abs(action.objdir, f) for f in ofiles)
        )
        executor.run(action, None, command)

    def ld(
        self,
        ctx: Context,
        executor: Executor,
        action: Action,
        out: str,
        importcfg: str,
        mainpkg: str,
    ) -> None:
        env = {"GOROOT_FINAL": TRIM_PATH_GOROOT_FINAL} if self.trim_paths else {}
        command = (
            CommandLine.of(*shlex.split(self.tool))
            .option("-o", out)
            .arg(mainpkg)
            .args(action.package.cgo_ldflags)
        )
        executor.run(action, env, command)
