"""The standard gc compiler suite, driven through ``go tool``."""

from __future__ import annotations

import os
import shlex
from collections.abc import Sequence
from dataclasses import dataclass

from gobuild.command import CommandLine
from gobuild.errors import UnsupportedError
from gobuild.executors.base import Executor
from gobuild.models import Action, Context, mk_abs
from gobuild.toolchains.base import TRIM_PATH_GOROOT_FINAL
from gobuild.trimpath import trimpath

GO_OBJECT = "_go_.o"
ASM_HEADER = "go_asm.h"
SYMABIS_FILE = "symabis"


def asm_command(ctx: Context, action: Action) -> CommandLine:
    # -I <goroot>/pkg/include so #include "textflag.h" works in .s files.
    return (
        CommandLine.of(ctx.go_tool, "tool", "asm")
        .option("-p", action.package.pkg_path())
        .option("-trimpath", trimpath(action))
        .option("-I", action.objdir)
        .option("-I", ctx.include_dir)
        .option("-D", f"GOOS_{ctx.goos}")
        .option("-D", f"GOARCH_{ctx.goarch}")
    )


@dataclass(slots=True)
class GcToolchain:
    name: str = "gc"
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
        package = action.package
        ofile = archive if archive else action.objdir + GO_OBJECT

        gcargs = CommandLine().option("-p", package.pkg_path())
        # Given the entire package, the compiler can report missing
        # forward declarations.
        if package.external_file_count == 0:
            gcargs = gcargs.arg("-complete")
        if ctx.goos == "plan9" or ctx.goarch == "wasm":
            gcargs = gcargs.arg("-dwarf=false")
        if ctx.go_version.startswith("go1"):
            gcargs = gcargs.option("-goversion", ctx.go_version)
        if symabis:
            gcargs = gcargs.option("-symabis", symabis)

        command = (
            CommandLine.of(ctx.go_tool, "tool", "compile")
            .option("-o", ofile)
            .option("-trimpath", trimpath(action))
            .args(gcargs.argv())
        )
        if importcfg:
            command = command.option("-importcfg", importcfg)
        if ofile == archive:
            command = command.arg("-pack")
        if asmhdr:
            command = command.option("-asmhdr", action.objdir + ASM_HEADER)
        command = command.args(mk_abs(package.dir, f) for f in go_files)

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
        path = mk_abs(action.package.dir, cfile)
        raise UnsupportedError(
            f"{path}: C source files not supported without cgo",
            hint="Add a cgo file to the package or use the gccgo toolchain.",
            context={"toolchain": self.name, "package": action.package.import_path},
        )

    def asm(
        self,
        ctx: Context,
        executor: Executor,
        action: Action,
        s_files: Sequence[str],
    ) -> list[str]:
        base_command = asm_command(ctx, action)
        ofiles = []
        for sfile in s_files:
            ofile = action.objdir + os.path.splitext(sfile)[0] + ".o"
            ofiles.append(ofile)
            command = base_command.option("-o", ofile).arg(mk_abs(action.package.dir, sfile))
            executor.run(action, None, command)
        return ofiles

    def symabis(
        self,
        ctx: Context,
        executor: Executor,
        action: Action,
        s_files: Sequence[str],
    ) -> str:
        if not s_files:
            return ""

        path = action.objdir + SYMABIS_FILE
        command = (
            asm_command(ctx, action)
            .arg("-gensymabis")
            .option("-o", path)
            .args(mk_abs(action.package.dir, f) for f in s_files)
        )
        # -gensymabis parsing is lax enough that an empty go_asm.h stands
        # in for the header the compiler would have written.
        executor.write_file(action.objdir + ASM_HEADER, b"")
        executor.run(action, None, command)
        return path

    def pack(
        self,
        ctx: Context,
        executor: Executor,
        action: Action,
        afile: str,
        ofiles: Sequence[str],
    ) -> None:
        command = (
            CommandLine.of(ctx.go_tool, "tool", "pack", "r", mk_abs(action.objdir, afile))
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
            CommandLine.of(ctx.go_tool, "tool", "link")
            .option("-o", out)
            .option("-importcfg", importcfg)
        )
        if action.package.cgo_ldflags:
            command = command.option("-extldflags", shlex.join(action.package.cgo_ldflags))
        executor.run(action, env, command.arg(mainpkg))
