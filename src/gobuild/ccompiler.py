"""Foreign C/C++/Fortran compiler invocation helpers."""

from __future__ import annotations

import shlex
from collections.abc import Sequence

from gobuild.command import CommandLine
from gobuild.executors.base import Executor
from gobuild.models import Action, Context, mk_abs
from gobuild.trimpath import prefix_map_flags

# Keeps compiler diagnostics free of terminal escape sequences.
C_COMPILER_ENV = {"TERM": "dumb"}

_ARCH_FLAGS = {
    "amd64": "-m64",
    "386": "-m32",
    "arm": "-marm",
}


def compiler_command(ctx: Context, action: Action, compiler: str) -> CommandLine:
    """Return the common prefix for every foreign compiler invocation."""
    command = CommandLine.of(*shlex.split(compiler)).option("-I", action.objdir)
    arch_flag = _ARCH_FLAGS.get(ctx.goarch)
    if arch_flag is not None:
        command = command.arg(arch_flag)
    if ctx.goos != "windows":
        command = command.arg("-fPIC", "-pthread")
    return (
        command.arg("-fmessage-length=0")
        .args(prefix_map_flags(action))
        .arg("-gno-record-gcc-switches")
    )


def ccompile(
    ctx: Context,
    executor: Executor,
    action: Action,
    *,
    compiler: str,
    ofile: str,
    flags: Sequence[str],
    source: str,
) -> None:
    command = (
        compiler_command(ctx, action, compiler)
        .args(flags)
        .option("-o", ofile)
        .option("-c", mk_abs(action.package.dir, source))
    )
    executor.run(action, C_COMPILER_ENV, command)


def clink(
    ctx: Context,
    executor: Executor,
    action: Action,
    *,
    compiler: str,
    out: str,
    flags: Sequence[str],
    objects: Sequence[str],
) -> None:
    command = (
        compiler_command(ctx, action, compiler)
        .option("-o", out)
        .args(objects)
        .args(flags)
    )
    executor.run(action, C_COMPILER_ENV, command)
