"""Per-package build orchestration.

The pipeline is linear and stops at the first failure:
cgo (when the package has cgo files) -> symabis -> compile -> plain C ->
assemble -> pack. Every tool invocation goes through the executor.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from gobuild.cgo import FLAGS_OBJECT, run_cgo
from gobuild.errors import GoBuildError
from gobuild.executors.base import Executor
from gobuild.models import Action, BuildMode, BuildResult, Context
from gobuild.observability import StructuredLogger
from gobuild.toolchains.base import Toolchain

ARCHIVE_NAME = "_pkg_.a"


@contextmanager
def _stage(
    logger: StructuredLogger | None,
    action: Action,
    toolchain: Toolchain,
    stage: str,
    **extra: Any,
) -> Iterator[None]:
    if logger is None:
        yield
        return
    package = action.package.import_path
    try:
        yield
    except Exception as exc:
        failure: dict[str, Any] = {"error": type(exc).__name__}
        if isinstance(exc, GoBuildError):
            failure.update(exc.to_dict())
            message = exc.message
        else:
            message = str(exc).splitlines()[0] if str(exc) else type(exc).__name__
        logger.log(
            operation="stage_failed",
            package=package,
            stage=stage,
            toolchain=toolchain.name,
            message=message,
            level="error",
            extra=failure,
        )
        raise
    logger.log(
        operation="stage_complete",
        package=package,
        stage=stage,
        toolchain=toolchain.name,
        message=f"Completed {stage}.",
        extra=extra or None,
    )


def build(
    ctx: Context,
    executor: Executor,
    toolchain: Toolchain,
    action: Action,
    *,
    mode: BuildMode | None = None,
    logger: StructuredLogger | None = None,
) -> BuildResult:
    """Build one package into ``<objdir>_pkg_.a``."""
    mode = mode or BuildMode()
    package = action.package
    objdir = action.objdir

    go_files = list(package.go_files)
    c_files = list(package.c_files)
    s_files = list(package.s_files)
    objects: list[str] = []
    cgo_objects: list[str] = []

    if logger is not None:
        logger.log(
            operation="build_start",
            package=package.import_path,
            stage=None,
            toolchain=toolchain.name,
            message="Starting package build.",
            extra={"objdir": objdir, "executor": executor.name},
        )

    if package.cgo_files:
        with _stage(logger, action, toolchain, "cgo"):
            result = run_cgo(ctx, executor, toolchain, action, mode=mode)
        # cgo compiled the C and assembly files with the host compiler.
        c_files = []
        s_files = []
        if toolchain.name == "gccgo":
            cgo_objects.append(objdir + FLAGS_OBJECT)
        cgo_objects.extend(result.objects)
        go_files.extend(result.go_files)

    with _stage(logger, action, toolchain, "symabis"):
        symabis = toolchain.symabis(ctx, executor, action, s_files)

    archive = objdir + ARCHIVE_NAME
    with _stage(logger, action, toolchain, "compile"):
        ofile = toolchain.gc(
            ctx,
            executor,
            action,
            importcfg=action.importcfg,
            archive=archive,
            symabis=symabis,
            asmhdr=bool(s_files),
            go_files=go_files,
        )
    if ofile != archive:
        objects.append(ofile)

    for cfile in c_files:
        out = objdir + os.path.splitext(cfile)[0] + ".o"
        with _stage(logger, action, toolchain, "cc", file=cfile):
            toolchain.cc(ctx, executor, action, out, cfile)
        objects.append(out)

    if s_files:
        with _stage(logger, action, toolchain, "asm"):
            objects.extend(toolchain.asm(ctx, executor, action, s_files))

    # On Windows the host-compiled objects must come after the ordinary
    # objects in the archive (golang.org/issue/2601).
    objects.extend(cgo_objects)
    objects.extend(os.path.join(package.dir, syso) for syso in package.syso_files)

    # When the compiler wrote the archive and the package is pure Go there
    # is nothing left to pack.
    packed = False
    if objects:
        with _stage(logger, action, toolchain, "pack", objects=len(objects)):
            toolchain.pack(ctx, executor, action, archive, objects)
        packed = True

    if logger is not None:
        logger.log(
            operation="build_complete",
            package=package.import_path,
            stage=None,
            toolchain=toolchain.name,
            message="Completed package build.",
            extra={"archive": archive, "packed": packed},
        )
    return BuildResult(
        archive=archive,
        objects=tuple(objects),
        go_files=tuple(go_files),
        packed=packed,
    )


def link(
    ctx: Context,
    executor: Executor,
    toolchain: Toolchain,
    action: Action,
    *,
    out: str,
    archive: str | None = None,
    logger: StructuredLogger | None = None,
) -> None:
    """Link the main package archive of *action* into the executable *out*."""
    mainpkg = archive or action.objdir + ARCHIVE_NAME
    with _stage(logger, action, toolchain, "link", out=out):
        toolchain.ld(ctx, executor, action, out, action.importcfg, mainpkg)
