"""The cgo bridge step.

Runs the cgo generator over a package's cgo files, compiles the generated
and original foreign sources with the host C toolchain, produces the
back-end specific dynamic-import artifact, and double-checks the linker
flags that end up embedded in generated Go files.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from gobuild.ccompiler import C_COMPILER_ENV, ccompile, clink
from gobuild.cflags import bridge_flags, go_quote
from gobuild.command import CommandLine
from gobuild.errors import ConfigurationError, ValidationError
from gobuild.executors.base import Executor
from gobuild.models import Action, BuildMode, Context, Package, mk_abs
from gobuild.security import check_linker_flags, extract_cgo_ldflags, remove_sublist
from gobuild.toolchains.base import Toolchain
from gobuild.toolchains.gccgo import gccgo_pkgpath
from gobuild.trimpath import join_rewrites

GOTYPES_FILE = "_cgo_gotypes.go"
EXPORT_FILE = "_cgo_export.c"
IMPORT_FILE = "_cgo_import.go"
DEFUN_FILE = "_cgo_defun.c"
DEFUN_OBJECT = "_cgo_defun.o"
MAIN_FILE = "_cgo_main.c"
MAIN_OBJECT = "_cgo_main.o"
DYNAMIC_OBJECT = "_cgo_.o"
FLAGS_OBJECT = "_cgo_flags"
EXPORT_HEADER = "_cgo_install.h"
GENERATED_PREFIX = "_cgo_"

GO_ASSEMBLY_DIRECTIVES = (b"TEXT", b"DATA", b"GLOBL")


@dataclass(frozen=True, slots=True)
class CgoResult:
    go_files: tuple[str, ...]
    objects: tuple[str, ...]


def cgo_command(ctx: Context) -> CommandLine:
    return CommandLine.of(ctx.go_tool, "tool", "cgo")


def is_go_assembly(data: bytes) -> bool:
    """Report whether *data* has a Go assembler directive at a line start."""
    for directive in GO_ASSEMBLY_DIRECTIVES:
        if data.startswith(directive) or b"\n" + directive in data:
            return True
    return False


def check_gcc_assembly(package: Package) -> None:
    # In a cgo package the host compiler assembles the .s files, so they
    # cannot be written for the Go assembler.
    for sfile in package.s_files:
        data = Path(mk_abs(package.dir, sfile)).read_bytes()
        if is_go_assembly(data):
            raise ValidationError(
                f"package using cgo has Go assembly file {sfile}",
                hint="Move Go assembly out of the cgo package or rewrite it for the C assembler.",
                context={"package": package.import_path, "file": sfile},
            )


class _ObjectNamer:
    """Sequential object names short enough for archive member headers."""

    def __init__(self, objdir: str) -> None:
        self.objdir = objdir
        self.seq = 0

    def next(self) -> str:
        self.seq += 1
        return self.objdir + f"_x{self.seq:03d}.o"


def run_cgo(
    ctx: Context,
    executor: Executor,
    toolchain: Toolchain,
    action: Action,
    *,
    mode: BuildMode,
) -> CgoResult:
    package = action.package
    objdir = action.objdir

    check_gcc_assembly(package)
    # C and assembly files both go to the host compiler.
    gcc_files = package.c_files + package.s_files

    flags = bridge_flags(package, mode)
    # Lets .c files include _cgo_export.h and the package's own headers.
    cppflags = (*flags.cppflags, "-I", objdir)

    go_files = [objdir + GOTYPES_FILE]
    generated_c = [EXPORT_FILE]
    for name in package.cgo_files:
        stem = os.path.basename(name).removesuffix(".go")
        go_files.append(objdir + stem + ".cgo1.go")
        generated_c.append(stem + ".cgo2.c")

    cgoflags: list[str] = []
    if package.standard and package.import_path == "runtime/cgo":
        cgoflags.append("-import_runtime_cgo=false")
    if package.standard and package.import_path in ("runtime/race", "runtime/msan", "runtime/cgo"):
        cgoflags.append("-import_syscall=false")

    # cgo records these in _cgo_gotypes.go as //go:cgo_ldflag directives;
    # the linker later hands them to the host linker.
    env = dict(C_COMPILER_ENV)
    if flags.ldflags:
        env["CGO_LDFLAGS"] = " ".join(go_quote(flag) for flag in flags.ldflags)

    if toolchain.name == "gccgo":
        cgoflags.append("-gccgo")
        pkgpath = gccgo_pkgpath(package)
        if pkgpath:
            cgoflags.append(f"-gccgopkgpath={pkgpath}")

    if mode.buildmode in ("c-archive", "c-shared"):
        cgoflags.append(f"-exportheader={objdir}{EXPORT_HEADER}")

    # cgo writes //line pragmas naming its inputs; map overlaid inputs
    # back to their real location.
    sources = []
    rewrites = []
    for name in package.cgo_files:
        path = mk_abs(package.dir, name)
        overlay_path = mode.overlay_path(path)
        if overlay_path:
            sources.append(overlay_path)
            rewrites.append((overlay_path, path))
        else:
            sources.append(path)
    if rewrites:
        cgoflags.extend(["-trimpath", join_rewrites(rewrites)])

    command = (
        cgo_command(ctx)
        .option("-objdir", objdir)
        .option("-importpath", package.import_path)
        .args(cgoflags)
        .arg("--")
        .args(cppflags)
        .args(flags.cflags)
        .args(sources)
    )
    executor.run(action, env, command)

    namer = _ObjectNamer(objdir)
    objects: list[str] = []

    def compile_each(sources: Sequence[str], compiler: str, compile_flags: Sequence[str]) -> None:
        for source in sources:
            ofile = namer.next()
            ccompile(
                ctx,
                executor,
                action,
                compiler=compiler,
                ofile=ofile,
                flags=compile_flags,
                source=source,
            )
            objects.append(ofile)

    cflags = (*cppflags, *flags.cflags)
    compile_each([objdir + name for name in generated_c], mode.cc, cflags)
    compile_each(gcc_files, mode.cc, cflags)
    compile_each(package.cxx_files, mode.cxx, (*cppflags, *flags.cxxflags))
    compile_each(package.m_files, mode.cc, cflags)
    compile_each(package.f_files, mode.fc, (*cppflags, *flags.fflags))

    if toolchain.name == "gc":
        import_go = objdir + IMPORT_FILE
        dynimport(
            ctx,
            executor,
            action,
            mode=mode,
            cflags=cflags,
            ldflags=flags.ldflags,
            objects=objects,
            import_go=import_go,
        )
        go_files.append(import_go)
    elif toolchain.name == "gccgo":
        defun_c = objdir + DEFUN_FILE
        defun_obj = objdir + DEFUN_OBJECT
        toolchain.cc(ctx, executor, action, defun_obj, defun_c)
        objects.append(defun_obj)
    else:
        raise ConfigurationError(
            "no compiler selected",
            hint="Select the gc or gccgo toolchain.",
            context={"toolchain": toolchain.name, "package": package.import_path},
        )

    if toolchain.name == "gc" and not mode.dry_run:
        verify_cgo_ldflags(go_files, flags.ldflags, mode=mode)

    return CgoResult(go_files=tuple(go_files), objects=tuple(objects))


def dynimport(
    ctx: Context,
    executor: Executor,
    action: Action,
    *,
    mode: BuildMode,
    cflags: Sequence[str],
    ldflags: Sequence[str],
    objects: Sequence[str],
    import_go: str,
) -> None:
    """Link the foreign objects and describe their dynamic imports in Go."""
    package = action.package
    objdir = action.objdir

    main_obj = objdir + MAIN_OBJECT
    ccompile(
        ctx,
        executor,
        action,
        compiler=mode.cc,
        ofile=main_obj,
        flags=cflags,
        source=objdir + MAIN_FILE,
    )

    link_objects = [main_obj, *objects, *(mk_abs(package.dir, f) for f in package.syso_files)]
    link_flags = list(ldflags)
    if (ctx.goarch == "arm" and ctx.goos == "linux") or ctx.goos == "android":
        if "-no-pie" not in link_flags:
            link_flags.append("-pie")
        # -static -pie does not link.
        if "-pie" in link_flags and "-static" in link_flags:
            link_flags = [flag for flag in link_flags if flag != "-static"]

    dynobj = objdir + DYNAMIC_OBJECT
    clink(
        ctx,
        executor,
        action,
        compiler=mode.cc,
        out=dynobj,
        flags=link_flags,
        objects=link_objects,
    )

    command = (
        cgo_command(ctx)
        .option("-dynpackage", package.name)
        .option("-dynimport", dynobj)
        .option("-dynout", import_go)
    )
    if package.standard and package.import_path == "runtime/cgo":
        command = command.arg("-dynlinker")
    executor.run(action, C_COMPILER_ENV, command)


def verify_cgo_ldflags(
    go_files: Sequence[str],
    expected: Sequence[str],
    *,
    mode: BuildMode,
) -> None:
    """Reject linker flags smuggled into generated files.

    The compiler only honors ``//go:cgo_ldflag`` in files whose base name
    starts with ``_cgo_``. Those files must carry exactly the flags handed
    to cgo, plus nothing outside the linker allow-list.
    """
    found: list[str] = []
    for path in go_files:
        if not os.path.basename(path).startswith(GENERATED_PREFIX):
            continue
        source = Path(path).read_bytes().decode("utf-8", errors="replace")
        found.extend(extract_cgo_ldflags(source))

    remaining = remove_sublist(found, expected)
    check_linker_flags(
        "LDFLAGS",
        "go:cgo_ldflag",
        remaining,
        allow=mode.ldflags_allow,
        disallow=mode.ldflags_disallow,
    )
