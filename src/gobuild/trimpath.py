"""Source-path rewriting for reproducible, machine-independent output.

Every toolchain stage receives the same rewrite string: a
semicolon-separated list of ``from=>to`` rules. The package directory is
rewritten to its canonical module-qualified import path and the object
directory is rewritten to nothing at all.
"""

from __future__ import annotations

import os
from collections.abc import Iterable

from gobuild.models import Action, Package

# C compilers reject an empty replacement prefix.
C_OBJDIR_PREFIX = "/tmp/go-build"


def rewritten_dir(package: Package) -> str:
    """Return the canonical directory name recorded in compiled output."""
    module = package.module_path
    if not module:
        return package.import_path
    suffix = package.import_path.removeprefix(module)
    if package.module_version:
        return f"{module}@{package.module_version}{suffix}"
    return module + suffix


def trimpath(action: Action) -> str:
    """Return the ``-trimpath`` argument to use when compiling *action*."""
    objdir = action.objdir
    if len(objdir) > 1 and objdir.endswith(os.sep):
        objdir = objdir[:-1]
    package = action.package
    return f"{package.dir}=>{rewritten_dir(package)};{objdir}=>"


def rewrite_rules(value: str) -> list[tuple[str, str]]:
    rules: list[tuple[str, str]] = []
    for rule in value.split(";"):
        if not rule:
            continue
        source, sep, target = rule.partition("=>")
        if not sep:
            continue
        rules.append((source, target))
    return rules


def join_rewrites(rules: Iterable[tuple[str, str]]) -> str:
    return ";".join(f"{source}=>{target}" for source, target in rules)


def prefix_map_flags(action: Action) -> tuple[str, ...]:
    """Translate the trimpath rule into C compiler ``-fdebug-prefix-map`` flags."""
    flags = []
    for source, target in rewrite_rules(trimpath(action)):
        flags.append(f"-fdebug-prefix-map={source}={target or C_OBJDIR_PREFIX}")
    return tuple(flags)
