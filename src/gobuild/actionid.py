"""Deterministic identity for a package build action.

Everything that can influence the produced archive is folded into a
canonical CBOR document and hashed. The object directory is deliberately
absent: it is rewritten away by trimpath and never reaches the output.
"""

from __future__ import annotations

import hashlib
from dataclasses import fields
from typing import Any

import cbor2

from gobuild.models import FILE_KINDS, FLAG_FIELDS, Action, BuildMode, Context, Package
from gobuild.trimpath import rewritten_dir

ACTION_ID_SCHEMA = 1


def _package_payload(package: Package) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "import_path": package.import_path,
        "name": package.name,
        "module_path": package.module_path,
        "module_version": package.module_version,
        "standard": package.standard,
        "rewritten_dir": rewritten_dir(package),
    }
    for kind in (*FILE_KINDS, *FLAG_FIELDS):
        payload[kind] = list(getattr(package, kind))
    return payload


def _mode_payload(mode: BuildMode) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for item in fields(mode):
        value = getattr(mode, item.name)
        if item.name == "overlay":
            value = dict(value)
        elif isinstance(value, tuple):
            value = list(value)
        payload[item.name] = value
    return payload


def action_payload(
    ctx: Context,
    mode: BuildMode,
    toolchain_name: str,
    action: Action,
) -> dict[str, Any]:
    return {
        "schema": ACTION_ID_SCHEMA,
        "toolchain": toolchain_name,
        "context": {
            "goos": ctx.goos,
            "goarch": ctx.goarch,
            "go_version": ctx.go_version,
        },
        "mode": _mode_payload(mode),
        "package": _package_payload(action.package),
        "importcfg": bool(action.importcfg),
    }


def action_id(
    ctx: Context,
    mode: BuildMode,
    toolchain_name: str,
    action: Action,
) -> str:
    encoded = cbor2.dumps(action_payload(ctx, mode, toolchain_name, action), canonical=True)
    return hashlib.sha256(encoded).hexdigest()
