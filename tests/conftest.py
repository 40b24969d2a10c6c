"""Shared test fixtures."""

from __future__ import annotations

import os
import shlex
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest

from gobuild.executors import RecordedCommand, RecordingExecutor
from gobuild.models import Action, Context, Package

IMPORT_PATH = "example.com/hello"


@pytest.fixture
def ctx() -> Context:
    return Context(goroot="/usr/local/go", goos="linux", goarch="amd64", go_tool="go")


@pytest.fixture
def executor() -> RecordingExecutor:
    """Provide an executor that records commands instead of running them."""
    return RecordingExecutor()


@pytest.fixture
def make_action(tmp_path: Path) -> Callable[..., Action]:
    """Return a factory for actions rooted in a temporary package directory."""

    def factory(*, importcfg: str = "", **package_fields: Any) -> Action:
        package_dir = tmp_path / "src" / "hello"
        package_dir.mkdir(parents=True, exist_ok=True)
        objdir = tmp_path / "work" / "b001"
        objdir.mkdir(parents=True, exist_ok=True)
        fields: dict[str, Any] = {
            "dir": str(package_dir),
            "import_path": IMPORT_PATH,
            "name": "hello",
            "module_path": IMPORT_PATH,
            "module_version": "v1.0.0",
        }
        fields.update(package_fields)
        return Action(
            package=Package(**fields),
            objdir=str(objdir) + os.sep,
            importcfg=importcfg,
        )

    return factory


@pytest.fixture
def cgo_simulator() -> Callable[..., Callable[[RecordedCommand], None]]:
    """Return a factory for ``on_run`` hooks that emulate the cgo tool.

    The hook writes ``_cgo_gotypes.go`` with one ``//go:cgo_ldflag`` line per
    flag received through CGO_LDFLAGS, followed by *extra_ldflags*, and
    writes the ``-dynout`` file for the dynamic import step.
    """

    def factory(extra_ldflags: Sequence[str] = ()) -> Callable[[RecordedCommand], None]:
        def on_run(command: RecordedCommand) -> None:
            argv = command.argv
            if argv[1:3] != ("tool", "cgo"):
                return
            if "-objdir" in argv:
                objdir = argv[argv.index("-objdir") + 1]
                flags = shlex.split(command.env.get("CGO_LDFLAGS", ""))
                lines = ["// Code generated by cmd/cgo; DO NOT EDIT.", "", "package hello", ""]
                lines.extend(f'//go:cgo_ldflag "{flag}"' for flag in (*flags, *extra_ldflags))
                Path(objdir, "_cgo_gotypes.go").write_text("\n".join(lines) + "\n")
            if "-dynout" in argv:
                out = argv[argv.index("-dynout") + 1]
                Path(out).write_text("package hello\n")

        return on_run

    return factory
