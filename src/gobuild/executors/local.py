"""Executor that runs toolchain commands as host subprocesses.

Commands run in the package directory. Environment overrides are layered
on top of the ambient environment. A non-zero exit, a launch failure, or an
expired timeout raises ``ToolExecutionError``; nothing is retried.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from gobuild.command import CommandLine
from gobuild.errors import ToolExecutionError
from gobuild.models import Action


@dataclass(slots=True)
class SubprocessExecutor:
    name: str = "subprocess"
    timeout: float | None = None

    def run(
        self,
        action: Action,
        env: Mapping[str, str] | None,
        command: CommandLine,
    ) -> None:
        argv = list(command.argv())
        run_env = dict(os.environ)
        run_env.update(env or {})
        try:
            result = subprocess.run(
                argv,
                cwd=action.package.dir or None,
                env=run_env,
                capture_output=True,
                text=True,
                check=False,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise ToolExecutionError(
                f"{command.tool} timed out.",
                hint="Raise the executor timeout or investigate the hanging tool.",
                context={
                    "executor": self.name,
                    "package": action.package.import_path,
                    "timeout": str(self.timeout),
                    "command": str(command),
                },
            ) from exc
        except OSError as exc:
            raise ToolExecutionError(
                f"Failed to launch {command.tool}.",
                hint="Ensure the toolchain binaries are installed and in PATH.",
                context={
                    "executor": self.name,
                    "package": action.package.import_path,
                    "error": str(exc),
                    "command": str(command),
                },
            ) from exc

        if result.returncode != 0:
            raise ToolExecutionError(
                f"{command.tool} failed.",
                hint="Check the tool output for details.",
                context={
                    "executor": self.name,
                    "package": action.package.import_path,
                    "returncode": str(result.returncode),
                    "stderr": result.stderr[-2000:] if result.stderr else "",
                    "command": str(command),
                },
            )

    def write_file(self, path: str, content: bytes) -> None:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
