"""In-process executor that records commands instead of running them.

Used for dry runs (print what would execute) and for tests that exercise
the orchestration without real compilers. An optional ``on_run`` hook can
simulate tool side effects, and ``fail_when`` injects tool failures.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from gobuild.command import CommandLine
from gobuild.errors import ToolExecutionError
from gobuild.models import Action


@dataclass(frozen=True, slots=True)
class RecordedCommand:
    argv: tuple[str, ...]
    env: Mapping[str, str]
    cwd: str


@dataclass(slots=True)
class RecordingExecutor:
    """Executor that keeps every issued command in ``commands``."""

    name: str = "recording"
    write_to_disk: bool = False
    on_run: Callable[[RecordedCommand], None] | None = None
    fail_when: Callable[[RecordedCommand], bool] | None = None
    commands: list[RecordedCommand] = field(default_factory=list)
    files: dict[str, bytes] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def run(
        self,
        action: Action,
        env: Mapping[str, str] | None,
        command: CommandLine,
    ) -> None:
        recorded = RecordedCommand(
            argv=command.argv(),
            env=dict(env or {}),
            cwd=action.package.dir,
        )
        with self._lock:
            self.commands.append(recorded)
        if self.fail_when is not None and self.fail_when(recorded):
            raise ToolExecutionError(
                f"{command.tool} failed.",
                hint="Failure injected by the recording executor.",
                context={
                    "executor": self.name,
                    "package": action.package.import_path,
                    "returncode": "1",
                    "command": str(command),
                },
            )
        if self.on_run is not None:
            self.on_run(recorded)

    def write_file(self, path: str, content: bytes) -> None:
        with self._lock:
            self.files[path] = content
        if self.write_to_disk:
            target = Path(path)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)

    def argvs(self) -> list[tuple[str, ...]]:
        return [command.argv for command in self.commands]

    def script(self) -> str:
        """Render recorded commands as a shell-like transcript."""
        lines = []
        for command in self.commands:
            prefix = " ".join(f"{k}={v}" for k, v in sorted(command.env.items()))
            line = " ".join(command.argv)
            lines.append(f"{prefix} {line}" if prefix else line)
        return "\n".join(lines) + ("\n" if lines else "")
