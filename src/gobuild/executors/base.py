"""Protocol for the build effect boundary."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

from gobuild.command import CommandLine
from gobuild.models import Action


class Executor(Protocol):
    name: str

    def run(
        self,
        action: Action,
        env: Mapping[str, str] | None,
        command: CommandLine,
    ) -> None:
        """Run *command* for *action*, raising on any failure."""

    def write_file(self, path: str, content: bytes) -> None:
        """Write a staging file before a dependent stage runs."""
