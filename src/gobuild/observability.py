"""Structured records of package builds.

Each record is a flat dict tagged with a sequence number, the package import
path, the pipeline stage and the toolchain. ``build()`` emits
``build_start``, one ``stage_complete`` or ``stage_failed`` per stage, and
``build_complete``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass(slots=True)
class StructuredLogger:
    records: list[dict[str, Any]] = field(default_factory=list)

    def log(
        self,
        *,
        operation: str,
        package: str | None,
        stage: str | None,
        toolchain: str | None,
        message: str,
        level: str = "info",
        extra: dict[str, Any] | None = None,
    ) -> None:
        record: dict[str, Any] = {
            "seq": len(self.records) + 1,
            "operation": operation,
            "level": level,
            "package": package,
            "stage": stage,
            "toolchain": toolchain,
            "message": message,
        }
        if extra is not None:
            record["extra"] = extra
        self.records.append(record)

    def records_for_package(self, package: str) -> list[dict[str, Any]]:
        return [record for record in self.records if record["package"] == package]

    def stages_for_package(self, package: str) -> list[str]:
        """Return completed stage names for *package* in execution order."""
        return [
            record["stage"]
            for record in self.records_for_package(package)
            if record["operation"] == "stage_complete"
        ]

    def failure_for_package(self, package: str) -> dict[str, Any] | None:
        """Return the ``stage_failed`` record for *package*, if its build failed."""
        for record in self.records_for_package(package):
            if record["operation"] == "stage_failed":
                return record
        return None

    def to_json_lines(self, path: str | Path, *, package: str | None = None) -> Path:
        """Write records, optionally only those of *package*, as JSON lines."""
        records = self.records if package is None else self.records_for_package(package)
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with output_path.open("w", encoding="utf-8") as handle:
            for record in records:
                handle.write(json.dumps(record, sort_keys=True) + "\n")
        return output_path
