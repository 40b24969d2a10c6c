"""Typed build error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error identifiers used across build stages."""

    VALIDATION = "E_VALIDATION"
    UNSUPPORTED = "E_UNSUPPORTED"
    CONFIGURATION = "E_CONFIGURATION"
    SECURITY = "E_SECURITY"
    TOOL_EXECUTION = "E_TOOL_EXECUTION"


class GoBuildError(Exception):
    """Build failure carrying a stable code, an optional fix-it hint and context.

    ``str()`` renders the message, the hint and every non-empty context entry
    on separate lines; ``message`` keeps the first line alone for log records.
    """

    code: str
    message: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.message = message
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        lines = [self.message]
        if self.hint:
            lines.append(f"Hint: {self.hint}")
        lines.extend(f"  {key}: {value}" for key, value in self.context.items() if value)
        return "\n".join(lines)

    def to_dict(self) -> dict[str, object]:
        """Return the error as a JSON-ready mapping for build logs."""
        payload: dict[str, object] = {
            "code": self.code,
            "message": self.message,
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ValidationError(GoBuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.VALIDATION, hint=hint, context=context)


class UnsupportedError(GoBuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.UNSUPPORTED, hint=hint, context=context)


class ConfigurationError(GoBuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.CONFIGURATION, hint=hint, context=context)


class SecurityError(GoBuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.SECURITY, hint=hint, context=context)


class ToolExecutionError(GoBuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.TOOL_EXECUTION, hint=hint, context=context)


__all__ = [
    "ConfigurationError",
    "ErrorCode",
    "GoBuildError",
    "SecurityError",
    "ToolExecutionError",
    "UnsupportedError",
    "ValidationError",
]
