"""Public package entrypoint for the Go package build orchestrator."""

from .actionid import action_id
from .build import build, link
from .cgo import run_cgo
from .command import Arg, Args, CommandLine, Option
from .errors import (
    ConfigurationError,
    ErrorCode,
    GoBuildError,
    SecurityError,
    ToolExecutionError,
    UnsupportedError,
    ValidationError,
)
from .executors import Executor, RecordingExecutor, SubprocessExecutor
from .models import Action, BuildMode, BuildResult, Context, Package
from .observability import StructuredLogger
from .toolchains import GccgoToolchain, GcToolchain, Toolchain, select_toolchain
from .trimpath import trimpath

__all__ = [
    "Action",
    "Arg",
    "Args",
    "BuildMode",
    "BuildResult",
    "CommandLine",
    "ConfigurationError",
    "Context",
    "ErrorCode",
    "Executor",
    "GcToolchain",
    "GccgoToolchain",
    "GoBuildError",
    "Option",
    "Package",
    "RecordingExecutor",
    "SecurityError",
    "StructuredLogger",
    "SubprocessExecutor",
    "ToolExecutionError",
    "Toolchain",
    "UnsupportedError",
    "ValidationError",
    "action_id",
    "build",
    "link",
    "run_cgo",
    "select_toolchain",
    "trimpath",
]
