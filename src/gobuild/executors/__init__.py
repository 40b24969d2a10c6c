from .base import Executor
from .local import SubprocessExecutor
from .recording import RecordedCommand, RecordingExecutor

__all__ = ["Executor", "RecordedCommand", "RecordingExecutor", "SubprocessExecutor"]
