"""Exception hierarchy for the polling monitor."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Optional


class PollwatchError(Exception):
    """Base class for all errors raised by pollwatch."""


class ConfigError(PollwatchError):
    """Raised when the configuration file or arguments are missing or invalid."""


class FileSystemReadError(PollwatchError):
    """A path could not be read while taking a snapshot.

    Never fatal: the snapshot treats the entry as absent.
    """

    def __init__(self, path: Path, cause: OSError):
        super().__init__(f"Unable to read {path}: {cause}")
        self.path = path
        self.cause = cause


class ListenerCallbackError(PollwatchError):
    """A listener callback raised while an observer was notifying it."""

    def __init__(self, listener: Any, subject: Any, cause: BaseException):
        super().__init__(f"Listener {listener!r} failed for {subject}: {cause!r}")
        self.listener = listener
        self.subject = subject
        self.cause = cause


class MonitorError(PollwatchError):
    """Invalid use of a monitor, such as starting it twice."""


class SchedulingError(MonitorError):
    """The monitor's background thread could not be started."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
