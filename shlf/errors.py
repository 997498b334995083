"""Exception taxonomy for the directory view.

Every error is recovered inside the core: refresh degrades to an empty
snapshot, mutations report ``False``, and a failed watch means manual refresh.
"""

from __future__ import annotations

from pathlib import Path


class ShlfError(Exception):
    """Base class for recoverable view errors."""


class DirectoryUnavailable(ShlfError):
    """The watched directory is missing, not a directory, or unreadable."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class ValidationError(ShlfError):
    """A mutation was rejected before touching the filesystem."""


class OperationFailed(ShlfError):
    """A trash or move call failed for any OS-level reason."""

    def __init__(self, operation: str, path: Path, cause: BaseException) -> None:
        super().__init__(f"{operation} {path}: {cause}")
        self.operation = operation
        self.path = path
        self.cause = cause


class WatchUnavailable(ShlfError):
    """The OS-level watch could not be established."""


__all__ = [
    "ShlfError",
    "DirectoryUnavailable",
    "ValidationError",
    "OperationFailed",
    "WatchUnavailable",
]
