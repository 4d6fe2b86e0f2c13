"""Error kinds raised or returned by the recorder core."""

from dataclasses import dataclass


@dataclass(frozen=True)
class PermissionDenied:
    """Returned when a session cannot start because a capability is unavailable."""

    capability: str
    reason: str


class RecorderError(Exception):
    """Base class for recorder failures."""


class CaptureFailure(RecorderError):
    """The capture device failed while a session was in progress."""


class IllegalStateError(RecorderError):
    """An operation was requested from a state that does not allow it."""


class InvalidEmotionValue(RecorderError, ValueError):
    """An emotion value outside the 0..5 scale was supplied."""


class StorageError(RecorderError):
    """Base class for durable storage failures."""


class StorageReadFailure(StorageError):
    """The session collection could not be read or decoded."""


class StorageWriteFailure(StorageError):
    """The session collection could not be written."""
