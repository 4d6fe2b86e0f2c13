"""Domain models for the recording state machine."""

from dataclasses import dataclass
from enum import Enum


class RecorderState(Enum):
    """States of a recording session."""

    IDLE = "idle"
    COUNTDOWN = "countdown"
    CAPTURING = "capturing"
    PAUSED = "paused"
    COMPLETING = "completing"
    TAGGING = "tagging"
    DONE = "done"


@dataclass(frozen=True)
class RecorderStatus:
    """Point-in-time view of the controller for display."""

    state: RecorderState
    record_id: str | None = None
    countdown: int | None = None
    elapsed_seconds: int = 0

    @property
    def countdown_label(self) -> str | None:
        """Return the countdown text shown to the user."""
        if self.countdown is None:
            return None
        if self.countdown == 0:
            return "Go"
        return str(self.countdown)
