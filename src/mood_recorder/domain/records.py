"""Domain models for recorded sessions."""

import secrets
import string
import time
from dataclasses import dataclass
from datetime import UTC, datetime

from mood_recorder.domain.errors import InvalidEmotionValue

EMOTION_MIN = 0
EMOTION_MAX = 5
EMOTION_LEVELS = tuple(range(EMOTION_MIN, EMOTION_MAX + 1))

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_record_id() -> str:
    """Return a new unique session id."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"session_{time.time_ns() // 1_000_000}_{suffix}"


def validate_emotion_value(value: object) -> int:
    """Return the value if it is an integer emotion level, else raise."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidEmotionValue(f"Emotion value must be an integer, got {value!r}")
    if not EMOTION_MIN <= value <= EMOTION_MAX:
        raise InvalidEmotionValue(
            f"Emotion value must be between {EMOTION_MIN} and {EMOTION_MAX}, got {value}"
        )
    return value


@dataclass(frozen=True)
class Coordinate:
    """A latitude/longitude pair."""

    latitude: float
    longitude: float


@dataclass(frozen=True)
class Record:
    """One completed recording session."""

    id: str
    start_time: datetime
    end_time: datetime | None = None
    duration: int = 0
    emotion_value: int | None = None
    latitude: float | None = None
    longitude: float | None = None
    media_ref: str | None = None

    def __post_init__(self) -> None:
        # Naive timestamps are taken as UTC so every record compares alike.
        for name in ("start_time", "end_time"):
            value = getattr(self, name)
            if value is not None and value.tzinfo is None:
                object.__setattr__(self, name, value.replace(tzinfo=UTC))
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must both be present or absent")
        if self.end_time is not None and self.end_time < self.start_time:
            raise ValueError("end_time must not precede start_time")
        if self.duration < 0:
            raise ValueError("duration must not be negative")
        if self.emotion_value is not None:
            validate_emotion_value(self.emotion_value)

    @property
    def coordinate(self) -> Coordinate | None:
        """Return the recorded location, if any."""
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinate(latitude=self.latitude, longitude=self.longitude)
