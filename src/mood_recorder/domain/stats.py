"""Domain models for session statistics."""

from dataclasses import dataclass

from mood_recorder.domain.records import EMOTION_LEVELS


@dataclass(frozen=True)
class EmotionLevelCount:
    """Number of sessions tagged with one emotion level."""

    level: int
    count: int
    percentage: float


@dataclass(frozen=True)
class SessionStatistics:
    """Summary metrics over a set of sessions."""

    total_sessions: int
    average_emotion: float
    emotion_distribution: dict[int, int]
    locations_recorded: int

    def level_counts(self) -> list[EmotionLevelCount]:
        """Return every emotion level, filling missing levels with zero."""
        rows = []
        for level in EMOTION_LEVELS:
            count = self.emotion_distribution.get(level, 0)
            percentage = (
                round(count / self.total_sessions * 100, 1)
                if self.total_sessions
                else 0.0
            )
            rows.append(EmotionLevelCount(level=level, count=count, percentage=percentage))
        return rows
