"""Statistics over recorded sessions."""

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from mood_recorder.domain.records import Record
from mood_recorder.domain.stats import SessionStatistics
from mood_recorder.services.store import SessionStore

_TWO_PLACES = Decimal("0.01")


def compute_statistics(records: Iterable[Record]) -> SessionStatistics:
    """Summarize sessions: count, mean emotion, per-level counts, located sessions.

    The mean is taken over every session, an untagged session counting as 0.
    """
    items = list(records)
    if not items:
        return SessionStatistics(
            total_sessions=0,
            average_emotion=0,
            emotion_distribution={},
            locations_recorded=0,
        )

    tagged = [item.emotion_value for item in items if item.emotion_value is not None]
    distribution = Counter(tagged)
    located = sum(1 for item in items if item.coordinate is not None)
    return SessionStatistics(
        total_sessions=len(items),
        average_emotion=_round_half_up(sum(tagged) / len(items)),
        emotion_distribution=dict(sorted(distribution.items())),
        locations_recorded=located,
    )


def _round_half_up(value: float) -> float:
    return float(Decimal(str(value)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


@dataclass
class StatsService:
    """Service computing statistics over the stored sessions."""

    store: SessionStore

    async def get_summary(self) -> SessionStatistics:
        """Return statistics over every stored session."""
        return compute_statistics(await self.store.get_all())
