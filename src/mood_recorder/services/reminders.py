"""Daily reminder triggers."""

import logging
from dataclasses import dataclass
from typing import Protocol

from mood_recorder.domain.preferences import Preferences, ReminderTimes

_logger = logging.getLogger(__name__)

REMINDER_BODY = "Please complete today's emotion recording."


@dataclass(frozen=True)
class ReminderTrigger:
    """A repeating daily notification."""

    title: str
    body: str
    hour: int
    minute: int
    repeats: bool = True


class NotificationScheduler(Protocol):
    """OS-level scheduled notification service."""

    async def cancel_all(self) -> None:
        """Cancel every scheduled notification."""

    async def schedule(self, trigger: ReminderTrigger) -> None:
        """Schedule a notification."""


def reminder_triggers(times: ReminderTimes) -> list[ReminderTrigger]:
    """Return the morning, midday and evening triggers."""
    slots = [
        ("Morning reminder", times.morning),
        ("Midday reminder", times.midday),
        ("Evening reminder", times.evening),
    ]
    return [
        ReminderTrigger(title=title, body=REMINDER_BODY, hour=slot.hour, minute=slot.minute)
        for title, slot in slots
    ]


@dataclass
class ReminderService:
    """Keeps scheduled reminders in line with the preferences."""

    scheduler: NotificationScheduler

    async def apply(self, preferences: Preferences) -> bool:
        """Reschedule reminders; returns False if the scheduler failed."""
        try:
            await self.scheduler.cancel_all()
            if not preferences.notifications_enabled:
                return True
            for trigger in reminder_triggers(preferences.notification_times):
                await self.scheduler.schedule(trigger)
        except Exception:
            _logger.exception("Failed to schedule reminders")
            return False
        return True
