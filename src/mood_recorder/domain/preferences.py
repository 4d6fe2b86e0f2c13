"""Domain models for user preferences."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


class ReminderTime(_CamelModel):
    """A wall-clock time of day for a daily reminder."""

    hour: int = Field(ge=0, le=23)
    minute: int = Field(default=0, ge=0, le=59)


class ReminderTimes(_CamelModel):
    """The three daily reminder slots."""

    morning: ReminderTime = Field(default_factory=lambda: ReminderTime(hour=9))
    midday: ReminderTime = Field(default_factory=lambda: ReminderTime(hour=14))
    evening: ReminderTime = Field(default_factory=lambda: ReminderTime(hour=22))


class Preferences(_CamelModel):
    """User-facing toggles persisted alongside the sessions."""

    camera_enabled: bool = True
    location_enabled: bool = True
    notifications_enabled: bool = True
    storage_enabled: bool = True
    theme: Literal["light", "dark"] = "light"
    notification_times: ReminderTimes = Field(default_factory=ReminderTimes)
