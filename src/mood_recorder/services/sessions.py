"""Recording workflow tying the controller to the store."""

import logging
from dataclasses import dataclass

from mood_recorder.domain.errors import PermissionDenied
from mood_recorder.domain.records import Record
from mood_recorder.services.preferences import PreferencesService
from mood_recorder.services.recorder import RecordingSessionController
from mood_recorder.services.store import SessionStore

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FinishedSession:
    """A tagged session and whether it was persisted."""

    record: Record
    saved: bool


@dataclass
class SessionService:
    """Starts sessions and persists them once tagged."""

    controller: RecordingSessionController
    store: SessionStore
    preferences: PreferencesService

    async def begin(self, facing: str = "front") -> str | PermissionDenied | None:
        """Start a session honouring the camera and location toggles."""
        preferences = await self.preferences.load()
        if not preferences.camera_enabled:
            return PermissionDenied("camera", "Camera is disabled in settings")
        return await self.controller.start(
            facing, with_location=preferences.location_enabled
        )

    async def finish(self, emotion_value: int) -> FinishedSession:
        """Tag the pending session and save it when storage is enabled.

        An invalid emotion value raises InvalidEmotionValue and leaves the
        session waiting for a valid one.
        """
        record = self.controller.tag(emotion_value)
        preferences = await self.preferences.load()
        if not preferences.storage_enabled:
            _logger.info("Storage disabled; session %s not saved", record.id)
            return FinishedSession(record=record, saved=False)
        saved = await self.store.save(record)
        if saved is None:
            return FinishedSession(record=record, saved=False)
        return FinishedSession(record=saved, saved=True)
