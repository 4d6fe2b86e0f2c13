"""Persisted user preferences."""

import json
import logging
from dataclasses import dataclass

from pydantic import ValidationError

from mood_recorder.domain.preferences import Preferences
from mood_recorder.services.store import BlobStore

_logger = logging.getLogger(__name__)

SETTINGS_KEY = "@app_settings"
FIRST_RUN_KEY = "@first_run_complete"


@dataclass
class PreferencesService:
    """Loads and saves preferences on the blob store.

    ``load`` merges stored values over the defaults and falls back to the
    defaults when nothing usable is stored. ``save`` and
    ``complete_first_run`` report failures as False.
    """

    blob_store: BlobStore

    async def load(self) -> Preferences:
        """Return stored preferences merged over defaults."""
        try:
            raw = await self.blob_store.get(SETTINGS_KEY)
        except Exception:
            _logger.exception("Failed to read preferences")
            return Preferences()
        if not raw:
            return Preferences()
        try:
            payload = json.loads(raw)
            defaults = Preferences().model_dump(by_alias=True)
            if isinstance(payload, dict):
                defaults.update(payload)
            return Preferences.model_validate(defaults)
        except (json.JSONDecodeError, ValidationError) as exc:
            _logger.warning("Ignoring unreadable preferences: %s", exc)
            return Preferences()

    async def save(self, preferences: Preferences) -> bool:
        """Persist preferences; returns False if the write failed."""
        try:
            await self.blob_store.set(
                SETTINGS_KEY, preferences.model_dump_json(by_alias=True)
            )
        except Exception:
            _logger.exception("Failed to save preferences")
            return False
        return True

    async def is_first_run(self) -> bool:
        """Return True until the first run has been marked complete."""
        try:
            return await self.blob_store.get(FIRST_RUN_KEY) != "true"
        except Exception:
            _logger.exception("Failed to read first-run flag")
            return True

    async def complete_first_run(self) -> bool:
        """Mark the first run as complete."""
        try:
            await self.blob_store.set(FIRST_RUN_KEY, "true")
        except Exception:
            _logger.exception("Failed to store first-run flag")
            return False
        return True
