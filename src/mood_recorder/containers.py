"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import create_client

from mood_recorder.adapters.file_blob_store import FileBlobStore
from mood_recorder.adapters.file_export_sink import FileExportSink
from mood_recorder.adapters.location_client import HttpxLocationProvider
from mood_recorder.adapters.supabase_blob_store import SupabaseBlobStore
from mood_recorder.config import Settings, parse_storage_backend
from mood_recorder.services.export import ExportService
from mood_recorder.services.preferences import PreferencesService
from mood_recorder.services.recorder import (
    CaptureDevice,
    RecordingSessionController,
    SessionListener,
)
from mood_recorder.services.reminders import NotificationScheduler, ReminderService
from mood_recorder.services.sessions import SessionService
from mood_recorder.services.stats import StatsService
from mood_recorder.services.store import BlobStore, SessionStore
from mood_recorder.services.timers import AsyncioScheduler


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    blob_store: BlobStore
    session_store: SessionStore
    stats_service: StatsService
    export_service: ExportService
    preferences_service: PreferencesService
    close_resources: Callable[[], Awaitable[None]]
    session_service: SessionService | None = None
    reminder_service: ReminderService | None = None


def build_blob_store(settings: Settings) -> BlobStore:
    """Create the durable blob store selected by the settings."""
    backend = parse_storage_backend(settings.storage_backend)
    if backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ValueError("Supabase storage requires supabase_url and key")
        client = create_client(settings.supabase_url, settings.supabase_service_key)
        return SupabaseBlobStore(client, table=settings.supabase_table)
    return FileBlobStore(Path(settings.data_dir))


def build_container(
    settings: Settings | None = None,
    *,
    capture_device: CaptureDevice | None = None,
    listener: SessionListener | None = None,
    notification_scheduler: NotificationScheduler | None = None,
) -> AppContainer:
    """Create the default dependency container.

    The recording workflow is only wired when a capture device is supplied,
    and reminders only when a notification scheduler is supplied.
    """
    resolved_settings = settings or Settings()
    blob_store = build_blob_store(resolved_settings)
    session_store = SessionStore(blob_store)
    preferences_service = PreferencesService(blob_store)
    stats_service = StatsService(session_store)
    export_service = ExportService(
        store=session_store,
        sink=FileExportSink(Path(resolved_settings.export_dir)),
    )
    location_provider = (
        HttpxLocationProvider.create(
            resolved_settings.geolocation_url,
            timeout=resolved_settings.location_timeout_seconds,
        )
        if resolved_settings.geolocation_url
        else None
    )

    session_service = None
    if capture_device is not None:
        controller = RecordingSessionController(
            capture_device=capture_device,
            scheduler=AsyncioScheduler(),
            location_provider=location_provider,
            listener=listener,
            cap_seconds=resolved_settings.recording_cap_seconds,
            countdown_seconds=resolved_settings.countdown_seconds,
            location_timeout_seconds=resolved_settings.location_timeout_seconds,
        )
        session_service = SessionService(
            controller=controller,
            store=session_store,
            preferences=preferences_service,
        )
    reminder_service = (
        ReminderService(notification_scheduler)
        if notification_scheduler is not None
        else None
    )

    async def close_resources() -> None:
        if location_provider is not None:
            await location_provider.close()

    return AppContainer(
        settings=resolved_settings,
        blob_store=blob_store,
        session_store=session_store,
        stats_service=stats_service,
        export_service=export_service,
        preferences_service=preferences_service,
        close_resources=close_resources,
        session_service=session_service,
        reminder_service=reminder_service,
    )
