"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from mood_recorder.config import Settings
from mood_recorder.containers import AppContainer
from mood_recorder.domain.errors import CaptureFailure
from mood_recorder.domain.records import Coordinate, Record
from mood_recorder.domain.recording import RecorderStatus
from mood_recorder.services.export import ExportService, ExportSink
from mood_recorder.services.preferences import PreferencesService
from mood_recorder.services.recorder import (
    CaptureDevice,
    LocationProvider,
    RecordingSessionController,
    SessionListener,
)
from mood_recorder.services.reminders import NotificationScheduler, ReminderTrigger
from mood_recorder.services.stats import StatsService
from mood_recorder.services.store import BlobStore, SessionStore
from mood_recorder.services.timers import Scheduler, TickCallback, TimerHandle

START = datetime(2024, 5, 1, 9, 30, tzinfo=UTC)


@dataclass
class InMemoryBlobStore(BlobStore):
    """In-memory blob store that can be told to fail."""

    values: dict[str, str] = field(default_factory=dict)
    fail_get: bool = False
    fail_set: bool = False
    fail_remove: bool = False
    writes: int = 0

    async def get(self, key: str) -> str | None:
        if self.fail_get:
            raise RuntimeError("read failed")
        return self.values.get(key)

    async def set(self, key: str, value: str) -> None:
        if self.fail_set:
            raise RuntimeError("disk full")
        self.writes += 1
        self.values[key] = value

    async def remove(self, key: str) -> None:
        if self.fail_remove:
            raise RuntimeError("remove failed")
        self.values.pop(key, None)


@dataclass
class FakeCaptureDevice(CaptureDevice):
    """Capture device recording calls, with optional failures."""

    permission: bool = True
    supports_pause: bool = True
    media_ref: str = "file:///videos/session.mp4"
    fail_on_start: bool = False
    fail_on_stop: bool = False
    stop_gate: asyncio.Event | None = None
    calls: list[str] = field(default_factory=list)

    async def request_permission(self) -> bool:
        self.calls.append("permission")
        return self.permission

    async def start_capture(self, facing: str) -> object:
        self.calls.append(f"start:{facing}")
        if self.fail_on_start:
            raise RuntimeError("camera unavailable")
        return "handle-1"

    async def stop_capture(self, handle: object) -> str:
        self.calls.append("stop")
        if self.stop_gate is not None:
            await self.stop_gate.wait()
        if self.fail_on_stop:
            raise RuntimeError("encoder crashed")
        return self.media_ref

    async def pause_capture(self, handle: object) -> None:
        if not self.supports_pause:
            raise NotImplementedError
        self.calls.append("pause")

    async def resume_capture(self, handle: object) -> None:
        if not self.supports_pause:
            raise NotImplementedError
        self.calls.append("resume")


@dataclass
class FakeLocationProvider(LocationProvider):
    """Location provider returning a fixed coordinate or failing."""

    coordinate: Coordinate | None = field(
        default_factory=lambda: Coordinate(latitude=25.033, longitude=121.5654)
    )
    error: Exception | None = None
    delay: float = 0

    async def get_current_coordinate(self) -> Coordinate | None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.coordinate


@dataclass
class ManualTimer(TimerHandle):
    """Timer fired explicitly by the test."""

    callback: TickCallback
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class ManualScheduler(Scheduler):
    """Scheduler whose ticks are driven by the test."""

    timers: list[ManualTimer] = field(default_factory=list)

    def every(self, interval_seconds: float, callback: TickCallback) -> TimerHandle:
        timer = ManualTimer(callback)
        self.timers.append(timer)
        return timer

    @property
    def active(self) -> list[ManualTimer]:
        return [timer for timer in self.timers if not timer.cancelled]

    async def tick(self, count: int = 1) -> None:
        """Fire every active timer once per tick, in creation order."""
        for _ in range(count):
            for timer in self.active:
                if not timer.cancelled:
                    await timer.callback()


@dataclass
class RecordingListener(SessionListener):
    """Listener collecting controller events."""

    statuses: list[RecorderStatus] = field(default_factory=list)
    completed: list[Record] = field(default_factory=list)
    errors: list[CaptureFailure] = field(default_factory=list)

    def on_state_changed(self, status: RecorderStatus) -> None:
        self.statuses.append(status)

    def on_capture_completed(self, record: Record) -> None:
        self.completed.append(record)

    def on_error(self, error: CaptureFailure) -> None:
        self.errors.append(error)


@dataclass
class FakeClock:
    """Clock advanced manually."""

    now: datetime = START

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@dataclass
class FakeExportSink(ExportSink):
    """Export sink keeping files in memory."""

    files: dict[str, str] = field(default_factory=dict)
    fail: bool = False

    async def write(self, filename: str, content: str) -> str:
        if self.fail:
            raise OSError("share sheet unavailable")
        self.files[filename] = content
        return f"memory://{filename}"


@dataclass
class FakeNotificationScheduler(NotificationScheduler):
    """Notification scheduler recording what was scheduled."""

    scheduled: list[ReminderTrigger] = field(default_factory=list)
    cancel_count: int = 0
    fail: bool = False

    async def cancel_all(self) -> None:
        self.cancel_count += 1
        self.scheduled.clear()

    async def schedule(self, trigger: ReminderTrigger) -> None:
        if self.fail:
            raise RuntimeError("notifications unavailable")
        self.scheduled.append(trigger)


def make_record(  # noqa: PLR0913
    record_id: str = "session_1",
    start_time: datetime = START,
    duration: int = 42,
    emotion_value: int | None = 3,
    latitude: float | None = None,
    longitude: float | None = None,
    media_ref: str | None = "file:///videos/1.mp4",
) -> Record:
    return Record(
        id=record_id,
        start_time=start_time,
        end_time=start_time + timedelta(seconds=duration + 5),
        duration=duration,
        emotion_value=emotion_value,
        latitude=latitude,
        longitude=longitude,
        media_ref=media_ref,
    )


def make_controller(  # noqa: PLR0913
    device: FakeCaptureDevice | None = None,
    scheduler: ManualScheduler | None = None,
    listener: RecordingListener | None = None,
    location_provider: LocationProvider | None = None,
    clock: FakeClock | None = None,
    cap_seconds: int = 60,
) -> RecordingSessionController:
    return RecordingSessionController(
        capture_device=device or FakeCaptureDevice(),
        scheduler=scheduler or ManualScheduler(),
        location_provider=location_provider,
        listener=listener,
        cap_seconds=cap_seconds,
        clock=clock or FakeClock(),
    )


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        api_token="test-token",
        data_dir=str(tmp_path / "data"),
        export_dir=str(tmp_path / "exports"),
        geolocation_url=None,
    )


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def export_sink() -> FakeExportSink:
    return FakeExportSink()


@pytest.fixture
def container(
    settings: Settings,
    blob_store: InMemoryBlobStore,
    export_sink: FakeExportSink,
) -> AppContainer:
    session_store = SessionStore(blob_store)

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        blob_store=blob_store,
        session_store=session_store,
        stats_service=StatsService(session_store),
        export_service=ExportService(store=session_store, sink=export_sink),
        preferences_service=PreferencesService(blob_store),
        close_resources=close_resources,
    )
