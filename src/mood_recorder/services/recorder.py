"""Recording session state machine."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from functools import partial
from typing import Protocol

from mood_recorder.domain.errors import (
    CaptureFailure,
    IllegalStateError,
    PermissionDenied,
)
from mood_recorder.domain.records import (
    Coordinate,
    Record,
    generate_record_id,
    validate_emotion_value,
)
from mood_recorder.domain.recording import RecorderState, RecorderStatus
from mood_recorder.services.timers import CompletionLatch, Scheduler, TimerHandle

_logger = logging.getLogger(__name__)

RECORDING_CAP_SECONDS = 60
COUNTDOWN_SECONDS = 3
TICK_SECONDS = 1.0

_CAPTURE_STATES = {RecorderState.CAPTURING, RecorderState.PAUSED}
_STOPPABLE_STATES = _CAPTURE_STATES | {RecorderState.COMPLETING, RecorderState.TAGGING}


class CaptureDevice(Protocol):
    """Interface for the camera that records the video."""

    async def request_permission(self) -> bool:
        """Return True when capture is permitted."""

    async def start_capture(self, facing: str) -> object:
        """Start recording and return a capture handle."""

    async def stop_capture(self, handle: object) -> str:
        """Stop recording and return the media locator."""

    async def pause_capture(self, handle: object) -> None:
        """Pause recording; raise NotImplementedError when unsupported."""

    async def resume_capture(self, handle: object) -> None:
        """Resume recording; raise NotImplementedError when unsupported."""


class LocationProvider(Protocol):
    """Interface for the device location."""

    async def get_current_coordinate(self) -> Coordinate | None:
        """Return the current coordinate, if known."""


class SessionListener(Protocol):
    """Receives controller events."""

    def on_state_changed(self, status: RecorderStatus) -> None:
        """Called after every state or counter change."""

    def on_capture_completed(self, record: Record) -> None:
        """Called once per session when capture has stopped."""

    def on_error(self, error: CaptureFailure) -> None:
        """Called when a device failure discards the session."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class _PendingSession:
    id: str
    start_time: datetime
    coordinate: Coordinate | None = None
    end_time: datetime | None = None
    duration: int = 0
    media_ref: str | None = None

    def to_record(self, emotion_value: int | None = None) -> Record:
        return Record(
            id=self.id,
            start_time=self.start_time,
            end_time=self.end_time,
            duration=self.duration,
            emotion_value=emotion_value,
            latitude=self.coordinate.latitude if self.coordinate else None,
            longitude=self.coordinate.longitude if self.coordinate else None,
            media_ref=self.media_ref,
        )


class RecordingSessionController:
    """Drives one capped recording session at a time.

    Every timer callback carries the generation it was created in; cancel and
    failure bump the generation, so a late tick from an old session is
    ignored. Completion is guarded by a ``CompletionLatch`` claimed before any
    side effect, which makes a manual stop racing the auto-stop tick complete
    the session exactly once.
    """

    def __init__(  # noqa: PLR0913
        self,
        capture_device: CaptureDevice,
        scheduler: Scheduler,
        location_provider: LocationProvider | None = None,
        listener: SessionListener | None = None,
        *,
        cap_seconds: int = RECORDING_CAP_SECONDS,
        countdown_seconds: int = COUNTDOWN_SECONDS,
        location_timeout_seconds: float = 5.0,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = generate_record_id,
    ) -> None:
        self.capture_device = capture_device
        self.scheduler = scheduler
        self.location_provider = location_provider
        self.listener = listener
        self.cap_seconds = cap_seconds
        self.countdown_seconds = countdown_seconds
        self.location_timeout_seconds = location_timeout_seconds
        self._clock = clock
        self._id_factory = id_factory

        self._state = RecorderState.IDLE
        self._generation = 0
        self._pending: _PendingSession | None = None
        self._facing = "front"
        self._handle: object | None = None
        self._countdown = 0
        self._elapsed = 0
        self._latch: CompletionLatch | None = None
        self._countdown_timer: TimerHandle | None = None
        self._capture_timer: TimerHandle | None = None

    @property
    def state(self) -> RecorderState:
        return self._state

    @property
    def elapsed_seconds(self) -> int:
        return self._elapsed

    @property
    def status(self) -> RecorderStatus:
        """Return a snapshot of the current state."""
        return RecorderStatus(
            state=self._state,
            record_id=self._pending.id if self._pending else None,
            countdown=(
                self._countdown if self._state is RecorderState.COUNTDOWN else None
            ),
            elapsed_seconds=self._elapsed,
        )

    async def start(
        self, facing: str = "front", *, with_location: bool = True
    ) -> str | PermissionDenied | None:
        """Begin a session and return its id, or the reason it cannot start.

        Returns None when the session was cancelled while the location was
        being sampled.
        """
        self._require(RecorderState.IDLE, "start")
        generation = self._generation
        if not await self.capture_device.request_permission():
            _logger.info("Capture permission denied")
            return PermissionDenied("camera", "Camera permission was not granted")
        if generation != self._generation or self._state is not RecorderState.IDLE:
            raise IllegalStateError("Another session started while awaiting permission")

        self._pending = _PendingSession(id=self._id_factory(), start_time=self._clock())
        self._facing = facing
        self._countdown = self.countdown_seconds
        self._set_state(RecorderState.COUNTDOWN)
        record_id = self._pending.id
        _logger.info("Session started: %s", record_id)

        if with_location:
            coordinate = await self._sample_location()
            if generation != self._generation:
                _logger.info("Session %s cancelled before countdown", record_id)
                return None
            self._pending.coordinate = coordinate

        self._countdown_timer = self.scheduler.every(
            TICK_SECONDS, partial(self._countdown_tick, generation)
        )
        return record_id

    async def pause(self) -> bool:
        """Pause an active capture; returns False when there is nothing to pause."""
        if self._state is not RecorderState.CAPTURING:
            return False
        self._set_state(RecorderState.PAUSED)
        await self._call_device(self.capture_device.pause_capture)
        return self._state is RecorderState.PAUSED

    async def resume(self) -> bool:
        """Resume a paused capture; returns False when not paused."""
        if self._state is not RecorderState.PAUSED:
            return False
        self._set_state(RecorderState.CAPTURING)
        await self._call_device(self.capture_device.resume_capture)
        return self._state is RecorderState.CAPTURING

    async def stop(self) -> bool:
        """Stop the session manually.

        During the countdown this cancels the session. During capture it
        completes the session; the return value is True only for the call
        that actually performed the completion.
        """
        if self._state is RecorderState.COUNTDOWN:
            await self.cancel()
            return False
        if self._state in _STOPPABLE_STATES:
            return await self._complete(self._generation)
        raise IllegalStateError(f"Cannot stop from state {self._state.value}")

    def tag(self, emotion_value: int) -> Record:
        """Attach the emotion value and hand the finished record to the caller."""
        self._require(RecorderState.TAGGING, "tag")
        value = validate_emotion_value(emotion_value)
        pending = self._pending
        if pending is None:
            raise IllegalStateError("No pending session to tag")
        record = pending.to_record(emotion_value=value)
        self._set_state(RecorderState.DONE)
        self._reset()
        _logger.info("Session tagged: %s emotion=%s", record.id, value)
        return record

    async def cancel(self) -> None:
        """Discard the current session and return to idle."""
        if self._state is RecorderState.IDLE:
            return
        handle = self._handle if self._state in _CAPTURE_STATES else None
        record_id = self._pending.id if self._pending else None
        self._reset()
        _logger.info("Session cancelled: %s", record_id)
        if handle is not None:
            await self._release(handle)

    def handle_device_error(self, exc: BaseException) -> None:
        """Discard the session after the capture device reported an error."""
        if self._state is RecorderState.IDLE:
            return
        self._fail(CaptureFailure(f"Capture device error: {exc}"))

    async def _countdown_tick(self, generation: int) -> None:
        if generation != self._generation:
            return
        if self._countdown > 0:
            self._countdown -= 1
            self._notify()
            return
        self._cancel_timer("_countdown_timer")
        await self._begin_capture(generation)

    async def _begin_capture(self, generation: int) -> None:
        try:
            handle = await self.capture_device.start_capture(self._facing)
        except Exception as exc:
            if generation == self._generation:
                self._fail(CaptureFailure(f"Failed to start capture: {exc}"))
            return
        if generation != self._generation:
            await self._release(handle)
            return
        self._handle = handle
        self._elapsed = 0
        self._latch = CompletionLatch()
        self._set_state(RecorderState.CAPTURING)
        self._capture_timer = self.scheduler.every(
            TICK_SECONDS, partial(self._capture_tick, generation)
        )

    async def _capture_tick(self, generation: int) -> None:
        if generation != self._generation or self._state is not RecorderState.CAPTURING:
            return
        self._elapsed += 1
        self._notify()
        if self._elapsed >= self.cap_seconds:
            _logger.info("Recording cap reached after %s seconds", self._elapsed)
            try:
                await self._complete(generation)
            except CaptureFailure:
                _logger.warning("Auto-stop failed; session discarded")

    async def _complete(self, generation: int) -> bool:
        if self._latch is None or not self._latch.claim():
            return False
        duration = self._elapsed
        handle = self._handle
        self._cancel_timer("_capture_timer")
        self._set_state(RecorderState.COMPLETING)
        try:
            media_ref = await self.capture_device.stop_capture(handle)
        except Exception as exc:
            failure = CaptureFailure(f"Failed to stop capture: {exc}")
            if generation == self._generation:
                self._fail(failure)
            raise failure from exc
        if generation != self._generation or self._pending is None:
            return False

        pending = self._pending
        pending.end_time = max(self._clock(), pending.start_time)
        pending.duration = duration
        pending.media_ref = media_ref
        self._handle = None
        self._set_state(RecorderState.TAGGING)
        _logger.info("Capture completed: %s duration=%s", pending.id, duration)
        if self.listener is not None:
            self.listener.on_capture_completed(pending.to_record())
        return True

    async def _call_device(self, method: Callable) -> None:
        generation = self._generation
        try:
            await method(self._handle)
        except NotImplementedError:
            _logger.debug(
                "Capture device does not support %s",
                getattr(method, "__name__", "this operation"),
            )
        except Exception as exc:
            if generation == self._generation:
                self._fail(CaptureFailure(f"Capture device error: {exc}"))
            raise CaptureFailure(str(exc)) from exc

    async def _sample_location(self) -> Coordinate | None:
        if self.location_provider is None:
            return None
        try:
            return await asyncio.wait_for(
                self.location_provider.get_current_coordinate(),
                timeout=self.location_timeout_seconds,
            )
        except Exception:
            _logger.warning("Location unavailable; continuing without coordinates")
            return None

    async def _release(self, handle: object) -> None:
        try:
            await self.capture_device.stop_capture(handle)
        except Exception:
            _logger.warning("Failed to release capture after cancel", exc_info=True)

    def _fail(self, error: CaptureFailure) -> None:
        _logger.error("Session discarded: %s", error)
        self._reset()
        if self.listener is not None:
            self.listener.on_error(error)

    def _reset(self) -> None:
        self._generation += 1
        self._cancel_timer("_countdown_timer")
        self._cancel_timer("_capture_timer")
        self._pending = None
        self._handle = None
        self._countdown = 0
        self._elapsed = 0
        self._latch = None
        self._set_state(RecorderState.IDLE)

    def _cancel_timer(self, attribute: str) -> None:
        timer: TimerHandle | None = getattr(self, attribute)
        if timer is not None:
            timer.cancel()
            setattr(self, attribute, None)

    def _require(self, state: RecorderState, operation: str) -> None:
        if self._state is not state:
            raise IllegalStateError(
                f"Cannot {operation} from state {self._state.value}"
            )

    def _set_state(self, state: RecorderState) -> None:
        self._state = state
        self._notify()

    def _notify(self) -> None:
        if self.listener is not None:
            self.listener.on_state_changed(self.status)
