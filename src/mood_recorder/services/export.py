"""CSV export of recorded sessions."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from mood_recorder.domain.records import Record
from mood_recorder.services.store import SessionStore

_logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"
CSV_HEADERS = (
    "Session ID",
    "Start Time",
    "End Time",
    "Duration (s)",
    "Emotion Value",
    "Latitude",
    "Longitude",
    "Video File Path",
)


class ExportSink(Protocol):
    """Destination for exported files."""

    async def write(self, filename: str, content: str) -> str:
        """Store the content under filename and return where it was written."""


@dataclass(frozen=True)
class ExportResult:
    """Outcome of an export attempt."""

    filename: str
    record_count: int
    location: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.location is not None


def format_timestamp(value: datetime | None) -> str:
    """Render a timestamp as ISO-8601 UTC with milliseconds."""
    if value is None:
        return NOT_AVAILABLE
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    rendered = value.astimezone(UTC).isoformat(timespec="milliseconds")
    return rendered.replace("+00:00", "Z")


def _quoted(value: str | None) -> str:
    text = NOT_AVAILABLE if value is None else value
    return '"' + text.replace('"', '""') + '"'


def _bare(value: float | None) -> str:
    return NOT_AVAILABLE if value is None else str(value)


def format_csv_row(record: Record) -> str:
    """Render one record as a CSV row."""
    columns = [
        _quoted(record.id or None),
        _quoted(format_timestamp(record.start_time)),
        _quoted(format_timestamp(record.end_time)),
        str(record.duration),
        _bare(record.emotion_value),
        _bare(record.latitude),
        _bare(record.longitude),
        _quoted(record.media_ref),
    ]
    return ",".join(columns)


def build_csv(records: Iterable[Record]) -> str:
    """Render the header row followed by one row per record."""
    rows = [",".join(CSV_HEADERS)]
    rows.extend(format_csv_row(record) for record in records)
    return "\n".join(rows)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class ExportService:
    """Exports the stored sessions to a sink as CSV."""

    store: SessionStore
    sink: ExportSink
    clock: Callable[[], datetime] = _utcnow

    async def export(self) -> ExportResult | None:
        """Write all sessions to the sink; None when there is nothing to export."""
        records = await self.store.get_all()
        if not records:
            _logger.info("No sessions to export")
            return None
        filename = f"sessions_export_{int(self.clock().timestamp() * 1000)}.csv"
        content = build_csv(records)
        try:
            location = await self.sink.write(filename, content)
        except Exception:
            _logger.exception("Failed to export sessions to %s", filename)
            return ExportResult(filename=filename, record_count=len(records))
        _logger.info("Exported %s sessions to %s", len(records), location)
        return ExportResult(
            filename=filename, record_count=len(records), location=location
        )
