"""Serialization of the session collection to its persisted JSON layout."""

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    model_validator,
)

from mood_recorder.domain.errors import StorageReadFailure
from mood_recorder.domain.records import EMOTION_MAX, EMOTION_MIN, Record

_logger = logging.getLogger(__name__)

_LEGACY_FIELDS = {"sessionId": "id", "videoUri": "mediaRef"}


class StoredRecord(BaseModel):
    """Persisted shape of a record; field names are stable."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1)
    start_time: datetime = Field(alias="startTime")
    end_time: datetime | None = Field(default=None, alias="endTime")
    duration: int = Field(default=0, ge=0)
    emotion_value: int | None = Field(
        default=None, alias="emotionValue", ge=EMOTION_MIN, le=EMOTION_MAX
    )
    latitude: float | None = None
    longitude: float | None = None
    media_ref: str | None = Field(default=None, alias="mediaRef")

    @model_validator(mode="before")
    @classmethod
    def _normalize_legacy(cls, data: object) -> object:
        """Map older field names onto the canonical schema."""
        if not isinstance(data, dict):
            return data
        normalized = dict(data)
        for legacy, canonical in _LEGACY_FIELDS.items():
            if normalized.get(canonical) is None and normalized.get(legacy) is not None:
                normalized[canonical] = normalized[legacy]
        if normalized.get("duration") is None:
            normalized["duration"] = 0
        if (normalized.get("latitude") is None) != (normalized.get("longitude") is None):
            normalized["latitude"] = None
            normalized["longitude"] = None
        return normalized

    @classmethod
    def from_record(cls, record: Record) -> "StoredRecord":
        return cls(
            id=record.id,
            start_time=record.start_time,
            end_time=record.end_time,
            duration=record.duration,
            emotion_value=record.emotion_value,
            latitude=record.latitude,
            longitude=record.longitude,
            media_ref=record.media_ref,
        )

    def to_record(self) -> Record:
        return Record(
            id=self.id,
            start_time=self.start_time,
            end_time=self.end_time,
            duration=self.duration,
            emotion_value=self.emotion_value,
            latitude=self.latitude,
            longitude=self.longitude,
            media_ref=self.media_ref,
        )


@dataclass
class DecodedCollection:
    """Readable records plus the raw rows that could not be validated.

    Unreadable rows are written back unchanged so that saving never loses
    data this version cannot interpret.
    """

    records: list[Record] = field(default_factory=list)
    unreadable: list[object] = field(default_factory=list)


def encode_records(records: list[Record], unreadable: Sequence[object] = ()) -> str:
    """Serialize records to the persisted JSON array, unreadable rows last."""
    payload: list[object] = [
        StoredRecord.from_record(record).model_dump(mode="json", by_alias=True)
        for record in records
    ]
    payload.extend(unreadable)
    return json.dumps(payload)


def decode_collection(raw: str | None) -> DecodedCollection:
    """Parse the persisted JSON array, setting aside rows that fail validation."""
    if raw is None or not raw.strip():
        return DecodedCollection()
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise StorageReadFailure("Stored sessions are not valid JSON") from exc
    if not isinstance(payload, list):
        raise StorageReadFailure("Stored sessions are not a JSON array")

    collection = DecodedCollection()
    for index, item in enumerate(payload):
        try:
            collection.records.append(StoredRecord.model_validate(item).to_record())
        except (ValidationError, ValueError) as exc:
            _logger.warning("Keeping unreadable session at index %s: %s", index, exc)
            collection.unreadable.append(item)
    return collection
