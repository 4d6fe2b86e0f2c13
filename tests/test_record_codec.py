import json
from datetime import UTC, datetime

import pytest

from mood_recorder.domain.errors import StorageReadFailure
from mood_recorder.services.record_codec import (
    decode_collection,
    encode_records,
)
from tests.conftest import START, make_record


def test_encode_uses_persisted_field_names() -> None:
    record = make_record(latitude=25.033, longitude=121.5654)

    payload = json.loads(encode_records([record]))

    assert payload == [
        {
            "id": "session_1",
            "startTime": "2024-05-01T09:30:00Z",
            "endTime": "2024-05-01T09:30:47Z",
            "duration": 42,
            "emotionValue": 3,
            "latitude": 25.033,
            "longitude": 121.5654,
            "mediaRef": "file:///videos/1.mp4",
        }
    ]


def test_decode_restores_records() -> None:
    record = make_record(emotion_value=None, media_ref=None)

    assert decode_collection(encode_records([record])).records == [record]


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_decode_empty_blob_is_empty_collection(raw) -> None:
    assert decode_collection(raw).records == []


@pytest.mark.parametrize("raw", ["{not json", '{"id": "x"}', "42"])
def test_decode_rejects_unreadable_blob(raw) -> None:
    with pytest.raises(StorageReadFailure):
        decode_collection(raw)


def test_decode_normalizes_legacy_rows() -> None:
    raw = json.dumps(
        [
            {
                "sessionId": "session_legacy",
                "startTime": "2023-01-02T03:04:05",
                "videoUri": "file:///old.mp4",
                "emotionValue": 4,
                "latitude": 10.0,
            }
        ]
    )

    [record] = decode_collection(raw).records

    assert record.id == "session_legacy"
    assert record.media_ref == "file:///old.mp4"
    assert record.duration == 0
    assert record.start_time == datetime(2023, 1, 2, 3, 4, 5, tzinfo=UTC)
    assert record.latitude is None
    assert record.longitude is None


def test_decode_sets_invalid_rows_aside() -> None:
    good = json.loads(encode_records([make_record()]))[0]
    raw = json.dumps(
        [
            good,
            {"id": "bad_emotion", "startTime": START.isoformat(), "emotionValue": 9},
            {"startTime": START.isoformat()},
            {
                "id": "bad_range",
                "startTime": "2024-05-01T10:00:00Z",
                "endTime": "2024-05-01T09:00:00Z",
            },
            "not-an-object",
        ]
    )

    records = decode_collection(raw).records

    assert [record.id for record in records] == ["session_1"]


def test_unreadable_rows_are_kept_for_rewrite() -> None:
    odd_row = {"id": "session_odd", "startTime": "yesterday"}
    raw = json.dumps([odd_row, *json.loads(encode_records([make_record()]))])

    collection = decode_collection(raw)

    assert [record.id for record in collection.records] == ["session_1"]
    assert collection.unreadable == [odd_row]
    rewritten = json.loads(encode_records(collection.records, collection.unreadable))
    assert rewritten[-1] == odd_row
