"""Durable store for recorded sessions."""

import asyncio
import logging
from dataclasses import replace
from typing import Protocol

from mood_recorder.domain.errors import StorageReadFailure, StorageWriteFailure
from mood_recorder.domain.records import Record, generate_record_id
from mood_recorder.services.record_codec import decode_collection, encode_records

_logger = logging.getLogger(__name__)

SESSIONS_KEY = "sessions"


class BlobStore(Protocol):
    """Durable key-value storage holding one string per key."""

    async def get(self, key: str) -> str | None:
        """Return the value stored at key, if any."""

    async def set(self, key: str, value: str) -> None:
        """Store value at key, replacing any previous value."""

    async def remove(self, key: str) -> None:
        """Remove the value stored at key."""


class SessionStore:
    """Ordered collection of records persisted as one blob.

    The collection is loaded on first access and rewritten whole on every
    mutation. Rows that cannot be decoded are kept aside and written back
    unchanged. Operations are serialized through one lock, and a mutation only
    replaces the in-memory collection after the write succeeded.
    """

    def __init__(self, blob_store: BlobStore, key: str = SESSIONS_KEY) -> None:
        self.blob_store = blob_store
        self.key = key
        self._records: list[Record] | None = None
        self._unreadable: list[object] = []
        self._lock = asyncio.Lock()

    async def get_all(self) -> list[Record]:
        """Return all records, newest start time first."""
        async with self._lock:
            try:
                records = await self._load()
            except StorageReadFailure:
                _logger.exception("Failed to load sessions")
                return []
            return _sorted_newest_first(records)

    async def get_by_id(self, record_id: str) -> Record | None:
        """Return the record with the given id, if present."""
        for record in await self.get_all():
            if record.id == record_id:
                return record
        return None

    async def save(self, record: Record) -> Record | None:
        """Persist a record; return it as stored, or None if storage failed."""
        async with self._lock:
            try:
                records = await self._load()
            except StorageReadFailure:
                _logger.exception("Failed to load sessions before save")
                return None
            stored = record if record.id else replace(record, id=generate_record_id())
            updated = [stored, *records]
            try:
                await self._write(updated)
            except StorageWriteFailure:
                _logger.exception("Failed to save session %s", stored.id)
                return None
            self._records = updated
            _logger.info("Session saved: %s", stored.id)
            return stored

    async def delete_by_id(self, record_id: str) -> None:
        """Remove every record with the given id.

        Raises StorageReadFailure or StorageWriteFailure when the collection
        cannot be loaded or written. Unknown ids are a no-op.
        """
        async with self._lock:
            records = await self._load()
            remaining = [record for record in records if record.id != record_id]
            if len(remaining) == len(records):
                _logger.info("Session not found for delete: %s", record_id)
                return
            await self._write(remaining)
            self._records = remaining
            _logger.info("Session deleted: %s", record_id)

    async def clear(self) -> None:
        """Remove all records; raises StorageWriteFailure on failure."""
        async with self._lock:
            try:
                await self.blob_store.remove(self.key)
            except Exception as exc:
                raise StorageWriteFailure("Failed to clear sessions") from exc
            self._records = []
            self._unreadable = []
            _logger.info("All sessions cleared")

    async def _load(self) -> list[Record]:
        if self._records is None:
            try:
                raw = await self.blob_store.get(self.key)
            except Exception as exc:
                raise StorageReadFailure("Failed to read sessions") from exc
            collection = decode_collection(raw)
            self._records = collection.records
            self._unreadable = collection.unreadable
        return self._records

    async def _write(self, records: list[Record]) -> None:
        try:
            await self.blob_store.set(
                self.key, encode_records(records, self._unreadable)
            )
        except Exception as exc:
            raise StorageWriteFailure("Failed to write sessions") from exc


def _sorted_newest_first(records: list[Record]) -> list[Record]:
    # The collection is kept newest-saved first and the sort is stable, so
    # equal start times stay in save order.
    return sorted(records, key=lambda record: record.start_time, reverse=True)
