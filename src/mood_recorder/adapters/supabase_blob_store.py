"""Supabase-backed blob store."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from mood_recorder.services.store import BlobStore


@dataclass
class SupabaseBlobStore(BlobStore):
    """Supabase implementation storing one row per key."""

    client: Client
    table: str = "kv_store"

    async def get(self, key: str) -> str | None:
        """Return the stored value for key, if present."""
        response = (
            self.client.table(self.table)
            .select("value")
            .eq("key", key)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return response.data[0].get("value")

    async def set(self, key: str, value: str) -> None:
        """Insert or replace the value for key."""
        response = (
            self.client.table(self.table)
            .upsert(
                {
                    "key": key,
                    "value": value,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError(f"Failed to store value for {key}")

    async def remove(self, key: str) -> None:
        """Delete the row for key."""
        self.client.table(self.table).delete().eq("key", key).execute()
