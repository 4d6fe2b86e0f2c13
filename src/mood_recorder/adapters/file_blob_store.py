"""Local JSON file blob store."""

import os
import re
from dataclasses import dataclass
from pathlib import Path

import aiofiles

from mood_recorder.services.store import BlobStore

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


@dataclass
class FileBlobStore(BlobStore):
    """Stores each key as one file under a directory."""

    directory: Path

    def __post_init__(self) -> None:
        self.directory = Path(self.directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        """Return the file backing a key."""
        return self.directory / f"{_UNSAFE_CHARS.sub('_', key)}.json"

    async def get(self, key: str) -> str | None:
        """Read the file for key, if it exists."""
        path = self.path_for(key)
        if not path.exists():
            return None
        async with aiofiles.open(path, encoding="utf-8") as handle:
            return await handle.read()

    async def set(self, key: str, value: str) -> None:
        """Write the value through a temporary file and swap it in."""
        path = self.path_for(key)
        temp_path = path.with_suffix(".tmp")
        async with aiofiles.open(temp_path, "w", encoding="utf-8") as handle:
            await handle.write(value)
        os.replace(temp_path, path)

    async def remove(self, key: str) -> None:
        """Delete the file for key."""
        self.path_for(key).unlink(missing_ok=True)
