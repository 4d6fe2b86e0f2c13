"""Export sink writing files to a local directory."""

from dataclasses import dataclass
from pathlib import Path

import aiofiles

from mood_recorder.services.export import ExportSink


@dataclass
class FileExportSink(ExportSink):
    """Writes exported files under a directory."""

    directory: Path

    async def write(self, filename: str, content: str) -> str:
        """Write the file and return its path."""
        directory = Path(self.directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / Path(filename).name
        async with aiofiles.open(path, "w", encoding="utf-8") as handle:
            await handle.write(content)
        return str(path)
