"""JSON file storage adapter."""

import asyncio
import os
import pathlib
from typing import Sequence

from linkaudit.entries.models import URLEntry
from linkaudit.entries.storage.protocol import deserialize_entries, serialize_entries
from linkaudit.exceptions import StorageError


class FileStorage:
    """Store the entry collection as a JSON document on local disk.

    Writes go to a sibling temporary file that is then renamed over the document,
    so a crash mid-write leaves the previous collection intact.
    """

    path: pathlib.Path

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = pathlib.Path(path)

    async def load(self) -> list[URLEntry]:
        """Read the document. A missing file is an empty collection.

        Raises:
            - `StorageError` if the file can't be read.
            - `StorageEntryError` if its content can't be deserialized.
        """
        try:
            data: bytes = await asyncio.to_thread(self.path.read_bytes)
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StorageError(f"Failed to read `{self.path}` with error: `{exc}`") from exc
        return deserialize_entries(data)

    async def save(self, entries: Sequence[URLEntry]) -> None:
        """Write the whole collection.

        Raises:
            - `StorageError` if the file can't be written.
        """
        data = serialize_entries(entries)
        try:
            await asyncio.to_thread(self._write, data)
        except OSError as exc:
            raise StorageError(f"Failed to write `{self.path}` with error: `{exc}`") from exc

    def _write(self, data: bytes) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f".{self.path.name}.tmp")
        tmp_path.write_bytes(data)
        tmp_path.replace(self.path)

    async def close(self) -> None:  # noqa: D102
        pass
