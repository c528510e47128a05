"""Protocol for entry storage adapters."""

from typing import Protocol, Sequence

from pydantic import TypeAdapter, ValidationError

from linkaudit.entries.models import URLEntry
from linkaudit.exceptions import StorageEntryError

_ENTRIES = TypeAdapter(list[URLEntry])


class EntryStorage(Protocol):
    """A protocol describing a durable slot holding the whole entry collection."""

    async def load(self) -> list[URLEntry]:  # pragma: no cover
        """Load the stored entries, newest first. Returns an empty list if nothing is stored.

        Raises:
            - `StorageError` for storage backend errors.
        """
        ...

    async def save(self, entries: Sequence[URLEntry]) -> None:  # pragma: no cover
        """Replace the stored entries with `entries`, newest first.

        Raises:
            - `StorageError` for storage backend errors.
        """
        ...

    async def close(self) -> None:  # pragma: no cover
        """Close the adapter and release any underlying resources."""
        ...


def serialize_entries(entries: Sequence[URLEntry]) -> bytes:
    """Serialize entries to a JSON array with camelCase keys."""
    return _ENTRIES.dump_json(list(entries), by_alias=True)


def deserialize_entries(data: bytes | str) -> list[URLEntry]:
    """Deserialize a JSON array written by `serialize_entries`.

    Raises:
        - `StorageEntryError` if the data is not a valid entry collection.
    """
    try:
        return _ENTRIES.validate_json(data)
    except ValidationError as exc:
        raise StorageEntryError(f"Stored entries can't be deserialized: {exc}") from exc
