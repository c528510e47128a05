"""Redis storage adapter."""

from typing import Sequence

from redis.asyncio import Redis, RedisError

from linkaudit.entries.models import URLEntry
from linkaudit.entries.storage.protocol import deserialize_entries, serialize_entries
from linkaudit.exceptions import StorageError


def create_redis_client(
    server: str,
    socket_connect_timeout: int,
    socket_timeout: int,
    db: int = 0,
) -> Redis:
    """Create a Redis client.

    Args:
        - `server`: the URL to the Redis server.
        - `socket_connect_timeout`: the timeout in seconds to connect to the Redis server.
        - `socket_timeout`: the timeout in seconds to interact with the Redis server.
        - `db`: the ID (`SELECT db`) of the DB to which the client connects.
    """
    return Redis.from_url(
        server,
        db=db,
        socket_connect_timeout=socket_connect_timeout,
        socket_timeout=socket_timeout,
    )


class RedisStorage:
    """Store the entry collection as one JSON value under a single Redis key."""

    client: Redis
    key: str

    def __init__(self, client: Redis, key: str) -> None:
        self.client = client
        self.key = key

    async def load(self) -> list[URLEntry]:
        """Get the stored collection. A missing key is an empty collection.

        Raises:
            - `StorageError` if Redis returns an error.
            - `StorageEntryError` if the value can't be deserialized.
        """
        try:
            data: bytes | None = await self.client.get(self.key)
        except RedisError as exc:
            raise StorageError(f"Failed to get `{repr(self.key)}` with error: `{exc}`") from exc
        if data is None:
            return []
        return deserialize_entries(data)

    async def save(self, entries: Sequence[URLEntry]) -> None:
        """Overwrite the stored collection.

        Raises:
            - `StorageError` if Redis returns an error.
        """
        try:
            await self.client.set(self.key, serialize_entries(entries))
        except RedisError as exc:
            raise StorageError(f"Failed to set `{repr(self.key)}` with error: `{exc}`") from exc

    async def close(self) -> None:
        """Close the Redis connection pool."""
        await self.client.aclose()
