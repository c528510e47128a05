"""Storage adapters that persist the entry collection under a single named slot."""

from linkaudit.config import settings
from linkaudit.entries.storage.file import FileStorage
from linkaudit.entries.storage.none import NoStorage
from linkaudit.entries.storage.protocol import EntryStorage
from linkaudit.entries.storage.redis import RedisStorage, create_redis_client


def create_storage(kind: str | None = None) -> EntryStorage:
    """Create the configured storage adapter."""
    kind = kind or settings.entries.storage
    match kind:
        case "none":
            return NoStorage()
        case "file":
            return FileStorage(settings.entries.file_path)
        case "redis":
            return RedisStorage(
                create_redis_client(
                    settings.redis.server,
                    socket_connect_timeout=settings.redis.socket_connect_timeout_sec,
                    socket_timeout=settings.redis.socket_timeout_sec,
                ),
                key=settings.entries.storage_key,
            )
        case _:
            raise ValueError(f"Unknown entry storage: {kind}")
