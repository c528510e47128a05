"""No-operation adapter that keeps entries in memory only."""

from typing import Sequence

from linkaudit.entries.models import URLEntry


class NoStorage:  # pragma: no cover
    """A storage adapter that doesn't store or return anything."""

    async def load(self) -> list[URLEntry]:  # noqa: D102
        return []

    async def save(self, entries: Sequence[URLEntry]) -> None:  # noqa: D102
        pass

    async def close(self) -> None:  # noqa: D102
        pass
