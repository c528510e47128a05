"""Background persistence of the entry store."""

import asyncio
import logging

from linkaudit import cron
from linkaudit.entries.store import EntryStore
from linkaudit.exceptions import StorageError

logger = logging.getLogger(__name__)


class Persister:
    """Flush the entry store to its storage adapter whenever it is dirty."""

    store: EntryStore
    interval: float
    cron_job: cron.Job | None
    cron_task: asyncio.Task | None

    def __init__(self, store: EntryStore, interval: float) -> None:
        self.store = store
        self.interval = interval
        self.cron_job = None
        self.cron_task = None

    def start(self) -> None:
        """Start the persistence cron job."""
        self.cron_job = cron.Job(
            name="persist_entries",
            interval=self.interval,
            condition=lambda: self.store.dirty,
            task=self.store.flush,
        )
        self.cron_task = asyncio.create_task(self.cron_job())

    async def shutdown(self) -> None:
        """Stop the cron job and write the pending mutations one last time."""
        if self.cron_job is not None:
            self.cron_job.stop()
        if self.cron_task is not None:
            await self.cron_task
        self.cron_job = None
        self.cron_task = None

        try:
            await self.store.flush()
        except StorageError as exc:
            logger.error("Failed to persist entries at shutdown", extra={"error": str(exc)})
        await self.store.storage.close()
