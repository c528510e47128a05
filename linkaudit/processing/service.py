"""The queue service: the operations user actions call to drive the analysis queue."""

import logging
from typing import Iterable

import aiodogstatsd
from pydantic import HttpUrl, TypeAdapter, ValidationError

from linkaudit.analysis.protocol import AnalysisClient
from linkaudit.config import settings
from linkaudit.entries.models import URLEntry
from linkaudit.entries.store import EntryStore
from linkaudit.exceptions import InvalidURLError
from linkaudit.metrics import get_metrics_client
from linkaudit.processing.cancellation import CancellationController
from linkaudit.processing.models import QueueStatus
from linkaudit.processing.processor import JobProcessor
from linkaudit.processing.queue import AnalysisQueue

logger = logging.getLogger(__name__)

_HTTP_URL = TypeAdapter(HttpUrl)


def validate_urls(urls: Iterable[str]) -> list[str]:
    """Strip and validate submitted URLs.

    URLs are kept as submitted (minus surrounding whitespace) since they are the
    keys of the entry store; validation only decides whether they are accepted.

    Raises:
        - `InvalidURLError` listing every URL that isn't an absolute http(s) URL.
    """
    accepted: list[str] = []
    invalid: list[str] = []
    for raw in urls:
        url = raw.strip()
        try:
            _HTTP_URL.validate_python(url)
        except ValidationError:
            invalid.append(raw)
        else:
            accepted.append(url)
    if invalid:
        raise InvalidURLError(invalid)
    return accepted


class QueueService:
    """Wire the entry store, the queue, the cancellation controller and the processor."""

    store: EntryStore
    controller: CancellationController
    queue: AnalysisQueue
    processor: JobProcessor

    def __init__(
        self,
        *,
        store: EntryStore,
        client: AnalysisClient,
        metrics_client: aiodogstatsd.Client | None = None,
        inter_job_delay: float | None = None,
        poll_interval: float | None = None,
        recently_completed_max: int | None = None,
    ) -> None:
        self.store = store
        self.controller = CancellationController()
        self.queue = AnalysisQueue(self.controller)
        self.processor = JobProcessor(
            store=store,
            queue=self.queue,
            controller=self.controller,
            client=client,
            metrics_client=metrics_client or get_metrics_client(),
            inter_job_delay=(
                settings.processor.inter_job_delay_sec
                if inter_job_delay is None
                else inter_job_delay
            ),
            poll_interval=poll_interval or settings.processor.poll_interval_sec,
            recently_completed_max=(
                recently_completed_max or settings.processor.recently_completed_max
            ),
        )

    def submit(self, urls: Iterable[str]) -> list[URLEntry]:
        """Validate and enqueue URLs, then start processing.

        Nothing is enqueued if any URL is invalid.

        Returns:
            The queued entries, one per distinct URL, in submission order.

        Raises:
            - `InvalidURLError` if any URL is invalid.
        """
        accepted = list(dict.fromkeys(validate_urls(urls)))
        if not accepted:
            return []
        entries = [self._queue_entry(url) for url in accepted]
        self.queue.add(accepted)
        self.start()
        logger.info("URLs submitted", extra={"count": len(accepted)})
        return entries

    def _queue_entry(self, url: str) -> URLEntry:
        # The entry in flight is left to the processor.
        if url in self.controller.in_flight:
            return self.store.get_by_url(url) or self.store.upsert(url)
        return self.store.upsert(url)

    def rerun(self, ids: Iterable[str]) -> list[str]:
        """Queue the entries with the given ids again and start processing.

        An entry that is being analyzed keeps its running status and is analyzed
        once more after its current job.

        Returns:
            The URLs of the re-queued entries.
        """
        in_flight = self.controller.in_flight
        entries = [entry for entry_id in dict.fromkeys(ids) if (entry := self.store.get(entry_id))]
        self.store.mark_queued(entry.id for entry in entries if entry.url not in in_flight)
        urls = [entry.url for entry in entries]
        for url in urls:
            if url in in_flight:
                self.processor.requeue(url)
        if urls:
            self.queue.add(urls)
            self.start()
        return urls

    def delete(self, ids: Iterable[str]) -> list[URLEntry]:
        """Delete entries. Their URLs are dropped from the queue unless already in flight."""
        removed = self.store.delete(ids)
        for entry in removed:
            self._drop_pending(entry.url)
        return removed

    def stop(self, ids: Iterable[str]) -> list[URLEntry]:
        """Manually halt entries that aren't running and drop them from the queue."""
        stopped = self.store.mark_stopped(ids)
        for entry in stopped:
            self._drop_pending(entry.url)
        return stopped

    def remove_from_queue(self, url: str) -> bool:
        """Drop a pending URL from the queue and the current batch.

        Returns:
            Whether the URL was pending.
        """
        if url in self.controller.in_flight:
            return False
        removed = self._drop_pending(url)
        if removed:
            self.store.stop_urls([url])
        return removed

    def _drop_pending(self, url: str) -> bool:
        removed = self.queue.remove(url)
        self.queue.discard_from_batch(url)
        return removed

    def clear_queue(self) -> list[str]:
        """Drop all pending URLs except the one in flight, which is left to finish."""
        in_flight = self.controller.in_flight
        dropped = [url for url in self.queue.pending if url not in in_flight]
        for url in dropped:
            self._drop_pending(url)
        self.store.stop_urls(dropped)
        if dropped:
            logger.info("Queue cleared", extra={"dropped": len(dropped)})
        return dropped

    def start(self) -> bool:
        """Start processing if it isn't running already."""
        return self.processor.start()

    def cancel(self) -> list[str]:
        """Cancel processing. Pending and in-flight entries are marked as stopped.

        Returns:
            The URLs that were halted.
        """
        halted = list(dict.fromkeys([*self.controller.in_flight, *self.queue.pending]))
        self.processor.cancel()
        self.store.stop_urls(halted)
        return halted

    def status(self) -> QueueStatus:
        """Return the presentation projection of the queue."""
        return self.processor.status()

    async def wait_idle(self) -> None:
        """Wait until processing is over."""
        await self.processor.wait_idle()

    async def shutdown(self) -> None:
        """Cancel processing and wait for the active run to exit."""
        await self.processor.shutdown()


service: QueueService | None = None


def init_service(store: EntryStore, client: AnalysisClient) -> QueueService:
    """Initialize the queue service.

    This should only be called once at the startup of application.
    """
    global service

    service = QueueService(store=store, client=client)
    return service


def get_service() -> QueueService:
    """Return the queue service"""
    if service is None:
        raise ValueError("Queue service has not been initialized.")
    return service
