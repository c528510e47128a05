"""The job processor: drains the analysis queue one URL at a time.

A single processing run is active at any time. A run snapshots the pending URLs,
analyzes them in order and sleeps a fixed delay between jobs, checking its
cancellation token at every step. URLs that are added while a run is active are
picked up by a follow-up run once the current one is over.
"""

import asyncio
import logging
import time

import aiodogstatsd

from linkaudit.analysis.protocol import AnalysisClient
from linkaudit.entries.models import URLEntry
from linkaudit.entries.store import EntryStore
from linkaudit.exceptions import AnalysisAbortedError, AnalysisError
from linkaudit.metrics import ProcessorMetric
from linkaudit.processing.cancellation import CancellationController, CancelToken
from linkaudit.processing.models import QueueStatus
from linkaudit.processing.queue import AnalysisQueue

logger = logging.getLogger(__name__)
job_logger = logging.getLogger("job.summary")

UNKNOWN_ERROR_MESSAGE = "Unknown error occurred"


class JobProcessor:
    """Sequential state machine that writes analysis outcomes into the entry store."""

    store: EntryStore
    queue: AnalysisQueue
    controller: CancellationController
    client: AnalysisClient
    metrics_client: aiodogstatsd.Client
    inter_job_delay: float
    poll_interval: float
    recently_completed_max: int
    current_url: str | None

    def __init__(
        self,
        *,
        store: EntryStore,
        queue: AnalysisQueue,
        controller: CancellationController,
        client: AnalysisClient,
        metrics_client: aiodogstatsd.Client,
        inter_job_delay: float,
        poll_interval: float,
        recently_completed_max: int = 10,
    ) -> None:
        self.store = store
        self.queue = queue
        self.controller = controller
        self.client = client
        self.metrics_client = metrics_client
        self.inter_job_delay = inter_job_delay
        self.poll_interval = poll_interval
        self.recently_completed_max = recently_completed_max
        self.current_url = None
        self._processing: bool = False
        self._task: asyncio.Task | None = None
        # URLs in flight that were asked to be analyzed again once their job is over.
        self._requeued: set[str] = set()

    @property
    def is_processing(self) -> bool:
        """Whether a processing run is active."""
        return self._processing

    def start(self) -> bool:
        """Start a processing run unless one is active or nothing is pending.

        Returns:
            Whether a new run was started.
        """
        if self._processing:
            return False
        if not self._has_work():
            return False

        self._processing = True
        self._task = asyncio.create_task(self._run(self.controller.token), name="process-queue")
        return True

    def cancel(self) -> None:
        """Cancel the active run and drop everything that is pending.

        The queue and batch tracking are empty when this returns. The run itself
        exits at its next check, discarding the result of the job in flight.
        """
        self.controller.cancel()
        self.queue.reset()
        self._requeued.clear()
        self.metrics_client.increment(ProcessorMetric.CANCEL)

    def requeue(self, url: str) -> None:
        """Analyze the URL in flight once more after its current job.

        Its entry is queued again when the current job is over, so that the live
        entry keeps showing the job that is running.
        """
        self._requeued.add(url)

    async def wait_idle(self) -> None:
        """Wait until no run is active, follow-up runs included."""
        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})

    async def shutdown(self, timeout: float = 5.0) -> None:
        """Cancel processing and wait for the active run to exit."""
        self.cancel()
        task = self._task
        if task is None or task.done():
            return
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=timeout)
        except TimeoutError:
            logger.warning("Processing run did not exit in time, cancelling its task")
            task.cancel()

    def status(self) -> QueueStatus:
        """Project the queue for presentation. Never mutates state."""
        return QueueStatus(
            pending=len(self.queue),
            current_url=self.current_url,
            is_processing=self._processing,
            total_completed=len(self.queue.batch_completed),
            recently_completed=self.queue.recently_completed(self.recently_completed_max),
            progress=self.queue.progress(),
        )

    def _has_work(self) -> bool:
        in_flight = self.controller.in_flight
        return any(url not in in_flight for url in self.queue.pending)

    async def _run(self, token: CancelToken) -> None:
        work: tuple[str, ...] = self.queue.pending
        logger.info("Processing run started", extra={"pending": len(work)})
        processed = 0
        try:
            for url in work:
                if token.cancelled:
                    break
                # Removed, stopped or deleted since the snapshot was taken.
                if url not in self.queue:
                    continue

                await self._process(url, token)
                processed += 1
                self.metrics_client.gauge(ProcessorMetric.QUEUE_PENDING, value=len(self.queue))

                if token.cancelled or not self.queue:
                    break
                await self._pause(token)
        finally:
            self._processing = False
            self.current_url = None
            self._task = None
            logger.info(
                "Processing run finished",
                extra={"processed": processed, "cancelled": token.cancelled},
            )

        # URLs added while this run was active, or after a cancellation re-armed the
        # controller, get a run of their own.
        if not self.controller.is_cancelled():
            self.start()

    async def _process(self, url: str, token: CancelToken) -> None:
        if not self.controller.acquire(url):
            logger.debug("Skipping URL that is already in flight", extra={"url": url})
            return
        self.current_url = url

        begin = time.perf_counter()
        try:
            self.store.upsert(url)
            self.store.mark_running(url)
            try:
                result = await self.client.analyze(url, token)
            except AnalysisAbortedError:
                self._discard(url, "aborted")
                return
            except Exception as exc:
                if token.cancelled:
                    self._discard(url, "error after cancellation")
                    return
                if url not in self.store:
                    self._discard(url, "entry deleted")
                    return
                message = exc.message if isinstance(exc, AnalysisError) else str(exc)
                entry = self.store.apply_error(url, message or UNKNOWN_ERROR_MESSAGE)
            else:
                if token.cancelled:
                    self._discard(url, "result after cancellation")
                    return
                if url not in self.store:
                    self._discard(url, "entry deleted")
                    return
                entry = self.store.apply_result(url, result)

            if url not in self._requeued:
                self.queue.record_completion(entry)
            self._report(entry, time.perf_counter() - begin)
        except Exception:
            logger.exception("Unexpected failure while processing URL", extra={"url": url})
            self.metrics_client.increment(ProcessorMetric.JOB_FAILED)
            if not token.cancelled:
                self._fail(url)
        finally:
            if not token.cancelled:
                self._finish(url)
            self._requeued.discard(url)
            self.controller.release(url, token)

    def _finish(self, url: str) -> None:
        entry = self.store.get_by_url(url)
        if url in self._requeued and url in self.queue and entry is not None:
            self.queue.move_to_end(url)
            self.store.mark_queued([entry.id])
            logger.debug("URL queued again", extra={"url": url})
        else:
            self.queue.remove(url)

    def _fail(self, url: str) -> None:
        """Move the entry of a job that failed unexpectedly out of the running state."""
        if url not in self.store:
            return
        try:
            entry = self.store.apply_error(url, UNKNOWN_ERROR_MESSAGE)
        except Exception:
            logger.exception("Failed to mark entry as failed", extra={"url": url})
            return
        if url not in self._requeued:
            self.queue.record_completion(entry)

    def _discard(self, url: str, reason: str) -> None:
        logger.info("Discarding analysis result", extra={"url": url, "reason": reason})
        self.metrics_client.increment(ProcessorMetric.JOB_ABORTED)

    def _report(self, entry: URLEntry, duration: float) -> None:
        self.metrics_client.increment(ProcessorMetric.job_outcome(entry.status))
        self.metrics_client.timing(ProcessorMetric.JOB_TIMING, value=duration * 1000)
        job_logger.info(
            "",
            extra={
                "url": entry.url,
                "status": entry.status.value,
                "duration": duration,
                "error": entry.error_message,
            },
        )

    async def _pause(self, token: CancelToken) -> None:
        """Sleep the inter-job delay in poll-interval steps, returning early on cancellation."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.inter_job_delay
        while not token.cancelled:
            remaining = deadline - loop.time()
            if remaining <= 0:
                return
            await asyncio.sleep(min(self.poll_interval, remaining))
