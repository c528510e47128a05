"""Pending URLs and progress bookkeeping for the most recent batch."""

import logging
from typing import Iterable

from linkaudit.entries.models import URLEntry
from linkaudit.processing.cancellation import CancellationController

logger = logging.getLogger(__name__)


class AnalysisQueue:
    """An ordered, duplicate free list of URLs waiting for analysis, plus the
    batch of the latest `add()` call.

    Only one batch is tracked at a time: adding a new batch replaces the
    progress tracking even if URLs of the previous batch are still pending.
    """

    controller: CancellationController

    def __init__(self, controller: CancellationController) -> None:
        self.controller = controller
        self._pending: list[str] = []
        self._batch_urls: list[str] = []
        # Terminal entries of the current batch, in completion order.
        self._batch_completed: list[URLEntry] = []

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, url: object) -> bool:
        return url in self._pending

    @property
    def pending(self) -> tuple[str, ...]:
        """The URLs waiting for analysis, head first."""
        return tuple(self._pending)

    @property
    def batch_urls(self) -> tuple[str, ...]:
        """The URLs of the current batch."""
        return tuple(self._batch_urls)

    @property
    def batch_completed(self) -> tuple[URLEntry, ...]:
        """Entries of the current batch that reached a terminal state, in completion order."""
        return tuple(self._batch_completed)

    def add(self, urls: Iterable[str]) -> list[str]:
        """Append URLs that aren't pending yet and start tracking them as the current batch.

        Returns:
            The URLs that were actually appended, in submission order.
        """
        batch = list(dict.fromkeys(urls))
        added = [url for url in batch if url not in self._pending]
        self._pending.extend(added)
        self._batch_urls = batch
        self._batch_completed = []
        self.controller.arm()
        logger.debug(
            "URLs added to the queue",
            extra={"batch": len(batch), "added": len(added), "pending": len(self._pending)},
        )
        return added

    def remove(self, url: str) -> bool:
        """Drop `url` from the pending URLs. Returns whether it was pending."""
        if url not in self._pending:
            return False
        self._pending = [pending for pending in self._pending if pending != url]
        return True

    def move_to_end(self, url: str) -> None:
        """Move a pending URL behind all the others, keeping the batch tracking."""
        self.remove(url)
        self._pending.append(url)

    def discard_from_batch(self, url: str) -> None:
        """Stop tracking `url` as part of the current batch."""
        self._batch_urls = [batch_url for batch_url in self._batch_urls if batch_url != url]
        self._batch_completed = [entry for entry in self._batch_completed if entry.url != url]

    def reset(self) -> None:
        """Drop the pending URLs and the batch tracking."""
        self._pending = []
        self._batch_urls = []
        self._batch_completed = []

    def record_completion(self, entry: URLEntry) -> None:
        """Track a terminal entry if it belongs to the current batch. A URL completed
        more than once replaces its earlier completion.
        """
        if entry.url not in self._batch_urls:
            return
        for index, completed in enumerate(self._batch_completed):
            if completed.url == entry.url:
                self._batch_completed[index] = entry
                return
        self._batch_completed.append(entry)

    def progress(self) -> float:
        """Percentage (0-100) of the current batch that reached a terminal state."""
        if not self._batch_urls:
            return 0.0
        return min(100.0, 100.0 * len(self._batch_completed) / len(self._batch_urls))

    def recently_completed(self, limit: int) -> list[URLEntry]:
        """The most recently completed entries of the current batch, newest first."""
        # Stable sort over reversed completion order keeps later completions first on ties.
        ordered = sorted(
            reversed(self._batch_completed), key=lambda entry: entry.last_updated, reverse=True
        )
        return ordered[:limit]
