"""The entry store: the keyed collection of analysis entries and the only place
entries are mutated.

Entries are keyed by URL. Mutations replace the (immutable) entry in place and are
visible to readers as soon as the call returns. Persistence is decoupled: every
mutation marks the store dirty and `flush()` writes a snapshot to the storage
adapter, usually from a cron job.
"""

import logging
from typing import Iterable, Literal

from linkaudit.analysis.protocol import AnalysisResult
from linkaudit.entries.models import (
    DEFAULT_HTML_VERSION,
    DEFAULT_TITLE,
    URLEntry,
    URLStatus,
    utcnow,
)
from linkaudit.entries.storage.protocol import EntryStorage
from linkaudit.exceptions import StorageError

logger = logging.getLogger(__name__)

SortField = Literal[
    "url",
    "title",
    "status",
    "html_version",
    "internal_links",
    "external_links",
    "broken_links",
    "last_updated",
]


class EntryStore:
    """Keyed collection of `URLEntry`, newest first by insertion."""

    storage: EntryStorage

    def __init__(self, storage: EntryStorage) -> None:
        self.storage = storage
        # Insertion ordered, oldest first.
        self._entries: dict[str, URLEntry] = {}
        self._url_by_id: dict[str, str] = {}
        self._dirty: bool = False

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, url: object) -> bool:
        return url in self._entries

    @property
    def dirty(self) -> bool:
        """Whether there are mutations that have not been flushed to storage."""
        return self._dirty

    def _put(self, entry: URLEntry) -> URLEntry:
        self._entries[entry.url] = entry
        self._url_by_id[entry.id] = entry.url
        self._dirty = True
        return entry

    def _update(self, url: str, **changes) -> URLEntry:
        """Apply `changes` to the entry for `url`, creating the entry first if needed."""
        current = self._entries.get(url)
        if current is None:
            current = URLEntry(url=url)
        return self._put(current.model_copy(update={"last_updated": utcnow(), **changes}))

    # Reads

    def get(self, entry_id: str) -> URLEntry | None:
        """Return the entry with the given id, or None."""
        url = self._url_by_id.get(entry_id)
        return self._entries.get(url) if url is not None else None

    def get_by_url(self, url: str) -> URLEntry | None:
        """Return the entry for `url`, or None."""
        return self._entries.get(url)

    def snapshot(self) -> tuple[URLEntry, ...]:
        """Return all entries, newest first."""
        return tuple(reversed(self._entries.values()))

    def query(
        self,
        *,
        status: URLStatus | None = None,
        search: str | None = None,
        sort_by: SortField | None = None,
        descending: bool = True,
        offset: int = 0,
        limit: int | None = None,
    ) -> tuple[int, list[URLEntry]]:
        """Filter, sort and paginate the entries.

        Args:
            - `status`: only return entries with this status.
            - `search`: case-insensitive substring matched against url and title.
            - `sort_by`: the field to sort on. Insertion order (newest first) if not given.
            - `descending`: sort direction, ignored when `sort_by` isn't given.
            - `offset`, `limit`: the page to return.
        Returns:
            A tuple of the number of entries matching the filters and the requested page.
        """
        entries: list[URLEntry] = list(self.snapshot())
        if status is not None:
            entries = [entry for entry in entries if entry.status == status]
        if search:
            needle = search.strip().lower()
            entries = [
                entry
                for entry in entries
                if needle in entry.url.lower() or needle in entry.title.lower()
            ]
        if sort_by is not None:
            entries.sort(key=lambda entry: _sort_key(entry, sort_by), reverse=descending)

        total = len(entries)
        end = None if limit is None else offset + limit
        return total, entries[offset:end]

    # Mutations

    def upsert(self, url: str) -> URLEntry:
        """Reset the entry for `url` to a fresh queued entry, keeping its id, or create it."""
        current = self._entries.get(url)
        if current is None:
            return self._put(URLEntry(url=url))
        return self._put(URLEntry(id=current.id, url=url))

    def mark_running(self, url: str) -> URLEntry:
        """Move the entry for `url` to running."""
        return self._update(url, status=URLStatus.RUNNING, error_message=None)

    def apply_result(self, url: str, result: AnalysisResult) -> URLEntry:
        """Merge a successful analysis into the entry for `url` and mark it done.
        Fields the result doesn't carry fall back to the entry defaults.
        """
        return self._update(
            url,
            status=URLStatus.DONE,
            title=result.page_title or DEFAULT_TITLE,
            html_version=result.html_version or DEFAULT_HTML_VERSION,
            internal_links=result.internal_links or 0,
            external_links=result.external_links or 0,
            broken_links=result.broken_links or 0,
            has_login_form=bool(result.has_login_form),
            heading_counts=dict(result.heading_counts or {}),
            broken_link_details=list(result.broken_link_details or []),
            processing_time=result.processing_time or 0.0,
            error_message=None,
        )

    def apply_error(self, url: str, message: str) -> URLEntry:
        """Mark the entry for `url` as failed with `message`.

        Descriptive fields are kept, link statistics are cleared since they would
        describe an earlier analysis.
        """
        return self._update(
            url,
            status=URLStatus.ERROR,
            error_message=message,
            internal_links=0,
            external_links=0,
            broken_links=0,
            broken_link_details=[],
            processing_time=None,
        )

    def delete(self, ids: Iterable[str]) -> list[URLEntry]:
        """Remove the entries with the given ids. Returns the removed entries."""
        removed: list[URLEntry] = []
        for entry_id in ids:
            url = self._url_by_id.pop(entry_id, None)
            if url is None:
                continue
            removed.append(self._entries.pop(url))
        if removed:
            self._dirty = True
        return removed

    def mark_queued(self, ids: Iterable[str]) -> list[str]:
        """Move the entries with the given ids back to queued. Returns their URLs."""
        urls: list[str] = []
        for entry_id in dict.fromkeys(ids):
            entry = self.get(entry_id)
            if entry is None:
                continue
            self._update(entry.url, status=URLStatus.QUEUED)
            urls.append(entry.url)
        return urls

    def mark_stopped(self, ids: Iterable[str]) -> list[URLEntry]:
        """Halt the entries with the given ids. Running entries belong to the processor
        and are left alone.
        """
        urls: list[str] = []
        for entry_id in dict.fromkeys(ids):
            entry = self.get(entry_id)
            if entry is None or entry.status == URLStatus.RUNNING:
                continue
            urls.append(entry.url)
        return self.stop_urls(urls)

    def stop_urls(self, urls: Iterable[str]) -> list[URLEntry]:
        """Halt the queued or running entries for the given URLs."""
        stopped: list[URLEntry] = []
        for url in dict.fromkeys(urls):
            entry = self._entries.get(url)
            if entry is None or entry.status in (URLStatus.DONE, URLStatus.ERROR):
                continue
            stopped.append(self._update(url, status=URLStatus.STOPPED))
        return stopped

    # Persistence

    async def restore(self) -> int:
        """Replace the in-memory entries with the stored collection.

        The queue is not persisted, so entries that were queued or in flight when the
        collection was written can't be resumed. They are restored as stopped.

        Returns:
            The number of restored entries.
        """
        stored = await self.storage.load()
        self._entries.clear()
        self._url_by_id.clear()
        for entry in reversed(stored):
            if not entry.status.is_terminal:
                entry = entry.model_copy(update={"status": URLStatus.STOPPED})
            self._entries[entry.url] = entry
            self._url_by_id[entry.id] = entry.url
        self._dirty = False
        logger.info("Restored entries from storage", extra={"count": len(self._entries)})
        return len(self._entries)

    async def flush(self) -> None:
        """Write the entries to storage if there are unsaved mutations.

        Raises:
            - `StorageError` if the write fails. The store stays dirty.
        """
        if not self._dirty:
            return
        # Mutations made while the write is in flight mark the store dirty again.
        self._dirty = False
        try:
            await self.storage.save(self.snapshot())
        except StorageError:
            self._dirty = True
            raise


def _sort_key(entry: URLEntry, field: SortField):
    value = getattr(entry, field)
    if isinstance(value, str):
        return value.lower()
    return value
