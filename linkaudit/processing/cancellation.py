"""Cooperative cancellation for processing runs.

Every processing run holds on to the `CancelToken` that was current when it
started. Cancelling fires that token, so a run that is still awaiting the
analysis service can tell, once the await returns, that its result belongs to a
cancelled run and must be discarded. Re-arming after a cancellation hands out a
fresh token, which keeps a late result from an old run from slipping past the
check just because the controller has since been re-armed.
"""

import asyncio
import logging
from typing import Awaitable, TypeVar

from linkaudit.exceptions import AnalysisAbortedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancelToken:
    """A one-shot cancellation signal."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        """Whether the token has fired."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Fire the token. Idempotent."""
        self._event.set()

    async def wait(self) -> None:
        """Block until the token fires."""
        await self._event.wait()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await `awaitable` unless the token fires first.

        When the token fires first the pending operation is cancelled and
        `AnalysisAbortedError` is raised, so that its result is suppressed rather
        than merely ignored.

        Raises:
            - `AnalysisAbortedError` if the token fired before the operation finished.
        """
        if self.cancelled:
            # Don't leave a never-awaited coroutine behind.
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise AnalysisAbortedError()

        operation = asyncio.ensure_future(awaitable)
        waiter = asyncio.create_task(self.wait())
        try:
            done, _ = await asyncio.wait({operation, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not operation.done():
                operation.cancel()

        if operation not in done:
            raise AnalysisAbortedError()
        return operation.result()


class CancellationController:
    """The shared abort flag of the processor plus the set of URLs in flight."""

    def __init__(self) -> None:
        self._token = CancelToken()
        self._in_flight: set[str] = set()

    @property
    def token(self) -> CancelToken:
        """The token of the current (or next) processing run."""
        return self._token

    @property
    def in_flight(self) -> frozenset[str]:
        """URLs currently undergoing analysis."""
        return frozenset(self._in_flight)

    def is_cancelled(self) -> bool:
        """Whether the current token has fired."""
        return self._token.cancelled

    def arm(self) -> CancelToken:
        """Clear the abort flag and the in-flight set ahead of a new run.

        A token that has not fired is still the flag of a live (or future) run and
        is kept as is, otherwise that run could no longer be cancelled.
        """
        if self._token.cancelled:
            self._token = CancelToken()
            self._in_flight.clear()
        return self._token

    def cancel(self) -> None:
        """Set the abort flag and forget the in-flight URLs. Idempotent."""
        if not self._token.cancelled:
            logger.info("Cancelling processing", extra={"in_flight": sorted(self._in_flight)})
        self._token.cancel()
        self._in_flight.clear()

    def acquire(self, url: str) -> bool:
        """Mark `url` as in flight. Returns False if it already was."""
        if url in self._in_flight:
            return False
        self._in_flight.add(url)
        return True

    def release(self, url: str, token: CancelToken) -> None:
        """Drop `url` from the in-flight set, unless `token` has been superseded by a new run."""
        if token is self._token:
            self._in_flight.discard(url)
