# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

import asyncio
from logging import LogRecord
from typing import Awaitable, Callable

import aiodogstatsd
import pytest
from pytest_mock import MockerFixture

from linkaudit.analysis.protocol import AnalysisResult
from linkaudit.processing.cancellation import CancelToken

FilterCaplogFixture = Callable[[list[LogRecord], str], list[LogRecord]]
WaitUntilFixture = Callable[[Callable[[], bool]], Awaitable[None]]


@pytest.fixture(scope="session", name="filter_caplog")
def fixture_filter_caplog() -> FilterCaplogFixture:
    """
    Return a function that will filter pytest captured log records for a given logger
    name
    """

    def filter_caplog(records: list[LogRecord], logger_name: str) -> list[LogRecord]:
        """
        Filter pytest captured log records for a given logger name
        """
        return [record for record in records if record.name == logger_name]

    return filter_caplog


@pytest.fixture(name="wait_until")
def fixture_wait_until() -> WaitUntilFixture:
    """Return a coroutine function that yields to the event loop until a predicate holds."""

    async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("Condition not met before the timeout")
            await asyncio.sleep(0.001)

    return wait_until


class ControlledAnalysisClient:
    """Analysis client whose calls stay pending until the test settles them.

    With `honor_cancellation=False` the client ignores the cancel token, like a
    backend that can't abort its request, so late results reach the processor.
    """

    def __init__(self, honor_cancellation: bool = True) -> None:
        self.honor_cancellation = honor_cancellation
        self.calls: list[str] = []
        self.futures: dict[str, asyncio.Future] = {}
        self.closed = False

    async def analyze(self, url: str, cancel_token: CancelToken | None = None) -> AnalysisResult:
        self.calls.append(url)
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self.futures[url] = future
        if cancel_token is not None and self.honor_cancellation:
            return await cancel_token.guard(future)
        return await future

    def resolve(self, url: str, result: AnalysisResult | None = None) -> None:
        future = self.futures[url]
        if not future.done():
            future.set_result(result or AnalysisResult(page_title=f"Title of {url}"))

    def fail(self, url: str, exc: BaseException) -> None:
        future = self.futures[url]
        if not future.done():
            future.set_exception(exc)

    def is_waiting(self, url: str) -> bool:
        future = self.futures.get(url)
        return future is not None and not future.done()

    async def close(self) -> None:
        self.closed = True


@pytest.fixture(name="analysis_client")
def fixture_analysis_client() -> ControlledAnalysisClient:
    """Return an analysis client that honors cancellation."""
    return ControlledAnalysisClient()


@pytest.fixture(name="metrics_client")
def fixture_metrics_client(mocker: MockerFixture) -> aiodogstatsd.Client:
    """Return a mock metrics client."""
    return mocker.MagicMock(spec=aiodogstatsd.Client)
