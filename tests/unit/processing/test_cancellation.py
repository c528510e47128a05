# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Unit tests for the cancellation primitives."""

import asyncio

import pytest

from linkaudit.exceptions import AnalysisAbortedError, AnalysisError
from linkaudit.processing.cancellation import CancellationController, CancelToken


@pytest.mark.asyncio
async def test_guard_returns_result() -> None:
    """Test that the guard passes the result through when the token doesn't fire."""

    async def operation() -> str:
        return "done"

    assert await CancelToken().guard(operation()) == "done"


@pytest.mark.asyncio
async def test_guard_propagates_errors() -> None:
    """Test that the guard passes operation errors through."""

    async def operation() -> str:
        raise AnalysisError("boom")

    with pytest.raises(AnalysisError, match="boom"):
        await CancelToken().guard(operation())


@pytest.mark.asyncio
async def test_guard_aborts_and_cancels_pending_operation() -> None:
    """Test that firing the token aborts the wait and cancels the operation."""
    token = CancelToken()
    future: asyncio.Future = asyncio.get_running_loop().create_future()

    guarded = asyncio.create_task(token.guard(future))
    await asyncio.sleep(0)
    token.cancel()

    with pytest.raises(AnalysisAbortedError):
        await guarded
    assert future.cancelled()


@pytest.mark.asyncio
async def test_guard_with_fired_token() -> None:
    """Test that a fired token aborts immediately without running the operation."""
    ran = False

    async def operation() -> None:
        nonlocal ran
        ran = True

    token = CancelToken()
    token.cancel()

    with pytest.raises(AnalysisAbortedError):
        await token.guard(operation())
    assert not ran


def test_controller_arm_keeps_live_token() -> None:
    """Test that arming doesn't replace a token that hasn't fired."""
    controller = CancellationController()
    token = controller.token
    controller.acquire("https://example.com")

    assert controller.arm() is token
    assert controller.in_flight == {"https://example.com"}


def test_controller_cancel_then_arm() -> None:
    """Test that arming after a cancellation hands out a fresh token."""
    controller = CancellationController()
    old_token = controller.token
    controller.acquire("https://example.com")

    controller.cancel()
    assert controller.is_cancelled()
    assert old_token.cancelled
    assert controller.in_flight == frozenset()

    new_token = controller.arm()
    assert new_token is not old_token
    assert not controller.is_cancelled()
    assert old_token.cancelled


def test_controller_cancel_is_idempotent() -> None:
    """Test that cancelling twice is the same as cancelling once."""
    controller = CancellationController()

    controller.cancel()
    controller.cancel()

    assert controller.is_cancelled()


def test_controller_acquire_and_release() -> None:
    """Test the in-flight bookkeeping."""
    controller = CancellationController()
    token = controller.token

    assert controller.acquire("https://example.com")
    assert not controller.acquire("https://example.com")

    controller.release("https://example.com", token)
    assert controller.in_flight == frozenset()


def test_controller_release_from_superseded_run() -> None:
    """Test that a cancelled run can't release a URL a newer run has acquired."""
    controller = CancellationController()
    old_token = controller.token
    controller.acquire("https://example.com")
    controller.cancel()
    controller.arm()
    controller.acquire("https://example.com")

    controller.release("https://example.com", old_token)

    assert controller.in_flight == {"https://example.com"}
