# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Helpers for the API integration tests."""

import time
from typing import Any

from starlette.testclient import TestClient


def submit(client: TestClient, urls: list[str]) -> list[dict[str, Any]]:
    """Submit URLs and return the queued entries."""
    response = client.post("/api/v1/urls", json={"urls": urls})
    assert response.status_code == 202
    entries: list[dict[str, Any]] = response.json()["entries"]
    return entries


def wait_for_queue(client: TestClient, timeout: float = 5.0) -> dict[str, Any]:
    """Poll the queue status until processing is over and return the last status."""
    deadline = time.monotonic() + timeout
    while True:
        status: dict[str, Any] = client.get("/api/v1/queue").json()
        if not status["isProcessing"] and status["pending"] == 0:
            return status
        if time.monotonic() > deadline:
            raise AssertionError(f"Queue is still processing: {status}")
        time.sleep(0.01)


def wait_for_current_url(client: TestClient, url: str, timeout: float = 5.0) -> dict[str, Any]:
    """Poll the queue status until `url` is the one being analyzed."""
    deadline = time.monotonic() + timeout
    while True:
        status: dict[str, Any] = client.get("/api/v1/queue").json()
        if status["currentUrl"] == url:
            return status
        if time.monotonic() > deadline:
            raise AssertionError(f"{url} is not being analyzed: {status}")
        time.sleep(0.01)
