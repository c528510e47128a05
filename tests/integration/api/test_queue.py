# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Integration tests for the `/api/v1/queue` endpoints."""

from typing import Iterator

import pytest
from starlette.testclient import TestClient

from linkaudit import analysis
from linkaudit.analysis.backends.fake import FakeAnalysisClient
from linkaudit.main import app
from tests.integration.api.util import submit, wait_for_current_url, wait_for_queue

A = "https://a.example.com"
B = "https://b.example.com"
C = "https://c.example.com"

# Long enough for the requests of a test to reach the server while the first job runs.
LATENCY_SEC = 0.5


@pytest.fixture(name="slow_client")
def fixture_slow_client(monkeypatch: pytest.MonkeyPatch) -> Iterator[TestClient]:
    """Return a TestClient running the lifespan of an app whose analyses take a while."""
    monkeypatch.setattr(
        analysis, "create_client", lambda backend=None: FakeAnalysisClient(latency=LATENCY_SEC)
    )
    with TestClient(app) as client:
        yield client


def entry_statuses(client: TestClient) -> dict[str, str]:
    """Return the status of every entry by URL."""
    page = client.get("/api/v1/urls").json()
    return {entry["url"]: entry["status"] for entry in page["entries"]}


def test_queue_status_when_idle(client_with_events: TestClient) -> None:
    """Test the queue status before anything is submitted."""
    response = client_with_events.get("/api/v1/queue")

    assert response.status_code == 200
    assert response.json() == {
        "pending": 0,
        "currentUrl": None,
        "isProcessing": False,
        "totalCompleted": 0,
        "recentlyCompleted": [],
        "progress": 0.0,
    }


def test_start_when_idle(client_with_events: TestClient) -> None:
    """Test that starting an empty queue is a no-op."""
    response = client_with_events.post("/api/v1/queue/start")

    assert response.status_code == 200
    assert response.json() == {"started": False}


def test_queue_status_while_processing(slow_client: TestClient) -> None:
    """Test the queue status while the first job is in flight."""
    submit(slow_client, [A, B])

    status = wait_for_current_url(slow_client, A)

    assert status["isProcessing"] is True
    assert status["currentUrl"] == A
    assert status["pending"] == 2
    assert status["progress"] == 0.0
    assert slow_client.post("/api/v1/queue/start").json() == {"started": False}

    status = wait_for_queue(slow_client)
    assert status["progress"] == 100.0
    assert [entry["url"] for entry in status["recentlyCompleted"]] == [B, A]


def test_cancel(slow_client: TestClient) -> None:
    """Test that cancelling drops the queue and halts the pending entries."""
    submit(slow_client, [A, B, C])

    response = slow_client.post("/api/v1/queue/cancel")

    assert response.status_code == 200
    assert response.json() == {"halted": [A, B, C]}
    status = wait_for_queue(slow_client)
    assert status["progress"] == 0.0
    assert status["totalCompleted"] == 0
    assert entry_statuses(slow_client) == {A: "stopped", B: "stopped", C: "stopped"}


def test_clear_queue(slow_client: TestClient) -> None:
    """Test that clearing drops the pending URLs and lets the current job finish."""
    submit(slow_client, [A, B, C])
    wait_for_current_url(slow_client, A)

    response = slow_client.delete("/api/v1/queue")

    assert response.status_code == 200
    assert response.json() == {"dropped": [B, C]}
    wait_for_queue(slow_client)
    assert entry_statuses(slow_client) == {A: "done", B: "stopped", C: "stopped"}


def test_remove_queue_item(slow_client: TestClient) -> None:
    """Test that a pending URL can be removed from the queue."""
    submit(slow_client, [A, B, C])

    response = slow_client.delete("/api/v1/queue/item", params={"url": B})

    assert response.status_code == 200
    assert response.json() == {"removed": True}
    status = wait_for_queue(slow_client)
    assert status["progress"] == 100.0
    assert status["totalCompleted"] == 2
    assert entry_statuses(slow_client) == {A: "done", B: "stopped", C: "done"}


def test_remove_queue_item_not_pending(client_with_events: TestClient) -> None:
    """Test removing a URL that isn't pending."""
    response = client_with_events.delete("/api/v1/queue/item", params={"url": A})

    assert response.status_code == 200
    assert response.json() == {"removed": False}


def test_remove_queue_item_requires_url(client_with_events: TestClient) -> None:
    """Test that the URL parameter is required."""
    response = client_with_events.delete("/api/v1/queue/item")

    assert response.status_code == 400
