# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Unit tests for the HTTP analysis client."""

import asyncio
from typing import Any

import httpx
import pytest
from httpx import AsyncClient, Request, Response
from pytest_mock import MockerFixture

from linkaudit.analysis.backends.http import HttpAnalysisClient
from linkaudit.exceptions import AnalysisAbortedError, AnalysisError
from linkaudit.processing.cancellation import CancelToken

ENDPOINT = "/api/analyze-url"


def make_response(status_code: int = 200, **kwargs: Any) -> Response:
    """Return a response to a request to the analysis endpoint."""
    return Response(
        status_code,
        request=Request("POST", f"http://analysis.test{ENDPOINT}"),
        **kwargs,
    )


@pytest.fixture(name="http_client")
def fixture_http_client(mocker: MockerFixture) -> Any:
    """Return a mock httpx client."""
    return mocker.AsyncMock(spec=AsyncClient)


@pytest.fixture(name="client")
def fixture_client(http_client: Any) -> HttpAnalysisClient:
    """Return an analysis client posting to the mock httpx client."""
    return HttpAnalysisClient(http_client, endpoint=ENDPOINT, api_key="test-api-key")


@pytest.mark.asyncio
async def test_analyze(client: HttpAnalysisClient, http_client: Any) -> None:
    """Test that the URL is posted with the API key and the response parsed."""
    http_client.post.return_value = make_response(
        json={
            "pageTitle": "Example Domain",
            "htmlVersion": "HTML5",
            "internalLinks": 2,
            "externalLinks": 1,
            "brokenLinks": 1,
            "hasLoginForm": False,
            "headingCounts": {"H1": 1},
            "brokenLinkDetails": [
                {"url": "https://example.com/gone", "statusCode": 404, "error": "Not Found"}
            ],
            "processingTime": 0.25,
        }
    )

    result = await client.analyze("https://example.com")

    http_client.post.assert_called_once_with(
        ENDPOINT,
        json={"url": "https://example.com"},
        headers={"X-API-Key": "test-api-key"},
    )
    assert result.page_title == "Example Domain"
    assert result.broken_link_details is not None
    assert result.broken_link_details[0].status_code == 404
    assert result.processing_time == 0.25


@pytest.mark.asyncio
async def test_analyze_partial_response(client: HttpAnalysisClient, http_client: Any) -> None:
    """Test that a response missing fields is accepted."""
    http_client.post.return_value = make_response(json={"pageTitle": "Only a title"})

    result = await client.analyze("https://example.com")

    assert result.page_title == "Only a title"
    assert result.html_version is None


@pytest.mark.parametrize(
    ["response", "message"],
    [
        (make_response(500, text="oops"), "HTTP error! status: 500"),
        (make_response(401, json={"error": "unauthorized"}), "HTTP error! status: 401"),
        (make_response(json={"error": "failed to fetch URL"}), "failed to fetch URL"),
        (make_response(text="<html>"), "Invalid API response format"),
        (make_response(json={"internalLinks": -1}), "Invalid API response format"),
    ],
    ids=["server_error", "unauthorized", "error_payload", "not_json", "invalid_payload"],
)
@pytest.mark.asyncio
async def test_analyze_failures(
    client: HttpAnalysisClient, http_client: Any, response: Response, message: str
) -> None:
    """Test that failed analyses are reported as AnalysisError with a readable message."""
    http_client.post.return_value = response

    with pytest.raises(AnalysisError) as excinfo:
        await client.analyze("https://example.com")

    assert message in excinfo.value.message


@pytest.mark.asyncio
async def test_analyze_transport_error(client: HttpAnalysisClient, http_client: Any) -> None:
    """Test that transport errors are reported as AnalysisError."""
    http_client.post.side_effect = httpx.ConnectError("connection refused")

    with pytest.raises(AnalysisError) as excinfo:
        await client.analyze("https://example.com")

    assert excinfo.value.message == "connection refused"
    assert not isinstance(excinfo.value, AnalysisAbortedError)


@pytest.mark.asyncio
async def test_analyze_aborted_by_cancellation(
    client: HttpAnalysisClient, http_client: Any
) -> None:
    """Test that firing the token aborts the request in flight."""
    request_started = asyncio.Event()
    request_cancelled = asyncio.Event()

    async def slow_post(*args: Any, **kwargs: Any) -> Response:
        request_started.set()
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            request_cancelled.set()
            raise
        return make_response(json={})  # pragma: no cover

    http_client.post.side_effect = slow_post
    token = CancelToken()

    analysis = asyncio.create_task(client.analyze("https://example.com", token))
    await request_started.wait()
    token.cancel()

    with pytest.raises(AnalysisAbortedError):
        await analysis
    await asyncio.wait_for(request_cancelled.wait(), timeout=1.0)


@pytest.mark.asyncio
async def test_close(client: HttpAnalysisClient, http_client: Any) -> None:
    """Test that closing the client closes the httpx client."""
    await client.close()

    http_client.aclose.assert_called_once()
