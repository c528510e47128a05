"""Analysis client backed by the analysis web service."""

import logging
from json import JSONDecodeError

import httpx
from httpx import AsyncClient
from pydantic import ValidationError

from linkaudit.analysis.protocol import AnalysisResult
from linkaudit.exceptions import AnalysisError
from linkaudit.processing.cancellation import CancelToken

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"


class HttpAnalysisClient:
    """Post URLs to the analysis service, one request per URL.

    The service answers `200` with the analysis result or, for pages it could not
    analyze, with a body carrying an `error` message.
    """

    http_client: AsyncClient
    endpoint: str
    api_key: str

    def __init__(self, http_client: AsyncClient, endpoint: str, api_key: str = "") -> None:
        self.http_client = http_client
        self.endpoint = endpoint
        self.api_key = api_key

    async def analyze(self, url: str, cancel_token: CancelToken | None = None) -> AnalysisResult:
        """Analyze `url`, aborting the request as soon as `cancel_token` fires.

        Raises:
            - `AnalysisAbortedError` if `cancel_token` fires before the response arrives.
            - `AnalysisError` for any other failure.
        """
        if cancel_token is None:
            return await self._request(url)
        return await cancel_token.guard(self._request(url))

    async def _request(self, url: str) -> AnalysisResult:
        headers = {API_KEY_HEADER: self.api_key} if self.api_key else {}
        try:
            response = await self.http_client.post(
                self.endpoint, json={"url": url}, headers=headers
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise AnalysisError(f"HTTP error! status: {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.warning(
                "Analysis request failed",
                extra={"url": url, "error": exc.__class__.__name__},
            )
            raise AnalysisError(str(exc) or exc.__class__.__name__) from exc

        try:
            payload = response.json()
        except JSONDecodeError as exc:
            raise AnalysisError(f"Invalid API response format: {exc}") from exc

        if isinstance(payload, dict) and payload.get("error"):
            raise AnalysisError(str(payload["error"]))

        try:
            return AnalysisResult.model_validate(payload)
        except ValidationError as exc:
            raise AnalysisError(f"Invalid API response format: {exc}") from exc

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.http_client.aclose()
