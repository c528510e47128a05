"""Offline backend for the analysis client, used in development and tests."""

import asyncio
import hashlib
from urllib.parse import urlsplit

from linkaudit.analysis.protocol import AnalysisResult
from linkaudit.entries.models import BrokenLink
from linkaudit.exceptions import AnalysisError
from linkaudit.processing.cancellation import CancelToken

# Hosts under these reserved TLDs (RFC 2606) never resolve.
UNRESOLVABLE_SUFFIXES = (".invalid",)


class FakeAnalysisClient:
    """A fake backend that derives a stable result from the URL itself.

    Pages on `.invalid` hosts fail the way an unresolvable host would.
    """

    latency: float

    def __init__(self, latency: float = 0.0) -> None:
        self.latency = latency

    async def analyze(self, url: str, cancel_token: CancelToken | None = None) -> AnalysisResult:
        """Return a made up but deterministic analysis of `url`."""
        if cancel_token is None:
            return await self._analyze(url)
        return await cancel_token.guard(self._analyze(url))

    async def _analyze(self, url: str) -> AnalysisResult:
        await asyncio.sleep(self.latency)

        parts = urlsplit(url)
        host = parts.hostname or ""
        if host.endswith(UNRESOLVABLE_SUFFIXES):
            raise AnalysisError(f"failed to fetch URL: lookup {host}: no such host")

        digest = hashlib.sha256(url.encode("utf-8")).digest()
        broken = digest[2] % 3
        return AnalysisResult(
            page_title=host,
            html_version="HTML5",
            internal_links=digest[0] % 40,
            external_links=digest[1] % 20,
            broken_links=broken,
            has_login_form="login" in parts.path.lower(),
            heading_counts={"H1": 1, "H2": digest[3] % 6},
            broken_link_details=[
                BrokenLink(
                    url=f"{parts.scheme}://{host}/missing-{n}",
                    status_code=404,
                    error="HTTP error: 404 Not Found",
                )
                for n in range(broken)
            ],
            processing_time=self.latency,
        )

    async def close(self) -> None:
        """Fake backend does not need to clean up any open connections."""
        pass
