"""Analysis client models and protocol."""

from typing import Protocol

from pydantic import Field, NonNegativeFloat, NonNegativeInt

from linkaudit.entries.models import BrokenLink, CamelModel
from linkaudit.processing.cancellation import CancelToken


class AnalysisResult(CamelModel):
    """The result of analyzing one page. The service may omit any field."""

    page_title: str | None = None
    html_version: str | None = None
    internal_links: NonNegativeInt | None = None
    external_links: NonNegativeInt | None = None
    broken_links: NonNegativeInt | None = None
    has_login_form: bool | None = None
    heading_counts: dict[str, NonNegativeInt] | None = None
    broken_link_details: list[BrokenLink] | None = None
    processing_time: NonNegativeFloat | None = None
    error: str | None = Field(default=None, exclude=True)


class AnalysisClient(Protocol):
    """Protocol for the external analysis service."""

    async def analyze(
        self, url: str, cancel_token: CancelToken | None = None
    ) -> AnalysisResult:  # pragma: no cover
        """Analyze the page at `url`.

        Raises:
            - `AnalysisAbortedError` if `cancel_token` fires before the analysis finishes.
            - `AnalysisError` for network, HTTP, validation or server failures.
        """
        ...

    async def close(self) -> None:  # pragma: no cover
        """Close the client and release any underlying resources."""
        ...
