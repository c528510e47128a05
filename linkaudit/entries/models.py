"""Models for analysis entries."""

from datetime import datetime, timezone
from enum import Enum, unique
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt
from pydantic.alias_generators import to_camel

# Placeholders shown until an analysis result arrives.
DEFAULT_TITLE = "Analyzing..."
DEFAULT_HTML_VERSION = "Unknown"


@unique
class URLStatus(str, Enum):
    """Status of an entry in the analysis pipeline."""

    QUEUED = "queued"
    RUNNING = "running"
    DONE = "done"
    ERROR = "error"
    # Only set by a manual halt, never by the processor.
    STOPPED = "stopped"

    @property
    def is_terminal(self) -> bool:
        """Whether no further automatic transition happens from this status."""
        return self in (URLStatus.DONE, URLStatus.ERROR, URLStatus.STOPPED)


class CamelModel(BaseModel):
    """Base model serialized with camelCase field names, e.g. `lastUpdated`."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BrokenLink(CamelModel):
    """A link on an analyzed page that could not be fetched."""

    url: str
    status_code: int
    error: str | None = None


def generate_id() -> str:
    """Return a new opaque entry identifier."""
    return uuid4().hex


def utcnow() -> datetime:
    """Return the current time as a timezone aware UTC datetime."""
    return datetime.now(timezone.utc)


class URLEntry(CamelModel):
    """The analysis record for one URL. Instances are immutable, the entry store
    replaces them on every mutation.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(default_factory=generate_id)
    url: str
    title: str = DEFAULT_TITLE
    html_version: str = DEFAULT_HTML_VERSION
    internal_links: NonNegativeInt = 0
    external_links: NonNegativeInt = 0
    broken_links: NonNegativeInt = 0
    has_login_form: bool = False
    heading_counts: dict[str, NonNegativeInt] = Field(default_factory=dict)
    broken_link_details: list[BrokenLink] = Field(default_factory=list)
    status: URLStatus = URLStatus.QUEUED
    last_updated: datetime = Field(default_factory=utcnow)
    processing_time: float | None = None
    error_message: str | None = None
