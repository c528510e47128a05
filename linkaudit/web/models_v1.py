"""Request and response models of the V1 API"""

from enum import Enum, unique
from typing import Annotated

from pydantic import Field, StringConstraints

from linkaudit.config import settings
from linkaudit.entries.models import CamelModel, URLEntry
from linkaudit.entries.store import SortField

MAX_URLS_PER_SUBMISSION: int = settings.web.api.v1.max_urls_per_submission

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


@unique
class SortParam(str, Enum):
    """Columns the entry list can be sorted on, named as in the entry payload."""

    URL = "url"
    TITLE = "title"
    STATUS = "status"
    HTML_VERSION = "htmlVersion"
    INTERNAL_LINKS = "internalLinks"
    EXTERNAL_LINKS = "externalLinks"
    BROKEN_LINKS = "brokenLinks"
    LAST_UPDATED = "lastUpdated"

    @property
    def field(self) -> SortField:
        """The entry attribute to sort on."""
        return _SORT_FIELDS[self]


_SORT_FIELDS: dict[SortParam, SortField] = {
    SortParam.URL: "url",
    SortParam.TITLE: "title",
    SortParam.STATUS: "status",
    SortParam.HTML_VERSION: "html_version",
    SortParam.INTERNAL_LINKS: "internal_links",
    SortParam.EXTERNAL_LINKS: "external_links",
    SortParam.BROKEN_LINKS: "broken_links",
    SortParam.LAST_UPDATED: "last_updated",
}


@unique
class SortOrder(str, Enum):
    """Sort direction"""

    ASC = "asc"
    DESC = "desc"


class SubmitRequest(CamelModel):
    """Model for the `POST /urls` request body."""

    urls: list[NonEmptyStr] = Field(min_length=1, max_length=MAX_URLS_PER_SUBMISSION)


class IdsRequest(CamelModel):
    """Model for the request bodies of the bulk entry actions."""

    ids: list[str] = Field(min_length=1)


class SubmitResponse(CamelModel):
    """Model for the `POST /urls` response."""

    accepted: list[str]
    entries: list[URLEntry]


class EntryPage(CamelModel):
    """Model for the `GET /urls` response."""

    total: int
    page: int
    page_size: int
    entries: list[URLEntry]


class DeleteResponse(CamelModel):
    """Model for the `POST /urls/delete` response."""

    deleted: int


class RerunResponse(CamelModel):
    """Model for the `POST /urls/rerun` response."""

    queued: list[str]


class StopResponse(CamelModel):
    """Model for the `POST /urls/stop` response. Lists the ids of the halted entries."""

    stopped: list[str]


class StartResponse(CamelModel):
    """Model for the `POST /queue/start` response."""

    started: bool


class CancelResponse(CamelModel):
    """Model for the `POST /queue/cancel` response. Lists the URLs that were halted."""

    halted: list[str]


class ClearResponse(CamelModel):
    """Model for the `DELETE /queue` response."""

    dropped: list[str]


class RemoveResponse(CamelModel):
    """Model for the `DELETE /queue/item` response."""

    removed: bool
