"""Linkaudit V1 API"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from linkaudit.config import settings
from linkaudit.entries.models import URLEntry, URLStatus
from linkaudit.exceptions import InvalidURLError
from linkaudit.processing.models import QueueStatus
from linkaudit.processing.service import QueueService, get_service
from linkaudit.web.models_v1 import (
    CancelResponse,
    ClearResponse,
    DeleteResponse,
    EntryPage,
    IdsRequest,
    RemoveResponse,
    RerunResponse,
    SortOrder,
    SortParam,
    StartResponse,
    StopResponse,
    SubmitRequest,
    SubmitResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()

PAGE_SIZE_DEFAULT: int = settings.web.api.v1.page_size_default
PAGE_SIZE_MAX: int = settings.web.api.v1.page_size_max


@router.post(
    "/urls",
    tags=["urls"],
    summary="Submit URLs for analysis",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=SubmitResponse,
)
async def submit_urls(
    submission: SubmitRequest,
    service: QueueService = Depends(get_service),
) -> SubmitResponse:
    """Queue URLs for analysis and start processing.

    The submission is all or nothing: if any URL isn't an absolute http(s) URL
    nothing is queued and a 400 is returned.
    """
    try:
        entries = service.submit(submission.urls)
    except InvalidURLError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return SubmitResponse(accepted=[entry.url for entry in entries], entries=entries)


@router.get("/urls", tags=["urls"], summary="List entries", response_model=EntryPage)
async def list_entries(
    status_filter: Annotated[URLStatus | None, Query(alias="status")] = None,
    search: Annotated[str | None, Query(max_length=2048)] = None,
    sort: SortParam | None = None,
    order: SortOrder = SortOrder.DESC,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=PAGE_SIZE_MAX)] = PAGE_SIZE_DEFAULT,
    service: QueueService = Depends(get_service),
) -> EntryPage:
    """List entries, newest first unless a sort column is given.

    **Args:**

    - `status`: [Optional] Only list entries with this status.
    - `search`: [Optional] Case-insensitive text matched against the URL and the title.
    - `sort`: [Optional] Column to sort on, e.g. `lastUpdated` or `brokenLinks`.
    - `order`: [Optional] `asc` or `desc`. Defaults to `desc`.
    - `page`, `page_size`: [Optional] The page to return.
    """
    total, entries = service.store.query(
        status=status_filter,
        search=search,
        sort_by=sort.field if sort is not None else None,
        descending=order == SortOrder.DESC,
        offset=(page - 1) * page_size,
        limit=page_size,
    )
    return EntryPage(total=total, page=page, page_size=page_size, entries=entries)


@router.get("/urls/{entry_id}", tags=["urls"], summary="Get an entry", response_model=URLEntry)
async def get_entry(entry_id: str, service: QueueService = Depends(get_service)) -> URLEntry:
    """Return the entry with the given id."""
    entry = service.store.get(entry_id)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")
    return entry


@router.post(
    "/urls/delete", tags=["urls"], summary="Delete entries", response_model=DeleteResponse
)
async def delete_entries(
    request: IdsRequest, service: QueueService = Depends(get_service)
) -> DeleteResponse:
    """Delete entries. Unknown ids are ignored."""
    removed = service.delete(request.ids)
    return DeleteResponse(deleted=len(removed))


@router.post(
    "/urls/rerun", tags=["urls"], summary="Analyze entries again", response_model=RerunResponse
)
async def rerun_entries(
    request: IdsRequest, service: QueueService = Depends(get_service)
) -> RerunResponse:
    """Queue entries again and start processing. Unknown ids are ignored."""
    return RerunResponse(queued=service.rerun(request.ids))


@router.post("/urls/stop", tags=["urls"], summary="Halt entries", response_model=StopResponse)
async def stop_entries(
    request: IdsRequest, service: QueueService = Depends(get_service)
) -> StopResponse:
    """Mark entries as stopped and drop them from the queue.

    Entries that are being analyzed are left alone, cancel the queue to halt them.
    """
    stopped = service.stop(request.ids)
    return StopResponse(stopped=[entry.id for entry in stopped])


@router.get("/queue", tags=["queue"], summary="Queue status", response_model=QueueStatus)
async def queue_status(service: QueueService = Depends(get_service)) -> QueueStatus:
    """Return the state of the queue and the progress of the current batch."""
    return service.status()


@router.post(
    "/queue/start", tags=["queue"], summary="Start processing", response_model=StartResponse
)
async def start_queue(service: QueueService = Depends(get_service)) -> StartResponse:
    """Start processing the pending URLs. A no-op if processing is already active."""
    return StartResponse(started=service.start())


@router.post(
    "/queue/cancel", tags=["queue"], summary="Cancel processing", response_model=CancelResponse
)
async def cancel_queue(service: QueueService = Depends(get_service)) -> CancelResponse:
    """Cancel processing, drop the pending URLs and discard the analysis in flight."""
    return CancelResponse(halted=service.cancel())


@router.delete("/queue", tags=["queue"], summary="Clear the queue", response_model=ClearResponse)
async def clear_queue(service: QueueService = Depends(get_service)) -> ClearResponse:
    """Drop the pending URLs. The analysis in flight is left to finish."""
    return ClearResponse(dropped=service.clear_queue())


@router.delete(
    "/queue/item",
    tags=["queue"],
    summary="Remove a URL from the queue",
    response_model=RemoveResponse,
)
async def remove_queue_item(
    url: Annotated[str, Query(min_length=1)],
    service: QueueService = Depends(get_service),
) -> RemoveResponse:
    """Drop one pending URL from the queue and the current batch."""
    return RemoveResponse(removed=service.remove_from_queue(url))
