"""Read models for the analysis queue."""

from pydantic import Field

from linkaudit.entries.models import CamelModel, URLEntry


class QueueStatus(CamelModel):
    """Point-in-time projection of the queue for presentation."""

    pending: int
    current_url: str | None = None
    is_processing: bool = False
    total_completed: int = 0
    recently_completed: list[URLEntry] = Field(default_factory=list)
    progress: float = Field(default=0.0, ge=0.0, le=100.0)
