"""Linkaudit specific exceptions."""


class LinkauditError(Exception):
    """Base class for linkaudit errors."""


class AnalysisError(LinkauditError):
    """A single analysis job failed. The message is shown on the entry."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AnalysisAbortedError(AnalysisError):
    """Raised when an analysis request is aborted by cancellation."""

    def __init__(self, message: str = "Analysis aborted") -> None:
        super().__init__(message)


class InvalidURLError(LinkauditError, ValueError):
    """Raised for URLs that are rejected at submission time."""

    def __init__(self, urls: list[str]) -> None:
        super().__init__(f"Invalid URL(s): {', '.join(repr(url) for url in urls)}")
        self.urls = urls


class StorageError(LinkauditError):
    """Exception raised when an entry storage operation fails."""

    pass


class StorageEntryError(StorageError, ValueError):
    """Exception raised for stored entries that can't be deserialized."""

    pass
