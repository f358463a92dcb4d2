"""
Exception taxonomy for jobsync.

Every error raised by parsing, fetching and persistence derives from
JobSyncError, so callers (the CLI, the registry refresh) can catch one type.
"""

from typing import Any, Iterable, List, Optional


class JobSyncError(ValueError):
    """Base class for all jobsync errors."""


class ValidationError(JobSyncError):
    """A document failed schema validation. Carries every violation found."""

    def __init__(self, document: str, errors: List[str]):
        self.document = document
        self.errors = list(errors)
        super().__init__(f"Invalid {document} data: {', '.join(self.errors)}")


class UnsupportedVersionError(JobSyncError):
    """A document declared a version no registered parser handles."""

    def __init__(self, document: str, version: Any, supported: Iterable[Any]):
        self.document = document
        self.version = version
        self.supported = list(supported)
        listed = ", ".join(str(v) for v in self.supported)
        super().__init__(
            f"Unsupported {document} version: {version}. Supported versions: {listed}"
        )


class NetworkError(JobSyncError):
    """HTTP request failed or returned a non-2xx status."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        status_text: Optional[str] = None,
        preview: Optional[str] = None,
    ):
        self.status = status
        self.status_text = status_text
        self.preview = preview
        super().__init__(message)


class ParseError(JobSyncError):
    """Response body could not be decoded into JSON."""

    def __init__(self, message: str, preview: Optional[str] = None):
        self.preview = preview
        super().__init__(message)


class StorageError(JobSyncError):
    """Persistence read or write failed."""


class SourceURLError(JobSyncError):
    """A source URL does not have the shape its mode requires."""


class FetchError(JobSyncError):
    """Wraps any failure of a single fetch with context."""


class RefreshInProgressError(JobSyncError):
    """Raised when refresh() is called while another refresh is running."""
