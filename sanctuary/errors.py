"""Domain exceptions.

These are business-logic errors, not HTTP errors. The API routers translate
them into status codes; the session manager decides per kind whether to roll
back or keep committed state.
"""


class SanctuaryError(Exception):
    """Base class for all errors raised by the core."""


class DocumentTooLarge(SanctuaryError):
    """Raised when an upload exceeds the configured size limit."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        size_mb = size / (1024 * 1024)
        limit_mb = limit / (1024 * 1024)
        super().__init__(
            f"File size ({size_mb:.1f}MB) exceeds maximum allowed ({limit_mb:.0f}MB)"
        )


class EncodingFailed(SanctuaryError):
    """Raised when an upload is not a readable PDF."""


class ExtractionFailed(SanctuaryError):
    """Raised when the theme extractor fails or returns unusable output."""


class StreamInterrupted(SanctuaryError):
    """Raised when a reply stream errors or stalls before completion."""


class StreamCancelled(SanctuaryError):
    """Raised when the owning session was torn down mid-stream."""


class StorageQuotaExceeded(SanctuaryError):
    """Raised when even the reduced conversation payload does not fit the store."""
