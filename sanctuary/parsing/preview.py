"""Process-local preview handles for uploaded PDFs.

A handle stands in for a browser blob URL: it is acquired when a document is
encoded or a stored conversation is reopened, served by ``/preview/{handle}``,
and must be released when the document is replaced or discarded.
"""

import logging
import uuid

logger = logging.getLogger(__name__)


class PreviewRegistry:
    """In-memory map of preview handles to raw PDF bytes."""

    def __init__(self) -> None:
        self._documents: dict[str, bytes] = {}

    def acquire(self, content: bytes) -> str:
        handle = uuid.uuid4().hex
        self._documents[handle] = content
        logger.debug(f"Acquired preview handle {handle} ({len(content)} bytes)")
        return handle

    def resolve(self, handle: str) -> bytes | None:
        return self._documents.get(handle)

    def release(self, handle: str | None) -> None:
        """Drop a handle. Unknown or None handles are ignored."""
        if handle is None:
            return
        if self._documents.pop(handle, None) is not None:
            logger.debug(f"Released preview handle {handle}")

    def __len__(self) -> int:
        return len(self._documents)
