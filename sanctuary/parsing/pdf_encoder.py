"""PDF encoding module using pypdf.

Validates an uploaded PDF, encodes it as base64 for the LLM collaborators and
registers a transient preview handle for the browser.
"""

import base64
import io
import logging

from pydantic import BaseModel, Field
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from sanctuary.errors import DocumentTooLarge, EncodingFailed
from sanctuary.parsing.preview import PreviewRegistry

logger = logging.getLogger(__name__)

# Constants
PDF_MIME_TYPE = "application/pdf"
PDF_MAGIC_BYTES = b"%PDF"
DEFAULT_MAX_DOCUMENT_BYTES = 50 * 1024 * 1024  # 50MB


class EncodedDocument(BaseModel):
    """Transport-safe form of an uploaded PDF.

    Attributes:
        encoded_bytes: Base64 encoding of the file.
        preview_handle: Handle registered in the preview registry.
        pages: Total number of pages in the document.
        metadata: Document metadata (title, author, etc.).
    """

    encoded_bytes: str
    preview_handle: str
    pages: int = Field(ge=1)
    metadata: dict[str, str] = Field(default_factory=dict)


def _extract_metadata(reader: PdfReader) -> dict[str, str]:
    metadata: dict[str, str] = {}
    try:
        if reader.metadata:
            for key, name in (("/Title", "title"), ("/Author", "author"), ("/Subject", "subject")):
                value = reader.metadata.get(key)
                if value:
                    metadata[name] = str(value)
    except Exception as e:
        logger.warning(f"Failed to extract some metadata: {e}")
    return metadata


def _count_pages(content: bytes) -> tuple[int, dict[str, str]]:
    """Open the PDF with pypdf to prove it is readable.

    Raises:
        EncodingFailed: If the bytes are not a readable PDF with pages.
    """
    if not content.lstrip()[:10].startswith(PDF_MAGIC_BYTES):
        raise EncodingFailed("Invalid PDF: file does not start with PDF header")

    try:
        reader = PdfReader(io.BytesIO(content))
        pages = len(reader.pages)
    except PdfReadError as e:
        raise EncodingFailed(f"Corrupt or invalid PDF: {e}") from e
    except Exception as e:
        raise EncodingFailed(f"Failed to read PDF: {e}") from e

    if pages == 0:
        raise EncodingFailed("PDF contains no pages")

    return pages, _extract_metadata(reader)


class DocumentEncoder:
    """Turns raw uploads into base64 payloads plus preview handles."""

    def __init__(
        self,
        registry: PreviewRegistry,
        max_document_bytes: int = DEFAULT_MAX_DOCUMENT_BYTES,
    ) -> None:
        self._registry = registry
        self._max_document_bytes = max_document_bytes

    @property
    def max_document_bytes(self) -> int:
        return self._max_document_bytes

    def encode(self, content: bytes, content_type: str | None) -> EncodedDocument | None:
        """Encode an uploaded PDF.

        Args:
            content: Raw bytes of the upload.
            content_type: MIME type declared by the client.

        Returns:
            EncodedDocument, or None when the content type is not PDF
            (callers reject those before encoding).

        Raises:
            DocumentTooLarge: If the file exceeds the size limit.
            EncodingFailed: If the file is empty, corrupt or not a PDF.
        """
        if content_type != PDF_MIME_TYPE:
            logger.debug(f"Ignoring upload with content type {content_type!r}")
            return None

        if len(content) > self._max_document_bytes:
            raise DocumentTooLarge(len(content), self._max_document_bytes)

        if not content:
            raise EncodingFailed("Empty file provided")

        pages, metadata = _count_pages(content)
        encoded = base64.b64encode(content).decode("ascii")
        handle = self._registry.acquire(content)

        logger.info(f"Encoded PDF ({pages} pages, {len(content)} bytes)")
        return EncodedDocument(
            encoded_bytes=encoded,
            preview_handle=handle,
            pages=pages,
            metadata=metadata,
        )
