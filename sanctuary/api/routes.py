"""PDF upload endpoint.

Handles file upload, validation, encoding and theme extraction. A
successful upload becomes the active conversation.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, UploadFile, status

from sanctuary.api.dependencies import get_session_manager, preview_url
from sanctuary.errors import DocumentTooLarge, EncodingFailed, ExtractionFailed
from sanctuary.models.schemas import UploadResponse
from sanctuary.parsing.pdf_encoder import PDF_MIME_TYPE
from sanctuary.session.manager import SessionManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/upload", tags=["upload"])

_GENERIC_CONTENT_TYPES = {None, "", "application/octet-stream"}


def _validate_file(file: UploadFile) -> tuple[str, str]:
    """Validate filename and content type of an upload.

    Args:
        file: The uploaded file.

    Returns:
        The filename and the content type to encode with.

    Raises:
        HTTPException: 400 if the file is not a PDF.
    """
    filename = file.filename
    if not filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Filename is required",
        )

    if not filename.lower().endswith(".pdf"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only PDF files are accepted",
        )

    content_type = file.content_type
    if content_type in _GENERIC_CONTENT_TYPES:
        content_type = PDF_MIME_TYPE
    if content_type != PDF_MIME_TYPE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Only PDF files are accepted, got {content_type}",
        )

    return filename, content_type


async def _read_and_validate_size(file: UploadFile, limit: int) -> bytes:
    """Read file content and validate size.

    Raises:
        HTTPException: 413 if file exceeds size limit.
    """
    content = await file.read()

    if len(content) > limit:
        raise HTTPException(
            status_code=status.HTTP_413_CONTENT_TOO_LARGE,
            detail=str(DocumentTooLarge(len(content), limit)),
        )

    return content


@router.post("/pdf", response_model=UploadResponse)
async def upload_pdf(
    file: UploadFile,
    manager: SessionManager = Depends(get_session_manager),
) -> UploadResponse:
    """Upload a PDF and start a conversation about it.

    Args:
        file: The uploaded PDF file (multipart/form-data).

    Returns:
        UploadResponse with the new conversation id and its themes.

    Raises:
        400: Invalid file (not PDF, empty, corrupt).
        409: Another upload or reply is in progress.
        413: File exceeds the size limit.
        502: Theme extraction failed.
    """
    filename, content_type = _validate_file(file)
    content = await _read_and_validate_size(file, manager.max_document_bytes)

    try:
        conversation = await manager.upload(filename, content, content_type)
    except DocumentTooLarge as e:
        raise HTTPException(
            status_code=status.HTTP_413_CONTENT_TOO_LARGE,
            detail=str(e),
        ) from e
    except EncodingFailed as e:
        logger.warning(f"PDF encoding error for {filename}: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e
    except ExtractionFailed as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e),
        ) from e

    if conversation is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Another upload or reply is in progress",
        )

    return UploadResponse(
        conversation_id=conversation.id,
        filename=filename,
        pages=conversation.document.page_count,
        themes=conversation.themes,
        preview_url=preview_url(conversation.document.preview_handle),
    )
