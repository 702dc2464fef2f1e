"""PDF handling for uploaded manuscripts.

Responsibilities:
    - PDF validation with pypdf (header, readability, page count)
    - Base64 encoding for transport to the LLM collaborators
    - Transient preview handles released on document replacement
"""

from sanctuary.parsing.pdf_encoder import (
    PDF_MIME_TYPE,
    DocumentEncoder,
    EncodedDocument,
)
from sanctuary.parsing.preview import PreviewRegistry

__all__ = ["PDF_MIME_TYPE", "DocumentEncoder", "EncodedDocument", "PreviewRegistry"]
