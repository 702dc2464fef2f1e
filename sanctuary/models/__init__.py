"""Pydantic models for conversation records and API payloads.

Provides type safety, validation, JSON persistence and automatic OpenAPI
documentation.

Models:
    - Conversation, DocumentReference, Theme, Turn: durable records
    - ChatRequest, StreamChunk: chat streaming protocol
    - UploadResponse: result of a PDF upload
    - ConversationSummary, SessionView: history list and live session
"""

from sanctuary.models.conversation import (
    DEFAULT_TITLE,
    Conversation,
    DocumentReference,
    Speaker,
    Theme,
    Turn,
)
from sanctuary.models.schemas import (
    ChatRequest,
    ConversationSummary,
    SessionView,
    StreamChunk,
    StreamStatus,
    UploadResponse,
)

__all__ = [
    "DEFAULT_TITLE",
    "ChatRequest",
    "Conversation",
    "ConversationSummary",
    "DocumentReference",
    "SessionView",
    "Speaker",
    "StreamChunk",
    "StreamStatus",
    "Theme",
    "Turn",
    "UploadResponse",
]
