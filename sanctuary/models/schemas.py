from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from sanctuary.models.conversation import Conversation, Theme, Turn


class StreamStatus(str, Enum):
    """Status values for streaming updates."""

    RECEIVED = "received"
    GENERATING = "generating"
    COMPLETE = "complete"
    ERROR = "error"


class ChatRequest(BaseModel):
    """Request payload for the chat streaming endpoint.

    Attributes:
        message: User's question about the active document.
    """

    message: str = Field(..., min_length=1)

    @field_validator("message", mode="before")
    @classmethod
    def strip_message(cls, v: str) -> str:
        """Strip whitespace from message before validation."""
        if isinstance(v, str):
            return v.strip()
        return v


class StreamChunk(BaseModel):
    """A chunk of streamed response data.

    Attributes:
        content: The text fragment carried by this chunk.
        done: Whether this is the final chunk.
        status: Current processing status (received, generating, complete, error).
        error: Error message if something went wrong.
        conversation_id: Conversation the reply belongs to.
    """

    content: str
    done: bool
    status: StreamStatus | None = None
    error: str | None = None
    conversation_id: str | None = None


class UploadResponse(BaseModel):
    """Response after a PDF has been encoded and its themes extracted.

    Attributes:
        conversation_id: Id of the newly created conversation.
        filename: Name of the uploaded file.
        pages: Number of pages in the document.
        themes: Extracted themes in rank order.
        preview_url: Relative URL serving the PDF for in-browser preview.
        success: Whether the upload was successful.
    """

    conversation_id: str
    filename: str
    pages: int
    themes: list[Theme]
    preview_url: str | None = None
    success: bool = True


class ConversationSummary(BaseModel):
    """Entry of the conversation history list."""

    id: str
    title: str
    document_name: str
    resumable: bool
    turn_count: int
    last_activity_at: datetime

    @classmethod
    def from_conversation(cls, conversation: Conversation) -> "ConversationSummary":
        return cls(
            id=conversation.id,
            title=conversation.title,
            document_name=conversation.document.display_name,
            resumable=conversation.document.is_resumable,
            turn_count=len(conversation.turns),
            last_activity_at=conversation.last_activity_at,
        )


class SessionView(BaseModel):
    """Snapshot of the live session for rendering.

    Attributes:
        phase: empty, processing or ready.
        conversation_id: Active conversation, if any.
        title: Title of the active conversation.
        document_name: Active document filename.
        preview_url: Preview URL when the document bytes are available.
        themes: Themes of the active conversation.
        turns: Working copy of the turn history.
        busy: Whether an upload or reply is in flight.
        status: Short status line for the UI.
        error: Last collaborator failure, if any.
        persistence_error: Last failed save, if any.
    """

    phase: str
    conversation_id: str | None = None
    title: str | None = None
    document_name: str | None = None
    preview_url: str | None = None
    themes: list[Theme] = Field(default_factory=list)
    turns: list[Turn] = Field(default_factory=list)
    busy: bool = False
    status: str = "Ready"
    error: str | None = None
    persistence_error: str | None = None
