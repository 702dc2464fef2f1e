"""Durable conversation records.

A Conversation pairs one uploaded document with its extracted themes and the
turn history. Records are serialized as a JSON array by the persistence
gateway; transient fields (preview handles, in-flight flags) never reach the
store.
"""

import base64
import binascii
import uuid
from datetime import UTC, datetime
from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

DEFAULT_TITLE = "New Conversation"


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Speaker(str, Enum):
    """Author of a turn."""

    USER = "user"
    ASSISTANT = "assistant"


class Theme(BaseModel):
    """One extracted axiomatic insight.

    Attributes:
        label: Short name of the theme.
        explanation: Prose explanation of the theme.
    """

    model_config = ConfigDict(frozen=True)

    label: str = Field(..., min_length=1, validation_alias=AliasChoices("label", "axiom"))
    explanation: str = Field(
        ..., validation_alias=AliasChoices("explanation", "definition")
    )


class Turn(BaseModel):
    """One message unit in a conversation.

    Attributes:
        speaker: Who wrote the turn.
        text: Message text. Grows only while the turn is in flight.
        in_flight: True while an assistant reply is still streaming.
    """

    speaker: Speaker
    text: str = ""
    in_flight: bool = Field(default=False, exclude=True)

    @classmethod
    def user(cls, text: str) -> "Turn":
        return cls(speaker=Speaker.USER, text=text)

    @classmethod
    def placeholder(cls) -> "Turn":
        """Empty assistant turn waiting for streamed fragments."""
        return cls(speaker=Speaker.ASSISTANT, text="", in_flight=True)

    def append(self, fragment: str) -> None:
        if not self.in_flight:
            raise RuntimeError("Cannot append to a frozen turn")
        self.text += fragment

    def freeze(self) -> None:
        self.in_flight = False


class DocumentReference(BaseModel):
    """One uploaded manuscript.

    Attributes:
        id: Opaque token created at upload time.
        display_name: Original filename.
        encoded_bytes: Base64 PDF payload, or None once stripped for storage.
        preview_handle: Process-local preview token, never persisted.
        page_count: Number of pages found at upload.
        created_at: Upload timestamp.
    """

    id: str = Field(default_factory=_new_id)
    display_name: str
    encoded_bytes: str | None = None
    preview_handle: str | None = Field(default=None, exclude=True)
    page_count: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=_utcnow)

    @field_validator("encoded_bytes")
    @classmethod
    def validate_base64(cls, v: str | None) -> str | None:
        """Reject payloads that do not decode as base64."""
        if v is None:
            return v
        try:
            base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"encoded_bytes is not valid base64: {e}") from e
        return v

    @property
    def is_resumable(self) -> bool:
        """Whether the document can still ground new replies without re-upload."""
        return self.encoded_bytes is not None

    def without_payload(self) -> "DocumentReference":
        return self.model_copy(update={"encoded_bytes": None, "preview_handle": None})


class Conversation(BaseModel):
    """Durable session spanning one document and its turn history.

    Attributes:
        id: Stable identifier, join key with the persisted collection.
        title: Display title, replaced once by the title summarizer.
        title_generated: Whether the summarizer already named it.
        document: The uploaded manuscript.
        themes: Extracted themes in rank order.
        turns: Committed turns, append-only.
        created_at: Creation timestamp.
        last_activity_at: Timestamp used to order the history list.
    """

    id: str = Field(default_factory=_new_id)
    title: str = DEFAULT_TITLE
    title_generated: bool = False
    document: DocumentReference
    themes: list[Theme] = Field(default_factory=list)
    turns: list[Turn] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    last_activity_at: datetime = Field(default_factory=_utcnow)

    def touch(self) -> None:
        self.last_activity_at = _utcnow()

    def without_document_bytes(self) -> "Conversation":
        """Copy of this record whose document is preview-only."""
        return self.model_copy(update={"document": self.document.without_payload()})
