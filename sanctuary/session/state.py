"""Live working set of the active conversation."""

from enum import Enum

from sanctuary.models.conversation import DocumentReference, Theme, Turn


class SessionPhase(str, Enum):
    EMPTY = "empty"
    PROCESSING = "processing"
    READY = "ready"


class Session:
    """Process-local mirror of the active conversation.

    Never persisted. A fresh instance replaces the old one on every
    transition, so a stream still holding the previous instance cannot
    write into the new working set.
    """

    def __init__(self) -> None:
        self.conversation_id: str | None = None
        self.document: DocumentReference | None = None
        self.themes: list[Theme] = []
        self.turns: list[Turn] = []
        self.busy: bool = False
        self.status: str = "Ready"
        self.error: str | None = None
        self.persistence_error: str | None = None

    @property
    def phase(self) -> SessionPhase:
        if self.conversation_id is not None:
            return SessionPhase.READY
        if self.document is not None:
            return SessionPhase.PROCESSING
        return SessionPhase.EMPTY

    @property
    def preview_handle(self) -> str | None:
        return self.document.preview_handle if self.document else None
