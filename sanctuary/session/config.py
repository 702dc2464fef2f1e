"""Session and storage configuration with environment variable loading."""

import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

# Load environment variables from .env file
load_dotenv()

_DATA_DIR = Path(__file__).parent.parent.parent / "data"

Locale = Literal["en", "ar"]
AttachPolicy = Literal["every_turn", "first_turn"]


def _optional_int(name: str) -> int | None:
    value = os.getenv(name)
    return int(value) if value else None


def _optional_float(name: str, default: float) -> float | None:
    value = os.getenv(name)
    if value is None:
        return default
    return float(value) if value.strip() else None


class SessionConfig(BaseModel):
    """Configuration for the session manager and its persistence.

    Attributes:
        max_document_bytes: Upload size limit.
        storage_dir: Directory of the durable key-value store.
        storage_quota_bytes: Byte quota of the store (None for unlimited).
        reduce_above_bytes: Payload size above which document bytes of
            inactive conversations are dropped before writing.
        attach_document: Whether the PDF is sent with every turn or only
            with the first one of a conversation.
        stream_idle_timeout: Seconds to wait for the next reply fragment
            (None waits forever).
        locale: Language passed to the LLM collaborators.
    """

    model_config = ConfigDict(validate_default=True)

    max_document_bytes: int = Field(
        default_factory=lambda: int(os.getenv("MAX_DOCUMENT_MB", "50")) * 1024 * 1024,
        gt=0,
        description="Maximum accepted PDF size in bytes",
    )
    storage_dir: Path = Field(
        default_factory=lambda: Path(os.getenv("STORAGE_DIR", str(_DATA_DIR))),
        description="Directory holding the conversation store",
    )
    storage_quota_bytes: int | None = Field(
        default_factory=lambda: _optional_int("STORAGE_QUOTA_BYTES"),
        gt=0,
        description="Byte quota of the conversation store",
    )
    reduce_above_bytes: int | None = Field(
        default_factory=lambda: _optional_int("STORAGE_REDUCE_ABOVE_BYTES"),
        gt=0,
        description="Payload size that triggers dropping inactive document bytes",
    )
    attach_document: AttachPolicy = Field(
        default_factory=lambda: os.getenv("ATTACH_DOCUMENT", "every_turn"),
        description="When the encoded PDF is sent to the responder",
    )
    stream_idle_timeout: float | None = Field(
        default_factory=lambda: _optional_float("STREAM_IDLE_TIMEOUT", 60.0),
        gt=0,
        description="Seconds to wait for the next reply fragment",
    )
    locale: Locale = Field(
        default_factory=lambda: os.getenv("DEFAULT_LOCALE", "en"),
        description="Language of extracted themes and replies",
    )


def get_session_config() -> SessionConfig:
    """Create session configuration from environment.

    Raises:
        ValidationError: If an environment value is invalid.
    """
    return SessionConfig()
