"""Persistence gateway for the conversation collection.

Stores the whole collection as one JSON array under a fixed key. When the
store runs out of room, the gateway falls back to a reduced payload that
drops the PDF bytes of every conversation except the active one: those
conversations keep their themes and turns but need a re-upload before the
document can ground new replies again.
"""

import logging
from dataclasses import dataclass, field

from pydantic import TypeAdapter, ValidationError

from sanctuary.errors import StorageQuotaExceeded
from sanctuary.models.conversation import Conversation
from sanctuary.storage.kv_store import KeyValueStore, QuotaExceeded

logger = logging.getLogger(__name__)

STORAGE_KEY = "sanctuary.conversations"

_collection = TypeAdapter(list[Conversation])


@dataclass
class SaveReport:
    """Outcome of a successful save.

    Attributes:
        reduced: Whether the reduced payload was written.
        stripped_ids: Conversations whose document bytes were dropped.
    """

    reduced: bool = False
    stripped_ids: list[str] = field(default_factory=list)


class PersistenceGateway:
    """Loads and saves the conversation collection."""

    def __init__(
        self,
        store: KeyValueStore,
        key: str = STORAGE_KEY,
        reduce_above_bytes: int | None = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            store: Backing key-value store.
            key: Key holding the serialized collection.
            reduce_above_bytes: Write the reduced payload straight away when
                the full one is larger than this. None means only reduce
                after the store reports a quota failure.
        """
        self._store = store
        self._key = key
        self._reduce_above_bytes = reduce_above_bytes

    def load(self) -> list[Conversation]:
        """Read the stored collection.

        Returns:
            Stored conversations, or an empty list when nothing is stored or
            the stored value cannot be read.
        """
        try:
            raw = self._store.get(self._key)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read conversation history: {e}")
            return []

        if raw is None:
            return []

        try:
            conversations = _collection.validate_json(raw)
        except ValidationError as e:
            logger.warning(
                f"Discarding unreadable conversation history ({e.error_count()} errors)"
            )
            return []

        logger.info(f"Loaded {len(conversations)} conversations")
        return conversations

    def save(self, conversations: list[Conversation], active_id: str | None) -> SaveReport:
        """Replace the stored collection.

        Args:
            conversations: Full collection to store.
            active_id: Conversation whose document bytes are kept if the
                payload has to be reduced.

        Returns:
            SaveReport describing which payload was written.

        Raises:
            StorageQuotaExceeded: If the reduced payload does not fit either.
        """
        payload = _collection.dump_json(conversations).decode("utf-8")

        if self._reduce_above_bytes is None or len(payload) <= self._reduce_above_bytes:
            try:
                self._store.set(self._key, payload)
                return SaveReport()
            except QuotaExceeded as e:
                logger.warning(f"Full history does not fit, reducing: {e}")

        stripped_ids = [
            c.id
            for c in conversations
            if c.id != active_id and c.document.encoded_bytes is not None
        ]
        reduced = [
            c if c.id == active_id else c.without_document_bytes() for c in conversations
        ]
        payload = _collection.dump_json(reduced).decode("utf-8")

        try:
            self._store.set(self._key, payload)
        except QuotaExceeded as e:
            raise StorageQuotaExceeded(
                f"Conversation history does not fit in storage: {e}"
            ) from e

        logger.info(
            f"Saved reduced history, dropped document bytes of {len(stripped_ids)} conversations"
        )
        return SaveReport(reduced=True, stripped_ids=stripped_ids)
