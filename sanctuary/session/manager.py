"""Session state manager.

Single owner of the conversation collection and of the live session. Every
transition goes through a named operation:

    EMPTY --upload--> PROCESSING --themes--> READY(A)
    PROCESSING --extraction fails--> EMPTY (nothing persisted)
    READY(A) --select B--> READY(B)
    READY(A) --delete A / reset--> EMPTY
    READY(A) --send--> READY(A), busy until the reply stream ends

Only one upload or send may be in flight per session. A second one is
rejected by returning None rather than queued, so two replies can never
interleave in one turn list. Switching or deleting the active conversation
abandons its stream: the partial reply is never committed.
"""

import asyncio
import base64
import logging
from collections.abc import Callable

from sanctuary.errors import (
    EncodingFailed,
    ExtractionFailed,
    SanctuaryError,
    StorageQuotaExceeded,
    StreamCancelled,
    StreamInterrupted,
)
from sanctuary.models.conversation import Conversation, DocumentReference, Turn
from sanctuary.parsing.pdf_encoder import DocumentEncoder
from sanctuary.parsing.preview import PreviewRegistry
from sanctuary.session.accumulator import StreamAccumulator
from sanctuary.session.config import SessionConfig, get_session_config
from sanctuary.session.protocols import (
    ConversationalResponder,
    ThemeExtractor,
    TitleSummarizer,
)
from sanctuary.session.state import Session, SessionPhase
from sanctuary.storage.gateway import PersistenceGateway

logger = logging.getLogger(__name__)

STATUS_READY = "Ready"
STATUS_ANALYZING = "Analyzing document..."
STATUS_GENERATING = "Generating response..."


class SessionManager:
    """Owns the active session and the durable conversation collection."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        encoder: DocumentEncoder,
        registry: PreviewRegistry,
        extractor: ThemeExtractor,
        responder: ConversationalResponder,
        summarizer: TitleSummarizer | None = None,
        config: SessionConfig | None = None,
    ) -> None:
        self._config = config or get_session_config()
        self._gateway = gateway
        self._encoder = encoder
        self._registry = registry
        self._extractor = extractor
        self._responder = responder
        self._summarizer = summarizer
        self._conversations: list[Conversation] = []
        self._session = Session()
        self._accumulator: StreamAccumulator | None = None
        self._background: set[asyncio.Task] = set()

    @property
    def session(self) -> Session:
        return self._session

    @property
    def registry(self) -> PreviewRegistry:
        return self._registry

    @property
    def max_document_bytes(self) -> int:
        return self._encoder.max_document_bytes

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def load_history(self) -> list[Conversation]:
        """Replace the in-memory collection with the stored one."""
        self._conversations = self._gateway.load()
        return self.conversations()

    def conversations(self) -> list[Conversation]:
        """Conversations ordered by last activity, newest first."""
        return sorted(self._conversations, key=lambda c: c.last_activity_at, reverse=True)

    def get(self, conversation_id: str) -> Conversation | None:
        return next((c for c in self._conversations if c.id == conversation_id), None)

    def active_conversation(self) -> Conversation | None:
        if self._session.conversation_id is None:
            return None
        return self.get(self._session.conversation_id)

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    async def upload(
        self,
        filename: str,
        content: bytes,
        content_type: str | None,
    ) -> Conversation | None:
        """Encode a PDF, extract its themes and make it the active conversation.

        Args:
            filename: Display name of the document.
            content: Raw PDF bytes.
            content_type: MIME type declared by the client.

        Returns:
            The new conversation, or None if the upload was rejected
            (session busy, not a PDF, or torn down while extracting).

        Raises:
            DocumentTooLarge: File over the size limit; prior state kept.
            EncodingFailed: Unreadable PDF; prior state kept.
            ExtractionFailed: Theme extraction failed; session is left empty.
        """
        previous = self._session
        if previous.busy:
            logger.info("Rejecting upload while another operation is in flight")
            return None

        previous.busy = True
        try:
            encoded = await asyncio.to_thread(self._encoder.encode, content, content_type)
        except SanctuaryError as e:
            previous.error = str(e)
            raise
        except Exception as e:
            previous.error = str(e)
            raise EncodingFailed(f"Failed to encode {filename}: {e}") from e
        finally:
            previous.busy = False

        if encoded is None:
            return None

        self._teardown()
        document = DocumentReference(
            display_name=filename,
            encoded_bytes=encoded.encoded_bytes,
            preview_handle=encoded.preview_handle,
            page_count=encoded.pages,
        )
        working = Session()
        working.document = document
        working.busy = True
        working.status = STATUS_ANALYZING
        self._session = working

        try:
            themes = await self._extractor.extract(encoded.encoded_bytes, self._config.locale)
            if not themes:
                raise ExtractionFailed("No themes were extracted from the document")
        except Exception as e:
            logger.warning(f"Theme extraction failed for {filename}: {e}")
            self._registry.release(document.preview_handle)
            if self._session is working:
                failed = Session()
                failed.status = "Extraction failed"
                failed.error = str(e)
                self._session = failed
            if isinstance(e, ExtractionFailed):
                raise
            raise ExtractionFailed(f"Theme extraction failed: {e}") from e

        if self._session is not working:
            logger.info(f"Upload of {filename} abandoned during extraction")
            self._registry.release(document.preview_handle)
            return None

        conversation = Conversation(document=document, themes=list(themes))
        self._conversations.append(conversation)

        working.conversation_id = conversation.id
        working.themes = list(conversation.themes)
        working.busy = False
        working.status = STATUS_READY
        self._persist()

        logger.info(
            f"Created conversation {conversation.id} for {filename} "
            f"({len(conversation.themes)} themes)"
        )
        return conversation

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    def _document_for_turn(self, session: Session, committed: list[Turn]) -> str | None:
        document = session.document
        if document is None or not document.is_resumable:
            return None
        if self._config.attach_document == "first_turn" and committed:
            return None
        return document.encoded_bytes

    async def send(
        self,
        text: str,
        on_update: Callable[[str], None] | None = None,
    ) -> Turn | None:
        """Send a user turn and stream the assistant reply into the session.

        Args:
            text: User message.
            on_update: Called with the reply text after every fragment.

        Returns:
            The committed assistant turn, or None when the send was rejected
            (busy, no active conversation, preview-only document, blank
            text) or abandoned because
            the session was torn down mid-stream.

        Raises:
            StreamInterrupted: The reply stream failed. Committed turns are
                unchanged and the session is usable again.
        """
        session = self._session
        text = text.strip()
        if not text or session.busy or session.phase is not SessionPhase.READY:
            logger.debug("Rejecting send: busy, no active conversation or empty text")
            return None

        if session.document is None or not session.document.is_resumable:
            logger.info("Rejecting send: document must be re-uploaded to continue")
            return None

        conversation = self.get(session.conversation_id)
        if conversation is None:
            return None

        committed = list(session.turns)
        user_turn = Turn.user(text)
        reply = Turn.placeholder()
        session.turns = [*committed, user_turn, reply]
        session.busy = True
        session.status = STATUS_GENERATING
        session.error = None

        accumulator = StreamAccumulator(reply, idle_timeout=self._config.stream_idle_timeout)
        self._accumulator = accumulator

        try:
            try:
                fragments = self._responder.converse(
                    self._document_for_turn(session, committed),
                    committed,
                    text,
                    self._config.locale,
                )
            except Exception as e:
                raise StreamInterrupted(f"Reply stream failed to start: {e}") from e
            await accumulator.consume(fragments, on_update)
        except StreamCancelled:
            logger.info(f"Abandoned reply stream for conversation {conversation.id}")
            return None
        except StreamInterrupted as e:
            if accumulator.cancelled:
                return None
            logger.warning(f"Reply stream interrupted for {conversation.id}: {e}")
            session.turns = committed
            session.busy = False
            session.status = "Reply interrupted"
            session.error = str(e)
            raise
        finally:
            if self._accumulator is accumulator:
                self._accumulator = None

        conversation.turns.extend([user_turn, reply])
        conversation.touch()
        session.busy = False
        session.status = STATUS_READY
        self._persist()

        if (
            self._summarizer is not None
            and not conversation.title_generated
            and len(conversation.turns) == 2
        ):
            self._schedule_title(conversation.id, text)

        return reply

    def _schedule_title(self, conversation_id: str, text: str) -> None:
        task = asyncio.create_task(self._generate_title(conversation_id, text))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _generate_title(self, conversation_id: str, text: str) -> None:
        try:
            title = (await self._summarizer.summarize(text, self._config.locale)).strip()
        except Exception as e:
            logger.warning(f"Title generation failed, keeping default title: {e}")
            return

        conversation = self.get(conversation_id)
        if conversation is None or not title:
            return
        conversation.title = title
        conversation.title_generated = True
        self._persist()
        logger.info(f"Renamed conversation {conversation_id} to {title!r}")

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def select(self, conversation_id: str) -> Conversation | None:
        """Make a stored conversation the active one.

        Returns:
            The selected conversation, or None if the id is unknown.
        """
        conversation = self.get(conversation_id)
        if conversation is None:
            return None
        if self._session.conversation_id == conversation_id:
            return conversation

        self._teardown()
        document = conversation.document
        if document.encoded_bytes is not None:
            document.preview_handle = self._registry.acquire(
                base64.b64decode(document.encoded_bytes)
            )

        session = Session()
        session.conversation_id = conversation.id
        session.document = document
        session.themes = list(conversation.themes)
        session.turns = list(conversation.turns)
        if not document.is_resumable:
            session.status = "Preview unavailable, re-upload to continue"
        self._session = session
        return conversation

    def delete(self, conversation_id: str) -> bool:
        """Delete a conversation; the session empties if it was active."""
        conversation = self.get(conversation_id)
        if conversation is None:
            return False

        self._conversations.remove(conversation)
        if self._session.conversation_id == conversation_id:
            self._teardown()
        self._persist()
        logger.info(f"Deleted conversation {conversation_id}")
        return True

    def reset(self) -> None:
        """Start over with no active conversation."""
        self._teardown()

    def _teardown(self) -> None:
        if self._accumulator is not None:
            self._accumulator.cancel()
            self._accumulator = None
        document = self._session.document
        if document is not None and document.preview_handle is not None:
            self._registry.release(document.preview_handle)
            document.preview_handle = None
        self._session = Session()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _persist(self) -> bool:
        try:
            report = self._gateway.save(self._conversations, self._session.conversation_id)
        except (StorageQuotaExceeded, OSError) as e:
            logger.warning(f"Conversation history not saved: {e}")
            self._session.persistence_error = str(e)
            return False

        self._session.persistence_error = None
        for conversation in self._conversations:
            if conversation.id in report.stripped_ids:
                conversation.document.encoded_bytes = None
        return True

    async def drain(self) -> None:
        """Wait for pending title generation tasks."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def shutdown(self) -> None:
        self._teardown()
        await self.drain()
