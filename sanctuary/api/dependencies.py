"""FastAPI dependencies wiring the session manager and its collaborators."""

import logging

from sanctuary.agent.chat_agent import AgentService, get_agent_service
from sanctuary.models.schemas import SessionView
from sanctuary.parsing.pdf_encoder import DocumentEncoder
from sanctuary.parsing.preview import PreviewRegistry
from sanctuary.session.config import SessionConfig, get_session_config
from sanctuary.session.manager import SessionManager
from sanctuary.storage.gateway import PersistenceGateway
from sanctuary.storage.kv_store import FileKeyValueStore

logger = logging.getLogger(__name__)


def build_session_manager(
    config: SessionConfig | None = None,
    agent_service: AgentService | None = None,
) -> SessionManager:
    """Assemble a session manager and load the stored history.

    Args:
        config: Session configuration, loaded from environment if omitted.
        agent_service: LLM collaborators, the global service if omitted.

    Returns:
        Ready-to-use SessionManager.
    """
    config = config or get_session_config()
    agent_service = agent_service or get_agent_service()
    registry = PreviewRegistry()
    store = FileKeyValueStore(config.storage_dir, quota_bytes=config.storage_quota_bytes)

    manager = SessionManager(
        gateway=PersistenceGateway(store, reduce_above_bytes=config.reduce_above_bytes),
        encoder=DocumentEncoder(registry, max_document_bytes=config.max_document_bytes),
        registry=registry,
        extractor=agent_service,
        responder=agent_service,
        summarizer=agent_service,
        config=config,
    )
    manager.load_history()
    logger.info(f"Session manager ready (store: {config.storage_dir})")
    return manager


# Module-level singleton instance
_session_manager: SessionManager | None = None


def get_session_manager() -> SessionManager:
    """Get or create the process-wide session manager."""
    global _session_manager
    if _session_manager is None:
        _session_manager = build_session_manager()
    return _session_manager


def current_session_manager() -> SessionManager | None:
    """The session manager if one was created, without creating it."""
    return _session_manager


def preview_url(handle: str | None) -> str | None:
    return f"/preview/{handle}" if handle else None


def session_view(manager: SessionManager) -> SessionView:
    """Snapshot the live session for API responses."""
    session = manager.session
    conversation = manager.active_conversation()
    return SessionView(
        phase=session.phase.value,
        conversation_id=session.conversation_id,
        title=conversation.title if conversation else None,
        document_name=session.document.display_name if session.document else None,
        preview_url=preview_url(session.preview_handle),
        themes=session.themes,
        turns=session.turns,
        busy=session.busy,
        status=session.status,
        error=session.error,
        persistence_error=session.persistence_error,
    )
