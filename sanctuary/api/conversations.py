"""Conversation history and navigation endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from sanctuary.api.dependencies import get_session_manager, session_view
from sanctuary.models.schemas import ConversationSummary, SessionView
from sanctuary.session.manager import SessionManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/conversations", tags=["conversations"])
preview_router = APIRouter(prefix="/preview", tags=["preview"])


@router.get("", response_model=list[ConversationSummary])
async def list_conversations(
    manager: SessionManager = Depends(get_session_manager),
) -> list[ConversationSummary]:
    """List stored conversations, most recently active first."""
    return [ConversationSummary.from_conversation(c) for c in manager.conversations()]


@router.get("/active", response_model=SessionView)
async def active_session(
    manager: SessionManager = Depends(get_session_manager),
) -> SessionView:
    """Return the live session, including a streaming reply in progress."""
    return session_view(manager)


@router.post("/new", response_model=SessionView)
async def new_conversation(
    manager: SessionManager = Depends(get_session_manager),
) -> SessionView:
    """Leave the active conversation so a new document can be uploaded."""
    manager.reset()
    return session_view(manager)


@router.post("/{conversation_id}/select", response_model=SessionView)
async def select_conversation(
    conversation_id: str,
    manager: SessionManager = Depends(get_session_manager),
) -> SessionView:
    """Make a stored conversation the active one.

    Raises:
        404: Unknown conversation id.
    """
    if manager.select(conversation_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Conversation {conversation_id} not found",
        )
    return session_view(manager)


@router.delete("/{conversation_id}")
async def delete_conversation(
    conversation_id: str,
    manager: SessionManager = Depends(get_session_manager),
) -> dict[str, str]:
    """Delete a conversation and its stored document.

    Raises:
        404: Unknown conversation id.
    """
    if not manager.delete(conversation_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Conversation {conversation_id} not found",
        )
    return {"deleted": conversation_id}


@preview_router.get("/{handle}")
async def preview_document(
    handle: str,
    manager: SessionManager = Depends(get_session_manager),
) -> Response:
    """Serve the active PDF for in-browser preview.

    Raises:
        404: Handle unknown or already released.
    """
    content = manager.registry.resolve(handle)
    if content is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Preview not available",
        )
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": "inline"},
    )
