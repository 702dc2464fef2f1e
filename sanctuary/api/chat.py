"""Chat streaming endpoint.

Streams the assistant reply for the active conversation as Server-Sent
Events. Each event is a JSON ``StreamChunk``; the last one has ``done=true``.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from sanctuary.api.dependencies import get_session_manager
from sanctuary.errors import StreamInterrupted
from sanctuary.models.schemas import ChatRequest, StreamChunk, StreamStatus
from sanctuary.session.manager import SessionManager
from sanctuary.session.state import SessionPhase

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])

BUSY_DETAIL = "A reply is already being generated"

# Replies keep running to commit even if the client disconnects.
_pending_replies: set[asyncio.Task] = set()


def _sse(chunk: StreamChunk) -> str:
    return f"data: {chunk.model_dump_json()}\n\n"


async def _event_stream(manager: SessionManager, message: str) -> AsyncGenerator[str]:
    """Run one send and relay each new fragment as an SSE event."""
    session = manager.session
    conversation_id = session.conversation_id
    fragments: asyncio.Queue[str] = asyncio.Queue()
    sent = 0

    def on_update(text: str) -> None:
        nonlocal sent
        fragments.put_nowait(text[sent:])
        sent = len(text)

    reply_task = asyncio.create_task(manager.send(message, on_update))
    _pending_replies.add(reply_task)
    reply_task.add_done_callback(_pending_replies.discard)

    yield _sse(
        StreamChunk(
            content="",
            done=False,
            status=StreamStatus.RECEIVED,
            conversation_id=conversation_id,
        )
    )

    getter: asyncio.Future[str] | None = None
    try:
        while not reply_task.done() or not fragments.empty():
            if fragments.empty():
                getter = asyncio.ensure_future(fragments.get())
                await asyncio.wait({getter, reply_task}, return_when=asyncio.FIRST_COMPLETED)
                if not getter.done():
                    getter.cancel()
                    continue
                fragment = getter.result()
            else:
                fragment = fragments.get_nowait()
            yield _sse(
                StreamChunk(
                    content=fragment,
                    done=False,
                    status=StreamStatus.GENERATING,
                    conversation_id=conversation_id,
                )
            )
    finally:
        if getter is not None and not getter.done():
            getter.cancel()

    try:
        reply = reply_task.result()
    except StreamInterrupted as e:
        yield _sse(
            StreamChunk(
                content="",
                done=True,
                status=StreamStatus.ERROR,
                error=str(e),
                conversation_id=conversation_id,
            )
        )
        return

    if reply is None:
        # Teardown replaces the session, so an unchanged one means the send was rejected.
        error = BUSY_DETAIL if manager.session is session else "Reply was abandoned"
        yield _sse(
            StreamChunk(
                content="",
                done=True,
                status=StreamStatus.ERROR,
                error=error,
                conversation_id=conversation_id,
            )
        )
        return

    yield _sse(
        StreamChunk(
            content="",
            done=True,
            status=StreamStatus.COMPLETE,
            conversation_id=conversation_id,
        )
    )


@router.post("/stream")
async def chat_stream(
    request: ChatRequest,
    manager: SessionManager = Depends(get_session_manager),
) -> StreamingResponse:
    """Stream the reply to a message about the active document.

    Raises:
        409: No active conversation, document needs re-upload, or a
            reply is already streaming.
        422: Empty or missing message.
    """
    session = manager.session
    if session.phase is not SessionPhase.READY:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Upload a document or select a conversation first",
        )
    if session.document is None or not session.document.is_resumable:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Re-upload the document to continue this conversation",
        )
    if session.busy:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=BUSY_DETAIL,
        )

    logger.info(f"Chat request for conversation {session.conversation_id}")
    return StreamingResponse(
        _event_stream(manager, request.message),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )
