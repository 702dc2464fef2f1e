"""FastAPI endpoints for Sanctuary.

HTTP and streaming routes with async request handling.
Supports Server-Sent Events for real-time chat streaming.

Endpoints:
    - GET /health: Service health status
    - POST /upload/pdf: Upload a manuscript and extract its themes
    - POST /chat/stream: Streamed reply about the active manuscript
    - GET /conversations: Conversation history
    - GET /conversations/active: Live session snapshot
    - POST /conversations/new: Leave the active conversation
    - POST /conversations/{id}/select: Reopen a stored conversation
    - DELETE /conversations/{id}: Delete a conversation
    - GET /preview/{handle}: In-browser PDF preview
"""
