"""Sanctuary - chat with a PDF manuscript over durable conversations.

Combines FastAPI for HTTP streaming, Agno for LLM calls,
NiceGUI for visualization, and Pydantic for data validation.

Components:
    - api: HTTP endpoints and streaming responses
    - agent: theme extraction, conversational replies and titles
    - parsing: PDF encoding and transient preview handles
    - session: active conversation state and stream accumulation
    - storage: durable key-value store and persistence gateway
    - ui: Web interface for chat interactions
    - models: Conversation records and request/response schemas
"""

__version__ = "0.1.0"
