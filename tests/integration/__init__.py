"""Integration tests for the HTTP API working as a system.

Coverage:
    - PDF upload with validation and theme extraction
    - SSE chat streaming protocol
    - Conversation history navigation and preview

Runs the real FastAPI app, session manager and file store; only the LLM
collaborators are faked.
"""
