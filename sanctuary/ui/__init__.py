"""NiceGUI interface - thin visualization layer for the research workspace.

Responsibilities:
    - PDF upload and extracted theme cards
    - Chat message display with streaming support
    - Conversation history: select, delete, start over

Contains minimal business logic. Delegates all operations to the API.
"""
