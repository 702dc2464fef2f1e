"""Active conversation state and reply streaming.

Responsibilities:
    - Upload, send, select, delete and reset transitions
    - Mutual exclusion of uploads and replies through the busy flag
    - Ordered accumulation of streamed reply fragments
    - Committing finished exchanges and saving the collection
"""

from sanctuary.session.accumulator import StreamAccumulator
from sanctuary.session.config import SessionConfig, get_session_config
from sanctuary.session.manager import SessionManager
from sanctuary.session.state import Session, SessionPhase

__all__ = [
    "Session",
    "SessionConfig",
    "SessionManager",
    "SessionPhase",
    "StreamAccumulator",
    "get_session_config",
]
