"""Agno agent logic for the LLM collaborators.

Responsibilities:
    - Theme extraction from an attached PDF
    - Streamed conversational replies grounded in the document
    - Short conversation titles after the first exchange

Leverages the Agno framework with OpenAI-compatible models.
Maintains clean separation from the session and HTTP layers.
"""

from sanctuary.agent.chat_agent import AgentService, get_agent_service, parse_themes
from sanctuary.agent.config import AgentConfig, get_agent_config

__all__ = [
    "AgentConfig",
    "AgentService",
    "get_agent_config",
    "get_agent_service",
    "parse_themes",
]
