"""Agno agent service for theme extraction, streamed replies and titles.

One Agno agent per task, all sharing the same OpenAI-compatible model
settings:

1. **Extractor** - receives the PDF as a file attachment and answers with a
   JSON array of themes, parsed and validated with Pydantic.
2. **Chat** - receives the prior turns as messages plus the new question
   (and the PDF when the session attaches it) and streams the reply.
3. **Titles** - names a conversation after its first exchange.

No Agno storage or knowledge base is configured: the session manager owns
the conversation history and passes it in on every call.
"""

import base64
import logging
import re
from collections.abc import AsyncIterator

from agno.agent import Agent
from agno.media import File
from agno.models.message import Message
from agno.models.openai import OpenAIChat
from pydantic import TypeAdapter, ValidationError

from sanctuary.agent.config import AgentConfig, get_agent_config
from sanctuary.agent.prompts import (
    CHAT_INSTRUCTIONS,
    EXTRACTION_INSTRUCTIONS,
    TITLE_INSTRUCTIONS,
    default_title,
    theme_extraction_prompt,
    title_prompt,
)
from sanctuary.errors import ExtractionFailed
from sanctuary.models.conversation import Speaker, Theme, Turn
from sanctuary.parsing.pdf_encoder import PDF_MIME_TYPE

logger = logging.getLogger(__name__)

TITLE_MAX_WORDS = 6

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")
_themes = TypeAdapter(list[Theme])


def parse_themes(text: str) -> list[Theme]:
    """Parse the extractor's reply into themes.

    The reply may wrap the JSON array in prose or a code fence; the outermost
    bracketed span is used.

    Raises:
        ExtractionFailed: If no valid theme array can be read.
    """
    match = _JSON_ARRAY.search(text or "")
    candidate = match.group(0) if match else (text or "")
    try:
        return _themes.validate_json(candidate)
    except ValidationError as e:
        raise ExtractionFailed(f"Theme extractor returned unparseable output: {e}") from e


def trim_title(title: str, locale: str) -> str:
    """Keep at most TITLE_MAX_WORDS words, falling back to the default title."""
    words = title.strip().strip('"').split()
    if not words:
        return default_title(locale)
    return " ".join(words[:TITLE_MAX_WORDS])


def _pdf_file(encoded: str) -> File:
    return File(content=base64.b64decode(encoded), mime_type=PDF_MIME_TYPE)


class AgentService:
    """Service wrapping the Agno agents.

    Implements the ThemeExtractor, ConversationalResponder and
    TitleSummarizer collaborators of the session manager.
    """

    def __init__(self, config: AgentConfig | None = None) -> None:
        """Initialize the agent service.

        Args:
            config: Optional agent configuration.
                    Loads from environment if not provided.
        """
        self._config = config or get_agent_config()
        self._chat_agent = self._create_agent(
            CHAT_INSTRUCTIONS, temperature=self._config.temperature, markdown=True
        )
        self._extractor_agent = self._create_agent(EXTRACTION_INSTRUCTIONS, temperature=0.2)
        self._title_agent = self._create_agent(TITLE_INSTRUCTIONS, temperature=0.2)

    def _create_model(self, temperature: float) -> OpenAIChat:
        return OpenAIChat(
            id=self._config.model_name,
            api_key=self._config.api_key,
            base_url=self._config.base_url,
            temperature=temperature,
            max_tokens=self._config.max_tokens,
        )

    def _create_agent(
        self,
        instructions: list[str],
        temperature: float,
        markdown: bool = False,
    ) -> Agent:
        """Create one Agno agent.

        Returns:
            Agent without storage, history or knowledge; callers pass context.
        """
        return Agent(
            model=self._create_model(temperature),
            instructions=instructions,
            markdown=markdown,
        )

    async def extract(self, encoded: str, locale: str) -> list[Theme]:
        """Extract the ranked themes of a base64 PDF.

        Raises:
            ExtractionFailed: If the model call fails or its output is invalid.
        """
        prompt = theme_extraction_prompt(locale, self._config.theme_count)
        try:
            response = await self._extractor_agent.arun(prompt, files=[_pdf_file(encoded)])
        except Exception as e:
            raise ExtractionFailed(f"Theme extraction call failed: {e}") from e

        themes = parse_themes(response.content or "")
        logger.info(f"Extracted {len(themes)} themes")
        return themes

    async def converse(
        self,
        encoded: str | None,
        prior_turns: list[Turn],
        text: str,
        locale: str,
    ) -> AsyncIterator[str]:
        """Stream reply fragments for a new user turn.

        Errors from the model propagate to the caller, which decides whether
        the partial reply is kept.

        Args:
            encoded: Base64 PDF to attach, or None to rely on the turns alone.
            prior_turns: Committed turns of the conversation.
            text: The new user message.
            locale: Language of the conversation.

        Yields:
            Reply text fragments in generation order.
        """
        messages = [
            Message(
                role="user" if turn.speaker is Speaker.USER else "assistant",
                content=turn.text,
            )
            for turn in prior_turns
        ]
        messages.append(Message(role="user", content=text))
        files = [_pdf_file(encoded)] if encoded else None

        logger.debug(
            f"Streaming reply ({len(prior_turns)} prior turns, "
            f"document attached: {files is not None}, locale: {locale})"
        )
        response_stream = self._chat_agent.arun(messages, files=files, stream=True)
        async for chunk in response_stream:
            if hasattr(chunk, "content") and isinstance(chunk.content, str) and chunk.content:
                yield chunk.content

    async def summarize(self, text: str, locale: str) -> str:
        """Generate a short conversation title from the first user message."""
        response = await self._title_agent.arun(title_prompt(text, locale, TITLE_MAX_WORDS))
        return trim_title(response.content or "", locale)


# Module-level singleton instance
_agent_service: AgentService | None = None


def get_agent_service() -> AgentService:
    """Get or create the global agent service.

    Returns:
        The AgentService instance.
    """
    global _agent_service
    if _agent_service is None:
        _agent_service = AgentService()
    return _agent_service
