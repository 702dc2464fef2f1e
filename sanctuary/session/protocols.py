"""Collaborator interfaces consumed by the session manager.

``sanctuary.agent.AgentService`` implements all three; tests use fakes.
"""

from collections.abc import AsyncIterator
from typing import Protocol

from sanctuary.models.conversation import Theme, Turn


class ThemeExtractor(Protocol):
    async def extract(self, encoded: str, locale: str) -> list[Theme]:
        """Return the ranked themes of a base64 PDF.

        Raises:
            ExtractionFailed: If the model output cannot be parsed.
        """
        ...


class ConversationalResponder(Protocol):
    def converse(
        self,
        encoded: str | None,
        prior_turns: list[Turn],
        text: str,
        locale: str,
    ) -> AsyncIterator[str]:
        """Stream the reply to ``text`` as ordered text fragments."""
        ...


class TitleSummarizer(Protocol):
    async def summarize(self, text: str, locale: str) -> str: ...
