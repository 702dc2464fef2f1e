"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - sample_pdf: Small valid PDF generated with pypdf
    - session_config: Configuration pointing the store at tmp_path
    - extractor / responder / summarizer: Fake LLM collaborators
    - manager: SessionManager wired to the fakes and a file store
    - async_client: HTTPX client for API testing against that manager
"""

import asyncio
import io
from collections.abc import AsyncGenerator, AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient
from pypdf import PdfWriter

from sanctuary.api.app import app
from sanctuary.api.dependencies import get_session_manager
from sanctuary.models.conversation import Theme, Turn
from sanctuary.parsing.pdf_encoder import DocumentEncoder
from sanctuary.parsing.preview import PreviewRegistry
from sanctuary.session.config import SessionConfig
from sanctuary.session.manager import SessionManager
from sanctuary.storage.gateway import PersistenceGateway
from sanctuary.storage.kv_store import FileKeyValueStore

SAMPLE_THEMES = [
    Theme(label="Reason", explanation="Knowledge is built from first principles."),
    Theme(label="Doubt", explanation="Every belief is open to methodical doubt."),
    Theme(label="Method", explanation="Problems are divided into their simplest parts."),
]


def make_pdf(pages: int = 1, title: str | None = None) -> bytes:
    """Build a PDF with blank pages."""
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=612, height=792)
    if title:
        writer.add_metadata({"/Title": title})
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


class FakeExtractor:
    """Theme extractor returning canned themes or raising."""

    def __init__(self, themes: list[Theme] | None = None, error: Exception | None = None):
        self.themes = SAMPLE_THEMES if themes is None else themes
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def extract(self, encoded: str, locale: str) -> list[Theme]:
        self.calls.append((encoded, locale))
        if self.error is not None:
            raise self.error
        return list(self.themes)


class FakeResponder:
    """Responder streaming canned fragments.

    With ``pause_after`` set, the stream blocks before that fragment index
    until ``resume`` is set, signalling ``paused`` first.
    """

    def __init__(
        self,
        fragments: list[str] | None = None,
        error: Exception | None = None,
        pause_after: int | None = None,
    ):
        self.fragments = ["Chapter", " one", " covers..."] if fragments is None else fragments
        self.error = error
        self.pause_after = pause_after
        self.paused = asyncio.Event()
        self.resume = asyncio.Event()
        self.closed = False
        self.calls: list[dict] = []

    async def converse(
        self,
        encoded: str | None,
        prior_turns: list[Turn],
        text: str,
        locale: str,
    ) -> AsyncIterator[str]:
        self.calls.append(
            {"encoded": encoded, "prior_turns": list(prior_turns), "text": text, "locale": locale}
        )
        try:
            for index, fragment in enumerate(self.fragments):
                if self.pause_after is not None and index == self.pause_after:
                    self.paused.set()
                    await self.resume.wait()
                yield fragment
            if self.error is not None:
                raise self.error
        finally:
            self.closed = True


class FakeSummarizer:
    def __init__(self, title: str = "Methodical Doubt And Reason", error: Exception | None = None):
        self.title = title
        self.error = error
        self.calls: list[str] = []

    async def summarize(self, text: str, locale: str) -> str:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.title


@pytest.fixture
def sample_pdf() -> bytes:
    """Return a valid three-page PDF."""
    return make_pdf(pages=3, title="Discourse on Method")


@pytest.fixture
def session_config(tmp_path) -> SessionConfig:
    """Session configuration isolated in tmp_path."""
    return SessionConfig(
        max_document_bytes=1024 * 1024,
        storage_dir=tmp_path / "store",
        storage_quota_bytes=None,
        reduce_above_bytes=None,
        attach_document="every_turn",
        stream_idle_timeout=5.0,
        locale="en",
    )


@pytest.fixture
def registry() -> PreviewRegistry:
    return PreviewRegistry()


@pytest.fixture
def store(session_config: SessionConfig) -> FileKeyValueStore:
    return FileKeyValueStore(session_config.storage_dir)


@pytest.fixture
def gateway(store: FileKeyValueStore) -> PersistenceGateway:
    return PersistenceGateway(store)


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def responder() -> FakeResponder:
    return FakeResponder()


@pytest.fixture
def summarizer() -> FakeSummarizer:
    return FakeSummarizer()


@pytest.fixture
def manager(
    session_config: SessionConfig,
    gateway: PersistenceGateway,
    registry: PreviewRegistry,
    extractor: FakeExtractor,
    responder: FakeResponder,
    summarizer: FakeSummarizer,
) -> SessionManager:
    """SessionManager wired to fake collaborators."""
    return SessionManager(
        gateway=gateway,
        encoder=DocumentEncoder(registry, max_document_bytes=session_config.max_document_bytes),
        registry=registry,
        extractor=extractor,
        responder=responder,
        summarizer=summarizer,
        config=session_config,
    )


@pytest.fixture
async def async_client(manager: SessionManager) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        Configured AsyncClient talking to the app with the fake manager.
    """
    app.dependency_overrides[get_session_manager] = lambda: manager
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()
