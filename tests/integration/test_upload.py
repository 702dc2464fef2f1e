"""Integration tests for PDF upload endpoint.

Tests the upload flow through the real app, session manager and file store.
Validates file validation, encoding, theme extraction and preview serving.
The theme extractor is a fake, so no API key is required.
"""

import pytest
import pytest_check as check
from httpx import AsyncClient

from sanctuary.models.schemas import UploadResponse
from sanctuary.session.manager import SessionManager
from tests.conftest import FakeExtractor


class TestPDFUpload:
    """Integration tests for POST /upload/pdf endpoint."""

    async def test_upload_pdf_success(self, async_client: AsyncClient, sample_pdf: bytes) -> None:
        """Upload valid PDF returns the new conversation and its themes."""
        response = await async_client.post(
            "/upload/pdf",
            files={"file": ("discourse.pdf", sample_pdf, "application/pdf")},
        )

        assert response.status_code == 200

        data = UploadResponse.model_validate(response.json())
        check.is_true(data.success)
        check.equal(data.filename, "discourse.pdf")
        check.equal(data.pages, 3)
        check.equal([t.label for t in data.themes], ["Reason", "Doubt", "Method"])
        check.is_true(data.preview_url.startswith("/preview/"))

    async def test_upload_makes_conversation_active(
        self, async_client: AsyncClient, sample_pdf: bytes
    ) -> None:
        """The uploaded document becomes the active conversation."""
        upload = await async_client.post(
            "/upload/pdf",
            files={"file": ("discourse.pdf", sample_pdf, "application/pdf")},
        )

        response = await async_client.get("/conversations/active")
        data = response.json()

        check.equal(data["phase"], "ready")
        check.equal(data["conversation_id"], upload.json()["conversation_id"])
        check.equal(data["document_name"], "discourse.pdf")
        check.equal(data["turns"], [])

    async def test_preview_serves_pdf(self, async_client: AsyncClient, sample_pdf: bytes) -> None:
        """The preview URL serves the uploaded bytes inline."""
        upload = await async_client.post(
            "/upload/pdf",
            files={"file": ("discourse.pdf", sample_pdf, "application/pdf")},
        )

        response = await async_client.get(upload.json()["preview_url"])

        check.equal(response.status_code, 200)
        check.equal(response.headers["content-type"], "application/pdf")
        check.equal(response.content, sample_pdf)

    async def test_preview_unknown_handle(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/preview/unknown")

        assert response.status_code == 404

    async def test_generic_content_type_accepted(
        self, async_client: AsyncClient, sample_pdf: bytes
    ) -> None:
        """A .pdf sent as octet-stream is treated as PDF."""
        response = await async_client.post(
            "/upload/pdf",
            files={"file": ("discourse.pdf", sample_pdf, "application/octet-stream")},
        )

        assert response.status_code == 200

    async def test_upload_non_pdf_rejected(self, async_client: AsyncClient) -> None:
        """Upload non-PDF file returns 400 error."""
        response = await async_client.post(
            "/upload/pdf",
            files={"file": ("notes.txt", b"plain text", "text/plain")},
        )

        assert response.status_code == 400
        assert "PDF" in response.json()["detail"]

    async def test_upload_pdf_extension_wrong_type_rejected(
        self, async_client: AsyncClient, sample_pdf: bytes
    ) -> None:
        response = await async_client.post(
            "/upload/pdf",
            files={"file": ("image.pdf", sample_pdf, "image/jpeg")},
        )

        assert response.status_code == 400

    async def test_upload_fake_pdf_rejected(self, async_client: AsyncClient) -> None:
        """Upload file with .pdf extension but invalid content returns 400."""
        response = await async_client.post(
            "/upload/pdf",
            files={"file": ("fake.pdf", b"This is not a PDF", "application/pdf")},
        )

        assert response.status_code == 400
        assert "Invalid PDF" in response.json()["detail"]

    async def test_upload_empty_file_rejected(self, async_client: AsyncClient) -> None:
        response = await async_client.post(
            "/upload/pdf",
            files={"file": ("empty.pdf", b"", "application/pdf")},
        )

        assert response.status_code == 400

    async def test_upload_too_large_rejected(self, async_client: AsyncClient) -> None:
        """Upload over the size limit returns 413 with the limit in MB."""
        content = b"%PDF-1.4\n" + b"0" * (2 * 1024 * 1024)

        response = await async_client.post(
            "/upload/pdf",
            files={"file": ("huge.pdf", content, "application/pdf")},
        )

        assert response.status_code == 413
        assert "exceeds maximum allowed (1MB)" in response.json()["detail"]

    async def test_upload_missing_file(self, async_client: AsyncClient) -> None:
        """Request without file returns 422 validation error."""
        response = await async_client.post("/upload/pdf")

        assert response.status_code == 422

    async def test_upload_wrong_method(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/upload/pdf")

        assert response.status_code == 405


class TestUploadExtractionFailure:
    @pytest.fixture
    def extractor(self) -> FakeExtractor:
        return FakeExtractor(error=RuntimeError("provider unavailable"))

    async def test_extraction_failure_returns_502(
        self, async_client: AsyncClient, manager: SessionManager, sample_pdf: bytes
    ) -> None:
        """Failed extraction reports 502 and stores no conversation."""
        response = await async_client.post(
            "/upload/pdf",
            files={"file": ("discourse.pdf", sample_pdf, "application/pdf")},
        )

        check.equal(response.status_code, 502)
        check.is_in("provider unavailable", response.json()["detail"])

        listing = await async_client.get("/conversations")
        check.equal(listing.json(), [])
        check.equal(len(manager.registry), 0)


class TestHealthAndCors:
    async def test_health(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/health")

        assert response.json() == {"status": "healthy", "service": "sanctuary"}

    async def test_cors_headers_present(self, async_client: AsyncClient) -> None:
        """Responses allow cross-origin requests."""
        response = await async_client.get("/health", headers={"Origin": "http://localhost:3000"})

        assert "access-control-allow-origin" in response.headers
