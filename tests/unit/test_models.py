"""Unit tests for conversation records and API schemas."""

import base64
import json

import pytest
import pytest_check as check
from pydantic import ValidationError

from sanctuary.models.conversation import (
    DEFAULT_TITLE,
    Conversation,
    DocumentReference,
    Speaker,
    Theme,
    Turn,
)
from sanctuary.models.schemas import ChatRequest, ConversationSummary

ENCODED = base64.b64encode(b"%PDF-1.4 sample").decode("ascii")


def _conversation(**kwargs) -> Conversation:
    document = DocumentReference(
        display_name="meditations.pdf",
        encoded_bytes=ENCODED,
        preview_handle="abc123",
        page_count=2,
    )
    return Conversation(document=document, **kwargs)


class TestTheme:
    def test_accepts_label_and_explanation(self) -> None:
        theme = Theme(label="Doubt", explanation="Question everything.")

        assert theme.label == "Doubt"

    def test_accepts_axiom_aliases(self) -> None:
        """Themes also parse from axiom/definition keys."""
        theme = Theme.model_validate({"axiom": "Cogito", "definition": "I think."})

        check.equal(theme.label, "Cogito")
        check.equal(theme.explanation, "I think.")

    def test_rejects_empty_label(self) -> None:
        with pytest.raises(ValidationError):
            Theme(label="", explanation="Nothing")


class TestTurn:
    def test_placeholder_grows_while_in_flight(self) -> None:
        """Fragments append to a placeholder in order."""
        turn = Turn.placeholder()
        turn.append("Chapter")
        turn.append(" one")

        check.equal(turn.speaker, Speaker.ASSISTANT)
        check.equal(turn.text, "Chapter one")
        check.is_true(turn.in_flight)

    def test_frozen_turn_rejects_append(self) -> None:
        """A frozen turn is immutable."""
        turn = Turn.placeholder()
        turn.freeze()

        with pytest.raises(RuntimeError, match="frozen"):
            turn.append("late")

    def test_user_turn_is_frozen(self) -> None:
        turn = Turn.user("Hello")

        check.equal(turn.speaker, Speaker.USER)
        check.is_false(turn.in_flight)

    def test_in_flight_not_serialized(self) -> None:
        data = Turn.placeholder().model_dump()

        assert "in_flight" not in data


class TestDocumentReference:
    def test_rejects_invalid_base64(self) -> None:
        with pytest.raises(ValidationError, match="base64"):
            DocumentReference(display_name="x.pdf", encoded_bytes="not base64!!")

    def test_without_payload_is_preview_only(self) -> None:
        """Stripping the payload drops bytes and handle, keeps identity."""
        document = _conversation().document
        stripped = document.without_payload()

        check.is_false(stripped.is_resumable)
        check.is_none(stripped.preview_handle)
        check.equal(stripped.id, document.id)
        check.is_true(document.is_resumable)

    def test_preview_handle_not_serialized(self) -> None:
        data = json.loads(_conversation().model_dump_json())

        check.is_not_in("preview_handle", data["document"])
        check.equal(data["document"]["encoded_bytes"], ENCODED)


class TestConversation:
    def test_defaults(self) -> None:
        conversation = _conversation()

        check.equal(conversation.title, DEFAULT_TITLE)
        check.is_false(conversation.title_generated)
        check.equal(conversation.turns, [])
        check.equal(len(conversation.id), 32)

    def test_without_document_bytes_leaves_original(self) -> None:
        """Reduced copy keeps themes and turns; the original is untouched."""
        conversation = _conversation(
            themes=[Theme(label="Doubt", explanation="Question.")],
            turns=[Turn.user("Hi"), Turn(speaker=Speaker.ASSISTANT, text="Hello")],
        )

        reduced = conversation.without_document_bytes()

        check.is_false(reduced.document.is_resumable)
        check.equal(reduced.themes, conversation.themes)
        check.equal(len(reduced.turns), 2)
        check.is_true(conversation.document.is_resumable)

    def test_touch_advances_last_activity(self) -> None:
        conversation = _conversation()
        before = conversation.last_activity_at

        conversation.touch()

        assert conversation.last_activity_at >= before


class TestSchemas:
    def test_chat_request_strips_message(self) -> None:
        assert ChatRequest(message="  What is doubt?  ").message == "What is doubt?"

    def test_chat_request_rejects_whitespace(self) -> None:
        with pytest.raises(ValidationError):
            ChatRequest(message="   ")

    def test_summary_from_conversation(self) -> None:
        conversation = _conversation(turns=[Turn.user("Hi")])

        summary = ConversationSummary.from_conversation(conversation)

        check.equal(summary.id, conversation.id)
        check.equal(summary.document_name, "meditations.pdf")
        check.is_true(summary.resumable)
        check.equal(summary.turn_count, 1)
