"""Tests for schema validation."""

import pytest
from pydantic import TypeAdapter, ValidationError

from crm_assistant.schemas import (
    ChatRequest,
    ConversationTurn,
    DoneEvent,
    ErrorEvent,
    FragmentEvent,
    StreamEvent,
)
from crm_assistant.schemas.internal import DatasetQuery, Snapshot, extract_items
from crm_assistant.schemas.requests import GenerateContentRequest, ModelContent


def test_chat_request_minimal() -> None:
    """Test ChatRequest with only the message."""
    request = ChatRequest(message="Oi")
    assert request.history == []


def test_chat_request_requires_message() -> None:
    with pytest.raises(ValidationError):
        ChatRequest(message="")
    with pytest.raises(ValidationError):
        ChatRequest(history=[])


def test_turn_accepts_text_alias() -> None:
    """Clients send the turn body as either `content` or `text`."""
    assert ConversationTurn(role="assistant", text="Olá").content == "Olá"
    assert ConversationTurn(role="user", content="Oi").content == "Oi"


def test_turn_rejects_unknown_role() -> None:
    with pytest.raises(ValidationError):
        ConversationTurn(role="system", content="x")


def test_stream_event_discriminator() -> None:
    adapter = TypeAdapter(StreamEvent)
    assert adapter.validate_python({"type": "fragment", "text": "a"}) == FragmentEvent(text="a")
    assert adapter.validate_python({"type": "done"}) == DoneEvent()
    assert isinstance(adapter.validate_python({"type": "error", "message": "x"}), ErrorEvent)


def test_generate_content_request_wire_names() -> None:
    body = GenerateContentRequest(contents=[ModelContent.of("user", "Oi")]).model_dump(by_alias=True)
    assert body == {
        "contents": [{"role": "user", "parts": [{"text": "Oi"}]}],
        "generationConfig": {"temperature": 0.7, "maxOutputTokens": 1500},
    }


@pytest.mark.parametrize(
    "payload,expected",
    [
        ([1, 2], [1, 2]),
        ({"leads": [1]}, [1]),
        ({"leads": "x"}, []),
        ({"other": [1]}, []),
        (None, []),
        ("text", []),
    ],
)
def test_extract_items(payload, expected) -> None:
    assert extract_items(payload, "leads") == expected


def test_direct_payload_without_wrapper() -> None:
    assert extract_items({"leads": [1]}, None) == []


def test_dataset_query_display_cap() -> None:
    query = DatasetQuery(name="orders", path="/o?userId={user_id}", timeout_ms=6000, recent_cap=5)
    assert query.cap is None
    assert query.display_cap == 5
    assert query.render_path(9) == "/o?userId=9"

    with pytest.raises(ValidationError):
        DatasetQuery(name="leads", path="/l", timeout_ms=0)


def test_snapshot_defaults_are_empty() -> None:
    snapshot = Snapshot()
    assert snapshot.user_name == "Usuário"
    assert snapshot.leads.items == []
    assert snapshot.leads.source == "none"
    assert snapshot.order_total == 0.0
