# pylint: disable=missing-module-docstring,missing-function-docstring

from typing import Any

import pytest

import chat.metadata as metadata_mod
from chat.metadata import parse_response_metadata
from chat.types import Citation


ANSWER = "File a complaint at the nearest station.\n\nNote: This is AI-generated information."


@pytest.fixture
def emitted(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    events: list[dict[str, Any]] = []
    monkeypatch.setattr(metadata_mod, "log_event", events.append)
    return events


def test_block_is_parsed_and_removed():
    raw = (
        ANSWER
        + '\n---JSON_START---\n{"confidence": "MEDIUM",'
        ' "sources": [{"act": "IPC", "section": "420", "title": "Cheating", "url": "https://indiacode.nic.in"}],'
        ' "actions": ["refer_lawyer"]}\n---JSON_END---\n'
    )

    text, metadata = parse_response_metadata(raw)

    assert text == ANSWER
    assert metadata is not None
    assert metadata.confidence == "MEDIUM"
    assert metadata.sources == (
        Citation(act="IPC", section="420", title="Cheating", url="https://indiacode.nic.in"),
    )
    assert metadata.actions == ("refer_lawyer",)
    assert metadata.grounding_chunks is None


def test_text_without_block_is_unchanged():
    assert parse_response_metadata(ANSWER) == (ANSWER, None)


def test_malformed_json_keeps_raw_text(emitted: list[dict[str, Any]]):
    raw = ANSWER + "\n---JSON_START---\n{confidence: HIGH,\n---JSON_END---"

    text, metadata = parse_response_metadata(raw)

    assert text == raw
    assert metadata is None
    assert emitted[0]["event_type"] == "CHAT_METADATA_PARSE_FAILED"


def test_non_object_block_is_rejected(emitted: list[dict[str, Any]]):
    raw = ANSWER + '---JSON_START---["HIGH"]---JSON_END---'
    assert parse_response_metadata(raw) == (raw, None)
    assert len(emitted) == 1


def test_unknown_confidence_becomes_medium():
    _, metadata = parse_response_metadata('ok ---JSON_START---{"confidence": "certain"}---JSON_END---')
    assert metadata is not None
    assert metadata.confidence == "MEDIUM"
    assert metadata.sources == ()


def test_to_dict_uses_client_field_names():
    _, metadata = parse_response_metadata('ok ---JSON_START---{"confidence": "HIGH", "actions": ["download_pdf"]}---JSON_END---')
    assert metadata is not None
    assert metadata.to_dict() == {"confidence": "HIGH", "sources": [], "actions": ["download_pdf"]}
