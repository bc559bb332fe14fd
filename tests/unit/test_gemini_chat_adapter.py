# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio
from types import SimpleNamespace
from typing import Any

import pytest

from adapters.chat.base import ChatAdapterError, GenerationRequest
from adapters.chat.gemini import GeminiChatAdapter, extract_grounding_chunks
from chat.types import Attachment, GroundingChunk, Location


class FakeModels:
    def __init__(self, response: Any = None, fail: Exception | None = None) -> None:
        self.response = response
        self.fail = fail
        self.calls: list[dict[str, Any]] = []

    async def generate_content(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if self.fail is not None:
            raise self.fail
        return self.response


def fake_client(models: FakeModels) -> Any:
    return SimpleNamespace(aio=SimpleNamespace(models=models))


def make_request(**overrides: Any) -> GenerationRequest:
    fields: dict[str, Any] = {
        "model": "chat-model",
        "system_instruction": "You are a legal assistant.",
        "prompt": "PREVIOUS CONTEXT: \n\nCURRENT REQUEST: hi",
        "temperature": 0.1,
    }
    fields.update(overrides)
    return GenerationRequest(**fields)


def grounded_response(chunks: Any) -> Any:
    return SimpleNamespace(
        text="answer",
        candidates=[SimpleNamespace(grounding_metadata=SimpleNamespace(grounding_chunks=chunks))],
    )


# ---------------------------------------------------------------------
# Grounding extraction
# ---------------------------------------------------------------------

def test_grounding_chunks_web_and_maps():
    response = grounded_response([
        SimpleNamespace(web=SimpleNamespace(uri="https://india.gov.in", title="India"), maps=None),
        SimpleNamespace(web=None, maps=SimpleNamespace(uri="https://maps.google.com/?cid=7", title=None)),
    ])

    assert extract_grounding_chunks(response) == (
        GroundingChunk(kind="web", uri="https://india.gov.in", title="India"),
        GroundingChunk(kind="maps", uri="https://maps.google.com/?cid=7", title=""),
    )


def test_no_grounding_is_none_but_empty_list_is_kept():
    assert extract_grounding_chunks(SimpleNamespace(candidates=None)) is None
    assert extract_grounding_chunks(grounded_response(None)) is None
    assert extract_grounding_chunks(grounded_response([])) == ()


# ---------------------------------------------------------------------
# Request building
# ---------------------------------------------------------------------

def test_plain_request():
    models = FakeModels(response=SimpleNamespace(text="answer", candidates=[]))
    adapter = GeminiChatAdapter(client=fake_client(models))

    result = asyncio.run(adapter.generate(make_request()))

    assert result.text == "answer"
    assert result.grounding_chunks is None

    call = models.calls[0]
    assert call["model"] == "chat-model"
    content = call["contents"][0]
    assert content.role == "user"
    assert [p.text for p in content.parts] == ["PREVIOUS CONTEXT: \n\nCURRENT REQUEST: hi"]
    assert call["config"].temperature == 0.1
    assert call["config"].tools is None


def test_attachment_goes_first_as_inline_data():
    models = FakeModels(response=SimpleNamespace(text="ok", candidates=[]))
    adapter = GeminiChatAdapter(client=fake_client(models))

    asyncio.run(adapter.generate(make_request(
        attachment=Attachment(data="JVBERi0=", mime_type="application/pdf"),
    )))

    parts = models.calls[0]["contents"][0].parts
    assert parts[0].inline_data.data == b"%PDF-"
    assert parts[0].inline_data.mime_type == "application/pdf"
    assert parts[1].text.startswith("PREVIOUS CONTEXT")


def test_maps_tool_with_location():
    models = FakeModels(response=SimpleNamespace(text="ok", candidates=[]))
    adapter = GeminiChatAdapter(client=fake_client(models))

    asyncio.run(adapter.generate(make_request(
        model="maps-model",
        use_maps=True,
        location=Location(latitude=19.07, longitude=72.87),
    )))

    config = models.calls[0]["config"]
    assert config.tools[0].google_maps is not None
    lat_lng = config.tool_config.retrieval_config.lat_lng
    assert (lat_lng.latitude, lat_lng.longitude) == (19.07, 72.87)


def test_vendor_failure_is_wrapped():
    adapter = GeminiChatAdapter(client=fake_client(FakeModels(fail=TimeoutError("deadline"))))

    with pytest.raises(ChatAdapterError):
        asyncio.run(adapter.generate(make_request()))


def test_invalid_attachment_is_rejected_before_the_call():
    models = FakeModels()
    adapter = GeminiChatAdapter(client=fake_client(models))

    with pytest.raises(ChatAdapterError):
        asyncio.run(adapter.generate(make_request(
            attachment=Attachment(data="%%%", mime_type="application/pdf"),
        )))
    assert models.calls == []
