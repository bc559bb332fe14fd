# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio
from types import SimpleNamespace
from typing import Any

import pytest

from adapters.live.base import LiveCallbacks, LiveSessionError
from adapters.live.gemini import GeminiLiveConnector, server_message_to_record
from protocol.live_messages import ServerAudio, ServerInterrupted, parse_server_message


def sdk_message(*chunks: bytes | None, interrupted: Any = None, turn_complete: Any = None) -> Any:
    parts = [
        SimpleNamespace(
            inline_data=(
                SimpleNamespace(data=chunk, mime_type="audio/pcm;rate=24000")
                if chunk is not None else None
            )
        )
        for chunk in chunks
    ]
    return SimpleNamespace(
        server_content=SimpleNamespace(
            model_turn=SimpleNamespace(parts=parts) if parts else None,
            interrupted=interrupted,
            turn_complete=turn_complete,
        )
    )


class FakeLiveSession:
    def __init__(self, turns: list[list[Any]]) -> None:
        self._turns = list(turns)
        self.sent: list[dict[str, Any]] = []

    async def receive(self):  # type: ignore[no-untyped-def]
        if not self._turns:
            return
        for message in self._turns.pop(0):
            yield message

    async def send_realtime_input(self, **kwargs: Any) -> None:
        self.sent.append(kwargs)


class FakeSessionContext:
    def __init__(self, session: FakeLiveSession, fail: Exception | None = None) -> None:
        self.session = session
        self.fail = fail
        self.exited = False

    async def __aenter__(self) -> FakeLiveSession:
        if self.fail is not None:
            raise self.fail
        return self.session

    async def __aexit__(self, *exc: Any) -> None:
        self.exited = True


class FakeLive:
    def __init__(self, ctx: FakeSessionContext) -> None:
        self.ctx = ctx
        self.connects: list[tuple[str, Any]] = []

    def connect(self, *, model: str, config: Any) -> FakeSessionContext:
        self.connects.append((model, config))
        return self.ctx


def fake_client(live: FakeLive) -> Any:
    return SimpleNamespace(aio=SimpleNamespace(live=live))


def recording_callbacks(events: list[Any]) -> LiveCallbacks:
    return LiveCallbacks(
        on_open=lambda: events.append("open"),
        on_message=lambda record: events.append(("message", record)),
        on_error=lambda exc: events.append(("error", exc)),
        on_close=lambda reason: events.append(("close", reason)),
    )


async def drain(n: int = 20) -> None:
    for _ in range(n):
        await asyncio.sleep(0)


# ---------------------------------------------------------------------
# SDK message -> wire record
# ---------------------------------------------------------------------

def test_audio_parts_are_base64_encoded():
    record = server_message_to_record(sdk_message(b"\x01\x02", None, b"\x03\x04", turn_complete=True))

    assert record == {
        "serverContent": {
            "modelTurn": {"parts": [
                {"inlineData": {"data": "AQI=", "mimeType": "audio/pcm;rate=24000"}},
                {"inlineData": {"data": "AwQ=", "mimeType": "audio/pcm;rate=24000"}},
            ]},
            "turnComplete": True,
        }
    }
    assert [e.data for e in parse_server_message(record)] == ["AQI=", "AwQ="]  # type: ignore[union-attr]


def test_interruption_flag_survives_conversion():
    record = server_message_to_record(sdk_message(interrupted=True))
    assert parse_server_message(record) == [ServerInterrupted()]


def test_message_without_server_content_is_empty():
    assert server_message_to_record(SimpleNamespace(setup_complete=True)) == {}


# ---------------------------------------------------------------------
# Connector / session
# ---------------------------------------------------------------------

def test_connect_opens_receives_and_reports_remote_close():
    events: list[Any] = []
    session = FakeLiveSession([[sdk_message(b"\x01\x02")]])
    ctx = FakeSessionContext(session)
    live = FakeLive(ctx)

    async def scenario() -> None:
        connector = GeminiLiveConnector(client=fake_client(live))
        handle = await connector.connect(
            model="live-model",
            system_instruction="be brief",
            callbacks=recording_callbacks(events),
        )
        await drain()

        await handle.send_media({"media": {"data": "AQI=", "mimeType": "audio/pcm;rate=16000"}})
        await handle.close()
        await handle.close()

    asyncio.run(scenario())

    assert events[0] == "open"
    assert events[1][0] == "message"
    assert parse_server_message(events[1][1]) == [
        ServerAudio(data="AQI=", mime_type="audio/pcm;rate=24000")
    ]
    assert events[2] == ("close", "remote_closed")

    model, config = live.connects[0]
    assert model == "live-model"
    assert [m.value for m in config.response_modalities] == ["AUDIO"]

    blob = session.sent[0]["audio"]
    assert blob.data == b"\x01\x02"
    assert blob.mime_type == "audio/pcm;rate=16000"
    assert ctx.exited


def test_connect_failure_raises_without_callbacks():
    events: list[Any] = []
    live = FakeLive(FakeSessionContext(FakeLiveSession([]), fail=ConnectionError("refused")))

    async def scenario() -> None:
        connector = GeminiLiveConnector(client=fake_client(live))
        await connector.connect(
            model="live-model",
            system_instruction="x",
            callbacks=recording_callbacks(events),
        )

    with pytest.raises(LiveSessionError):
        asyncio.run(scenario())
    assert events == []
