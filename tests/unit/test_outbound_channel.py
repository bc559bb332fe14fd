# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio
import base64
from typing import Any

import pytest

import session.channel as channel_mod
from adapters.live.base import LiveSessionError, LiveSessionHandle
from audio.frames import AudioFrame
from session.channel import OutboundChannel


class FakeSessionHandle(LiveSessionHandle):
    def __init__(self, fail_seqs: tuple[int, ...] = ()) -> None:
        self.sent: list[dict[str, Any]] = []
        self._fail_data = {_payload(seq) for seq in fail_seqs}

    async def send_media(self, record: dict[str, Any]) -> None:
        if record["media"]["data"] in self._fail_data:
            raise RuntimeError("socket closed")
        self.sent.append(record)

    async def close(self) -> None:
        pass


def _payload(seq: int) -> str:
    return base64.b64encode(bytes([seq, 0])).decode("ascii")


def make_frame(seq: int) -> AudioFrame:
    return AudioFrame(
        sequence_num=seq,
        data=_payload(seq),
        mime_type="audio/pcm;rate=16000",
        num_samples=4096,
        sample_rate=16000,
        ts_ms=0,
    )


def sent_seqs(handle: FakeSessionHandle) -> list[int]:
    return [base64.b64decode(r["media"]["data"])[0] for r in handle.sent]


async def drain(n: int = 20) -> None:
    for _ in range(n):
        await asyncio.sleep(0)


@pytest.fixture
def emitted(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    events: list[dict[str, Any]] = []
    monkeypatch.setattr(channel_mod, "log_event", events.append)
    return events


# ---------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------

def test_frames_sent_before_resolution_flush_in_order(emitted: list[dict[str, Any]]):
    async def scenario() -> FakeSessionHandle:
        session: asyncio.Future[LiveSessionHandle] = asyncio.get_running_loop().create_future()
        channel = OutboundChannel(session)

        for seq in (1, 2, 3):
            assert channel.send(make_frame(seq)) is True
        await drain()

        handle = FakeSessionHandle()
        session.set_result(handle)
        await drain()

        channel.send(make_frame(4))
        await drain()

        assert channel.frames_sent == 4
        await channel.close()
        return handle

    handle = asyncio.run(scenario())

    assert sent_seqs(handle) == [1, 2, 3, 4]
    assert handle.sent[0]["media"]["mimeType"] == "audio/pcm;rate=16000"
    assert emitted == []


def test_send_failure_loses_only_that_frame(emitted: list[dict[str, Any]]):
    async def scenario() -> tuple[FakeSessionHandle, OutboundChannel]:
        session: asyncio.Future[LiveSessionHandle] = asyncio.get_running_loop().create_future()
        handle = FakeSessionHandle(fail_seqs=(2,))
        session.set_result(handle)
        channel = OutboundChannel(session)

        for seq in (1, 2, 3):
            channel.send(make_frame(seq))
        await drain()
        await channel.close()
        return handle, channel

    handle, channel = asyncio.run(scenario())

    assert sent_seqs(handle) == [1, 3]
    assert channel.send_failures == 1
    assert [e["event_type"] for e in emitted] == ["OUTBOUND_SEND_FAILED"]
    assert emitted[0]["seq_num"] == 2


# ---------------------------------------------------------------------
# Failure / close
# ---------------------------------------------------------------------

def test_failed_connect_drops_pending_and_later_frames(emitted: list[dict[str, Any]]):
    async def scenario() -> OutboundChannel:
        session: asyncio.Future[LiveSessionHandle] = asyncio.get_running_loop().create_future()
        channel = OutboundChannel(session, session_id="live_test")

        channel.send(make_frame(1))
        session.set_exception(LiveSessionError("refused"))
        await drain()

        assert channel.send(make_frame(2)) is False
        return channel

    channel = asyncio.run(scenario())

    assert channel.queue.is_empty()
    assert channel.frames_sent == 0
    assert emitted[0]["event_type"] == "OUTBOUND_CHANNEL_UNRESOLVED"
    assert emitted[0]["frames_dropped"] == 1
    assert emitted[0]["session_id"] == "live_test"


def test_closed_channel_rejects_frames(emitted: list[dict[str, Any]]):
    async def scenario() -> OutboundChannel:
        session: asyncio.Future[LiveSessionHandle] = asyncio.get_running_loop().create_future()
        channel = OutboundChannel(session)
        channel.send(make_frame(1))

        await channel.close()
        await channel.close()  # idempotent

        assert channel.send(make_frame(2)) is False
        return channel

    channel = asyncio.run(scenario())

    assert channel.closed
    assert channel.queue.drops.closed == 1
    assert emitted == []


def test_overflow_is_logged_and_reported(emitted: list[dict[str, Any]]):
    async def scenario() -> list[bool]:
        session: asyncio.Future[LiveSessionHandle] = asyncio.get_running_loop().create_future()
        channel = OutboundChannel(session, max_depth_s=0.5)
        results = [channel.send(make_frame(seq)) for seq in (1, 2)]
        channel.close_nowait()
        return results

    assert asyncio.run(scenario()) == [True, False]
    assert emitted[0]["event_type"] == "OUTBOUND_FRAME_DROPPED"
    assert emitted[0]["seq_num"] == 2
