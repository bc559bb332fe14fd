"""
Outbound streaming channel.

A lazily-resolved path from the capture adapter to the live session:

- The session handle arrives through a one-shot future (the pending connect).
- send(frame) never blocks and never awaits: frames go into a bounded
  AudioFrameQueue and a single pump task flushes them, in submission order,
  once the future resolves.
- No acknowledgement, no retry, no flow control. A failed connect or a failed
  send loses frames; that is logged, not raised.
"""

from __future__ import annotations

import asyncio
import time

from adapters.live.base import LiveSessionHandle
from audio.frames import AudioFrame
from audio.queues import AudioFrameQueue
from constants import OUTBOUND_QUEUE_MAX_S
from observability.logger import log_event
from protocol.live_messages import encode_media_record


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class OutboundChannel:
    """
    Ordered, fire-and-forget sender bound to a future session handle.

    Must be constructed inside a running event loop.
    """

    def __init__(
        self,
        session: asyncio.Future[LiveSessionHandle],
        *,
        session_id: str | None = None,
        max_depth_s: float = OUTBOUND_QUEUE_MAX_S,
    ) -> None:
        self._session = session
        self._session_id = session_id
        self._queue = AudioFrameQueue(max_depth_s=max_depth_s)
        self._wakeup = asyncio.Event()
        self._closed = False
        self._failed = False
        self.frames_sent = 0
        self.send_failures = 0
        self._pump_task: asyncio.Task[None] = asyncio.create_task(self._pump())

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def queue(self) -> AudioFrameQueue:
        return self._queue

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, frame: AudioFrame) -> bool:
        """
        Submit one frame. Returns False if it was dropped immediately
        (channel closed or failed, or queue overflow).
        """
        if self._closed or self._failed:
            return False

        if not self._queue.enqueue(frame):
            log_event({
                "ts_ms": _now_ms(),
                "level": "WARNING",
                "event_type": "OUTBOUND_FRAME_DROPPED",
                "session_id": self._session_id,
                "seq_num": frame.sequence_num,
                **self._queue.snapshot(),
            })
            return False

        self._wakeup.set()
        return True

    async def close(self) -> None:
        """Stop the pump and discard pending frames. Idempotent."""
        self.close_nowait()
        try:
            await self._pump_task
        except asyncio.CancelledError:
            pass

    def close_nowait(self) -> None:
        """Synchronous part of close(); the pump finishes cancelling on its own."""
        if self._closed:
            return
        self._closed = True
        self._pump_task.cancel()
        self._queue.clear()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _pump(self) -> None:
        try:
            handle = await self._session
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # pylint: disable=broad-exception-caught
            self._failed = True
            dropped = self._queue.clear()
            log_event({
                "ts_ms": _now_ms(),
                "level": "WARNING",
                "event_type": "OUTBOUND_CHANNEL_UNRESOLVED",
                "session_id": self._session_id,
                "exception": type(exc).__name__,
                "frames_dropped": dropped,
            })
            return

        while True:
            frame = self._queue.dequeue()
            if frame is None:
                self._wakeup.clear()
                await self._wakeup.wait()
                continue

            try:
                await handle.send_media(encode_media_record(frame))
                self.frames_sent += 1
            except asyncio.CancelledError:
                raise
            except Exception as exc:  # pylint: disable=broad-exception-caught
                self.send_failures += 1
                log_event({
                    "ts_ms": _now_ms(),
                    "level": "WARNING",
                    "event_type": "OUTBOUND_SEND_FAILED",
                    "session_id": self._session_id,
                    "seq_num": frame.sequence_num,
                    "exception": type(exc).__name__,
                    "message": str(exc),
                })
