"""
Live session lifecycle controller.

Responsibilities:
- Owns the LiveResources of the (single) live voice session
- Tracks LiveStatus (IDLE / STARTING / ACTIVE)
- Acquires input context, output context and microphone; opens the remote
  session through a LiveConnector
- Routes inbound records -> playback scheduler / interruption handler
- Tears everything down on stop(), remote error or remote close

NOT responsible for:
- Encoding/decoding audio (audio.capture, audio.scheduler)
- Talking to the vendor SDK (adapters.live)
- Retrying or reconnecting: a dropped session stays dropped until the user
  starts a new one

Threading:
- Every method runs on the event loop. Device callbacks are marshalled onto
  the loop by audio.devices before they reach the pipeline.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable
from uuid import uuid4

from adapters.live.base import LiveCallbacks, LiveConnector, LiveSessionHandle
from audio.capture import CaptureAdapter
from audio.pcm import PcmDecodeError
from audio.scheduler import PlaybackScheduler
from audio.types import AudioInput, AudioOutput
from chat.prompts import build_live_instruction
from constants import (
    CAPTURE_BLOCK_SAMPLES,
    CAPTURE_SAMPLE_RATE_HZ,
    PLAYBACK_SAMPLE_RATE_HZ,
)
from observability.logger import log_event
from observability.metrics import discard_timer, start_timer, stop_timer
from protocol.live_messages import (
    LiveProtocolError,
    ServerAudio,
    ServerInterrupted,
    parse_server_message,
)
from session.channel import OutboundChannel
from session.live_resources import LiveResources
from session.live_status import LiveStatus


InputFactory = Callable[[int], AudioInput]
OutputFactory = Callable[[int], AudioOutput]


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _new_session_id() -> str:
    return f"live_{uuid4().hex[:12]}"


# ------------------------------------------------------------------
# LiveSessionController
# ------------------------------------------------------------------

class LiveSessionController:
    """
    One controller == at most one live voice session at a time.

    start() is a toggle: calling it while a session is starting or active
    stops that session instead of opening another one.
    """

    def __init__(
        self,
        *,
        connector: LiveConnector,
        model: str,
        input_factory: InputFactory,
        output_factory: OutputFactory,
        system_instruction: str | None = None,
        block_size: int = CAPTURE_BLOCK_SAMPLES,
    ) -> None:
        self._connector = connector
        self._model = model
        self._input_factory = input_factory
        self._output_factory = output_factory
        self._system_instruction = system_instruction or build_live_instruction()
        self._block_size = block_size

        self._status = LiveStatus.IDLE
        self._resources: LiveResources | None = None
        self._background: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def status(self) -> LiveStatus:
        return self._status

    @property
    def resources(self) -> LiveResources | None:
        return self._resources

    def snapshot(self) -> dict[str, Any]:
        out: dict[str, Any] = {"status": self._status.value, "session_id": None}
        if self._resources is not None:
            out.update(self._resources.log_context())
        return out

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> LiveStatus:
        """
        Toggle the live session.

        IDLE -> acquire audio, open the session (fire-and-forget), STARTING.
        otherwise -> stop().
        """
        if self._status is not LiveStatus.IDLE:
            self.stop(reason="toggle")
            return self._status

        res = LiveResources(session_id=_new_session_id())
        self._resources = res
        self._status = LiveStatus.STARTING

        log_event({
            "ts_ms": _now_ms(),
            "event_type": "LIVE_SESSION_STARTING",
            "session_id": res.session_id,
            "model": self._model,
        })

        try:
            self._acquire(res)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "ts_ms": _now_ms(),
                "level": "ERROR",
                "event_type": "LIVE_ACQUISITION_FAILED",
                "session_id": res.session_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            self.stop(reason="acquisition_failure")
            return self._status

        session_id = res.session_id
        callbacks = LiveCallbacks(
            on_open=lambda: self._on_open(session_id),
            on_message=lambda record: self._on_message(session_id, record),
            on_error=lambda exc: self._on_error(session_id, exc),
            on_close=lambda reason: self._on_close(session_id, reason),
        )

        res.connect_timer_id = start_timer("live_session_open_latency")
        res.connect_task = asyncio.create_task(
            self._connector.connect(
                model=self._model,
                system_instruction=self._system_instruction,
                callbacks=callbacks,
            )
        )
        res.connect_task.add_done_callback(
            lambda task: self._on_connect_done(res, task)
        )

        return self._status

    def stop(self, reason: str = "user") -> None:
        """
        Tear down the live session. Idempotent: no-op when IDLE.

        Local teardown (capture, playback, devices, clock) completes before
        this returns; closing the remote session finishes in the background.
        """
        res = self._resources
        if res is None:
            return

        self._resources = None
        self._status = LiveStatus.IDLE

        errors = res.release_local()
        if res.connect_timer_id is not None:
            discard_timer(res.connect_timer_id)
        self._close_remote(res)

        log_event({
            "ts_ms": _now_ms(),
            "level": "WARNING" if errors else "INFO",
            "event_type": "LIVE_SESSION_STOPPED",
            "reason": reason,
            "release_errors": errors,
            **res.log_context(),
        })

    async def shutdown(self) -> None:
        """Stop and wait for background remote closes (process exit)."""
        self.stop(reason="shutdown")
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    # ------------------------------------------------------------------
    # Acquisition / release
    # ------------------------------------------------------------------

    def _acquire(self, res: LiveResources) -> None:
        """Acquire audio in order; the first failure propagates."""
        res.input_context = self._input_factory(CAPTURE_SAMPLE_RATE_HZ)
        res.output_context = self._output_factory(PLAYBACK_SAMPLE_RATE_HZ)
        res.scheduler = PlaybackScheduler(res.output_context, session_id=res.session_id)

        res.session_future = asyncio.get_running_loop().create_future()
        res.channel = OutboundChannel(res.session_future, session_id=res.session_id)
        res.capture = CaptureAdapter(send=res.channel.send)

        res.microphone = res.input_context.open_microphone(
            block_size=self._block_size,
            on_block=res.capture.push_block,
        )

    def _close_remote(self, res: LiveResources) -> None:
        task = res.connect_task
        fut = res.session_future

        if task is not None and not task.done():
            # Still connecting: abandon the connect, unless stop() was
            # reached from inside it (on_open). Then the handle is closed by
            # _on_connect_done once connect returns.
            if task is not asyncio.current_task():
                task.cancel()
        elif fut is not None and fut.done() and not fut.cancelled():
            self._spawn_close(res.session_id, fut.result())
        # task done but future unset: _on_connect_done sees a stale
        # session and closes the handle itself

        if fut is not None and not fut.done():
            fut.cancel()

    def _spawn_close(self, session_id: str, handle: LiveSessionHandle) -> None:
        task = asyncio.create_task(self._close_handle(session_id, handle))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _close_handle(self, session_id: str, handle: LiveSessionHandle) -> None:
        try:
            await handle.close()
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "ts_ms": _now_ms(),
                "level": "WARNING",
                "event_type": "LIVE_SESSION_CLOSE_FAILED",
                "session_id": session_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })

    # ------------------------------------------------------------------
    # Connect completion
    # ------------------------------------------------------------------

    def _on_connect_done(
        self,
        res: LiveResources,
        task: asyncio.Task[LiveSessionHandle],
    ) -> None:
        if task.cancelled():
            return

        current = self._resources is res
        exc = task.exception()

        if exc is not None:
            if current:
                log_event({
                    "ts_ms": _now_ms(),
                    "level": "ERROR",
                    "event_type": "LIVE_CONNECT_FAILED",
                    "session_id": res.session_id,
                    "exception": type(exc).__name__,
                    "message": str(exc),
                })
                self.stop(reason="connect_failed")
            return

        handle = task.result()
        if not current:
            # Stopped while connecting; the session opened anyway
            self._spawn_close(res.session_id, handle)
            return

        assert res.session_future is not None
        if not res.session_future.done():
            res.session_future.set_result(handle)

    # ------------------------------------------------------------------
    # Session callbacks
    # ------------------------------------------------------------------

    def _current(self, session_id: str) -> LiveResources | None:
        """Resources for session_id, or None if that session is gone."""
        res = self._resources
        if res is None or res.session_id != session_id:
            return None
        return res

    def _on_open(self, session_id: str) -> None:
        res = self._current(session_id)
        if res is None:
            return

        if res.connect_timer_id is not None:
            stop_timer(res.connect_timer_id, session_id=session_id)
            res.connect_timer_id = None

        assert res.microphone is not None and res.capture is not None
        try:
            res.microphone.start()
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "ts_ms": _now_ms(),
                "level": "ERROR",
                "event_type": "LIVE_ACQUISITION_FAILED",
                "session_id": session_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            self.stop(reason="acquisition_failure")
            return

        res.capture.activate()
        self._status = LiveStatus.ACTIVE

        log_event({
            "ts_ms": _now_ms(),
            "event_type": "LIVE_SESSION_ACTIVE",
            "session_id": session_id,
        })

    def _on_message(self, session_id: str, record: dict[str, Any]) -> None:
        res = self._current(session_id)
        if res is None:
            return
        assert res.scheduler is not None

        try:
            events = parse_server_message(record)
        except LiveProtocolError as e:
            log_event({
                "ts_ms": _now_ms(),
                "level": "WARNING",
                "event_type": "LIVE_MESSAGE_MALFORMED",
                "session_id": session_id,
                "error": str(e),
            })
            return

        for event in events:
            if isinstance(event, ServerAudio):
                try:
                    res.scheduler.schedule(event.data)
                except PcmDecodeError as e:
                    log_event({
                        "ts_ms": _now_ms(),
                        "level": "WARNING",
                        "event_type": "LIVE_AUDIO_DECODE_FAILED",
                        "session_id": session_id,
                        "error": str(e),
                    })
            elif isinstance(event, ServerInterrupted):
                res.scheduler.interrupt()

    def _on_error(self, session_id: str, exc: BaseException) -> None:
        if self._current(session_id) is None:
            return
        log_event({
            "ts_ms": _now_ms(),
            "level": "ERROR",
            "event_type": "LIVE_SESSION_ERROR",
            "session_id": session_id,
            "exception": type(exc).__name__,
            "message": str(exc),
        })
        self.stop(reason="remote_error")

    def _on_close(self, session_id: str, reason: str | None) -> None:
        if self._current(session_id) is None:
            return
        log_event({
            "ts_ms": _now_ms(),
            "event_type": "LIVE_SESSION_REMOTE_CLOSED",
            "session_id": session_id,
            "reason": reason,
        })
        self.stop(reason="remote_close")
