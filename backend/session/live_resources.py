"""
Live session resource container.

- Owns every handle acquired for one live voice session
- Constructed by LiveSessionController.start(), dropped by stop()
- NOT a state machine
- Contains no lifecycle logic beyond releasing what it holds
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any

from adapters.live.base import LiveSessionHandle
from audio.capture import CaptureAdapter
from audio.scheduler import PlaybackScheduler
from audio.types import AudioInput, AudioOutput, MicrophoneStream
from session.channel import OutboundChannel


@dataclass
class LiveResources:
    """Mutable runtime container for a single live voice session."""

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    session_id: str
    created_at: float = field(default_factory=time.time)

    # ------------------------------------------------------------------
    # Audio contexts / devices
    # ------------------------------------------------------------------

    input_context: AudioInput | None = None
    output_context: AudioOutput | None = None
    microphone: MicrophoneStream | None = None

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    scheduler: PlaybackScheduler | None = None
    capture: CaptureAdapter | None = None
    channel: OutboundChannel | None = None

    # ------------------------------------------------------------------
    # Remote session
    # ------------------------------------------------------------------

    session_future: asyncio.Future[LiveSessionHandle] | None = None
    connect_task: asyncio.Task[LiveSessionHandle] | None = None
    connect_timer_id: str | None = None

    # ------------------------------------------------------------------
    # Release helpers (synchronous, local only)
    # ------------------------------------------------------------------

    def release_local(self) -> list[str]:
        """
        Release every local resource, in dependency order:
        stop capture first, silence playback, then close devices.

        Each release is attempted even if an earlier one fails. Returns
        "<resource>: <error>" strings for the ones that raised.
        """
        errors: list[str] = []

        def attempt(name: str, fn: Any) -> None:
            try:
                fn()
            except Exception as exc:  # pylint: disable=broad-exception-caught
                errors.append(f"{name}: {type(exc).__name__}: {exc}")

        if self.capture is not None:
            attempt("capture", self.capture.deactivate)
        if self.microphone is not None:
            attempt("microphone", self.microphone.close)
        if self.channel is not None:
            attempt("channel", self.channel.close_nowait)
        if self.scheduler is not None:
            attempt("scheduler", self.scheduler.reset)
        if self.input_context is not None:
            attempt("input_context", self.input_context.close)
        if self.output_context is not None:
            attempt("output_context", self.output_context.close)

        return errors

    # ------------------------------------------------------------------
    # Observability helpers (read-only)
    # ------------------------------------------------------------------

    def log_context(self) -> dict[str, Any]:
        """Standard logging context for this session."""
        ctx: dict[str, Any] = {
            "session_id": self.session_id,
            "age_s": round(time.time() - self.created_at, 3),
        }
        if self.capture is not None:
            ctx["frames_captured"] = self.capture.frames_sent
        if self.channel is not None:
            ctx["frames_sent"] = self.channel.frames_sent
            ctx["frames_dropped"] = self.channel.queue.total_drops()
        if self.scheduler is not None:
            ctx["buffers_active"] = self.scheduler.active_count
        return ctx
