"""
Inbound playback scheduler.

Turns base64 PCM16 frames from the live session into gapless, strictly
sequential playback on an AudioOutput.

Clock rule (per frame):
    start = max(next_start_time, output.current_time)
    next_start_time = start + buffer.duration

so each buffer begins exactly where the previous one ends, and never in the
past. The clock is reset to 0 only by interrupt() (server barge-in) or
reset() (session stop).

Completion callbacks may arrive from the output's thread; the active set and
the clock are guarded by one lock so interruption clears them atomically with
respect to new insertions.
"""

from __future__ import annotations

import threading
import time

from audio.pcm import decode_pcm16_b64
from audio.types import AudioOutput, PlaybackHandle
from observability.logger import log_event


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class PlaybackScheduler:
    """
    Owns the playback clock and the set of scheduled/playing buffers.
    """

    def __init__(self, output: AudioOutput, *, session_id: str | None = None) -> None:
        self._output = output
        self._session_id = session_id
        self._lock = threading.RLock()
        self._next_start_time: float = 0.0
        self._active: set[PlaybackHandle] = set()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def next_start_time(self) -> float:
        with self._lock:
            return self._next_start_time

    @property
    def active_count(self) -> int:
        with self._lock:
            return len(self._active)

    def active_handles(self) -> frozenset[PlaybackHandle]:
        with self._lock:
            return frozenset(self._active)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def schedule(self, data_b64: str) -> PlaybackHandle:
        """
        Decode one inbound frame and queue it behind everything already scheduled.

        Raises:
            PcmDecodeError if the payload is malformed. Nothing is scheduled
            and the clock is untouched.
        """
        samples = decode_pcm16_b64(data_b64)
        buffer = self._output.create_buffer(samples)

        with self._lock:
            start = max(self._next_start_time, self._output.current_time)
            handle = self._output.start(buffer, start, self._on_ended)
            self._next_start_time = start + buffer.duration
            self._active.add(handle)

        return handle

    def _on_ended(self, handle: PlaybackHandle) -> None:
        with self._lock:
            self._active.discard(handle)

    # ------------------------------------------------------------------
    # Interruption / teardown
    # ------------------------------------------------------------------

    def interrupt(self) -> int:
        """
        Hard cutover: stop every active buffer now and reset the clock.

        Safe on an empty set. Returns the number of buffers stopped.
        """
        with self._lock:
            stopped = len(self._active)
            for handle in list(self._active):
                handle.stop()
            self._active.clear()
            self._next_start_time = 0.0

        if stopped:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "PLAYBACK_INTERRUPTED",
                "session_id": self._session_id,
                "buffers_stopped": stopped,
            })
        return stopped

    def reset(self) -> None:
        """Session teardown: same effect as interrupt(), without the log line."""
        with self._lock:
            for handle in list(self._active):
                handle.stop()
            self._active.clear()
            self._next_start_time = 0.0
