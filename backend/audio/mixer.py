"""
Sample-clock playback mixer.

Holds buffers scheduled to start at absolute output times and renders them
block by block. The output device pulls blocks via render(); the mixer's clock
is the number of frames rendered so far, so `current_time` advances only as
audio is actually handed to the device.

Threading:
- render() runs on the audio device thread
- start()/stop()/current_time are called from the event loop
- all source bookkeeping is guarded by one lock
- completion callbacks are handed to `dispatch` AFTER the lock is released,
  so the owner can marshal them onto its own thread
"""

from __future__ import annotations

import threading
from typing import Callable

import numpy as np

from audio.frames import PlaybackBuffer


Dispatch = Callable[[Callable[[], None]], None]


def _call_now(fn: Callable[[], None]) -> None:
    fn()


class ScheduledSource:
    """
    One buffer placed on the mixer timeline.

    Implements the PlaybackHandle protocol.
    """

    def __init__(
        self,
        *,
        mixer: PlaybackMixer,
        buffer: PlaybackBuffer,
        start_frame: int,
        on_ended: Callable[[ScheduledSource], None] | None,
    ) -> None:
        self._mixer = mixer
        self.buffer = buffer
        self.start_frame = start_frame
        self._on_ended = on_ended
        self.stopped = False
        self.ended = False

    @property
    def start_time(self) -> float:
        return self.start_frame / self.buffer.sample_rate

    @property
    def end_frame(self) -> int:
        return self.start_frame + self.buffer.num_frames

    def stop(self) -> None:
        """Remove from the timeline immediately. No completion callback."""
        self._mixer.remove(self)

    def notify_ended(self) -> None:
        if self._on_ended is not None:
            self._on_ended(self)


class PlaybackMixer:
    """
    Mono float32 mixer keyed on an integer frame clock.
    """

    def __init__(self, *, sample_rate: int, dispatch: Dispatch = _call_now) -> None:
        if sample_rate <= 0:
            raise ValueError("sample_rate must be > 0")
        self._sample_rate = sample_rate
        self._dispatch = dispatch
        self._lock = threading.Lock()
        self._sources: list[ScheduledSource] = []
        self._frames_rendered = 0

    # ------------------------------------------------------------------
    # Event-loop side
    # ------------------------------------------------------------------

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def current_time(self) -> float:
        with self._lock:
            return self._frames_rendered / self._sample_rate

    def create_buffer(self, samples: np.ndarray) -> PlaybackBuffer:
        return PlaybackBuffer(
            samples=np.asarray(samples, dtype=np.float32).reshape(-1),
            sample_rate=self._sample_rate,
        )

    def start(
        self,
        buffer: PlaybackBuffer,
        when: float,
        on_ended: Callable[[ScheduledSource], None] | None = None,
    ) -> ScheduledSource:
        """
        Place `buffer` on the timeline at output time `when`.

        A start time already in the past plays from the next rendered frame.
        """
        if buffer.sample_rate != self._sample_rate:
            raise ValueError(
                f"buffer rate {buffer.sample_rate} != mixer rate {self._sample_rate}"
            )
        requested = int(round(when * self._sample_rate))
        with self._lock:
            start_frame = max(requested, self._frames_rendered)
            source = ScheduledSource(
                mixer=self,
                buffer=buffer,
                start_frame=start_frame,
                on_ended=on_ended,
            )
            self._sources.append(source)
        return source

    def remove(self, source: ScheduledSource) -> None:
        with self._lock:
            source.stopped = True
            if source in self._sources:
                self._sources.remove(source)

    def clear(self) -> None:
        with self._lock:
            for source in self._sources:
                source.stopped = True
            self._sources.clear()

    def active_count(self) -> int:
        with self._lock:
            return len(self._sources)

    # ------------------------------------------------------------------
    # Device side
    # ------------------------------------------------------------------

    def render(self, frames: int) -> np.ndarray:
        """
        Produce the next `frames` samples and advance the clock.

        Sources whose last sample falls inside this block are retired and
        their completion callbacks dispatched.
        """
        out = np.zeros(frames, dtype=np.float32)
        ended: list[ScheduledSource] = []

        with self._lock:
            block_start = self._frames_rendered
            block_end = block_start + frames
            keep: list[ScheduledSource] = []

            for source in self._sources:
                lo = max(block_start, source.start_frame)
                hi = min(block_end, source.end_frame)
                if lo < hi:
                    offset = lo - source.start_frame
                    out[lo - block_start:hi - block_start] += (
                        source.buffer.samples[offset:offset + (hi - lo)]
                    )
                if source.end_frame <= block_end:
                    source.ended = True
                    ended.append(source)
                else:
                    keep.append(source)

            self._sources = keep
            self._frames_rendered = block_end

        for source in ended:
            self._dispatch(source.notify_ended)

        np.clip(out, -1.0, 1.0, out=out)
        return out
