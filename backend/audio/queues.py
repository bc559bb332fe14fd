# backend/audio/queues.py
"""
Bounded audio frame queue with depth measured in seconds.

Requirements:
- Depth measured in seconds of audio (not frame count)
- Explicit drop behavior, counted
- Drop the NEW frame on overflow (queued frames keep their order)
- Deterministic, synchronous behavior
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional

from audio.frames import AudioFrame


@dataclass
class DropCounters:
    """
    Drop counters for observability.
    """
    overflow: int = 0
    closed: int = 0


class AudioFrameQueue:
    """
    Bounded FIFO queue for AudioFrame objects.

    Drop rules:
    - enqueue drops the NEW frame if it would push depth past max_depth_s
    - an empty queue always accepts one frame, so a single frame longer
      than max_depth_s still flows
    """

    def __init__(self, *, max_depth_s: float) -> None:
        if max_depth_s <= 0:
            raise ValueError("max_depth_s must be > 0")

        self._max_depth_s: float = max_depth_s
        self._frames: Deque[AudioFrame] = deque()
        self._depth_s: float = 0.0
        self.drops: DropCounters = DropCounters()

    # -------------------------
    # Core queue operations
    # -------------------------

    def enqueue(self, frame: AudioFrame) -> bool:
        """
        Enqueue an AudioFrame.

        Returns:
            True if enqueued
            False if dropped
        """
        if self._frames and self._depth_s + frame.duration_s > self._max_depth_s:
            self.drops.overflow += 1
            return False

        self._frames.append(frame)
        self._depth_s += frame.duration_s
        return True

    def dequeue(self) -> Optional[AudioFrame]:
        """
        Dequeue the oldest AudioFrame.

        Returns None if queue is empty.
        """
        if not self._frames:
            return None
        frame = self._frames.popleft()
        self._depth_s = max(0.0, self._depth_s - frame.duration_s) if self._frames else 0.0
        return frame

    def peek(self) -> Optional[AudioFrame]:
        """
        View the oldest frame without removing it.
        """
        return self._frames[0] if self._frames else None

    def clear(self) -> int:
        """
        Drop all queued frames.

        Used on channel close. Cleared frames are counted as `closed` drops.
        Returns the number of frames removed.
        """
        n = len(self._frames)
        self._frames.clear()
        self._depth_s = 0.0
        self.drops.closed += n
        return n

    # -------------------------
    # Introspection helpers
    # -------------------------

    def __len__(self) -> int:
        return len(self._frames)

    def is_empty(self) -> bool:
        """Check if the queue is empty."""
        return not self._frames

    def depth_seconds(self) -> float:
        """
        Queue depth in seconds: sum of queued frame durations.
        """
        return self._depth_s

    def total_drops(self) -> int:
        """
        Total frames dropped for any reason.
        """
        return self.drops.overflow + self.drops.closed

    def snapshot(self) -> dict[str, float | int]:
        """
        Lightweight snapshot for logging / metrics.
        """
        return {
            "frames": len(self._frames),
            "depth_s": self.depth_seconds(),
            "dropped_overflow": self.drops.overflow,
            "dropped_closed": self.drops.closed,
            "dropped_total": self.total_drops(),
        }
