"""
Microphone capture adapter.

Per block of float samples in [-1, 1]:
    resample to the pipeline rate (if the device runs at another rate)
    -> PCM16 LE (x * 32768, truncated, clipped)
    -> base64
    -> AudioFrame tagged with the capture MIME type
    -> send (fire-and-forget)

No buffering across blocks: every block becomes exactly one frame, in
capture order. Blocks arriving while the adapter is inactive are dropped.
"""

from __future__ import annotations

import time
from typing import Callable

import numpy as np

from audio.frames import AudioFrame
from audio.pcm import encode_pcm16_b64, resample_float32
from constants import CAPTURE_MIME_TYPE, CAPTURE_SAMPLE_RATE_HZ


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class CaptureAdapter:
    """
    Encodes microphone blocks and forwards them to an outbound sender.

    `send` is typically OutboundChannel.send; its return value is ignored.
    """

    def __init__(
        self,
        *,
        send: Callable[[AudioFrame], object],
        sample_rate: int = CAPTURE_SAMPLE_RATE_HZ,
        mime_type: str = CAPTURE_MIME_TYPE,
    ) -> None:
        self._send = send
        self._sample_rate = sample_rate
        self._mime_type = mime_type
        self._active = False
        self._next_seq = 1
        self.blocks_dropped = 0

    @property
    def active(self) -> bool:
        return self._active

    @property
    def frames_sent(self) -> int:
        return self._next_seq - 1

    def activate(self) -> None:
        self._active = True

    def deactivate(self) -> None:
        self._active = False

    def push_block(self, samples: np.ndarray, sample_rate: int) -> AudioFrame | None:
        """
        Encode and forward one captured block.

        Returns the emitted frame, or None if the adapter is inactive or the
        block is empty.
        """
        if not self._active:
            self.blocks_dropped += 1
            return None

        mono = np.asarray(samples, dtype=np.float32).reshape(-1)
        if sample_rate != self._sample_rate:
            mono = resample_float32(mono, sample_rate, self._sample_rate)
        if mono.size == 0:
            return None

        frame = AudioFrame(
            sequence_num=self._next_seq,
            data=encode_pcm16_b64(mono),
            mime_type=self._mime_type,
            num_samples=int(mono.size),
            sample_rate=self._sample_rate,
            ts_ms=_now_ms(),
        )
        self._next_seq += 1
        self._send(frame)
        return frame
