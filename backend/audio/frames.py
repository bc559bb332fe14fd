"""
Audio frame primitives.

Pure data containers only.
No queues, no timing logic, no device access.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from constants import AUDIO_SAMPLE_WIDTH_BYTES


@dataclass(frozen=True)
class AudioFrame:
    """
    Outbound microphone frame, ready for the live session.

    sequence_num:
        Monotonic per-session counter assigned by the capture adapter.
        Used for ordering checks and debugging only.

    data:
        Base64-encoded PCM16 little-endian mono samples.

    mime_type:
        Format tag sent alongside the payload (e.g. "audio/pcm;rate=16000").

    num_samples / sample_rate:
        Shape of the payload before encoding.

    ts_ms:
        Wall-clock timestamp when the frame was produced. Observability only.
    """
    sequence_num: int
    data: str
    mime_type: str
    num_samples: int
    sample_rate: int
    ts_ms: int

    @property
    def duration_s(self) -> float:
        return self.num_samples / self.sample_rate

    @property
    def byte_length(self) -> int:
        """Size of the PCM payload before base64 encoding."""
        return self.num_samples * AUDIO_SAMPLE_WIDTH_BYTES


@dataclass(frozen=True, eq=False)
class PlaybackBuffer:
    """
    Decoded mono float32 samples at a fixed sample rate.

    Created by the playback scheduler for each inbound frame and handed to the
    output device. eq=False: buffers compare by identity (numpy arrays do not
    support value equality in a boolean context).
    """
    samples: np.ndarray
    sample_rate: int

    @property
    def num_frames(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration(self) -> float:
        return self.num_frames / self.sample_rate
