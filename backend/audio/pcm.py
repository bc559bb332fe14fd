"""PCM conversion utilities."""
from __future__ import annotations

import base64
import binascii
import math

import numpy as np
from scipy import signal

from constants import PCM16_MAX, PCM16_MIN, PCM16_SCALE


class PcmDecodeError(ValueError):
    """
    Raised when an inbound audio payload cannot be decoded.

    The frame is unsafe to play and must be skipped; later frames are
    unaffected.
    """


def float32_to_pcm16le(samples: np.ndarray) -> bytes:
    """
    Convert float samples in [-1.0, 1.0] to PCM16 little-endian mono bytes.

    Each sample is multiplied by 32768 and truncated toward zero. +1.0 would
    map to 32768, which does not fit in int16, so the result is clipped.
    """
    scaled = np.trunc(np.asarray(samples, dtype=np.float64) * PCM16_SCALE)
    clipped = np.clip(scaled, PCM16_MIN, PCM16_MAX)
    return clipped.astype("<i2").tobytes()


def pcm16le_to_float32(pcm_bytes: bytes) -> np.ndarray:
    """
    Convert PCM16 little-endian mono bytes to float32 in [-1.0, 1.0).

    No resampling. No channel mixing.
    """
    if len(pcm_bytes) % 2 != 0:
        # Truncated sample; drop the dangling byte
        pcm_bytes = pcm_bytes[: len(pcm_bytes) - 1]

    audio_i16 = np.frombuffer(pcm_bytes, dtype="<i2")  # little-endian int16
    audio_f32 = audio_i16.astype(np.float32) / np.float32(PCM16_SCALE)
    return audio_f32


def encode_pcm16_b64(samples: np.ndarray) -> str:
    """Float samples -> PCM16 LE -> base64 text."""
    return base64.b64encode(float32_to_pcm16le(samples)).decode("ascii")


def decode_pcm16_b64(data: str) -> np.ndarray:
    """
    Base64 text -> PCM16 LE -> float32 samples.

    Raises:
        PcmDecodeError if the payload is not valid base64 or holds no
        complete sample.
    """
    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError, TypeError) as e:
        raise PcmDecodeError(f"invalid base64 audio payload: {e}") from e

    samples = pcm16le_to_float32(raw)
    if samples.size == 0:
        raise PcmDecodeError("audio payload holds no complete PCM16 sample")
    return samples


def resample_float32(samples: np.ndarray, src_hz: int, dst_hz: int) -> np.ndarray:
    """
    Resample mono float32 audio with a polyphase filter.

    Output length is ceil(len(samples) * dst_hz / src_hz).
    """
    if src_hz <= 0 or dst_hz <= 0:
        raise ValueError("sample rates must be > 0")
    if src_hz == dst_hz or samples.size == 0:
        return np.asarray(samples, dtype=np.float32)

    g = math.gcd(src_hz, dst_hz)
    out = signal.resample_poly(samples, dst_hz // g, src_hz // g)
    return np.clip(out, -1.0, 1.0).astype(np.float32)


def device_block_size(block_samples: int, *, device_hz: int, target_hz: int) -> int:
    """
    Device-side block size whose resampled length does not exceed block_samples.
    """
    if device_hz == target_hz:
        return block_samples
    return max(1, (block_samples * device_hz) // target_hz)
