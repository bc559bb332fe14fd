"""
Audio I/O contexts using sounddevice.

InputContext / Microphone:
    Captures mono float32 blocks at the device's native rate and hands them to
    the event loop. Resampling to the pipeline rate is the capture adapter's job.

OutputContext:
    Mono float32 output stream rendering a PlaybackMixer. The mixer's frame
    clock is the context's `current_time`.

PortAudio callbacks run on their own thread. Everything crossing into the
pipeline is marshalled with loop.call_soon_threadsafe, so pipeline state is
only ever touched from the event loop.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable

import numpy as np
import sounddevice as sd

from audio.frames import PlaybackBuffer
from audio.mixer import PlaybackMixer, ScheduledSource
from audio.pcm import device_block_size
from audio.types import BlockCallback
from constants import AUDIO_CHANNELS, PLAYBACK_BLOCK_SAMPLES
from observability.logger import log_event


class AcquisitionFailure(RuntimeError):
    """
    Raised when an audio context or the microphone cannot be acquired
    (no device, permission denied, unsupported format).
    """


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _threadsafe(loop: asyncio.AbstractEventLoop) -> Callable[[Callable[[], None]], None]:
    def dispatch(fn: Callable[[], None]) -> None:
        if not loop.is_closed():
            loop.call_soon_threadsafe(fn)
    return dispatch


# ---------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------


class Microphone:
    """Acquired microphone stream (MicrophoneStream protocol)."""

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        device: int | str | None,
        device_rate: int,
        block_size: int,
        on_block: BlockCallback,
    ) -> None:
        self._loop = loop
        self._device_rate = device_rate
        self._on_block = on_block
        self._closed = False
        try:
            self._stream = sd.InputStream(
                samplerate=device_rate,
                channels=AUDIO_CHANNELS,
                dtype="float32",
                blocksize=block_size,
                device=device,
                callback=self._callback,
            )
        except (sd.PortAudioError, ValueError) as e:
            raise AcquisitionFailure(f"microphone unavailable: {e}") from e

    def _callback(self, indata: np.ndarray, frames: int, time_info: Any, status: Any) -> None:
        if status:
            log_event({
                "ts_ms": _now_ms(),
                "level": "WARNING",
                "event_type": "AUDIO_INPUT_STATUS",
                "status": str(status),
            })
        if self._closed or self._loop.is_closed():
            return
        block = indata[:, 0].copy()
        self._loop.call_soon_threadsafe(self._deliver, block)

    def _deliver(self, block: np.ndarray) -> None:
        if not self._closed:
            self._on_block(block, self._device_rate)

    def start(self) -> None:
        try:
            self._stream.start()
        except sd.PortAudioError as e:
            raise AcquisitionFailure(f"microphone failed to start: {e}") from e

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._stream.stop()
        self._stream.close()


class InputContext:
    """
    Capture-side context (AudioInput protocol).

    `sample_rate` is the pipeline rate; the device may run at another rate.
    """

    def __init__(self, sample_rate: int, *, device: int | str | None = None) -> None:
        self._sample_rate = sample_rate
        self._device = device
        self._loop = asyncio.get_running_loop()
        self._microphones: list[Microphone] = []
        try:
            info = sd.query_devices(device, kind="input")
        except (sd.PortAudioError, ValueError) as e:
            raise AcquisitionFailure(f"no input device: {e}") from e
        self._device_rate = int(info["default_samplerate"])

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    def open_microphone(self, *, block_size: int, on_block: BlockCallback) -> Microphone:
        mic = Microphone(
            loop=self._loop,
            device=self._device,
            device_rate=self._device_rate,
            block_size=device_block_size(
                block_size, device_hz=self._device_rate, target_hz=self._sample_rate
            ),
            on_block=on_block,
        )
        self._microphones.append(mic)
        return mic

    def close(self) -> None:
        for mic in self._microphones:
            mic.close()
        self._microphones.clear()


# ---------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------


class OutputContext:
    """
    Playback-side context (AudioOutput protocol) backed by a PlaybackMixer.
    """

    def __init__(self, sample_rate: int, *, device: int | str | None = None) -> None:
        loop = asyncio.get_running_loop()
        self._mixer = PlaybackMixer(sample_rate=sample_rate, dispatch=_threadsafe(loop))
        self._closed = False
        try:
            self._stream = sd.OutputStream(
                samplerate=sample_rate,
                channels=AUDIO_CHANNELS,
                dtype="float32",
                blocksize=PLAYBACK_BLOCK_SAMPLES,
                device=device,
                callback=self._callback,
            )
            self._stream.start()
        except (sd.PortAudioError, ValueError) as e:
            raise AcquisitionFailure(f"output device unavailable: {e}") from e

    def _callback(self, outdata: np.ndarray, frames: int, time_info: Any, status: Any) -> None:
        if status:
            log_event({
                "ts_ms": _now_ms(),
                "level": "WARNING",
                "event_type": "AUDIO_OUTPUT_STATUS",
                "status": str(status),
            })
        outdata[:, 0] = self._mixer.render(frames)

    @property
    def sample_rate(self) -> int:
        return self._mixer.sample_rate

    @property
    def current_time(self) -> float:
        return self._mixer.current_time

    def create_buffer(self, samples: np.ndarray) -> PlaybackBuffer:
        return self._mixer.create_buffer(samples)

    def start(
        self,
        buffer: PlaybackBuffer,
        when: float,
        on_ended: Callable[[ScheduledSource], None] | None = None,
    ) -> ScheduledSource:
        return self._mixer.start(buffer, when, on_ended)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._mixer.clear()
        self._stream.stop()
        self._stream.close()
