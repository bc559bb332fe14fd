"""
Audio device protocols.

These abstract the hardware side (microphone, speaker) so the capture adapter,
playback scheduler and live controller work against any backend: the
sounddevice contexts in audio.devices, or in-memory fakes in tests.
"""

from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable

import numpy as np

from audio.frames import PlaybackBuffer


# (samples, sample_rate) delivered on the event loop, one call per block
BlockCallback = Callable[[np.ndarray, int], None]


@runtime_checkable
class PlaybackHandle(Protocol):
    """A buffer started on an output; stoppable until it finishes."""

    @property
    def start_time(self) -> float:
        ...

    def stop(self) -> None:
        """Silence the buffer immediately. Idempotent."""
        ...


@runtime_checkable
class AudioOutput(Protocol):
    """An output clock plus the ability to start buffers at a given time."""

    @property
    def sample_rate(self) -> int:
        ...

    @property
    def current_time(self) -> float:
        """Seconds of audio rendered by the device so far."""
        ...

    def create_buffer(self, samples: np.ndarray) -> PlaybackBuffer:
        ...

    def start(
        self,
        buffer: PlaybackBuffer,
        when: float,
        on_ended: Callable[[PlaybackHandle], None] | None = None,
    ) -> PlaybackHandle:
        """
        Begin playback of `buffer` at output time `when` (seconds).

        `on_ended` fires once, on natural completion only.
        """
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class MicrophoneStream(Protocol):
    """An acquired microphone. Blocks flow only after start()."""

    def start(self) -> None:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class AudioInput(Protocol):
    """Input context: the capture-side counterpart of AudioOutput."""

    @property
    def sample_rate(self) -> int:
        ...

    def open_microphone(
        self,
        *,
        block_size: int,
        on_block: BlockCallback,
    ) -> MicrophoneStream:
        ...

    def close(self) -> None:
        ...
