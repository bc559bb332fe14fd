# pylint: disable=missing-module-docstring,missing-function-docstring

from typing import Callable

import numpy as np
import pytest

from audio.mixer import PlaybackMixer, ScheduledSource


def ones(n: int, value: float = 0.5) -> np.ndarray:
    return np.full(n, value, dtype=np.float32)


def test_buffer_plays_at_its_start_frame():
    mixer = PlaybackMixer(sample_rate=10)
    ended: list[ScheduledSource] = []

    source = mixer.start(mixer.create_buffer(ones(5)), 0.2, ended.append)
    out = mixer.render(10)

    assert out.tolist() == [0, 0, 0.5, 0.5, 0.5, 0.5, 0.5, 0, 0, 0]
    assert ended == [source]
    assert source.ended
    assert mixer.active_count() == 0
    assert mixer.current_time == pytest.approx(1.0)


def test_buffer_spanning_blocks_ends_in_later_block():
    mixer = PlaybackMixer(sample_rate=10)
    ended: list[ScheduledSource] = []
    mixer.start(mixer.create_buffer(ones(8)), 0.0, ended.append)

    first = mixer.render(5)
    assert ended == []
    second = mixer.render(5)

    assert first.tolist() == [0.5] * 5
    assert second.tolist() == [0.5, 0.5, 0.5, 0, 0]
    assert len(ended) == 1


def test_start_in_the_past_plays_from_next_frame():
    mixer = PlaybackMixer(sample_rate=10)
    mixer.render(10)

    source = mixer.start(mixer.create_buffer(ones(2)), 0.0)

    assert source.start_frame == 10
    assert source.start_time == pytest.approx(1.0)


def test_stop_silences_without_end_callback():
    mixer = PlaybackMixer(sample_rate=10)
    ended: list[ScheduledSource] = []
    source = mixer.start(mixer.create_buffer(ones(5)), 0.0, ended.append)

    source.stop()
    source.stop()

    assert mixer.render(10).tolist() == [0.0] * 10
    assert ended == []
    assert source.stopped


def test_overlapping_buffers_are_summed_and_clipped():
    mixer = PlaybackMixer(sample_rate=10)
    mixer.start(mixer.create_buffer(ones(4, 0.75)), 0.0)
    mixer.start(mixer.create_buffer(ones(4, 0.75)), 0.2)

    out = mixer.render(6)

    assert out.tolist() == pytest.approx([0.75, 0.75, 1.0, 1.0, 0.75, 0.75])


def test_end_callbacks_go_through_dispatch():
    pending: list[Callable[[], None]] = []
    mixer = PlaybackMixer(sample_rate=10, dispatch=pending.append)
    ended: list[ScheduledSource] = []
    mixer.start(mixer.create_buffer(ones(2)), 0.0, ended.append)

    mixer.render(5)
    assert ended == []

    for fn in pending:
        fn()
    assert len(ended) == 1


def test_rejects_buffer_at_other_rate():
    mixer = PlaybackMixer(sample_rate=24000)
    other = PlaybackMixer(sample_rate=16000)

    with pytest.raises(ValueError):
        mixer.start(other.create_buffer(ones(10)), 0.0)


def test_clear_drops_everything():
    mixer = PlaybackMixer(sample_rate=10)
    a = mixer.start(mixer.create_buffer(ones(5)), 0.0)
    b = mixer.start(mixer.create_buffer(ones(5)), 0.3)

    mixer.clear()

    assert mixer.active_count() == 0
    assert a.stopped and b.stopped
