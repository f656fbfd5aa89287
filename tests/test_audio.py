"""
Tests for PCM helpers and the playback scheduler.
"""

import numpy as np
import pytest

from conftest import FakeSink
from coachroom.core.audio import (
    PlaybackScheduler,
    decode_float32_frame,
    float32_to_pcm16,
    frame_rms,
    pcm16_duration,
)


def pcm_of(seconds: float, sample_rate: int = 24000) -> bytes:
    return b"\x00\x00" * int(seconds * sample_rate)


# ============================================================================
# PCM HELPERS
# ============================================================================

def test_float32_to_pcm16_clips_and_scales():
    frame = np.array([0.0, 1.0, -1.0, 2.0, -3.0], dtype=np.float32)
    samples = np.frombuffer(float32_to_pcm16(frame), dtype="<i2")
    assert samples.tolist() == [0, 32767, -32767, 32767, -32767]


def test_decode_float32_frame_drops_trailing_partial_sample():
    payload = np.array([0.25, -0.5], dtype="<f4").tobytes() + b"\x01\x02"
    frame = decode_float32_frame(payload)
    assert frame.tolist() == [0.25, -0.5]


def test_frame_rms():
    assert frame_rms(np.array([0.5, -0.5], dtype=np.float32)) == pytest.approx(0.5)
    assert frame_rms(np.array([], dtype=np.float32)) == 0.0


def test_pcm16_duration():
    assert pcm16_duration(pcm_of(1.0), 24000) == pytest.approx(1.0)
    assert pcm16_duration(b"\x00" * 64000, 16000) == pytest.approx(2.0)


# ============================================================================
# SCHEDULER
# ============================================================================

@pytest.mark.parametrize("now", [0.0, 3.5])
async def test_chunks_play_back_to_back_from_arrival(now):
    sink = FakeSink(now=now)
    player = PlaybackScheduler(sink)

    for seconds in [1.0, 0.5, 0.25]:
        await player.enqueue(pcm_of(seconds))

    assert sink.start_times == pytest.approx([now, now + 1.0, now + 1.5])
    assert player.next_start_time == pytest.approx(now + 1.75)


async def test_chunk_after_idle_gap_starts_now():
    sink = FakeSink()
    player = PlaybackScheduler(sink)

    await player.enqueue(pcm_of(1.0))
    sink.now = 4.0
    start = await player.enqueue(pcm_of(1.0))

    assert start == pytest.approx(4.0)


async def test_finished_chunks_are_pruned():
    sink = FakeSink()
    player = PlaybackScheduler(sink)

    await player.enqueue(pcm_of(1.0))
    await player.enqueue(pcm_of(1.0))
    assert player.active_count == 2

    sink.now = 1.5
    await player.enqueue(pcm_of(1.0))
    assert player.active_count == 2


async def test_interrupt_stops_everything_and_resets_cursor():
    sink = FakeSink(now=2.0)
    player = PlaybackScheduler(sink)

    await player.enqueue(pcm_of(1.0))
    await player.enqueue(pcm_of(1.0))
    await player.interrupt()

    assert all(handle.stopped for _, _, _, handle in sink.played)
    assert player.active_count == 0
    assert player.next_start_time == 0.0

    sink.now = 2.1
    start = await player.enqueue(pcm_of(0.5))
    assert start == pytest.approx(2.1)
