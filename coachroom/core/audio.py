"""
Audio Utilities for CoachRoom

Handles:
- Converting captured float32 frames to the 16-bit PCM wire format
- Frame energy (RMS) for UI animation
- Gapless scheduling of streamed model audio, with barge-in

Playback itself happens wherever the PlaybackSink lives (the browser
for the live room); this module only decides when each chunk starts.
"""

import logging
from abc import ABC, abstractmethod

import numpy as np

logger = logging.getLogger(__name__)

PCM16_BYTES_PER_SAMPLE = 2


# =============================================================================
# PCM CONVERSION
# =============================================================================

def decode_float32_frame(payload: bytes) -> np.ndarray:
    """Decode a little-endian float32 mono frame."""
    usable = len(payload) - (len(payload) % 4)
    return np.frombuffer(payload[:usable], dtype="<f4")


def float32_to_pcm16(frame: np.ndarray) -> bytes:
    """Convert float samples in [-1, 1] to little-endian 16-bit PCM."""
    clipped = np.clip(np.asarray(frame, dtype=np.float32), -1.0, 1.0)
    return (clipped * 32767.0).astype("<i2").tobytes()


def frame_rms(frame: np.ndarray) -> float:
    """Root-mean-square energy of a frame."""
    samples = np.asarray(frame, dtype=np.float64)
    if samples.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(samples * samples)))


def pcm16_duration(data: bytes, sample_rate: int, channels: int = 1) -> float:
    """Duration in seconds of a 16-bit PCM buffer."""
    return len(data) / float(PCM16_BYTES_PER_SAMPLE * channels * sample_rate)


# =============================================================================
# PLAYBACK
# =============================================================================

class PlaybackHandle(ABC):
    """A chunk handed to a sink that can still be stopped."""

    @abstractmethod
    async def stop(self) -> None:
        ...


class PlaybackSink(ABC):
    """Where scheduled audio chunks are played."""

    @abstractmethod
    def current_time(self) -> float:
        """Playback clock, in seconds."""

    @abstractmethod
    async def play(self, pcm: bytes, start_at: float, duration: float) -> PlaybackHandle:
        """Schedule a chunk to start at `start_at` on the playback clock."""


class ScheduledChunk:
    """Bookkeeping for one in-flight chunk."""

    __slots__ = ("handle", "start_at", "end_at")

    def __init__(self, handle: PlaybackHandle, start_at: float, end_at: float):
        self.handle = handle
        self.start_at = start_at
        self.end_at = end_at


class PlaybackScheduler:
    """
    Schedules discrete incoming chunks for gapless sequential playback.

    Each chunk starts at max(cursor, now) and advances the cursor by its
    duration. Chunks whose end time has passed are dropped from the
    active set the next time a chunk arrives.
    """

    def __init__(self, sink: PlaybackSink, sample_rate: int = 24000):
        self.sink = sink
        self.sample_rate = sample_rate
        self.next_start_time = 0.0
        self._active: set[ScheduledChunk] = set()

    @property
    def active_count(self) -> int:
        return len(self._active)

    async def enqueue(self, pcm: bytes) -> float:
        """
        Schedule a chunk.

        Returns:
            The chunk's start time on the sink clock
        """
        now = self.sink.current_time()
        self._prune(now)

        start_at = max(self.next_start_time, now)
        duration = pcm16_duration(pcm, self.sample_rate)

        handle = await self.sink.play(pcm, start_at, duration)
        self.next_start_time = start_at + duration
        self._active.add(ScheduledChunk(handle, start_at, self.next_start_time))
        return start_at

    async def interrupt(self) -> None:
        """Stop everything pending and reset the cursor."""
        chunks = list(self._active)
        self._active.clear()
        self.next_start_time = 0.0

        for chunk in chunks:
            try:
                await chunk.handle.stop()
            except Exception as e:
                logger.warning(f"Failed to stop playback chunk: {e}")

        if chunks:
            logger.info(f"Playback interrupted, stopped {len(chunks)} chunks")

    def _prune(self, now: float) -> None:
        finished = {chunk for chunk in self._active if chunk.end_at <= now}
        self._active -= finished
