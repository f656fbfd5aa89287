"""
Live Audio Session for CoachRoom

Bridges microphone capture and speaker playback to a streaming voice
endpoint, exposing a small state machine and a live transcript.

States:
    idle → connecting → connected
    any  → error      (transport failure; absorbing until disconnect)
    any  → idle       (disconnect)

Recording is an independent toggle and starts automatically once
connected unless the user muted. Everything runs on one event loop;
callbacks from a session that has since been closed or replaced are
dropped using a session epoch.
"""

import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable

import numpy as np

from coachroom.core.audio import (
    PlaybackScheduler,
    PlaybackSink,
    float32_to_pcm16,
    frame_rms,
)
from coachroom.core.live_transport import (
    CredentialError,
    CredentialProvider,
    TransportCallbacks,
    VoiceTransport,
)
from coachroom.models.live import (
    AudioDelta,
    ConnectionStatus,
    Interrupted,
    LiveConnectOptions,
    LiveEvent,
    LiveSnapshot,
    TranscriptDelta,
    TranscriptLine,
)
from coachroom.models.session import Speaker

logger = logging.getLogger(__name__)

FrameCallback = Callable[[np.ndarray], Awaitable[None]]
TranscriptCallback = Callable[[Speaker, str], Awaitable[None]]
SnapshotCallback = Callable[[LiveSnapshot], Awaitable[None]]


class MicrophonePermissionError(Exception):
    """Raised by a capture source when microphone access is denied."""
    pass


class AudioCapture(ABC):
    """Microphone source delivering float32 mono frames."""

    @abstractmethod
    async def start(self, on_frame: FrameCallback) -> None:
        """
        Begin delivering frames to on_frame.

        Raises:
            MicrophonePermissionError: Access was denied
        """

    @abstractmethod
    async def stop(self) -> None:
        """Stop delivering frames."""


class LiveSession:
    """
    Live audio session adapter.

    Owns its playback scheduler and capture wiring, so several
    instances can run side by side.
    """

    def __init__(
        self,
        transport: VoiceTransport,
        capture: AudioCapture,
        playback_sink: PlaybackSink,
        credentials: CredentialProvider,
        model: str,
        voice_name: str = "Orus",
        on_transcript_update: TranscriptCallback | None = None,
        output_sample_rate: int = 24000,
        volume_sample_every: int = 5,
    ):
        self.transport = transport
        self.capture = capture
        self.credentials = credentials
        self.model = model
        self.voice_name = voice_name
        self.on_transcript_update = on_transcript_update
        self.volume_sample_every = max(1, volume_sample_every)

        self.player = PlaybackScheduler(playback_sink, sample_rate=output_sample_rate)

        self.status = ConnectionStatus.IDLE
        self.error: str | None = None
        self.mic_error: str | None = None
        self.is_recording = False
        self.muted = False
        self.volume = 0.0
        self.transcript: list[TranscriptLine] = []

        self._epoch = 0
        self._frame_count = 0

        self._state_callbacks: list[SnapshotCallback] = []
        self._transcript_callbacks: list[Callable[[TranscriptLine], Awaitable[None]]] = []
        self._volume_callbacks: list[Callable[[float], Awaitable[None]]] = []

    @property
    def epoch(self) -> int:
        return self._epoch

    def snapshot(self) -> LiveSnapshot:
        return LiveSnapshot(
            status=self.status,
            error=self.error,
            mic_error=self.mic_error,
            is_recording=self.is_recording,
            muted=self.muted,
            volume=self.volume,
            transcript=[line.model_copy() for line in self.transcript],
        )

    # =========================================================================
    # CONNECTION
    # =========================================================================

    async def connect(
        self,
        system_instruction: str | None = None,
        manual_key: str | None = None,
    ) -> None:
        """
        Open the voice session.

        Never raises: failures end in the ERROR state and the caller
        must call connect() again.
        """
        if self.status in (ConnectionStatus.CONNECTING, ConnectionStatus.CONNECTED):
            logger.warning(f"connect() ignored while {self.status.value}")
            return

        if self.status == ConnectionStatus.ERROR:
            await self._close_transport()

        self._epoch += 1
        epoch = self._epoch
        self.error = None
        await self._set_status(ConnectionStatus.CONNECTING)

        try:
            credential = await self.credentials.get_credential(manual_key)
        except CredentialError as e:
            logger.error(f"Live credential unavailable: {e}")
            if epoch == self._epoch:
                await self._fail(f"Error: {e}")
            return

        # disconnect() ran while the credential was in flight
        if epoch != self._epoch:
            logger.info("Connect abandoned after disconnect")
            return

        options = LiveConnectOptions(
            model=self.model,
            system_instruction=system_instruction,
            voice_name=self.voice_name,
        )

        try:
            await self.transport.connect(credential, options, self._callbacks_for(epoch))
        except Exception as e:
            logger.error(f"Live connect failed: {e}")
            if epoch == self._epoch:
                await self._fail(f"Error: {e}")
            return

        if epoch != self._epoch and self.status == ConnectionStatus.IDLE:
            # Opened after disconnect() already closed the transport
            await self._close_transport()

    async def disconnect(self) -> None:
        """Close the session from any state and reset to idle."""
        self._epoch += 1

        await self._close_transport()
        await self.stop_recording()
        await self.player.interrupt()

        self.transcript = []
        self.error = None
        self.mic_error = None
        self.volume = 0.0
        await self._set_status(ConnectionStatus.IDLE)

    async def _close_transport(self) -> None:
        try:
            await self.transport.close()
        except Exception as e:
            logger.error(f"Error closing live transport: {e}")

    def _callbacks_for(self, epoch: int) -> TransportCallbacks:
        """Bind transport callbacks to one session epoch."""

        def current() -> bool:
            if epoch != self._epoch:
                logger.debug(f"Dropping callback from stale session epoch {epoch}")
                return False
            return True

        async def on_open() -> None:
            if not current():
                return
            await self._set_status(ConnectionStatus.CONNECTED)
            if not self.muted:
                await self.start_recording()

        async def on_event(event: LiveEvent) -> None:
            if not current():
                return
            await self._handle_event(event)

        async def on_error(message: str) -> None:
            if not current():
                return
            await self._fail(f"Error: {message}")

        async def on_close(reason: str) -> None:
            if not current():
                return
            await self._fail(f"Closed: {reason or 'Connection lost'}")

        return TransportCallbacks(on_open, on_event, on_error, on_close)

    async def _fail(self, reason: str) -> None:
        self.error = reason
        await self._set_status(ConnectionStatus.ERROR)

    # =========================================================================
    # DOWNSTREAM
    # =========================================================================

    async def _handle_event(self, event: LiveEvent) -> None:
        if isinstance(event, TranscriptDelta):
            await self._append_fragment(event.speaker, event.text)
        elif isinstance(event, AudioDelta):
            await self.player.enqueue(event.data)
        elif isinstance(event, Interrupted):
            logger.info("Live session interrupted by user speech")
            await self.player.interrupt()

    async def _append_fragment(self, speaker: Speaker, text: str) -> None:
        """Coalesce consecutive same-speaker fragments into one line."""
        if self.transcript and self.transcript[-1].speaker == speaker:
            self.transcript[-1].text += text
        else:
            self.transcript.append(TranscriptLine(speaker=speaker, text=text))

        if self.on_transcript_update:
            try:
                await self.on_transcript_update(speaker, text)
            except Exception as e:
                logger.error(f"Transcript update callback error: {e}")

        line = self.transcript[-1].model_copy()
        for callback in self._transcript_callbacks:
            try:
                await callback(line)
            except Exception as e:
                logger.error(f"Transcript callback error: {e}")

    # =========================================================================
    # RECORDING
    # =========================================================================

    async def start_recording(self) -> None:
        """Start microphone capture. Permission failures set mic_error only."""
        if self.is_recording:
            return

        try:
            await self.capture.start(self._on_frame)
        except MicrophonePermissionError as e:
            await self.report_microphone_error(str(e))
            return

        self.mic_error = None
        self.is_recording = True
        self._frame_count = 0
        await self._notify_state()

    async def stop_recording(self) -> None:
        """Stop microphone capture."""
        was_recording = self.is_recording
        self.is_recording = False
        self.volume = 0.0

        try:
            await self.capture.stop()
        except Exception as e:
            logger.error(f"Error stopping capture: {e}")

        if was_recording:
            await self._notify_state()

    async def report_microphone_error(self, reason: str) -> None:
        """Record a microphone failure without touching the connection."""
        logger.warning(f"Microphone error: {reason}")
        self.is_recording = False
        self.mic_error = f"Mic Error: {reason}"
        await self._notify_state()

    async def set_muted(self, muted: bool) -> None:
        """Mute stops capture; unmuting restarts it while connected."""
        self.muted = muted
        if muted:
            await self.stop_recording()
        elif self.status == ConnectionStatus.CONNECTED:
            await self.start_recording()
        else:
            await self._notify_state()

    async def _on_frame(self, frame: np.ndarray) -> None:
        """Per-buffer capture callback."""
        if not self.is_recording:
            return

        self._frame_count += 1
        if self._frame_count % self.volume_sample_every == 0:
            self.volume = frame_rms(frame)
            for callback in self._volume_callbacks:
                try:
                    await callback(self.volume)
                except Exception as e:
                    logger.error(f"Volume callback error: {e}")

        if self.status != ConnectionStatus.CONNECTED:
            return

        epoch = self._epoch
        try:
            await self.transport.send_audio(float32_to_pcm16(frame))
        except Exception as e:
            logger.error(f"Failed to send audio frame: {e}")
            if epoch == self._epoch:
                await self._fail(f"Error: {e}")

    # =========================================================================
    # LISTENERS
    # =========================================================================

    def on_state_change(self, callback: SnapshotCallback) -> None:
        """Register a callback for status/recording/error changes."""
        self._state_callbacks.append(callback)

    def on_transcript_change(self, callback: Callable[[TranscriptLine], Awaitable[None]]) -> None:
        """Register a callback receiving the updated last line."""
        self._transcript_callbacks.append(callback)

    def on_volume_change(self, callback: Callable[[float], Awaitable[None]]) -> None:
        """Register a callback for sampled volume."""
        self._volume_callbacks.append(callback)

    async def _set_status(self, status: ConnectionStatus) -> None:
        old_status = self.status
        self.status = status
        if old_status != status:
            logger.info(f"Live session: {old_status.value} → {status.value}")
        await self._notify_state()

    async def _notify_state(self) -> None:
        snapshot = self.snapshot()
        for callback in self._state_callbacks:
            try:
                await callback(snapshot)
            except Exception as e:
                logger.error(f"State change callback error: {e}")
