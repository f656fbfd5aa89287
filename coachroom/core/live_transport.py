"""
Live Voice Transport for CoachRoom

Defines the closed interface the live session adapter talks to
(connect / send_audio / close with typed callbacks), its Gemini Live
implementation, and credential acquisition for opening a session.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import AsyncExitStack
from typing import Any, Awaitable, Callable

import httpx
from google import genai
from google.genai import types
from websockets.exceptions import ConnectionClosed

from coachroom.models.live import (
    AudioDelta,
    Interrupted,
    LiveConnectOptions,
    LiveEvent,
    TranscriptDelta,
)

logger = logging.getLogger(__name__)


class CredentialError(Exception):
    """Raised when no credential can be obtained for the voice endpoint."""
    pass


class TransportCallbacks:
    """Typed callbacks a transport invokes. All are awaited in order."""

    def __init__(
        self,
        on_open: Callable[[], Awaitable[None]],
        on_event: Callable[[LiveEvent], Awaitable[None]],
        on_error: Callable[[str], Awaitable[None]],
        on_close: Callable[[str], Awaitable[None]],
    ):
        self.on_open = on_open
        self.on_event = on_event
        self.on_error = on_error
        self.on_close = on_close


class VoiceTransport(ABC):
    """Bidirectional streaming voice endpoint."""

    @abstractmethod
    async def connect(
        self,
        credential: str,
        options: LiveConnectOptions,
        callbacks: TransportCallbacks,
    ) -> None:
        """Open the session. Calls callbacks.on_open once it is usable."""

    @abstractmethod
    async def send_audio(self, pcm: bytes) -> None:
        """Push one frame of 16-bit PCM upstream."""

    @abstractmethod
    async def close(self) -> None:
        """Close the session. Safe to call when not connected."""


# =============================================================================
# CREDENTIALS
# =============================================================================

class CredentialProvider:
    """
    Resolves the credential used to open a live session.

    Order: explicit key, token endpoint (if configured), static fallback key.
    """

    def __init__(
        self,
        token_url: str = "",
        fallback_key: str = "",
        client: httpx.AsyncClient | None = None,
    ):
        self.token_url = token_url
        self.fallback_key = fallback_key
        self.client = client or httpx.AsyncClient(timeout=10.0)

    async def close(self):
        await self.client.aclose()

    async def get_credential(self, manual_key: str | None = None) -> str:
        """
        Get a credential for one connect attempt.

        Raises:
            CredentialError: Nothing usable is available
        """
        if manual_key:
            return manual_key

        if self.token_url:
            try:
                response = await self.client.get(self.token_url)
                response.raise_for_status()
                token = response.json().get("token")
                if token:
                    return token
                logger.warning("Token endpoint returned no token")
            except (httpx.HTTPError, ValueError) as e:
                logger.error(f"Token fetch failed: {e}")

            if self.fallback_key:
                logger.info("Falling back to statically configured API key")
                return self.fallback_key
            raise CredentialError("Token fetch failed and no fallback API key is configured")

        if self.fallback_key:
            return self.fallback_key
        raise CredentialError("API key not provided (env: GEMINI_API_KEY)")


# =============================================================================
# GEMINI LIVE
# =============================================================================

class GeminiLiveTransport(VoiceTransport):
    """
    VoiceTransport over google-genai's live API.

    Downstream messages are read by a background task and mapped to
    TranscriptDelta / AudioDelta / Interrupted events.
    """

    def __init__(self, input_sample_rate: int = 16000):
        self.input_sample_rate = input_sample_rate
        self._stack: AsyncExitStack | None = None
        self._session: Any = None
        self._receiver: asyncio.Task | None = None
        self._callbacks: TransportCallbacks | None = None

    def _build_config(self, options: LiveConnectOptions) -> types.LiveConnectConfig:
        system_instruction = None
        if options.system_instruction:
            system_instruction = types.Content(parts=[types.Part(text=options.system_instruction)])

        return types.LiveConnectConfig(
            response_modalities=[types.Modality.AUDIO],
            input_audio_transcription=(
                types.AudioTranscriptionConfig() if options.input_transcription else None
            ),
            output_audio_transcription=(
                types.AudioTranscriptionConfig() if options.output_transcription else None
            ),
            speech_config=types.SpeechConfig(
                voice_config=types.VoiceConfig(
                    prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=options.voice_name)
                )
            ),
            system_instruction=system_instruction,
        )

    async def connect(
        self,
        credential: str,
        options: LiveConnectOptions,
        callbacks: TransportCallbacks,
    ) -> None:
        client = genai.Client(api_key=credential, http_options={"api_version": "v1alpha"})

        self._callbacks = callbacks
        self._stack = AsyncExitStack()
        self._session = await self._stack.enter_async_context(
            client.aio.live.connect(model=options.model, config=self._build_config(options))
        )
        logger.info(f"Live session opened with model {options.model}")

        await callbacks.on_open()
        self._receiver = asyncio.create_task(self._receive_loop())

    async def send_audio(self, pcm: bytes) -> None:
        if self._session is None:
            return
        await self._session.send_realtime_input(
            audio=types.Blob(data=pcm, mime_type=f"audio/pcm;rate={self.input_sample_rate}")
        )

    async def close(self) -> None:
        receiver, self._receiver = self._receiver, None
        if receiver and receiver is not asyncio.current_task():
            receiver.cancel()
            try:
                await receiver
            except asyncio.CancelledError:
                pass

        stack, self._stack = self._stack, None
        self._session = None
        if stack:
            await stack.aclose()
            logger.info("Live session closed")

    async def _receive_loop(self) -> None:
        """Forward server messages until the connection ends."""
        callbacks = self._callbacks
        try:
            while self._session is not None:
                received = False
                # receive() completes at the end of each model turn
                async for message in self._session.receive():
                    received = True
                    for event in self.to_events(message):
                        await callbacks.on_event(event)
                if not received:
                    await callbacks.on_close("Connection lost")
                    return
        except asyncio.CancelledError:
            raise
        except ConnectionClosed as e:
            logger.info(f"Live connection closed: {e}")
            await callbacks.on_close(str(e))
        except Exception as e:
            logger.error(f"Live connection error: {e}")
            await callbacks.on_error(str(e))

    @staticmethod
    def to_events(message: types.LiveServerMessage) -> list[LiveEvent]:
        """Map one server message to adapter events."""
        content = message.server_content
        if content is None:
            return []

        events: list[LiveEvent] = []
        if content.output_transcription and content.output_transcription.text:
            events.append(TranscriptDelta(direction="output", text=content.output_transcription.text))
        if content.input_transcription and content.input_transcription.text:
            events.append(TranscriptDelta(direction="input", text=content.input_transcription.text))

        if content.model_turn and content.model_turn.parts:
            for part in content.model_turn.parts:
                if part.inline_data and part.inline_data.data:
                    events.append(AudioDelta(data=part.inline_data.data))

        if content.interrupted:
            events.append(Interrupted())
        return events
