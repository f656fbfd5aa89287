"""
Browser relay ports for the live room.

The browser owns the microphone and the speakers; it talks to the
backend over one WebSocket, authenticated with a Firebase ID token
(`?token=` or an Authorization header). Close code 4001 means no
identity, 4004 an unknown or foreign session.

Client → server:
- binary frames: float32 little-endian mono PCM at the input sample rate
- {"type": "mute"} / {"type": "unmute"}
- {"type": "mic_error", "message": ...}
- {"type": "end"} / {"type": "ping"}

Server → client:
- {"type": "capture", "active": bool}
- {"type": "audio", "id", "start_at", "duration", "data"} (base64 PCM16)
- {"type": "stop_audio", "id"}
- {"type": "status" | "transcript" | "volume" | "ended" | "pong" | "error", ...}

`start_at` is on a clock that starts when the relay is created; the
client anchors it to its own AudioContext time on the first message.
"""

import base64
import logging
import time
from typing import Any, Callable

from starlette.websockets import WebSocket, WebSocketState

from coachroom.core.audio import PlaybackHandle, PlaybackSink, decode_float32_frame
from coachroom.core.live_session import AudioCapture, FrameCallback

logger = logging.getLogger(__name__)


async def send_if_open(websocket: WebSocket, message: dict[str, Any]) -> None:
    """Send JSON unless the socket has already gone away."""
    if (
        websocket.application_state == WebSocketState.CONNECTED
        and websocket.client_state == WebSocketState.CONNECTED
    ):
        await websocket.send_json(message)


class WebSocketCapture(AudioCapture):
    """Microphone frames arriving from the browser."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        self._on_frame: FrameCallback | None = None

    async def start(self, on_frame: FrameCallback) -> None:
        self._on_frame = on_frame
        await send_if_open(self.websocket, {"type": "capture", "active": True})

    async def stop(self) -> None:
        was_active = self._on_frame is not None
        self._on_frame = None
        if was_active:
            await send_if_open(self.websocket, {"type": "capture", "active": False})

    async def feed(self, payload: bytes) -> None:
        """Deliver one binary frame from the client."""
        if self._on_frame is None:
            return
        frame = decode_float32_frame(payload)
        if frame.size:
            await self._on_frame(frame)


class WebSocketPlaybackHandle(PlaybackHandle):
    def __init__(self, sink: "WebSocketPlaybackSink", chunk_id: int):
        self.sink = sink
        self.chunk_id = chunk_id

    async def stop(self) -> None:
        await send_if_open(self.sink.websocket, {"type": "stop_audio", "id": self.chunk_id})


class WebSocketPlaybackSink(PlaybackSink):
    """Schedules model audio on the browser."""

    def __init__(self, websocket: WebSocket, clock: Callable[[], float] = time.monotonic):
        self.websocket = websocket
        self._clock = clock
        self._origin = clock()
        self._next_id = 0

    def current_time(self) -> float:
        return self._clock() - self._origin

    async def play(self, pcm: bytes, start_at: float, duration: float) -> PlaybackHandle:
        self._next_id += 1
        await send_if_open(self.websocket, {
            "type": "audio",
            "id": self._next_id,
            "start_at": start_at,
            "duration": duration,
            "data": base64.b64encode(pcm).decode("utf-8"),
        })
        return WebSocketPlaybackHandle(self, self._next_id)
