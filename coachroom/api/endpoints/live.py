"""
Live API endpoints

Handles:
- Credential issuance for the voice endpoint
- The live-room WebSocket relaying browser audio to Gemini Live
"""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from coachroom.api.dependencies import (
    AuthenticationError,
    LiveSessionFactory,
    get_ai_client,
    get_graph_store,
    get_live_session_factory,
    get_session_store,
    get_websocket_user_id,
)
from coachroom.config.settings import get_settings
from coachroom.core.ai_client import GeminiTextClient
from coachroom.core.graph_store import SkillGraphStore
from coachroom.core.live_relay import WebSocketCapture, WebSocketPlaybackSink, send_if_open
from coachroom.core.session_store import SessionStore
from coachroom.models.live import LiveSnapshot, TranscriptLine
from coachroom.models.session import Speaker
from coachroom.prompts.interviewer import InterviewerPrompts

logger = logging.getLogger(__name__)

router = APIRouter()


class TokenResponse(BaseModel):
    token: str
    ephemeral: bool = False


# ============================================================================
# REST ENDPOINTS
# ============================================================================

@router.get("/token", response_model=TokenResponse)
async def issue_token(ai_client: GeminiTextClient = Depends(get_ai_client)) -> TokenResponse:
    """
    Issue a credential for opening a live voice session.

    Returns a short-lived token when enabled, otherwise the API key.
    """
    settings = get_settings()
    if not settings.gemini_api_key:
        raise HTTPException(status_code=500, detail="GEMINI_API_KEY not configured")

    if settings.live_use_ephemeral_tokens:
        try:
            token = await ai_client.create_live_token()
            return TokenResponse(token=token, ephemeral=True)
        except Exception as e:
            logger.error(f"Ephemeral token error, falling back to API key: {e}")

    return TokenResponse(token=settings.gemini_api_key, ephemeral=False)


# ============================================================================
# WEBSOCKET ENDPOINT
# ============================================================================

@router.websocket("/ws/{session_id}")
async def live_room(
    websocket: WebSocket,
    session_id: str,
    store: SessionStore = Depends(get_session_store),
    graph_store: SkillGraphStore = Depends(get_graph_store),
    create_live_session: LiveSessionFactory = Depends(get_live_session_factory),
):
    """
    WebSocket endpoint for the live interview room.

    See coachroom.core.live_relay for the message protocol.
    """
    try:
        user_id = await get_websocket_user_id(websocket)
    except AuthenticationError as e:
        await websocket.accept()
        await websocket.close(code=4001, reason=str(e))
        return

    await websocket.accept()

    session = await store.get_session(session_id)
    if not session or session.user_id != user_id:
        await websocket.close(code=4004, reason="Session not found")
        return

    graph_context = await graph_store.get_graph_context(session.user_id)
    system_instruction = InterviewerPrompts().system_instruction(session.config, graph_context)

    async def log_fragment(speaker: Speaker, text: str) -> None:
        await store.append_transcript(session_id, speaker, text)

    capture = WebSocketCapture(websocket)
    sink = WebSocketPlaybackSink(websocket)
    live = create_live_session(capture, sink, log_fragment)

    async def send_state(snapshot: LiveSnapshot) -> None:
        await send_if_open(websocket, {
            "type": "status",
            "status": snapshot.status.value,
            "error": snapshot.error,
            "mic_error": snapshot.mic_error,
            "is_recording": snapshot.is_recording,
            "muted": snapshot.muted,
        })

    async def send_transcript(line: TranscriptLine) -> None:
        await send_if_open(websocket, {
            "type": "transcript",
            "speaker": line.speaker.value,
            "text": line.text,
            "index": len(live.transcript) - 1,
        })

    async def send_volume(volume: float) -> None:
        await send_if_open(websocket, {"type": "volume", "value": volume})

    live.on_state_change(send_state)
    live.on_transcript_change(send_transcript)
    live.on_volume_change(send_volume)

    await live.connect(system_instruction=system_instruction)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            if message.get("bytes"):
                await capture.feed(message["bytes"])
                continue

            if not message.get("text"):
                continue

            try:
                data = json.loads(message["text"])
            except json.JSONDecodeError as e:
                logger.warning(f"Malformed live room message: {e}")
                await send_if_open(websocket, {"type": "error", "message": "Malformed message"})
                continue

            if not isinstance(data, dict):
                continue

            message_type = data.get("type")

            if message_type == "mute":
                await live.set_muted(True)

            elif message_type == "unmute":
                await live.set_muted(False)

            elif message_type == "mic_error":
                await live.report_microphone_error(data.get("message", "Permission denied"))

            elif message_type == "end":
                await live.disconnect()
                await store.end_session(session_id)
                await send_if_open(websocket, {"type": "ended", "session_id": session_id})
                await websocket.close()
                break

            elif message_type == "ping":
                await send_if_open(websocket, {"type": "pong"})

    except WebSocketDisconnect:
        # Client disconnected
        pass
    finally:
        await live.disconnect()
        logger.info(f"Live room closed for session {session_id}")
