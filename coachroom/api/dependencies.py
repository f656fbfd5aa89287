"""
API Dependencies

Provides dependency injection for API endpoints.
Manages singleton instances of core components.
"""

import asyncio
import logging
from typing import Callable

from fastapi import Header, HTTPException, WebSocket
from firebase_admin import auth

from coachroom.config.settings import get_settings
from coachroom.core.ai_client import GeminiTextClient
from coachroom.core.audio import PlaybackSink
from coachroom.core.debrief_generator import DebriefGenerator
from coachroom.core.graph_store import SkillGraphStore
from coachroom.core.live_session import AudioCapture, LiveSession, TranscriptCallback
from coachroom.core.live_transport import CredentialProvider, GeminiLiveTransport
from coachroom.core.session_store import (
    FirestoreSessionStore,
    InMemorySessionStore,
    SessionStore,
    get_firebase_app,
)
from coachroom.core.skill_extraction import SkillExtractor

logger = logging.getLogger(__name__)


# ============================================================================
# SINGLETON INSTANCES
# ============================================================================

_session_store: SessionStore | None = None
_graph_store: SkillGraphStore | None = None
_ai_client: GeminiTextClient | None = None
_credentials: CredentialProvider | None = None


def get_session_store() -> SessionStore:
    """Get the session store singleton for the configured backend."""
    global _session_store

    if _session_store is None:
        backend = get_settings().session_backend.lower()
        if backend == "memory":
            _session_store = InMemorySessionStore()
        else:
            _session_store = FirestoreSessionStore()
        logger.info(f"Session store backend: {backend}")

    return _session_store


def get_graph_store() -> SkillGraphStore:
    """Get the skill graph store singleton."""
    global _graph_store

    if _graph_store is None:
        _graph_store = SkillGraphStore()

    return _graph_store


def get_ai_client() -> GeminiTextClient:
    """Get the Gemini text client singleton."""
    global _ai_client

    if _ai_client is None:
        _ai_client = GeminiTextClient()

    return _ai_client


def get_debrief_generator() -> DebriefGenerator:
    return DebriefGenerator(
        ai_client=get_ai_client(),
        session_store=get_session_store(),
        graph_store=get_graph_store(),
    )


def get_skill_extractor() -> SkillExtractor:
    return SkillExtractor(
        ai_client=get_ai_client(),
        graph_store=get_graph_store(),
    )


def get_credential_provider() -> CredentialProvider:
    global _credentials

    if _credentials is None:
        settings = get_settings()
        _credentials = CredentialProvider(
            token_url=settings.live_token_url,
            fallback_key=settings.gemini_api_key,
        )

    return _credentials


LiveSessionFactory = Callable[[AudioCapture, PlaybackSink, TranscriptCallback | None], LiveSession]


def get_live_session_factory() -> LiveSessionFactory:
    """Factory building one live session per room connection."""
    settings = get_settings()

    def create(
        capture: AudioCapture,
        sink: PlaybackSink,
        on_transcript_update: TranscriptCallback | None = None,
    ) -> LiveSession:
        return LiveSession(
            transport=GeminiLiveTransport(input_sample_rate=settings.live_input_sample_rate),
            capture=capture,
            playback_sink=sink,
            credentials=get_credential_provider(),
            model=settings.gemini_live_model,
            voice_name=settings.gemini_live_voice,
            on_transcript_update=on_transcript_update,
            output_sample_rate=settings.live_output_sample_rate,
            volume_sample_every=settings.live_volume_sample_every,
        )

    return create


# ============================================================================
# AUTH
# ============================================================================

class AuthenticationError(Exception):
    """Raised when a caller cannot be identified."""
    pass


async def resolve_user_id(
    authorization: str | None,
    user_id_header: str | None = None,
) -> str:
    """
    Resolve the calling user.

    Verifies a Firebase ID token from a "Bearer <token>" value. When
    allow_header_user_id is enabled, a plain user id header is accepted
    instead.

    Raises:
        AuthenticationError: No usable identity was supplied
    """
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
        try:
            loop = asyncio.get_event_loop()
            decoded = await loop.run_in_executor(
                None,
                lambda: auth.verify_id_token(token, app=get_firebase_app()),
            )
        except Exception as e:
            logger.warning(f"ID token verification failed: {e}")
            raise AuthenticationError("Invalid authentication token")
        return decoded["uid"]

    if user_id_header and get_settings().allow_header_user_id:
        return user_id_header

    raise AuthenticationError("Authentication required")


async def get_current_user_id(
    authorization: str | None = Header(default=None),
    x_user_id: str | None = Header(default=None),
) -> str:
    """Resolve the calling user for HTTP handlers."""
    try:
        return await resolve_user_id(authorization, x_user_id)
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e))


async def get_websocket_user_id(websocket: WebSocket) -> str:
    """
    Resolve the calling user for WebSocket handlers.

    Browsers cannot set headers on a WebSocket handshake, so the ID
    token may also arrive as a `token` query parameter.
    """
    authorization = websocket.headers.get("authorization")
    token = websocket.query_params.get("token")
    if not authorization and token:
        authorization = f"Bearer {token}"
    return await resolve_user_id(authorization, websocket.headers.get("x-user-id"))


async def cleanup():
    """Cleanup resources on shutdown."""
    global _session_store, _graph_store, _ai_client, _credentials

    if _graph_store:
        await _graph_store.close()
        _graph_store = None

    if _ai_client:
        await _ai_client.close()
        _ai_client = None

    if _credentials:
        await _credentials.close()
        _credentials = None

    _session_store = None
