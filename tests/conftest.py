"""
Shared fixtures and fakes for the CoachRoom test suite.
"""

import os

os.environ.setdefault("SESSION_BACKEND", "memory")
os.environ.setdefault("ALLOW_HEADER_USER_ID", "true")
os.environ.setdefault("LANGFUSE_ENABLED", "false")

from typing import Any

import httpx
import pytest

from coachroom.config.settings import get_settings
from coachroom.core.audio import PlaybackHandle, PlaybackSink
from coachroom.core.live_session import AudioCapture, LiveSession, MicrophonePermissionError
from coachroom.core.live_transport import CredentialProvider, TransportCallbacks, VoiceTransport
from coachroom.core.session_store import InMemorySessionStore
from coachroom.models.graph import GraphContext, GraphData, GraphNode
from coachroom.models.live import LiveConnectOptions


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ============================================================================
# LIVE SESSION FAKES
# ============================================================================

class FakeTransport(VoiceTransport):
    """Records calls; tests drive the callbacks directly."""

    def __init__(self, auto_open: bool = True, fail_with: Exception | None = None):
        self.auto_open = auto_open
        self.fail_with = fail_with
        self.connect_calls: list[tuple[str, LiveConnectOptions]] = []
        self.callbacks: TransportCallbacks | None = None
        self.sent: list[bytes] = []
        self.send_error: Exception | None = None
        self.close_count = 0

    async def connect(self, credential, options, callbacks):
        self.connect_calls.append((credential, options))
        self.callbacks = callbacks
        if self.fail_with:
            raise self.fail_with
        if self.auto_open:
            await callbacks.on_open()

    async def send_audio(self, pcm: bytes) -> None:
        if self.send_error:
            raise self.send_error
        self.sent.append(pcm)

    async def close(self) -> None:
        self.close_count += 1


class FakeCapture(AudioCapture):
    def __init__(self, deny: bool = False):
        self.deny = deny
        self.on_frame = None
        self.start_count = 0

    @property
    def active(self) -> bool:
        return self.on_frame is not None

    async def start(self, on_frame):
        if self.deny:
            raise MicrophonePermissionError("Permission denied")
        self.start_count += 1
        self.on_frame = on_frame

    async def stop(self):
        self.on_frame = None


class FakeHandle(PlaybackHandle):
    def __init__(self):
        self.stopped = False

    async def stop(self) -> None:
        self.stopped = True


class FakeSink(PlaybackSink):
    """Playback sink with a hand-driven clock."""

    def __init__(self, now: float = 0.0):
        self.now = now
        self.played: list[tuple[bytes, float, float, FakeHandle]] = []

    def current_time(self) -> float:
        return self.now

    async def play(self, pcm, start_at, duration):
        handle = FakeHandle()
        self.played.append((pcm, start_at, duration, handle))
        return handle

    @property
    def start_times(self) -> list[float]:
        return [start_at for _, start_at, _, _ in self.played]


def credentials_with(
    fallback_key: str = "test-key",
    token_url: str = "",
    handler: Any = None,
) -> CredentialProvider:
    """CredentialProvider whose HTTP calls never leave the process."""
    if handler is None:
        handler = lambda request: httpx.Response(404)
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CredentialProvider(token_url=token_url, fallback_key=fallback_key, client=client)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def capture():
    return FakeCapture()


@pytest.fixture
def sink():
    return FakeSink()


@pytest.fixture
def make_live(transport, capture, sink):
    """Build a LiveSession over the fakes."""

    def build(credentials: CredentialProvider | None = None, **kwargs) -> LiveSession:
        return LiveSession(
            transport=kwargs.pop("transport", transport),
            capture=kwargs.pop("capture", capture),
            playback_sink=kwargs.pop("playback_sink", sink),
            credentials=credentials or credentials_with(),
            model="test-live-model",
            **kwargs,
        )

    return build


# ============================================================================
# BACKEND FAKES
# ============================================================================

class FakeAIClient:
    """Stands in for GeminiTextClient."""

    def __init__(self):
        self.json_response = "{}"
        self.text_response = "[]"
        self.document_summary = "Jane Doe, Python engineer."
        self.live_token = "auth_tokens/abc123"
        self.error: Exception | None = None
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def generate_json(self, prompt, schema, trace_name="", trace_metadata=None):
        self.calls.append(("generate_json", {"prompt": prompt, "schema": schema}))
        if self.error:
            raise self.error
        return self.json_response

    async def generate_text(self, prompt, system_instruction=None, temperature=None, trace_name=""):
        self.calls.append(("generate_text", {
            "prompt": prompt,
            "system_instruction": system_instruction,
            "temperature": temperature,
        }))
        if self.error:
            raise self.error
        return self.text_response

    async def summarize_document(self, data, mime_type="application/pdf", instruction=""):
        self.calls.append(("summarize_document", {"data": data, "mime_type": mime_type}))
        if self.error:
            raise self.error
        return self.document_summary

    async def create_live_token(self):
        self.calls.append(("create_live_token", {}))
        if self.error:
            raise self.error
        return self.live_token


class FakeGraphStore:
    """Stands in for SkillGraphStore above the driver level."""

    def __init__(self, skill_names: list[str] | None = None):
        self.skill_names = skill_names or []
        self.context: GraphContext | None = None
        self.upserted: list[tuple[str, list]] = []
        self.linked: list[list[tuple[str, str]]] = []
        self.mastery_updates: list[tuple[str, list]] = []
        self.mastery_error: Exception | None = None

    async def get_user_skill_names(self, user_id):
        return list(self.skill_names)

    async def get_graph_context(self, user_id):
        return self.context

    async def get_user_graph_data(self, user_id):
        return GraphData(nodes=[GraphNode(id=user_id, name="Me", group=0, val=20, color="#ffffff")])

    async def upsert_skills(self, user_id, skills):
        self.upserted.append((user_id, skills))

    async def link_related(self, pairs):
        self.linked.append(pairs)

    async def update_mastery(self, user_id, updates):
        if self.mastery_error:
            raise self.mastery_error
        self.mastery_updates.append((user_id, updates))


@pytest.fixture
def ai_client():
    return FakeAIClient()


@pytest.fixture
def graph_store():
    return FakeGraphStore()


@pytest.fixture
def session_store():
    return InMemorySessionStore()
