"""
Tests for credential resolution and Gemini Live message mapping.
"""

import httpx
import pytest
from google.genai import types

from conftest import credentials_with
from coachroom.core.live_transport import CredentialError, GeminiLiveTransport
from coachroom.models.live import AudioDelta, Interrupted, LiveConnectOptions, TranscriptDelta

TOKEN_URL = "https://backend.example/api/live/token"


# ============================================================================
# CREDENTIALS
# ============================================================================

async def test_manual_key_wins():
    credentials = credentials_with(fallback_key="configured", token_url=TOKEN_URL)
    assert await credentials.get_credential("typed") == "typed"


async def test_token_endpoint_is_used_when_configured():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"token": "short-lived"})

    credentials = credentials_with(fallback_key="configured", token_url=TOKEN_URL, handler=handler)

    assert await credentials.get_credential() == "short-lived"
    assert requests[0].method == "GET"
    assert str(requests[0].url) == TOKEN_URL


@pytest.mark.parametrize("handler", [
    lambda request: httpx.Response(500),
    lambda request: httpx.Response(200, json={}),
    lambda request: httpx.Response(200, text="not json"),
])
async def test_token_failure_falls_back_to_key(handler):
    credentials = credentials_with(fallback_key="configured", token_url=TOKEN_URL, handler=handler)
    assert await credentials.get_credential() == "configured"


async def test_unreachable_token_endpoint_falls_back_to_key():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    credentials = credentials_with(fallback_key="configured", token_url=TOKEN_URL, handler=handler)
    assert await credentials.get_credential() == "configured"


async def test_token_failure_without_fallback_raises():
    credentials = credentials_with(
        fallback_key="",
        token_url=TOKEN_URL,
        handler=lambda request: httpx.Response(503),
    )
    with pytest.raises(CredentialError, match="no fallback"):
        await credentials.get_credential()


async def test_no_key_raises():
    credentials = credentials_with(fallback_key="")
    with pytest.raises(CredentialError, match="GEMINI_API_KEY"):
        await credentials.get_credential()


# ============================================================================
# MESSAGE MAPPING
# ============================================================================

def test_server_content_maps_to_events_in_order():
    message = types.LiveServerMessage(
        server_content=types.LiveServerContent(
            input_transcription=types.Transcription(text="I think"),
            output_transcription=types.Transcription(text="Go on"),
            model_turn=types.Content(parts=[
                types.Part(inline_data=types.Blob(data=b"\x01\x00", mime_type="audio/pcm;rate=24000")),
            ]),
            interrupted=True,
        )
    )

    events = GeminiLiveTransport.to_events(message)

    assert [type(event) for event in events] == [
        TranscriptDelta, TranscriptDelta, AudioDelta, Interrupted,
    ]
    assert events[0].direction == "output" and events[0].text == "Go on"
    assert events[1].direction == "input" and events[1].text == "I think"
    assert events[2].data == b"\x01\x00"


def test_message_without_server_content_yields_nothing():
    assert GeminiLiveTransport.to_events(types.LiveServerMessage()) == []


def test_connect_config_requests_audio_and_transcripts():
    config = GeminiLiveTransport()._build_config(
        LiveConnectOptions(model="m", system_instruction="Interview me.", voice_name="Puck")
    )

    assert config.response_modalities == [types.Modality.AUDIO]
    assert config.input_audio_transcription is not None
    assert config.output_audio_transcription is not None
    assert config.speech_config.voice_config.prebuilt_voice_config.voice_name == "Puck"
    assert config.system_instruction.parts[0].text == "Interview me."
