"""
Live audio session models for CoachRoom

Types shared by the live session adapter, its transports and the
live-room WebSocket relay.
"""

from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, Field

from coachroom.models.session import Speaker


class ConnectionStatus(str, Enum):
    """Live session connection state machine."""

    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"  # Absorbing until disconnect()


class TranscriptLine(BaseModel):
    """One display line per speaker turn."""

    speaker: Speaker
    text: str = ""

    @property
    def display(self) -> str:
        return f"{self.speaker.display_name}: {self.text}"


class LiveConnectOptions(BaseModel):
    """What the adapter asks the voice endpoint for at connect time."""

    model: str
    system_instruction: str | None = None
    voice_name: str = "Orus"
    input_transcription: bool = True
    output_transcription: bool = True


# ----------------------------------------------------------------------------
# Downstream events (tagged union)
# ----------------------------------------------------------------------------

class TranscriptDelta(BaseModel):
    """Partial transcript. input = the human, output = the model."""

    kind: Literal["transcript"] = "transcript"
    direction: Literal["input", "output"]
    text: str

    @property
    def speaker(self) -> Speaker:
        return Speaker.USER if self.direction == "input" else Speaker.MODEL


class AudioDelta(BaseModel):
    """A chunk of 16-bit PCM audio from the model."""

    kind: Literal["audio"] = "audio"
    data: bytes


class Interrupted(BaseModel):
    """The human started talking over in-progress playback."""

    kind: Literal["interrupted"] = "interrupted"


LiveEvent = Union[TranscriptDelta, AudioDelta, Interrupted]


class LiveSnapshot(BaseModel):
    """UI-facing view of the adapter state."""

    status: ConnectionStatus
    error: str | None = None
    mic_error: str | None = None
    is_recording: bool = False
    muted: bool = False
    volume: float = 0.0
    transcript: list[TranscriptLine] = Field(default_factory=list)
