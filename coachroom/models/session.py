"""
Interview session models for CoachRoom
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class Difficulty(str, Enum):
    """Interview difficulty options."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class SessionStatus(str, Enum):
    """Session lifecycle states."""

    ACTIVE = "active"  # Live room open
    COMPLETED = "completed"  # User ended the interview
    ANALYZED = "analyzed"  # Debrief generated


class Speaker(str, Enum):
    """Who produced a transcript fragment."""

    USER = "user"
    MODEL = "model"

    @property
    def display_name(self) -> str:
        return "You" if self is Speaker.USER else "AI"


class SessionConfig(BaseModel):
    """User's interview configuration from the setup flow."""

    role: str = Field(
        default="Software Engineer",
        min_length=1,
        description="Target role for the interview"
    )
    difficulty: Difficulty = Field(default=Difficulty.MEDIUM)
    job_description: str | None = Field(
        default=None,
        description="Optional job description text"
    )
    resume: str | None = Field(
        default=None,
        description="Optional resume summary text"
    )


class TranscriptTurn(BaseModel):
    """A single persisted transcript fragment. Append-only."""

    role: Speaker
    text: str
    timestamp: int = Field(
        default_factory=lambda: int(datetime.now(timezone.utc).timestamp() * 1000),
        description="Client-side epoch milliseconds, display aid only"
    )


class Session(BaseModel):
    """Complete interview session record."""

    id: str
    user_id: str
    config: SessionConfig
    status: SessionStatus = SessionStatus.ACTIVE

    start_time: datetime | None = None
    end_time: datetime | None = None

    transcript: list[TranscriptTurn] = Field(default_factory=list)
    debrief: dict[str, Any] | None = None

    def get_duration_seconds(self) -> float:
        """Get interview duration in seconds."""
        if not self.start_time or not self.end_time:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    def coalesced_transcript(self) -> list[TranscriptTurn]:
        """Merge consecutive same-speaker turns into one turn each."""
        merged: list[TranscriptTurn] = []
        for turn in self.transcript:
            if merged and merged[-1].role == turn.role:
                merged[-1] = merged[-1].model_copy(
                    update={"text": merged[-1].text + turn.text}
                )
            else:
                merged.append(turn.model_copy())
        return merged

    def transcript_text(self) -> str:
        """Format the transcript for AI prompts."""
        return "\n".join(
            f"[{turn.role.value}]: {turn.text}"
            for turn in self.coalesced_transcript()
        )
