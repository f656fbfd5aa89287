"""
Debrief models for CoachRoom

Defines the structure of the AI-generated performance report.
"""

from enum import Enum

from pydantic import BaseModel, Field, field_validator


def _clamp_score(value: int | float | None) -> int:
    if value is None:
        return 0
    return int(max(0, min(100, round(value))))


class DebriefSessionStatus(str, Enum):
    """How the interview ended."""

    ENDED_EARLY = "ended_early"
    COMPLETED = "completed"


class TopicDiscussed(BaseModel):
    topic: str = ""
    notes: list[str] = Field(default_factory=list)


class SessionSummary(BaseModel):
    """High-level facts about the interview."""

    session_status: DebriefSessionStatus = DebriefSessionStatus.COMPLETED
    planned_duration_minutes: int = 0
    actual_duration_minutes: int = 0
    role_guess: str = ""
    company: str = ""
    interview_type: str = ""
    difficulty: str = ""
    topics_discussed: list[TopicDiscussed] = Field(default_factory=list)


class DebriefScores(BaseModel):
    """Scores per dimension, all on a 0-100 scale."""

    overall: int = 0
    communication_structure_star: int = 0
    role_fit: int = 0
    confidence_clarity: int = 0
    delivery: int = 0
    technical_depth: int = 0

    @field_validator("*", mode="before")
    @classmethod
    def clamp(cls, value):
        return _clamp_score(value)


class Evidence(BaseModel):
    """A quote from the transcript backing a finding."""

    timestamp_start: str = ""
    timestamp_end: str = ""
    quote: str = ""


class Strength(BaseModel):
    title: str
    evidence: Evidence = Field(default_factory=Evidence)
    why_it_matters: str = ""


class Improvement(BaseModel):
    title: str
    issue: str = ""
    evidence: Evidence = Field(default_factory=Evidence)
    better_answer_example: str = ""
    micro_exercise: str = ""


class DeliveryMetrics(BaseModel):
    filler_word_estimate: int = 0
    pace_wpm_estimate: int = 0
    long_pause_estimate: int = 0


class Moment(BaseModel):
    label: str = ""
    timestamp_start: str = ""
    timestamp_end: str = ""
    reason: str = ""


class QuestionRecap(BaseModel):
    """One question/answer pair from the interview."""

    question: str
    answer_summary: str = ""
    score: int = 0

    @field_validator("score", mode="before")
    @classmethod
    def clamp(cls, value):
        return _clamp_score(value)


class SkillUpdate(BaseModel):
    """Proposed mastery update for a skill in the user's graph."""

    name: str
    score: int

    @field_validator("score", mode="before")
    @classmethod
    def clamp(cls, value):
        return _clamp_score(value)


class Debrief(BaseModel):
    """Complete interview debrief. Regenerating replaces the previous one."""

    session_summary: SessionSummary = Field(default_factory=SessionSummary)
    conversation_summary: str = ""
    scores: DebriefScores = Field(default_factory=DebriefScores)
    strengths: list[Strength] = Field(default_factory=list)
    improvements: list[Improvement] = Field(default_factory=list)
    delivery_metrics: DeliveryMetrics = Field(default_factory=DeliveryMetrics)
    moments_that_mattered: list[Moment] = Field(default_factory=list)
    qa_recap: list[QuestionRecap] = Field(default_factory=list)
    next_interview_checklist: list[str] = Field(default_factory=list)
    skill_updates: list[SkillUpdate] = Field(default_factory=list)
    notes_if_low_data: str = ""
