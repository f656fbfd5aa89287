"""
Data models and schemas for CoachRoom

Contains Pydantic models for:
- Interview sessions and transcripts
- Debrief reports
- Skill graph data
- Live audio session state
"""

from coachroom.models.session import (
    Session,
    SessionConfig,
    SessionStatus,
    Difficulty,
    Speaker,
    TranscriptTurn,
)
from coachroom.models.debrief import Debrief, DebriefScores, SkillUpdate
from coachroom.models.graph import (
    ExtractedSkill,
    GraphContext,
    GraphData,
    ProficiencyLevel,
)
from coachroom.models.live import (
    ConnectionStatus,
    TranscriptLine,
    LiveSnapshot,
)

__all__ = [
    # Session
    "Session",
    "SessionConfig",
    "SessionStatus",
    "Difficulty",
    "Speaker",
    "TranscriptTurn",
    # Debrief
    "Debrief",
    "DebriefScores",
    "SkillUpdate",
    # Graph
    "ExtractedSkill",
    "GraphContext",
    "GraphData",
    "ProficiencyLevel",
    # Live
    "ConnectionStatus",
    "TranscriptLine",
    "LiveSnapshot",
]
