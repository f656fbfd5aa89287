"""
Core business logic modules for CoachRoom

Contains:
- Session Store: interview session records (Firestore / in-memory)
- Skill Graph Store: per-user skill graph (Neo4j)
- Skill Extraction: resume/JD text to graph skills
- Debrief Generator: structured post-interview report
- Live Session: real-time voice session adapter
"""

from coachroom.core.ai_client import GeminiTextClient
from coachroom.core.session_store import (
    SessionStore,
    FirestoreSessionStore,
    InMemorySessionStore,
)
from coachroom.core.graph_store import SkillGraphStore
from coachroom.core.skill_extraction import SkillExtractor
from coachroom.core.debrief_generator import DebriefGenerator
from coachroom.core.live_session import LiveSession

__all__ = [
    "GeminiTextClient",
    "SessionStore",
    "FirestoreSessionStore",
    "InMemorySessionStore",
    "SkillGraphStore",
    "SkillExtractor",
    "DebriefGenerator",
    "LiveSession",
]
