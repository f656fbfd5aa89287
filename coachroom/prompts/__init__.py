"""
AI prompt templates for CoachRoom

Contains structured prompts for:
- Live interviewer system instructions
- Debrief generation
- Skill extraction and resume parsing
"""

from coachroom.prompts.interviewer import InterviewerPrompts
from coachroom.prompts.debrief import DebriefPrompts, DEBRIEF_SCHEMA
from coachroom.prompts.extraction import ExtractionPrompts

__all__ = [
    "InterviewerPrompts",
    "DebriefPrompts",
    "DEBRIEF_SCHEMA",
    "ExtractionPrompts",
]
