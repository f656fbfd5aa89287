"""
Skill graph models for CoachRoom

Shapes for skills extracted from resume/JD text, the personalization
context injected into interviews, and the force-graph visualization payload.
"""

from enum import Enum

from pydantic import BaseModel, Field, field_validator


class ProficiencyLevel(str, Enum):
    """Level carried on a HAS_SKILL relationship."""

    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    EXPERT = "Expert"

    @classmethod
    def from_score(cls, score: float) -> "ProficiencyLevel":
        """Map a 0-100 debrief score to a level."""
        if score >= 80:
            return cls.EXPERT
        elif score >= 40:
            return cls.INTERMEDIATE
        else:
            return cls.BEGINNER

    @property
    def color(self) -> str:
        colors = {
            "Expert": "#4ade80",
            "Intermediate": "#facc15",
            "Beginner": "#f87171",
        }
        return colors[self.value]

    @property
    def node_size(self) -> int:
        sizes = {
            "Expert": 10,
            "Intermediate": 7,
            "Beginner": 5,
        }
        return sizes[self.value]


class ExtractedSkill(BaseModel):
    """A skill parsed from resume or job description text."""

    name: str = Field(..., min_length=1)
    category: str = "Other"
    level: ProficiencyLevel = ProficiencyLevel.INTERMEDIATE
    description: str = ""
    related: list[str] = Field(
        default_factory=list,
        description="Adjacent skills used to build the halo"
    )

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("level", mode="before")
    @classmethod
    def default_level(cls, value):
        # Unknown levels fall back to Intermediate
        try:
            return ProficiencyLevel(str(value).strip().capitalize())
        except ValueError:
            return ProficiencyLevel.INTERMEDIATE


class GraphContext(BaseModel):
    """User skill profile used to personalize the interviewer prompt."""

    weak_skills: list[str] = Field(default_factory=list)
    intermediate_skills: list[str] = Field(default_factory=list)
    expert_skills: list[str] = Field(default_factory=list)
    halo_skills: list[str] = Field(default_factory=list)
    summary: str = ""


class GraphNode(BaseModel):
    id: str
    name: str
    label: str = ""
    group: int = 1
    val: int = 5
    color: str = "#808080"


class GraphLink(BaseModel):
    source: str
    target: str
    color: str = "rgba(255,255,255,0.2)"
    width: float = 1


class GraphData(BaseModel):
    """Payload compatible with react-force-graph-3d."""

    nodes: list[GraphNode] = Field(default_factory=list)
    links: list[GraphLink] = Field(default_factory=list)
