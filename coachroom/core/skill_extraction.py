"""
Skill Extraction for CoachRoom

Turns resume / job-description text into skills via Gemini and
forwards them to the skill graph, including the related-skill halo.
"""

import json
import logging

from pydantic import ValidationError

from coachroom.core.ai_client import GeminiTextClient
from coachroom.core.graph_store import SkillGraphStore
from coachroom.models.graph import ExtractedSkill
from coachroom.prompts.extraction import ExtractionPrompts

logger = logging.getLogger(__name__)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences around a JSON payload."""
    return text.replace("```json", "").replace("```", "").strip()


class SkillExtractor:
    """Extracts skills from text and syncs them to the graph."""

    def __init__(self, ai_client: GeminiTextClient, graph_store: SkillGraphStore):
        self.ai_client = ai_client
        self.graph_store = graph_store
        self.prompts = ExtractionPrompts()

    async def extract_skills(self, text: str) -> list[ExtractedSkill]:
        """
        Extract technical skills from free text.

        Returns:
            Parsed skills; empty when the model output is not usable
        """
        response = await self.ai_client.generate_text(
            text,
            system_instruction=self.prompts.SKILL_EXTRACTION,
            temperature=0,
            trace_name="skill_extraction",
        )

        try:
            data = json.loads(strip_code_fences(response))
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse LLM extraction response: {e}")
            return []

        if not isinstance(data, list):
            logger.error("LLM extraction response is not a JSON array")
            return []

        skills: list[ExtractedSkill] = []
        seen: set[str] = set()
        for item in data:
            try:
                skill = ExtractedSkill.model_validate(item)
            except ValidationError as e:
                logger.warning(f"Skipping malformed skill entry {item!r}: {e}")
                continue
            if skill.name.lower() in seen:
                continue
            seen.add(skill.name.lower())
            skills.append(skill)
        return skills

    async def sync_resume_to_graph(
        self,
        user_id: str,
        resume_text: str,
        jd_text: str = "",
    ) -> list[ExtractedSkill]:
        """
        Sync resume and/or job-description skills into the user's graph.

        Job-description skills are stored as the user's skills too: they
        are what the user is being tested on.
        """
        logger.info(f"Starting graph sync for user: {user_id}")

        text = self.prompts.extraction_input(resume_text, jd_text)
        if not text.strip():
            logger.warning("No text context to sync.")
            return []

        skills = await self.extract_skills(text)
        if not skills:
            logger.warning("No skills found to sync from text.")
            return []

        await self.graph_store.upsert_skills(user_id, skills)
        await self.graph_store.link_related([
            (skill.name, related.strip())
            for skill in skills
            for related in skill.related
        ])
        return skills

    async def parse_resume(self, data: bytes, mime_type: str = "application/pdf") -> str:
        """Summarize an uploaded resume into interviewer context."""
        logger.info(f"Parsing resume document ({len(data)} bytes, {mime_type})")
        return await self.ai_client.summarize_document(
            data,
            mime_type=mime_type,
            instruction=self.prompts.RESUME_SUMMARY,
        )
