"""
Debrief Generator for CoachRoom

Generates the post-interview debrief:
- Reads the session (retrying transient store failures)
- Asks Gemini for a report matching a fixed JSON schema
- Persists the debrief and marks the session analyzed
- Feeds proposed skill scores back into the knowledge graph
"""

import json
import logging

from pydantic import ValidationError

from coachroom.config.settings import get_settings
from coachroom.core.ai_client import GeminiTextClient
from coachroom.core.graph_store import SkillGraphStore
from coachroom.core.session_store import SessionStore
from coachroom.core.skill_extraction import strip_code_fences
from coachroom.models.debrief import Debrief
from coachroom.prompts.debrief import DEBRIEF_SCHEMA, DebriefPrompts

logger = logging.getLogger(__name__)


class DebriefGenerationError(Exception):
    """Raised when the model output cannot be turned into a debrief."""
    pass


class DebriefGenerator:
    """
    Generates structured interview debriefs.

    A debrief is write-once-then-replaceable: calling generate() again
    overwrites the stored report.
    """

    def __init__(
        self,
        ai_client: GeminiTextClient,
        session_store: SessionStore,
        graph_store: SkillGraphStore | None = None,
    ):
        self.settings = get_settings()
        self.ai_client = ai_client
        self.session_store = session_store
        self.graph_store = graph_store
        self.prompts = DebriefPrompts()

    async def generate(self, session_id: str) -> Debrief:
        """
        Generate, store and return the debrief for a session.

        Raises:
            SessionNotFoundError: Unknown session
            AIConfigError: No Gemini API key
            DebriefGenerationError: Model output was not valid JSON
        """
        session = await self.session_store.get_session_with_retry(
            session_id,
            attempts=self.settings.debrief_read_attempts,
            delay_seconds=self.settings.debrief_read_delay_seconds,
        )

        if not session.transcript:
            logger.warning(f"Transcript for {session_id} is empty, generating minimal debrief.")

        known_skills: list[str] = []
        if self.graph_store:
            known_skills = await self.graph_store.get_user_skill_names(session.user_id)

        prompt = self.prompts.debrief_prompt(session, known_skills)
        text = await self.ai_client.generate_json(
            prompt,
            DEBRIEF_SCHEMA,
            trace_name="debrief_generation",
            trace_metadata={"session_id": session_id, "turns": len(session.transcript)},
        )

        debrief = self._parse(text)

        await self.session_store.save_debrief(session_id, debrief.model_dump(mode="json"))
        logger.info(f"Debrief saved for session {session_id}")

        await self._apply_skill_updates(session.user_id, debrief, known_skills)
        return debrief

    def _parse(self, text: str) -> Debrief:
        """Parse the raw model output into a Debrief."""
        try:
            data = json.loads(strip_code_fences(text or "") or "{}")
            return Debrief.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error(f"Failed to parse debrief JSON: {e}")
            raise DebriefGenerationError(
                "Failed to parse AI response: " + (text or "")[:100]
            ) from e

    async def _apply_skill_updates(
        self,
        user_id: str,
        debrief: Debrief,
        known_skills: list[str],
    ) -> None:
        """Push skill scores to the graph. Failures never fail the debrief."""
        if not self.graph_store or not debrief.skill_updates:
            return

        known = {name.lower(): name for name in known_skills}
        updates = [
            update.model_copy(update={"name": known[update.name.lower()]})
            for update in debrief.skill_updates
            if update.name.lower() in known
        ]
        if not updates:
            return

        try:
            await self.graph_store.update_mastery(user_id, updates)
        except Exception as e:
            logger.error(f"Failed to update graph mastery: {e}")
