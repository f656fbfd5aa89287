"""
Debrief Generation Prompts

Contains the fixed response schema and the coaching prompt used to
turn an interview transcript into a structured debrief.
"""

from coachroom.models.session import Session


def _evidence_schema() -> dict:
    return {
        "type": "OBJECT",
        "properties": {
            "timestamp_start": {"type": "STRING"},
            "timestamp_end": {"type": "STRING"},
            "quote": {"type": "STRING"},
        },
    }


DEBRIEF_SCHEMA: dict = {
    "type": "OBJECT",
    "properties": {
        "session_summary": {
            "type": "OBJECT",
            "properties": {
                "session_status": {"type": "STRING", "enum": ["ended_early", "completed"]},
                "planned_duration_minutes": {"type": "INTEGER"},
                "actual_duration_minutes": {"type": "INTEGER"},
                "role_guess": {"type": "STRING"},
                "company": {"type": "STRING"},
                "interview_type": {"type": "STRING"},
                "difficulty": {"type": "STRING"},
                "topics_discussed": {
                    "type": "ARRAY",
                    "items": {
                        "type": "OBJECT",
                        "properties": {
                            "topic": {"type": "STRING"},
                            "notes": {"type": "ARRAY", "items": {"type": "STRING"}},
                        },
                    },
                },
            },
        },
        "conversation_summary": {"type": "STRING"},
        "scores": {
            "type": "OBJECT",
            "properties": {
                "overall": {"type": "INTEGER"},
                "communication_structure_star": {"type": "INTEGER"},
                "role_fit": {"type": "INTEGER"},
                "confidence_clarity": {"type": "INTEGER"},
                "delivery": {"type": "INTEGER"},
                "technical_depth": {"type": "INTEGER"},
            },
        },
        "strengths": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "title": {"type": "STRING"},
                    "evidence": _evidence_schema(),
                    "why_it_matters": {"type": "STRING"},
                },
            },
        },
        "improvements": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "title": {"type": "STRING"},
                    "issue": {"type": "STRING"},
                    "evidence": _evidence_schema(),
                    "better_answer_example": {"type": "STRING"},
                    "micro_exercise": {"type": "STRING"},
                },
            },
        },
        "delivery_metrics": {
            "type": "OBJECT",
            "properties": {
                "filler_word_estimate": {"type": "INTEGER"},
                "pace_wpm_estimate": {"type": "INTEGER"},
                "long_pause_estimate": {"type": "INTEGER"},
            },
        },
        "moments_that_mattered": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "label": {"type": "STRING"},
                    "timestamp_start": {"type": "STRING"},
                    "timestamp_end": {"type": "STRING"},
                    "reason": {"type": "STRING"},
                },
            },
        },
        "qa_recap": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "question": {"type": "STRING"},
                    "answer_summary": {"type": "STRING"},
                    "score": {"type": "INTEGER"},
                },
            },
        },
        "next_interview_checklist": {"type": "ARRAY", "items": {"type": "STRING"}},
        "skill_updates": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "name": {"type": "STRING"},
                    "score": {"type": "INTEGER"},
                },
            },
        },
        "notes_if_low_data": {"type": "STRING"},
    },
    "required": [
        "session_summary",
        "conversation_summary",
        "scores",
        "strengths",
        "improvements",
        "delivery_metrics",
        "moments_that_mattered",
        "next_interview_checklist",
    ],
}


class DebriefPrompts:
    """Prompt templates for the interview coach debrief."""

    SYSTEM_CONTEXT = """You are an expert Interview Coach. Analyze the following interview transcript and generate a debrief JSON."""

    def debrief_prompt(self, session: Session, known_skills: list[str] | None = None) -> str:
        """Build the debrief prompt for a session."""
        config = session.config
        transcript_text = session.transcript_text()

        skills_hint = ""
        if known_skills:
            skills_hint = (
                "- `skill_updates`: score (0-100) ONLY skills from this list that were actually "
                f"exercised in the interview: {', '.join(known_skills)}.\n"
            )

        return f"""{self.SYSTEM_CONTEXT}

Context:
Role: {config.role or "General"}
Difficulty: {config.difficulty.value}
Job Description: {config.job_description or "Not provided"}

Transcript:
{transcript_text if transcript_text.strip() else "(No audible conversation recorded)"}

Requirements:
- `conversation_summary`: A comprehensive paragraph recounting what was discussed in the interview.
- `improvements`: Provide at least 3 to 5 specific improvement items.
- `evidence.quote`: Preserve the speaker's original speech patterns, interruptions, filler words and stammers. Do not correct the grammar or fluency of the quote.
- `qa_recap`: One entry per interviewer question with a short summary of the answer and a 0-100 score.
{skills_hint}- CRITICAL: ALL SCORES MUST BE ON A SCALE OF 0-100 (e.g., 75, 88, 92). Do not use 0-5 or 0-10.
- If the transcript is short (< 2 turns) or empty, give a low score and explain in `notes_if_low_data` that the session had no usable audio.
"""
