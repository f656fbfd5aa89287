"""
Interviewer System Prompts

Builds the system instruction handed to the live voice endpoint
when a session connects.
"""

from coachroom.models.graph import GraphContext
from coachroom.models.session import SessionConfig


class InterviewerPrompts:
    """
    Prompt templates for the live interviewer persona.

    The instruction combines:
    - Role and difficulty from setup
    - Optional job description and resume context
    - Optional knowledge-graph personalization
    """

    CLOSING_INSTRUCTIONS = """Conduct a professional technical interview.
Start by welcoming the candidate and asking a relevant opening question based on the role/JD/Resume.
Keep your responses concise and conversational."""

    def system_instruction(
        self,
        config: SessionConfig,
        graph_context: GraphContext | None = None,
    ) -> str:
        """Build the system instruction for a live session."""
        sections = [
            f"You are an expert interviewer for a {config.role} position.\n"
            f"The difficulty level is {config.difficulty.value}."
        ]

        if config.job_description:
            sections.append(f"Job Description Context:\n{config.job_description}")

        if config.resume:
            sections.append(f"Candidate Resume Context:\n{config.resume}")

        if graph_context and graph_context.summary:
            sections.append(graph_context.summary.strip())

        sections.append(self.CLOSING_INSTRUCTIONS)
        return "\n\n".join(sections)
