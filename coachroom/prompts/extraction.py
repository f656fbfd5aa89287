"""
Skill Extraction Prompts

Prompts for turning resume and job-description text into structured
skills, and for summarizing an uploaded resume document.
"""


class ExtractionPrompts:
    """Prompt templates for the knowledge-graph extraction pass."""

    SKILL_EXTRACTION = """You are an expert Resume Parser and Knowledge Graph Engineer.
Your task is to extract technical skills from the provided resume and job description text.

For each skill, determine:
1. Standardized Name (e.g., "React.js" -> "React", "Amazon Web Services" -> "AWS")
2. Category (Frontend, Backend, Database, DevOps, Language, Mobile, AI/ML, Other)
3. Proficiency Level (Expert, Intermediate, Beginner) based on context clues (years of experience, words like "proficient", "familiar"). Default to "Intermediate" if unsure.
4. Description: one short sentence on what the skill is.
5. Related: up to 3 closely related standardized skill names the candidate is likely to be asked about next.

Return ONLY a raw JSON array of objects. Do not include markdown formatting.
Example:
[
  {"name": "React", "category": "Frontend", "level": "Expert", "description": "Component-based UI library.", "related": ["Next.js", "Redux"]},
  {"name": "Python", "category": "Language", "level": "Intermediate", "description": "General-purpose language.", "related": ["FastAPI"]}
]"""

    RESUME_SUMMARY = (
        "You are a resume parser. Extract the candidate's name, key skills, and most recent "
        "experience summary from this resume. Return a concise summary text that can be used "
        "as context for an interviewer."
    )

    def extraction_input(self, resume_text: str, jd_text: str = "") -> str:
        """Combine resume and job description into one extraction input."""
        text = ""
        if resume_text and resume_text.strip():
            text += f"resumetext:\n{resume_text}\n\n"
        if jd_text and jd_text.strip():
            text += f"Job Description:\n{jd_text}"
        return text
