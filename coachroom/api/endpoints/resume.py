"""
Resume API endpoints

Handles:
- Resume upload and summarization into interviewer context
"""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel

from coachroom.api.dependencies import get_current_user_id, get_skill_extractor
from coachroom.core.ai_client import AIConfigError
from coachroom.core.skill_extraction import SkillExtractor

logger = logging.getLogger(__name__)

router = APIRouter()

SUPPORTED_RESUME_TYPES = {"application/pdf", "text/plain"}


class ResumeParseResponse(BaseModel):
    text: str
    filename: str | None = None


@router.post("/parse", response_model=ResumeParseResponse)
async def parse_resume(
    file: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
    extractor: SkillExtractor = Depends(get_skill_extractor),
) -> ResumeParseResponse:
    """Summarize an uploaded resume for the interview setup flow."""
    mime_type = file.content_type or "application/pdf"
    if mime_type not in SUPPORTED_RESUME_TYPES:
        raise HTTPException(status_code=400, detail=f"Unsupported file type: {mime_type}")

    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="No file uploaded")

    try:
        text = await extractor.parse_resume(data, mime_type=mime_type)
    except AIConfigError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Error parsing resume: {e}")
        raise HTTPException(status_code=500, detail="Failed to parse resume")

    return ResumeParseResponse(text=text, filename=file.filename)
