"""
Debrief API endpoints

Handles:
- Debrief generation after an interview ends
- Debrief retrieval
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from coachroom.api.dependencies import (
    get_current_user_id,
    get_debrief_generator,
    get_session_store,
)
from coachroom.core.ai_client import AIConfigError
from coachroom.core.debrief_generator import DebriefGenerationError, DebriefGenerator
from coachroom.core.session_store import SessionNotFoundError, SessionStore
from coachroom.models.debrief import Debrief

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/{session_id}", response_model=Debrief)
async def generate_debrief(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    store: SessionStore = Depends(get_session_store),
    generator: DebriefGenerator = Depends(get_debrief_generator),
) -> Debrief:
    """
    Generate (or regenerate) the debrief for a session.

    The stored debrief is replaced and the session is marked analyzed.
    """
    session = await store.get_session(session_id)
    if session and session.user_id != user_id:
        raise HTTPException(status_code=404, detail="Session not found")

    try:
        return await generator.generate(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except AIConfigError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except DebriefGenerationError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.error(f"Error generating debrief: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to generate debrief: {e}")


@router.get("/{session_id}", response_model=Debrief)
async def get_debrief(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    store: SessionStore = Depends(get_session_store),
) -> Debrief:
    """Get the stored debrief."""
    session = await store.get_session(session_id)
    if not session or session.user_id != user_id:
        raise HTTPException(status_code=404, detail="Session not found")

    if not session.debrief:
        raise HTTPException(status_code=404, detail="Debrief not generated yet")

    return Debrief.model_validate(session.debrief)
