"""
Session API endpoints

Handles interview session records:
- Creating sessions from the setup flow
- Reading a session (debrief page, live room)
- Appending transcript turns
- Ending sessions
- History and dashboard views
"""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from coachroom.api.dependencies import get_current_user_id, get_session_store
from coachroom.core.session_store import SessionStore
from coachroom.models.session import Session, SessionConfig, SessionStatus, Speaker

router = APIRouter()


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class CreateSessionResponse(BaseModel):
    session_id: str
    status: str


class TranscriptRequest(BaseModel):
    role: Speaker
    text: str


class SessionListItem(BaseModel):
    """Compact session row for history and dashboard."""
    session_id: str
    role: str
    difficulty: str
    status: str
    start_time: datetime | None = None
    overall_score: int | None = None


class DashboardResponse(BaseModel):
    total_sessions: int
    analyzed_sessions: int
    average_score: float | None = None
    best_score: int | None = None
    recent: list[SessionListItem] = []


def _to_list_item(session: Session) -> SessionListItem:
    overall = None
    if session.debrief:
        overall = (session.debrief.get("scores") or {}).get("overall")
    return SessionListItem(
        session_id=session.id,
        role=session.config.role,
        difficulty=session.config.difficulty.value,
        status=session.status.value,
        start_time=session.start_time,
        overall_score=overall,
    )


async def _owned_session(store: SessionStore, session_id: str, user_id: str) -> Session:
    session = await store.get_session(session_id)
    if not session or session.user_id != user_id:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.post("", response_model=CreateSessionResponse)
async def create_session(
    config: SessionConfig,
    user_id: str = Depends(get_current_user_id),
    store: SessionStore = Depends(get_session_store),
) -> CreateSessionResponse:
    """Create an active session from the setup configuration."""
    try:
        session_id = await store.create_session(user_id, config)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to create session: {e}")

    return CreateSessionResponse(session_id=session_id, status=SessionStatus.ACTIVE.value)


@router.get("", response_model=list[SessionListItem])
async def list_sessions(
    limit: int = 20,
    user_id: str = Depends(get_current_user_id),
    store: SessionStore = Depends(get_session_store),
) -> list[SessionListItem]:
    """Interview history, newest first."""
    sessions = await store.list_sessions(user_id, limit=max(1, min(limit, 100)))
    return [_to_list_item(s) for s in sessions]


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    user_id: str = Depends(get_current_user_id),
    store: SessionStore = Depends(get_session_store),
) -> DashboardResponse:
    """Aggregate stats for the dashboard page."""
    items = [_to_list_item(s) for s in await store.list_sessions(user_id, limit=100)]
    scores = [item.overall_score for item in items if item.overall_score is not None]

    return DashboardResponse(
        total_sessions=len(items),
        analyzed_sessions=sum(1 for item in items if item.status == SessionStatus.ANALYZED.value),
        average_score=round(sum(scores) / len(scores), 1) if scores else None,
        best_score=max(scores) if scores else None,
        recent=items[:5],
    )


@router.get("/{session_id}", response_model=Session)
async def get_session(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    store: SessionStore = Depends(get_session_store),
) -> Session:
    """Get a full session record."""
    return await _owned_session(store, session_id, user_id)


@router.post("/{session_id}/transcript")
async def append_transcript(
    session_id: str,
    request: TranscriptRequest,
    user_id: str = Depends(get_current_user_id),
    store: SessionStore = Depends(get_session_store),
) -> dict[str, Any]:
    """Append one transcript turn."""
    await _owned_session(store, session_id, user_id)
    await store.append_transcript(session_id, request.role, request.text)
    return {"status": "ok", "session_id": session_id}


@router.post("/{session_id}/end")
async def end_session(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    store: SessionStore = Depends(get_session_store),
) -> dict[str, Any]:
    """Mark the interview completed."""
    session = await _owned_session(store, session_id, user_id)

    if session.status != SessionStatus.ACTIVE:
        return {"status": "already_ended", "session_id": session_id}

    await store.end_session(session_id)
    return {"status": SessionStatus.COMPLETED.value, "session_id": session_id}
