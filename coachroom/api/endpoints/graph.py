"""
Skill Graph API endpoints

Handles:
- Graph visualization data
- Syncing resume / job description text into the graph
- A debug-only sync with a canned resume
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from coachroom.api.dependencies import get_current_user_id, get_graph_store, get_skill_extractor
from coachroom.config.settings import get_settings
from coachroom.core.ai_client import AIConfigError
from coachroom.core.graph_store import GraphConfigError, SkillGraphStore
from coachroom.core.skill_extraction import SkillExtractor
from coachroom.models.graph import ExtractedSkill, GraphData

logger = logging.getLogger(__name__)

router = APIRouter()

TEST_SYNC_USER_ID = "test-user-v2"

TEST_SYNC_RESUME = """
Alex Chen
Senior Full Stack Engineer

Experience:
- 5 years building web apps with React, Next.js and TypeScript.
- Designed REST and GraphQL APIs in Node.js and Python (FastAPI).
- Ran PostgreSQL and Redis in production; some exposure to Neo4j.
- Deployed services on AWS with Docker and Kubernetes.
- Familiar with basic machine learning using scikit-learn.
"""


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class GraphSyncRequest(BaseModel):
    resume_text: str = ""
    jd_text: str = ""


class GraphSyncResponse(BaseModel):
    success: bool
    skills: list[ExtractedSkill] = []
    message: str = ""


async def _sync(
    extractor: SkillExtractor,
    user_id: str,
    resume_text: str,
    jd_text: str = "",
) -> GraphSyncResponse:
    try:
        skills = await extractor.sync_resume_to_graph(user_id, resume_text, jd_text)
    except (GraphConfigError, AIConfigError) as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Graph sync failed for {user_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Graph sync failed: {e}")

    if not skills:
        return GraphSyncResponse(success=False, message="No skills found")
    return GraphSyncResponse(success=True, skills=skills, message=f"Synced {len(skills)} skills")


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.get("", response_model=GraphData)
async def get_graph(
    user_id: str = Depends(get_current_user_id),
    graph_store: SkillGraphStore = Depends(get_graph_store),
) -> GraphData:
    """Get the user's skill graph for 3D visualization."""
    return await graph_store.get_user_graph_data(user_id)


@router.post("/sync", response_model=GraphSyncResponse)
async def sync_graph(
    request: GraphSyncRequest,
    user_id: str = Depends(get_current_user_id),
    extractor: SkillExtractor = Depends(get_skill_extractor),
) -> GraphSyncResponse:
    """Extract skills from resume / JD text and merge them into the graph."""
    return await _sync(extractor, user_id, request.resume_text, request.jd_text)


@router.get("/test-sync", response_model=GraphSyncResponse)
async def test_sync(
    extractor: SkillExtractor = Depends(get_skill_extractor),
) -> GraphSyncResponse:
    """Sync a canned resume for a fixed test user. Debug mode only."""
    if not get_settings().debug:
        raise HTTPException(status_code=404, detail="Not found")

    logger.info("Triggering test graph sync...")
    return await _sync(extractor, TEST_SYNC_USER_ID, TEST_SYNC_RESUME)
