"""
Main API router for CoachRoom

Aggregates all API routes and provides the main application router.
"""

from fastapi import APIRouter

from coachroom.api.endpoints import sessions, live, debrief, graph, resume

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(
    sessions.router,
    prefix="/sessions",
    tags=["Sessions"]
)

api_router.include_router(
    live.router,
    prefix="/live",
    tags=["Live"]
)

api_router.include_router(
    debrief.router,
    prefix="/debrief",
    tags=["Debrief"]
)

api_router.include_router(
    graph.router,
    prefix="/graph",
    tags=["Graph"]
)

api_router.include_router(
    resume.router,
    prefix="/resume",
    tags=["Resume"]
)
