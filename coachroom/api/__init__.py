"""
API layer for CoachRoom

Contains FastAPI routers for:
- Interview sessions and history
- Live voice room (WebSocket) and credentials
- Debrief generation
- Skill graph and resume parsing
"""

from coachroom.api.router import api_router

__all__ = ["api_router"]
