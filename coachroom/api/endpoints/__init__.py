"""
API endpoint modules for CoachRoom
"""

from coachroom.api.endpoints import sessions, live, debrief, graph, resume

__all__ = ["sessions", "live", "debrief", "graph", "resume"]
