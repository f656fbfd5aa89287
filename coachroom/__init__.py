"""
CoachRoom - Voice Interview Practice Platform

Real-time voice mock interviews against Gemini Live, with structured
debriefs and a per-user skill knowledge graph.
"""

__version__ = "0.1.0"
__author__ = "CoachRoom Team"
