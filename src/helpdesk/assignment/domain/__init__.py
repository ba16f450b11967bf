"""
Assignment Domain Layer
=======================

Domain layer for ticket analysis and assignment.

Contains:
- TicketAnalysis: validated analysis result, with the fallback default
- Skill matching rule (bidirectional, case-insensitive substring)
- WorkflowStage and AnalysisPromptBuilder

This layer is framework-agnostic and contains pure business logic.
"""

from helpdesk.assignment.domain.entities import (
    FALLBACK_AI_NOTES,
    FALLBACK_RESOLUTION_HOURS,
    AnalysisPromptBuilder,
    TicketAnalysis,
    WorkflowStage,
    matches_any,
    skill_matches,
)

__all__ = [
    "FALLBACK_AI_NOTES",
    "FALLBACK_RESOLUTION_HOURS",
    "AnalysisPromptBuilder",
    "TicketAnalysis",
    "WorkflowStage",
    "matches_any",
    "skill_matches",
]
