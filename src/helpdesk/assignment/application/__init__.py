"""
Assignment Application Layer
============================

Application layer for ticket assignment.

Contains:
- Services: analyzer, skill matcher, workload ranker, assignee selector
  and the assignment workflow
- DTOs: structured stage results
"""

from helpdesk.assignment.application.dto import (
    AnalysisUpdateResult,
    AssigneeInfo,
    AssignmentResult,
    NotificationStepResult,
    TicketProcessingResult,
)
from helpdesk.assignment.application.services import (
    NO_ASSIGNEE_REASON,
    AssigneeSelector,
    ITicketAnalyzer,
    LLMTicketAnalyzer,
    SkillMatcher,
    TicketAssignmentWorkflow,
    WorkloadRanker,
    extract_json,
)

__all__ = [
    # DTOs
    "AnalysisUpdateResult",
    "AssigneeInfo",
    "AssignmentResult",
    "NotificationStepResult",
    "TicketProcessingResult",
    # Services
    "NO_ASSIGNEE_REASON",
    "AssigneeSelector",
    "ITicketAnalyzer",
    "LLMTicketAnalyzer",
    "SkillMatcher",
    "TicketAssignmentWorkflow",
    "WorkloadRanker",
    "extract_json",
]
