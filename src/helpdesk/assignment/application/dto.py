"""
Assignment Application DTOs
============================

Result types returned by the assignment workflow stages.

Each stage returns a structured result instead of raising, so the
aggregate result can always be assembled.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from helpdesk.assignment.domain import TicketAnalysis, WorkflowStage
from helpdesk.config import UserRole
from helpdesk.tickets.domain import User


class AssigneeInfo(BaseModel):
    """Identity of the user a ticket was assigned to."""
    id: str
    name: str
    email: str
    role: UserRole

    @classmethod
    def from_domain(cls, user: User) -> "AssigneeInfo":
        return cls(id=user.id, name=user.name, email=user.email, role=user.role)


class AnalysisUpdateResult(BaseModel):
    """Outcome of writing the analysis back onto the ticket."""
    success: bool
    error: Optional[str] = None


class AssignmentResult(BaseModel):
    """
    Outcome of assignee selection.

    ``success=False`` with a ``reason`` is a reportable outcome (nobody
    available); ``error`` is set when the step itself failed.
    """
    success: bool
    assigned_to: Optional[AssigneeInfo] = None
    reason: Optional[str] = None
    error: Optional[str] = None


class NotificationStepResult(BaseModel):
    """Outcome of the assignment notification."""
    success: bool
    skipped: bool = False
    error: Optional[str] = None


class TicketProcessingResult(BaseModel):
    """Aggregate result of processing one ticket."""
    ticket_id: str
    ai_analysis: TicketAnalysis
    analysis_update: AnalysisUpdateResult
    assignment_result: AssignmentResult
    notification_result: NotificationStepResult
    stages: List[WorkflowStage] = Field(default_factory=list)
    processing_complete: bool = True
    completed_at: Optional[datetime] = None

    @property
    def final_stage(self) -> WorkflowStage:
        return self.stages[-1] if self.stages else WorkflowStage.CREATED
