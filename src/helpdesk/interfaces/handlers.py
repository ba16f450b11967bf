"""
Event Handlers
==============

Entry points called by the event layer.

Each handler delegates to an application service and returns a plain
dict summary. Handlers do not catch exceptions; the dispatcher logs
whatever escapes.
"""

from typing import Any, Dict, Optional

from helpdesk.assignment.application import TicketAssignmentWorkflow
from helpdesk.config import Priority, TicketType
from helpdesk.notifications.application import TicketNotificationService
from helpdesk.shared.infrastructure.logging import get_logger
from helpdesk.sla.application import SLASweepService

logger = get_logger(__name__)


class TicketEventHandlers:
    """
    Handlers for ticket and SLA events.

    Services are injected once at process start.
    """

    def __init__(
        self,
        workflow: TicketAssignmentWorkflow,
        sweep_service: SLASweepService,
        notification_service: TicketNotificationService
    ):
        self._workflow = workflow
        self._sweep = sweep_service
        self._notifications = notification_service

    async def on_ticket_created(
        self,
        ticket_id: str,
        title: str,
        description: str,
        priority: Priority,
        type: TicketType,
        created_by: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Run the assignment workflow for a new ticket.

        Returns:
            ticket_id, ai_analysis, assignment_result, processing_complete

        Raises:
            ResourceNotFoundException: If the ticket does not exist
        """
        result = await self._workflow.process(
            ticket_id, title, description, priority, type, created_by
        )
        return {
            "ticket_id": result.ticket_id,
            "ai_analysis": result.ai_analysis.model_dump(mode="json"),
            "assignment_result": result.assignment_result.model_dump(mode="json"),
            "processing_complete": result.processing_complete,
        }

    async def on_daily_sweep(self) -> Dict[str, int]:
        """Run the SLA sweep."""
        result = await self._sweep.run_daily_sweep()
        return {
            "tickets_near_breach": result.tickets_near_breach,
            "tickets_breached": result.tickets_breached,
        }

    async def on_ticket_assigned_manually(
        self,
        ticket_id: str,
        assigned_to: str,
        assigned_by: Optional[str] = None
    ) -> Dict[str, Any]:
        """Notify the assignee of a manual assignment."""
        receipt = await self._notifications.notify_assignment(ticket_id, assigned_to, assigned_by)
        return {"success": True, "receipt": receipt.model_dump(mode="json")}

    async def on_ticket_escalated(
        self,
        ticket_id: str,
        escalated_by: str,
        escalated_to: str,
        reason: str
    ) -> Dict[str, Any]:
        """Notify the escalation target."""
        receipt = await self._notifications.notify_escalation(
            ticket_id, escalated_by, escalated_to, reason
        )
        return {"success": True, "receipt": receipt.model_dump(mode="json")}

    async def on_ticket_resolved(self, ticket_id: str) -> Dict[str, Any]:
        """Notify the ticket creator of the resolution."""
        receipt = await self._notifications.notify_resolution(ticket_id)
        return {"success": True, "receipt": receipt.model_dump(mode="json")}
