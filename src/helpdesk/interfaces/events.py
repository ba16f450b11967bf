"""
Event Definitions
=================

Names and payload models of the events the worker reacts to.

Payloads are validated when an event is published, so a malformed event is
rejected at the boundary instead of failing deep inside a workflow.
"""

from typing import Dict, Optional, Type

from pydantic import BaseModel, ConfigDict, Field

from helpdesk.config import Priority, TicketType

TICKET_CREATED = "ticket/created"
TICKET_ASSIGNED = "ticket/assigned"
TICKET_ESCALATED = "ticket/escalated"
TICKET_RESOLVED = "ticket/resolved"
SLA_DAILY_SWEEP = "sla/daily-sweep"


class _EventPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class TicketCreatedEvent(_EventPayload):
    ticket_id: str = Field(alias="ticketId")
    title: str
    description: str
    priority: Priority = Priority.MEDIUM
    type: TicketType = TicketType.GENERAL
    created_by: Optional[str] = Field(default=None, alias="createdBy")


class TicketAssignedEvent(_EventPayload):
    ticket_id: str = Field(alias="ticketId")
    assigned_to: str = Field(alias="assignedTo")
    assigned_by: Optional[str] = Field(default=None, alias="assignedBy")


class TicketEscalatedEvent(_EventPayload):
    ticket_id: str = Field(alias="ticketId")
    escalated_by: str = Field(alias="escalatedBy")
    escalated_to: str = Field(alias="escalatedTo")
    reason: str = ""


class TicketResolvedEvent(_EventPayload):
    ticket_id: str = Field(alias="ticketId")


class DailySweepEvent(_EventPayload):
    pass


EVENT_PAYLOADS: Dict[str, Type[BaseModel]] = {
    TICKET_CREATED: TicketCreatedEvent,
    TICKET_ASSIGNED: TicketAssignedEvent,
    TICKET_ESCALATED: TicketEscalatedEvent,
    TICKET_RESOLVED: TicketResolvedEvent,
    SLA_DAILY_SWEEP: DailySweepEvent,
}
