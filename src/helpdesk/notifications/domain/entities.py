"""
Notification Domain Entities
============================

Tagged notification payloads.

Every payload carries a ``type`` discriminator, the ticket summary (with
creator and assignee populated) and the recipient. ``Notification`` is the
discriminated union accepted by senders, so a payload missing a required
field fails validation where it is built.
"""

from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from helpdesk.config import NotificationType, Priority, TicketStatus, TicketType, UserRole
from helpdesk.tickets.domain import Ticket, User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationRecipient(BaseModel):
    """A user addressed by, or mentioned in, a notification."""
    id: str
    name: str
    email: str
    role: UserRole

    @classmethod
    def from_domain(cls, user: User) -> "NotificationRecipient":
        return cls(id=user.id, name=user.name, email=user.email, role=user.role)


class TicketSummary(BaseModel):
    """Ticket fields included in notifications."""
    id: str
    title: str
    description: str
    status: TicketStatus
    priority: Priority
    type: TicketType
    required_skills: List[str] = Field(default_factory=list)
    ai_notes: Optional[str] = None
    sla_due_date: Optional[datetime] = None
    sla_breached: bool = False
    created_at: datetime
    creator: Optional[NotificationRecipient] = None
    assignee: Optional[NotificationRecipient] = None

    @classmethod
    def from_domain(
        cls,
        ticket: Ticket,
        creator: Optional[User] = None,
        assignee: Optional[User] = None
    ) -> "TicketSummary":
        return cls(
            id=ticket.id,
            title=ticket.title,
            description=ticket.description,
            status=ticket.status,
            priority=ticket.priority,
            type=ticket.type,
            required_skills=list(ticket.required_skills),
            ai_notes=ticket.ai_notes,
            sla_due_date=ticket.sla_due_date,
            sla_breached=ticket.sla_breached,
            created_at=ticket.created_at,
            creator=NotificationRecipient.from_domain(creator) if creator else None,
            assignee=NotificationRecipient.from_domain(assignee) if assignee else None,
        )


class _NotificationBase(BaseModel):
    ticket: TicketSummary
    recipient: NotificationRecipient
    created_at: datetime = Field(default_factory=_utcnow)


class AssignmentNotification(_NotificationBase):
    """A ticket was assigned to the recipient."""
    type: Literal["assignment"] = "assignment"
    assignee: NotificationRecipient
    assigner: Optional[NotificationRecipient] = None


class EscalationNotification(_NotificationBase):
    """A ticket was escalated to the recipient."""
    type: Literal["escalation"] = "escalation"
    escalator: NotificationRecipient
    escalation_reason: str


class SLAWarningNotification(_NotificationBase):
    """A ticket is close to (or past) its SLA deadline."""
    type: Literal["sla-warning"] = "sla-warning"
    hours_until_breach: Optional[int] = None


class ResolutionNotification(_NotificationBase):
    """A ticket created by the recipient was resolved."""
    type: Literal["resolution"] = "resolution"


Notification = Annotated[
    Union[
        AssignmentNotification,
        EscalationNotification,
        SLAWarningNotification,
        ResolutionNotification,
    ],
    Field(discriminator="type"),
]


class NotificationReceipt(BaseModel):
    """Delivery confirmation returned by a sender."""
    notification_type: NotificationType
    ticket_id: str
    recipient_id: str
    delivered: bool = True
    detail: Optional[str] = None
