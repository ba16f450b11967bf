"""
Notification Application Services
==================================

Simple notification workflows: fetch the ticket and the users involved,
build the payload, send.

A missing ticket or a missing principal user is a hard failure for that
notification only (``ResourceNotFoundException``). Delivery failures surface
as ``NotificationException`` and never touch ticket state.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from helpdesk.config import UserRole
from helpdesk.core import NotificationException, ResourceNotFoundException
from helpdesk.notifications.domain import (
    AssignmentNotification,
    EscalationNotification,
    Notification,
    NotificationReceipt,
    NotificationRecipient,
    ResolutionNotification,
    SLAWarningNotification,
    TicketSummary,
)
from helpdesk.shared.infrastructure.logging import get_logger
from helpdesk.tickets.application import ITicketRepository, IUserRepository
from helpdesk.tickets.domain import Ticket, User, utcnow

logger = get_logger(__name__)


class INotificationSender(ABC):
    """Interface for notification delivery."""

    @abstractmethod
    async def send(self, notification: Notification) -> NotificationReceipt:
        """
        Deliver one notification.

        Raises:
            NotificationException: If delivery fails
        """

    async def close(self) -> None:
        """Release delivery resources."""
        return None


class TicketNotificationService:
    """
    Builds and sends ticket notifications.

    Used by the assignment workflow, the SLA sweep and the event handlers
    for manual assignment, escalation and resolution.
    """

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        user_repository: IUserRepository,
        sender: INotificationSender
    ):
        self._ticket_repo = ticket_repository
        self._user_repo = user_repository
        self._sender = sender

    async def _get_ticket(self, ticket_id: str) -> Ticket:
        ticket = await self._ticket_repo.get_by_id(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)
        return ticket

    async def _get_user(self, user_id: str) -> User:
        user = await self._user_repo.get_by_id(user_id)
        if user is None:
            raise ResourceNotFoundException("User", user_id)
        return user

    async def _ticket_with_people(self, ticket_id: str) -> Tuple[Ticket, TicketSummary, Dict[str, User]]:
        """Fetch the ticket with its creator and assignee populated."""
        ticket = await self._get_ticket(ticket_id)
        wanted = [uid for uid in (ticket.created_by, ticket.assigned_to) if uid]
        people = {user.id: user for user in await self._user_repo.get_many(wanted)}
        summary = TicketSummary.from_domain(
            ticket,
            creator=people.get(ticket.created_by),
            assignee=people.get(ticket.assigned_to) if ticket.assigned_to else None
        )
        return ticket, summary, people

    async def _send(self, notification: Notification) -> NotificationReceipt:
        receipt = await self._sender.send(notification)
        logger.info(
            "Notification sent",
            extra={
                "notification_type": notification.type,
                "ticket_id": notification.ticket.id,
                "recipient_id": notification.recipient.id,
                "delivered": receipt.delivered
            }
        )
        return receipt

    async def notify_assignment(
        self,
        ticket_id: str,
        assignee_id: str,
        assigner_id: Optional[str] = None
    ) -> NotificationReceipt:
        """
        Tell the assignee a ticket is theirs.

        Raises:
            ResourceNotFoundException: Ticket, assignee or assigner missing
            NotificationException: Delivery failed
        """
        _, summary, people = await self._ticket_with_people(ticket_id)
        assignee = people.get(assignee_id) or await self._get_user(assignee_id)
        assigner = await self._get_user(assigner_id) if assigner_id else None

        recipient = NotificationRecipient.from_domain(assignee)
        return await self._send(AssignmentNotification(
            ticket=summary,
            recipient=recipient,
            assignee=recipient,
            assigner=NotificationRecipient.from_domain(assigner) if assigner else None
        ))

    async def notify_escalation(
        self,
        ticket_id: str,
        escalated_by: str,
        escalated_to: str,
        reason: str
    ) -> NotificationReceipt:
        """
        Tell the escalation target about the ticket.

        Raises:
            ResourceNotFoundException: Ticket, escalator or target missing
            NotificationException: Delivery failed
        """
        _, summary, _ = await self._ticket_with_people(ticket_id)
        escalator = await self._get_user(escalated_by)
        target = await self._get_user(escalated_to)

        return await self._send(EscalationNotification(
            ticket=summary,
            recipient=NotificationRecipient.from_domain(target),
            escalator=NotificationRecipient.from_domain(escalator),
            escalation_reason=reason
        ))

    async def notify_resolution(self, ticket_id: str) -> NotificationReceipt:
        """
        Tell the ticket creator their ticket was resolved.

        Raises:
            ResourceNotFoundException: Ticket or creator missing
            NotificationException: Delivery failed
        """
        ticket, summary, people = await self._ticket_with_people(ticket_id)
        creator = people.get(ticket.created_by)
        if creator is None:
            raise ResourceNotFoundException("User", ticket.created_by)

        return await self._send(ResolutionNotification(
            ticket=summary,
            recipient=NotificationRecipient.from_domain(creator)
        ))

    async def notify_sla_warning(
        self,
        ticket_id: str,
        now: Optional[datetime] = None
    ) -> List[NotificationReceipt]:
        """
        Warn the assignee and every active admin that a ticket is near its
        SLA deadline.

        Recipients are de-duplicated by id, so an assignee who is also an
        admin is warned once. A failed delivery is logged and the remaining
        recipients are still warned.

        Raises:
            ResourceNotFoundException: If the ticket does not exist
        """
        now = now or utcnow()
        ticket, summary, people = await self._ticket_with_people(ticket_id)

        recipients: Dict[str, User] = {}
        if ticket.assigned_to:
            assignee = people.get(ticket.assigned_to)
            if assignee is not None:
                recipients[assignee.id] = assignee
            else:
                logger.warning(
                    "Assignee not found for SLA warning",
                    extra={"ticket_id": ticket_id, "user_id": ticket.assigned_to}
                )
        for admin in await self._user_repo.find_active_by_role(UserRole.ADMIN):
            recipients.setdefault(admin.id, admin)

        hours_left = ticket.hours_until_sla_breach(now)
        receipts: List[NotificationReceipt] = []
        for user in recipients.values():
            try:
                receipts.append(await self._send(SLAWarningNotification(
                    ticket=summary,
                    recipient=NotificationRecipient.from_domain(user),
                    hours_until_breach=hours_left
                )))
            except NotificationException as e:
                logger.error(
                    "SLA warning delivery failed",
                    extra={"ticket_id": ticket_id, "recipient_id": user.id, "error": str(e)}
                )
        return receipts
