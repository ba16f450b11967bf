"""In-memory collaborators for service tests."""

import copy
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

from helpdesk.assignment.application import ITicketAnalyzer
from helpdesk.assignment.domain import TicketAnalysis
from helpdesk.config import ACTIVE_STATUSES, Priority, TicketType, UserRole
from helpdesk.core import LLMException, NotificationException
from helpdesk.notifications.application import INotificationSender
from helpdesk.notifications.domain import Notification, NotificationReceipt
from helpdesk.tickets.application import ITicketRepository, IUserRepository
from helpdesk.tickets.domain import Ticket, User

T0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def make_ticket(ticket_id: str = "t-1", **overrides: Any) -> Ticket:
    fields = dict(
        id=ticket_id,
        title="Cannot log in to portal",
        description="The login page returns an error after submitting credentials.",
        created_by="u-creator",
        priority=Priority.MEDIUM,
        type=TicketType.TECHNICAL,
        created_at=T0,
    )
    fields.update(overrides)
    return Ticket(**fields)


def make_user(
    user_id: str,
    role: UserRole = UserRole.MODERATOR,
    skills: Sequence[str] = (),
    **overrides: Any
) -> User:
    fields = dict(
        id=user_id,
        email=f"{user_id}@example.com",
        name=user_id.title(),
        role=role,
        skills=list(skills),
        updated_at=T0,
    )
    fields.update(overrides)
    return User(**fields)


class InMemoryTicketRepository(ITicketRepository):

    def __init__(self, tickets: Sequence[Ticket] = ()):
        self.tickets: Dict[str, Ticket] = {t.id: copy.deepcopy(t) for t in tickets}
        self.mark_calls: List[str] = []

    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        ticket = self.tickets.get(ticket_id)
        return copy.deepcopy(ticket) if ticket else None

    async def save(self, ticket: Ticket) -> Ticket:
        ticket.validate()
        self.tickets[ticket.id] = copy.deepcopy(ticket)
        return ticket

    async def update_fields(self, ticket_id: str, **fields: Any) -> bool:
        ticket = self.tickets.get(ticket_id)
        if ticket is None:
            return False
        for key, value in fields.items():
            setattr(ticket, key, value)
        return True

    async def count_active_for_assignee(self, user_id: str) -> int:
        return sum(
            1 for t in self.tickets.values()
            if t.assigned_to == user_id and t.status in ACTIVE_STATUSES
        )

    async def find_near_sla_breach(self, threshold: datetime) -> List[Ticket]:
        found = [
            t for t in self.tickets.values()
            if t.status in ACTIVE_STATUSES and not t.sla_breached and t.sla_due_date <= threshold
        ]
        return [copy.deepcopy(t) for t in sorted(found, key=lambda t: (t.sla_due_date, t.id))]

    async def find_sla_breached(self, now: datetime) -> List[Ticket]:
        found = [
            t for t in self.tickets.values()
            if t.status in ACTIVE_STATUSES and not t.sla_breached and t.sla_due_date < now
        ]
        return [copy.deepcopy(t) for t in sorted(found, key=lambda t: (t.sla_due_date, t.id))]

    async def mark_sla_breached(self, ticket_id: str) -> bool:
        self.mark_calls.append(ticket_id)
        ticket = self.tickets.get(ticket_id)
        if ticket is None or ticket.sla_breached:
            return False
        ticket.sla_breached = True
        return True


class InMemoryUserRepository(IUserRepository):

    def __init__(self, users: Sequence[User] = ()):
        self.users: Dict[str, User] = {u.id: u for u in users}

    async def get_by_id(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    async def get_many(self, user_ids: Sequence[str]) -> List[User]:
        return [self.users[uid] for uid in user_ids if uid in self.users]

    async def find_active_by_role(self, role: UserRole) -> List[User]:
        return [u for u in self.users.values() if u.role == role and u.is_active]

    async def save(self, user: User) -> User:
        self.users[user.id] = user
        return user


class RecordingSender(INotificationSender):

    def __init__(self):
        self.sent: List[Notification] = []

    async def send(self, notification: Notification) -> NotificationReceipt:
        self.sent.append(notification)
        return NotificationReceipt(
            notification_type=notification.type,
            ticket_id=notification.ticket.id,
            recipient_id=notification.recipient.id,
        )


class FailingSender(INotificationSender):

    def __init__(self, fail_for: Optional[set] = None):
        self.fail_for = fail_for
        self.sent: List[Notification] = []

    async def send(self, notification: Notification) -> NotificationReceipt:
        if self.fail_for is None or notification.recipient.id in self.fail_for:
            raise NotificationException("SMTP relay unavailable")
        self.sent.append(notification)
        return NotificationReceipt(
            notification_type=notification.type,
            ticket_id=notification.ticket.id,
            recipient_id=notification.recipient.id,
        )


class StubAnalyzer(ITicketAnalyzer):

    def __init__(self, analysis: Optional[TicketAnalysis] = None, error: Optional[Exception] = None):
        self.analysis = analysis
        self.error = error
        self.calls = 0

    async def analyze(self, title, description, priority, ticket_type) -> TicketAnalysis:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.analysis


def failing_analyzer() -> StubAnalyzer:
    return StubAnalyzer(error=LLMException("model timed out"))


def hours(n: float) -> timedelta:
    return timedelta(hours=n)

