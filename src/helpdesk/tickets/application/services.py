"""
Ticket Application Services
============================

Store interfaces for tickets and users, and the ticket lifecycle service.

Following SOLID principles:
- Dependency Inversion: workflows depend on these abstractions, never on
  a concrete store
- Single Responsibility: the lifecycle service only creates tickets and
  moves them between statuses
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, List, Optional, Sequence
from uuid import uuid4

from helpdesk.config import Priority, TicketStatus, TicketType, UserRole
from helpdesk.core import ResourceNotFoundException
from helpdesk.shared.infrastructure.logging import get_logger
from helpdesk.tickets.domain import Ticket, User

logger = get_logger(__name__)


# ========== Repository Interfaces (Dependency Inversion) ==========

class ITicketRepository(ABC):
    """Interface for ticket data access."""

    @abstractmethod
    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        """Get ticket by ID."""

    @abstractmethod
    async def save(self, ticket: Ticket) -> Ticket:
        """Validate and persist the whole ticket (insert or replace)."""

    @abstractmethod
    async def update_fields(self, ticket_id: str, **fields: Any) -> bool:
        """
        Atomically update selected fields of one ticket.

        Returns:
            False if the ticket does not exist
        """

    @abstractmethod
    async def count_active_for_assignee(self, user_id: str) -> int:
        """Count open and in-progress tickets assigned to a user."""

    @abstractmethod
    async def find_near_sla_breach(self, threshold: datetime) -> List[Ticket]:
        """
        Active, not-yet-breached tickets due on or before ``threshold``,
        earliest deadline first.
        """

    @abstractmethod
    async def find_sla_breached(self, now: datetime) -> List[Ticket]:
        """Active, not-yet-breached tickets whose deadline is before ``now``."""

    @abstractmethod
    async def mark_sla_breached(self, ticket_id: str) -> bool:
        """
        Set ``sla_breached`` if it is not set yet.

        Returns:
            True if this call changed the flag; repeated calls are no-ops
        """


class IUserRepository(ABC):
    """Interface for user data access."""

    @abstractmethod
    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID."""

    @abstractmethod
    async def get_many(self, user_ids: Sequence[str]) -> List[User]:
        """Get the users that exist among ``user_ids``."""

    @abstractmethod
    async def find_active_by_role(self, role: UserRole) -> List[User]:
        """All active users with the given role."""

    @abstractmethod
    async def save(self, user: User) -> User:
        """Persist the user (insert or replace)."""


# ========== Application Services ==========

class TicketService:
    """
    Ticket lifecycle operations.

    Creates tickets (deriving the SLA deadline once) and applies status
    transitions so their timestamps are stamped exactly once.
    """

    def __init__(self, ticket_repository: ITicketRepository):
        self._ticket_repo = ticket_repository

    async def create_ticket(
        self,
        title: str,
        description: str,
        created_by: str,
        priority: Priority = Priority.MEDIUM,
        ticket_type: TicketType = TicketType.GENERAL,
        created_at: Optional[datetime] = None
    ) -> Ticket:
        """
        Create and persist a new ticket.

        Raises:
            ValidationException: If title or description are out of bounds
        """
        kwargs = {"created_at": created_at} if created_at else {}
        ticket = Ticket(
            id=str(uuid4()),
            title=title,
            description=description,
            created_by=created_by,
            priority=priority,
            type=ticket_type,
            **kwargs
        )
        saved = await self._ticket_repo.save(ticket)

        logger.info(
            "Ticket created",
            extra={
                "ticket_id": saved.id,
                "priority": saved.priority.value,
                "sla_due_date": saved.sla_due_date.isoformat()
            }
        )
        return saved

    async def change_status(
        self,
        ticket_id: str,
        status: TicketStatus,
        timestamp: Optional[datetime] = None
    ) -> Ticket:
        """
        Move a ticket to a new status.

        Raises:
            ResourceNotFoundException: If the ticket does not exist
        """
        ticket = await self._ticket_repo.get_by_id(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)

        previous = ticket.status
        ticket.transition_to(status, timestamp)
        saved = await self._ticket_repo.save(ticket)

        logger.info(
            "Ticket status changed",
            extra={
                "ticket_id": ticket_id,
                "from_status": previous.value,
                "to_status": saved.status.value
            }
        )
        return saved
