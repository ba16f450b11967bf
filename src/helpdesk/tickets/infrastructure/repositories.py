"""
Ticket Infrastructure Repositories
===================================

Concrete implementations of the ticket and user store interfaces using
async SQLAlchemy.

Each operation runs in its own short transaction, so concurrent workflow
instances (and the concurrent workload counts of one instance) never share
a session.
"""

from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError

from helpdesk.config import ACTIVE_STATUSES, UserRole
from helpdesk.core import RepositoryException
from helpdesk.infrastructure.database import Database
from helpdesk.tickets.application import ITicketRepository, IUserRepository
from helpdesk.tickets.domain import Ticket, User
from helpdesk.tickets.infrastructure.models import TicketModel, UserModel

_ACTIVE_STATUS_VALUES = [status.value for status in ACTIVE_STATUSES]
_ENUM_COLUMNS = {"status", "priority", "type"}


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from the store."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _column_value(key: str, value: Any) -> Any:
    if key in _ENUM_COLUMNS and hasattr(value, "value"):
        return value.value
    return value


class SQLAlchemyTicketRepository(ITicketRepository):
    """
    SQLAlchemy implementation of the ticket repository.

    Handles persistence of Ticket entities.
    """

    def __init__(self, database: Database):
        self._database = database

    @staticmethod
    def _to_entity(model: TicketModel) -> Ticket:
        return Ticket(
            id=model.id,
            title=model.title,
            description=model.description,
            created_by=model.created_by,
            status=model.status,
            priority=model.priority,
            type=model.type,
            required_skills=list(model.required_skills or []),
            assigned_to=model.assigned_to,
            ai_notes=model.ai_notes,
            ai_response=model.ai_response,
            ai_processed=model.ai_processed,
            ai_processed_at=_as_utc(model.ai_processed_at),
            ai_processing_error=model.ai_processing_error,
            sla_due_date=_as_utc(model.sla_due_date),
            sla_breached=model.sla_breached,
            estimated_resolution_time=model.estimated_resolution_time,
            actual_resolution_time=model.actual_resolution_time,
            created_at=_as_utc(model.created_at),
            updated_at=_as_utc(model.updated_at),
            resolved_at=_as_utc(model.resolved_at),
            closed_at=_as_utc(model.closed_at),
            escalated_at=_as_utc(model.escalated_at),
        )

    @staticmethod
    def _to_model(ticket: Ticket) -> TicketModel:
        return TicketModel(
            id=ticket.id,
            title=ticket.title,
            description=ticket.description,
            created_by=ticket.created_by,
            status=ticket.status.value,
            priority=ticket.priority.value,
            type=ticket.type.value,
            required_skills=list(ticket.required_skills),
            assigned_to=ticket.assigned_to,
            ai_notes=ticket.ai_notes,
            ai_response=ticket.ai_response,
            ai_processed=ticket.ai_processed,
            ai_processed_at=ticket.ai_processed_at,
            ai_processing_error=ticket.ai_processing_error,
            sla_due_date=ticket.sla_due_date,
            sla_breached=ticket.sla_breached,
            estimated_resolution_time=ticket.estimated_resolution_time,
            actual_resolution_time=ticket.actual_resolution_time,
            created_at=ticket.created_at,
            updated_at=ticket.updated_at,
            resolved_at=ticket.resolved_at,
            closed_at=ticket.closed_at,
            escalated_at=ticket.escalated_at,
        )

    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        """Get ticket by ID."""
        async with self._database.session() as session:
            model = await session.get(TicketModel, ticket_id)
            return self._to_entity(model) if model else None

    async def save(self, ticket: Ticket) -> Ticket:
        """Validate and persist the ticket."""
        ticket.validate()
        try:
            async with self._database.session() as session:
                await session.merge(self._to_model(ticket))
        except SQLAlchemyError as e:
            raise RepositoryException(f"Failed to save ticket {ticket.id}: {e}")
        return ticket

    async def update_fields(self, ticket_id: str, **fields: Any) -> bool:
        """Atomically update selected columns of one ticket."""
        values = {key: _column_value(key, value) for key, value in fields.items()}
        values.setdefault("updated_at", datetime.now(timezone.utc))

        stmt = (
            update(TicketModel)
            .where(TicketModel.id == ticket_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            async with self._database.session() as session:
                result = await session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryException(f"Failed to update ticket {ticket_id}: {e}")
        return result.rowcount > 0

    async def count_active_for_assignee(self, user_id: str) -> int:
        """Count open and in-progress tickets assigned to a user."""
        stmt = select(func.count()).select_from(TicketModel).where(
            TicketModel.assigned_to == user_id,
            TicketModel.status.in_(_ACTIVE_STATUS_VALUES)
        )
        async with self._database.session() as session:
            result = await session.execute(stmt)
            return int(result.scalar_one())

    async def find_near_sla_breach(self, threshold: datetime) -> List[Ticket]:
        """Active, unflagged tickets due on or before the threshold."""
        stmt = (
            select(TicketModel)
            .where(
                TicketModel.status.in_(_ACTIVE_STATUS_VALUES),
                TicketModel.sla_breached.is_(False),
                TicketModel.sla_due_date <= threshold
            )
            .order_by(TicketModel.sla_due_date.asc(), TicketModel.id.asc())
        )
        async with self._database.session() as session:
            result = await session.execute(stmt)
            return [self._to_entity(model) for model in result.scalars().all()]

    async def find_sla_breached(self, now: datetime) -> List[Ticket]:
        """Active, unflagged tickets whose deadline has passed."""
        stmt = (
            select(TicketModel)
            .where(
                TicketModel.status.in_(_ACTIVE_STATUS_VALUES),
                TicketModel.sla_breached.is_(False),
                TicketModel.sla_due_date < now
            )
            .order_by(TicketModel.sla_due_date.asc(), TicketModel.id.asc())
        )
        async with self._database.session() as session:
            result = await session.execute(stmt)
            return [self._to_entity(model) for model in result.scalars().all()]

    async def mark_sla_breached(self, ticket_id: str) -> bool:
        """Conditional update; a second call matches no row."""
        stmt = (
            update(TicketModel)
            .where(TicketModel.id == ticket_id, TicketModel.sla_breached.is_(False))
            .values(sla_breached=True, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        try:
            async with self._database.session() as session:
                result = await session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryException(f"Failed to flag SLA breach for {ticket_id}: {e}")
        return result.rowcount > 0


class SQLAlchemyUserRepository(IUserRepository):
    """SQLAlchemy implementation of the user repository."""

    def __init__(self, database: Database):
        self._database = database

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            email=model.email,
            name=model.name,
            role=model.role,
            skills=list(model.skills or []),
            is_active=model.is_active,
            last_login=_as_utc(model.last_login),
            created_at=_as_utc(model.created_at),
            updated_at=_as_utc(model.updated_at),
        )

    async def get_by_id(self, user_id: str) -> Optional[User]:
        async with self._database.session() as session:
            model = await session.get(UserModel, user_id)
            return self._to_entity(model) if model else None

    async def get_many(self, user_ids: Sequence[str]) -> List[User]:
        if not user_ids:
            return []
        stmt = select(UserModel).where(UserModel.id.in_(list(user_ids)))
        async with self._database.session() as session:
            result = await session.execute(stmt)
            return [self._to_entity(model) for model in result.scalars().all()]

    async def find_active_by_role(self, role: UserRole) -> List[User]:
        stmt = (
            select(UserModel)
            .where(UserModel.role == UserRole(role).value, UserModel.is_active.is_(True))
            .order_by(UserModel.id.asc())
        )
        async with self._database.session() as session:
            result = await session.execute(stmt)
            return [self._to_entity(model) for model in result.scalars().all()]

    async def save(self, user: User) -> User:
        model = UserModel(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role.value,
            skills=list(user.skills),
            is_active=user.is_active,
            last_login=user.last_login,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
        try:
            async with self._database.session() as session:
                await session.merge(model)
        except SQLAlchemyError as e:
            raise RepositoryException(f"Failed to save user {user.id}: {e}")
        return user
