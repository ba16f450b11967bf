"""
Tickets Infrastructure Layer
============================

SQLAlchemy models and repository implementations.
"""

from helpdesk.tickets.infrastructure.models import TicketModel, UserModel
from helpdesk.tickets.infrastructure.repositories import (
    SQLAlchemyTicketRepository,
    SQLAlchemyUserRepository,
)

__all__ = [
    "TicketModel",
    "UserModel",
    "SQLAlchemyTicketRepository",
    "SQLAlchemyUserRepository",
]
