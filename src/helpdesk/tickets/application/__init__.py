"""
Tickets Application Layer
=========================

Contains:
- Repository interfaces for the ticket and user stores
- TicketService: ticket creation and status transitions

This layer depends on the domain layer and repository interfaces,
but not on concrete infrastructure implementations.
"""

from helpdesk.tickets.application.services import (
    ITicketRepository,
    IUserRepository,
    TicketService,
)

__all__ = [
    "ITicketRepository",
    "IUserRepository",
    "TicketService",
]
