"""
Tickets Domain Layer
====================

Contains:
- Entities: Ticket, User
- Helpers: skill tag normalisation

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from helpdesk.tickets.domain.entities import Ticket, User, normalize_skills, utcnow

__all__ = [
    "Ticket",
    "User",
    "normalize_skills",
    "utcnow",
]
