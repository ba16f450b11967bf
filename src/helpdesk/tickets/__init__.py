"""
Tickets Module
==============

Bounded Context for the ticket and user records shared by assignment and
SLA tracking.

Responsibilities:
- Ticket and user entities with their invariants
- Ticket lifecycle (creation with SLA deadline, status transitions)
- Store interfaces and their SQLAlchemy implementations
"""

__version__ = "1.0.0"
