"""
SLA Domain Layer
================

Domain layer for SLA tracking.

Contains:
- Value Objects: SLADeadline
- Domain Services: SLACalculator (priority budgets, breach and
  near-breach checks)

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from helpdesk.sla.domain.value_objects import (
    SLACalculator,
    SLADeadline,
    SLA_HOURS_BY_PRIORITY,
    DEFAULT_SLA_HOURS,
    DEFAULT_WARNING_THRESHOLD_HOURS,
)

__all__ = [
    "SLACalculator",
    "SLADeadline",
    "SLA_HOURS_BY_PRIORITY",
    "DEFAULT_SLA_HOURS",
    "DEFAULT_WARNING_THRESHOLD_HOURS",
]
