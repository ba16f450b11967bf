"""
SLA Application Layer
======================

Application layer for SLA tracking.

Contains:
- SLASweepService: near-breach warnings and breach flagging
- SweepResult: counts reported by a sweep

This layer depends on the domain layer and repository interfaces,
but not on concrete infrastructure implementations.
"""

from helpdesk.sla.application.dto import SweepResult
from helpdesk.sla.application.services import SLASweepService

__all__ = [
    "SweepResult",
    "SLASweepService",
]
