"""
SLA Infrastructure Layer
========================

Scheduling for the daily SLA sweep.
"""

from helpdesk.sla.infrastructure.external import SWEEP_JOB_ID, SLAScheduler

__all__ = [
    "SWEEP_JOB_ID",
    "SLAScheduler",
]
