"""
SLA Application DTOs
=====================

Result of one SLA sweep.
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field


class SweepResult(BaseModel):
    """Counts reported by the daily SLA sweep."""
    tickets_near_breach: int = 0
    tickets_breached: int = 0
    warnings_sent: int = 0
    warning_failures: int = 0
    breached_ticket_ids: List[str] = Field(default_factory=list)
    swept_at: datetime
