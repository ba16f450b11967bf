"""
SLA Value Objects
==================

SLA policy for helpdesk tickets.

Response budgets are fixed per priority; a ticket's deadline is derived
once, when the ticket is created, and never recomputed afterwards.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Union

from helpdesk.config import Priority, SLAState

SLA_HOURS_BY_PRIORITY = {
    Priority.URGENT.value: 4,
    Priority.HIGH.value: 24,
    Priority.MEDIUM.value: 72,
    Priority.LOW.value: 168,
}
DEFAULT_SLA_HOURS = 72
DEFAULT_WARNING_THRESHOLD_HOURS = 2.0


class SLACalculator:
    """
    Pure functions for SLA calculations.

    Stateless utility class - all SLA arithmetic lives here.
    """

    @staticmethod
    def sla_hours_for(priority: Union[Priority, str, None]) -> int:
        """
        Response budget in hours for a priority.

        Unrecognised priorities fall back to the medium budget.
        """
        key = priority.value if isinstance(priority, Priority) else priority
        return SLA_HOURS_BY_PRIORITY.get(key, DEFAULT_SLA_HOURS)

    @staticmethod
    def calculate_due_date(
        created_at: datetime,
        priority: Union[Priority, str, None]
    ) -> datetime:
        """
        Calculate the SLA deadline for a ticket.

        Args:
            created_at: When the ticket was created
            priority: Ticket priority at creation

        Returns:
            The SLA deadline
        """
        return created_at + timedelta(hours=SLACalculator.sla_hours_for(priority))

    @staticmethod
    def is_breached(
        now: datetime,
        due_date: Optional[datetime],
        already_breached: bool
    ) -> bool:
        """
        Whether a ticket should now be flagged as breached.

        Once flagged, a ticket stays flagged, so this is False for tickets
        that are already marked regardless of ``now``.
        """
        if already_breached or due_date is None:
            return False
        return now > due_date

    @staticmethod
    def is_near_breach(
        now: datetime,
        due_date: Optional[datetime],
        threshold_hours: float = DEFAULT_WARNING_THRESHOLD_HOURS,
        already_breached: bool = False
    ) -> bool:
        """
        Whether the deadline falls within the warning window.

        Overdue tickets that have not been flagged yet are still inside the
        window.
        """
        if already_breached or due_date is None:
            return False
        return due_date <= now + timedelta(hours=threshold_hours)

    @staticmethod
    def hours_until_breach(now: datetime, due_date: Optional[datetime]) -> Optional[int]:
        """Whole hours left before the deadline (0 once it has passed)."""
        if due_date is None:
            return None
        remaining = (due_date - now).total_seconds() / 3600
        return max(0, round(remaining))

    @staticmethod
    def calculate_state(
        now: datetime,
        due_date: Optional[datetime],
        already_breached: bool,
        threshold_hours: float = DEFAULT_WARNING_THRESHOLD_HOURS
    ) -> SLAState:
        """Current SLA state of a ticket."""
        if already_breached or (due_date is not None and now > due_date):
            return SLAState.BREACHED
        if SLACalculator.is_near_breach(now, due_date, threshold_hours):
            return SLAState.AT_RISK
        return SLAState.ON_TRACK


@dataclass(frozen=True)
class SLADeadline:
    """
    Immutable snapshot of a ticket's SLA deadline.

    Reported by the sweep when it flags a breach.
    """
    ticket_id: str
    priority: str
    due_date: datetime
    breached: bool
