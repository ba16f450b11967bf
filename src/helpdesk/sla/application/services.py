"""
SLA Application Services
=========================

The periodic SLA sweep.

Two read-then-act passes over active tickets:
1. Near-breach: warn the assignee and all active admins
2. Breach: set the ``sla_breached`` latch

The breach write is a conditional update, so concurrent sweeps racing on
the same ticket are harmless.
"""

from datetime import datetime, timedelta
from typing import Optional

from helpdesk.notifications.application import TicketNotificationService
from helpdesk.shared.infrastructure.logging import get_logger, log_latency
from helpdesk.sla.application.dto import SweepResult
from helpdesk.sla.domain import DEFAULT_WARNING_THRESHOLD_HOURS, SLACalculator
from helpdesk.tickets.application import ITicketRepository
from helpdesk.tickets.domain import utcnow

logger = get_logger(__name__)


class SLASweepService:
    """
    Service for the daily SLA sweep.

    Run periodically; each run is independent and safe to repeat.
    """

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        notification_service: TicketNotificationService,
        warning_threshold_hours: float = DEFAULT_WARNING_THRESHOLD_HOURS
    ):
        self._ticket_repo = ticket_repository
        self._notifications = notification_service
        self._threshold_hours = warning_threshold_hours

    async def run_daily_sweep(self, now: Optional[datetime] = None) -> SweepResult:
        """
        Warn about tickets near their deadline, then flag breached ones.

        Args:
            now: Reference time (defaults to the current UTC time)

        Returns:
            SweepResult with the number of tickets found by each pass
        """
        now = now or utcnow()
        result = SweepResult(swept_at=now)

        with log_latency(logger, "sla_sweep"):
            await self._warn_near_breach(now, result)
            await self._flag_breached(now, result)

        logger.info(
            "SLA sweep finished",
            extra={
                "tickets_near_breach": result.tickets_near_breach,
                "tickets_breached": result.tickets_breached,
                "warnings_sent": result.warnings_sent,
                "warning_failures": result.warning_failures
            }
        )
        return result

    async def _warn_near_breach(self, now: datetime, result: SweepResult) -> None:
        threshold = now + timedelta(hours=self._threshold_hours)
        tickets = await self._ticket_repo.find_near_sla_breach(threshold)

        for ticket in tickets:
            if not SLACalculator.is_near_breach(
                now, ticket.sla_due_date, self._threshold_hours, ticket.sla_breached
            ):
                continue
            result.tickets_near_breach += 1

            try:
                receipts = await self._notifications.notify_sla_warning(ticket.id, now)
                result.warnings_sent += len(receipts)
            except Exception as e:
                result.warning_failures += 1
                logger.error(
                    "Failed to send SLA warning",
                    extra={"ticket_id": ticket.id, "error": str(e)}
                )

    async def _flag_breached(self, now: datetime, result: SweepResult) -> None:
        tickets = await self._ticket_repo.find_sla_breached(now)

        for ticket in tickets:
            if not SLACalculator.is_breached(now, ticket.sla_due_date, ticket.sla_breached):
                continue
            result.tickets_breached += 1
            result.breached_ticket_ids.append(ticket.id)

            try:
                changed = await self._ticket_repo.mark_sla_breached(ticket.id)
            except Exception as e:
                logger.error(
                    "Failed to flag SLA breach",
                    extra={"ticket_id": ticket.id, "error": str(e)}
                )
                continue

            deadline = ticket.sla_deadline
            logger.warning(
                "SLA breached",
                extra={
                    "ticket_id": ticket.id,
                    "priority": deadline.priority,
                    "sla_due_date": deadline.due_date.isoformat(),
                    "already_flagged": not changed
                }
            )
