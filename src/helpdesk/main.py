"""
Helpdesk Assignment Worker - Main Application
==============================================

Background worker for ticket assignment and SLA tracking.

Modules:
- Assignment: Analyze new tickets and route them to moderators/admins
- SLA: Daily sweep for near-breach warnings and breach flagging
- Notifications: Assignment, escalation, SLA warning and resolution

Clean Architecture Layers:
- Interfaces: Event handlers and dispatcher
- Application: Services and result DTOs
- Domain: Entities and value objects
- Infrastructure: Database, LLM, webhook delivery, scheduler

All components are built once at process start and passed explicitly to
the components that need them.
"""

import asyncio
import signal
from dataclasses import dataclass
from typing import Optional

from helpdesk.assignment.application import (
    AssigneeSelector,
    LLMTicketAnalyzer,
    SkillMatcher,
    TicketAssignmentWorkflow,
    WorkloadRanker,
)
from helpdesk.config import Settings, get_settings
from helpdesk.infrastructure.database import Database
from helpdesk.infrastructure.llm import ILLMClient, MockLLMClient, OpenAILLMClient, UnavailableLLMClient
from helpdesk.interfaces import events
from helpdesk.interfaces.dispatcher import EventDispatcher, register_ticket_handlers
from helpdesk.interfaces.handlers import TicketEventHandlers
from helpdesk.notifications.application import INotificationSender, TicketNotificationService
from helpdesk.notifications.infrastructure import LoggingNotificationSender, WebhookNotificationSender
from helpdesk.shared.infrastructure.logging import get_logger, setup_logging
from helpdesk.sla.application import SLASweepService
from helpdesk.sla.infrastructure import SLAScheduler
from helpdesk.tickets.application import TicketService
from helpdesk.tickets.infrastructure import SQLAlchemyTicketRepository, SQLAlchemyUserRepository

logger = get_logger(__name__)


@dataclass
class Application:
    """Process-scoped components."""
    settings: Settings
    database: Database
    sender: INotificationSender
    ticket_service: TicketService
    notification_service: TicketNotificationService
    workflow: TicketAssignmentWorkflow
    sweep_service: SLASweepService
    dispatcher: EventDispatcher
    scheduler: SLAScheduler


def build_llm_client(settings: Settings) -> ILLMClient:
    """Mock client only when requested; without an API key every analysis falls back."""
    if settings.mock_llm:
        return MockLLMClient()
    if not settings.openai_api_key:
        logger.warning("No LLM API key configured, tickets get the default analysis")
        return UnavailableLLMClient()
    return OpenAILLMClient(
        api_key=settings.openai_api_key,
        model=settings.llm_model,
        base_url=settings.llm_base_url
    )


def build_sender(settings: Settings) -> INotificationSender:
    if settings.notification_webhook_url:
        return WebhookNotificationSender(
            settings.notification_webhook_url,
            timeout_seconds=settings.notification_timeout_seconds
        )
    logger.info("Notification webhook not configured, notifications are logged only")
    return LoggingNotificationSender()


def build_application(settings: Settings) -> Application:
    """Wire every component from settings."""
    database = Database(
        settings.database_url,
        echo=settings.debug,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow
    )
    ticket_repo = SQLAlchemyTicketRepository(database)
    user_repo = SQLAlchemyUserRepository(database)

    sender = build_sender(settings)
    notification_service = TicketNotificationService(ticket_repo, user_repo, sender)

    analyzer = LLMTicketAnalyzer(
        build_llm_client(settings),
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens
    )
    selector = AssigneeSelector(user_repo, SkillMatcher(user_repo), WorkloadRanker(ticket_repo))
    workflow = TicketAssignmentWorkflow(ticket_repo, analyzer, selector, notification_service)

    sweep_service = SLASweepService(
        ticket_repo,
        notification_service,
        warning_threshold_hours=settings.sla_warning_threshold_hours
    )

    dispatcher = EventDispatcher()
    register_ticket_handlers(
        dispatcher,
        TicketEventHandlers(workflow, sweep_service, notification_service)
    )

    return Application(
        settings=settings,
        database=database,
        sender=sender,
        ticket_service=TicketService(ticket_repo),
        notification_service=notification_service,
        workflow=workflow,
        sweep_service=sweep_service,
        dispatcher=dispatcher,
        scheduler=SLAScheduler(hour=settings.sla_sweep_hour, minute=settings.sla_sweep_minute),
    )


async def run(settings: Optional[Settings] = None, stop_event: Optional[asyncio.Event] = None) -> None:
    """
    Worker lifecycle.

    STARTUP:
    1. Setup structured logging
    2. Create database tables
    3. Start the daily SLA sweep schedule

    SHUTDOWN:
    1. Stop the scheduler
    2. Wait for in-flight events
    3. Close the notification sender and database connections
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.environment, settings.app_name)
    logger.info("Starting helpdesk worker", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    app = build_application(settings)

    # Development only; production schemas are migrated
    try:
        await app.database.create_tables()
    except Exception as e:
        logger.warning(f"Database not available - running in degraded mode: {e}")

    async def sweep_job():
        await app.dispatcher.publish(events.SLA_DAILY_SWEEP)

    await app.scheduler.start(sweep_job)

    stop_event = stop_event or asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            logger.debug("Signal handlers not supported on this platform")

    try:
        await stop_event.wait()
    finally:
        logger.info("Shutting down helpdesk worker")
        await app.scheduler.stop()
        await app.dispatcher.drain()
        await app.sender.close()
        await app.database.close()
        logger.info("Helpdesk worker stopped")


def main() -> None:
    """Console entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
