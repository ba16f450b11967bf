"""
Event Dispatcher
================

In-process event dispatch.

Each published event runs as its own asyncio task, so many workflow
instances (one per ticket) run concurrently and a slow AI call or store
write for one ticket never blocks another. Every event gets a correlation
id carried by its log records.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional, Set
from uuid import uuid4

from helpdesk.core import ValidationException
from helpdesk.interfaces import events
from helpdesk.interfaces.handlers import TicketEventHandlers
from helpdesk.shared.infrastructure.logging import get_context_logger, get_logger, log_latency

logger = get_logger(__name__)

EventHandler = Callable[..., Awaitable[Any]]


class EventDispatcher:
    """
    Maps event names to handlers and runs them as background tasks.

    No retries: a failing handler is logged and its task finishes with the
    exception.
    """

    def __init__(self):
        self._handlers: Dict[str, EventHandler] = {}
        self._tasks: Set[asyncio.Task] = set()

    def register(self, event_name: str, handler: EventHandler) -> None:
        self._handlers[event_name] = handler

    @property
    def pending(self) -> int:
        """Number of events still being handled."""
        return len(self._tasks)

    def publish(
        self,
        event_name: str,
        data: Optional[Dict[str, Any]] = None,
        correlation_id: Optional[str] = None
    ) -> asyncio.Task:
        """
        Schedule the handler for an event.

        Must be called from a running event loop.

        Raises:
            ValidationException: Unknown event or invalid payload
        """
        handler = self._handlers.get(event_name)
        if handler is None:
            raise ValidationException(f"No handler registered for event '{event_name}'")

        kwargs = dict(data or {})
        payload_model = events.EVENT_PAYLOADS.get(event_name)
        if payload_model is not None:
            try:
                kwargs = payload_model.model_validate(kwargs).model_dump()
            except ValueError as e:
                raise ValidationException(
                    f"Invalid payload for event '{event_name}'",
                    {"errors": str(e)}
                )

        correlation_id = correlation_id or str(uuid4())
        task = asyncio.create_task(
            self._run(event_name, handler, kwargs, correlation_id),
            name=f"{event_name}:{correlation_id}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    async def _run(
        self,
        event_name: str,
        handler: EventHandler,
        kwargs: Dict[str, Any],
        correlation_id: str
    ) -> Any:
        event_logger = get_context_logger(__name__, correlation_id)
        event_logger.info("Handling event", extra={"event": event_name})

        with log_latency(event_logger, "event_handling", event=event_name):
            try:
                return await handler(**kwargs)
            except Exception as e:
                event_logger.error(
                    "Event handler failed",
                    extra={"event": event_name, "error": str(e), "error_type": type(e).__name__}
                )
                raise

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled():
            # retrieve so asyncio does not warn; already logged in _run
            task.exception()

    async def drain(self) -> None:
        """Wait for all in-flight events to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


def register_ticket_handlers(dispatcher: EventDispatcher, handlers: TicketEventHandlers) -> None:
    """Bind the ticket and SLA event names to their handlers."""
    dispatcher.register(events.TICKET_CREATED, handlers.on_ticket_created)
    dispatcher.register(events.TICKET_ASSIGNED, handlers.on_ticket_assigned_manually)
    dispatcher.register(events.TICKET_ESCALATED, handlers.on_ticket_escalated)
    dispatcher.register(events.TICKET_RESOLVED, handlers.on_ticket_resolved)
    dispatcher.register(events.SLA_DAILY_SWEEP, handlers.on_daily_sweep)
