import pytest

from helpdesk.assignment.application import AssigneeSelector, SkillMatcher, TicketAssignmentWorkflow, WorkloadRanker
from helpdesk.config import UserRole
from helpdesk.core import ResourceNotFoundException, ValidationException
from helpdesk.interfaces import events
from helpdesk.interfaces.dispatcher import EventDispatcher, register_ticket_handlers
from helpdesk.interfaces.handlers import TicketEventHandlers
from helpdesk.notifications.application import TicketNotificationService
from helpdesk.sla.application import SLASweepService

from tests.fakes import (
    InMemoryTicketRepository,
    InMemoryUserRepository,
    RecordingSender,
    failing_analyzer,
    make_ticket,
    make_user,
)


def build_dispatcher(tickets, users):
    ticket_repo = InMemoryTicketRepository(tickets)
    user_repo = InMemoryUserRepository(users)
    sender = RecordingSender()
    notifications = TicketNotificationService(ticket_repo, user_repo, sender)
    selector = AssigneeSelector(user_repo, SkillMatcher(user_repo), WorkloadRanker(ticket_repo))
    workflow = TicketAssignmentWorkflow(ticket_repo, failing_analyzer(), selector, notifications)
    handlers = TicketEventHandlers(workflow, SLASweepService(ticket_repo, notifications), notifications)

    dispatcher = EventDispatcher()
    register_ticket_handlers(dispatcher, handlers)
    return dispatcher, ticket_repo, sender


def created_event(ticket):
    return {
        "ticketId": ticket.id,
        "title": ticket.title,
        "description": ticket.description,
        "priority": "high",
        "type": "technical",
        "createdBy": ticket.created_by,
    }


async def test_ticket_created_event_runs_workflow():
    ticket = make_ticket()
    dispatcher, repo, _ = build_dispatcher([ticket], [make_user("admin-1", role=UserRole.ADMIN)])

    result = await dispatcher.publish(events.TICKET_CREATED, created_event(ticket))

    assert result["ticket_id"] == ticket.id
    assert result["processing_complete"] is True
    assert result["assignment_result"]["success"] is True
    assert result["ai_analysis"]["required_skills"] == ["technical"]
    assert repo.tickets[ticket.id].assigned_to == "admin-1"


async def test_events_for_different_tickets_run_concurrently():
    tickets = [make_ticket(f"t-{i}") for i in range(5)]
    dispatcher, repo, _ = build_dispatcher(tickets, [make_user("admin-1", role=UserRole.ADMIN)])

    tasks = [dispatcher.publish(events.TICKET_CREATED, created_event(t)) for t in tickets]
    assert dispatcher.pending == 5
    await dispatcher.drain()

    assert dispatcher.pending == 0
    assert all(task.done() for task in tasks)
    assert all(t.assigned_to == "admin-1" for t in repo.tickets.values())


async def test_daily_sweep_event_returns_counts():
    dispatcher, _, _ = build_dispatcher([], [])

    result = await dispatcher.publish(events.SLA_DAILY_SWEEP)

    assert result == {"tickets_near_breach": 0, "tickets_breached": 0}


async def test_invalid_payload_is_rejected_at_publish():
    dispatcher, _, _ = build_dispatcher([], [])

    with pytest.raises(ValidationException):
        dispatcher.publish(events.TICKET_CREATED, {"title": "No id"})
    with pytest.raises(ValidationException):
        dispatcher.publish("ticket/deleted", {})


async def test_handler_failure_is_contained_in_its_task(caplog):
    dispatcher, _, _ = build_dispatcher([], [])

    task = dispatcher.publish(events.TICKET_RESOLVED, {"ticketId": "missing"})
    await dispatcher.drain()

    assert isinstance(task.exception(), ResourceNotFoundException)
    assert any(r.getMessage() == "Event handler failed" for r in caplog.records)


async def test_escalation_event_notifies_target():
    ticket = make_ticket()
    users = [make_user("mod-1"), make_user("admin-1", role=UserRole.ADMIN)]
    dispatcher, _, sender = build_dispatcher([ticket], users)

    await dispatcher.publish(events.TICKET_ESCALATED, {
        "ticketId": ticket.id,
        "escalatedBy": "mod-1",
        "escalatedTo": "admin-1",
        "reason": "Needs database access",
    })

    [notification] = sender.sent
    assert notification.type == "escalation"
    assert notification.recipient.id == "admin-1"


async def test_manual_assignment_event_notifies_assignee():
    ticket = make_ticket(assigned_to="mod-1")
    users = [make_user("mod-1"), make_user("admin-1", role=UserRole.ADMIN)]
    dispatcher, _, sender = build_dispatcher([ticket], users)

    result = await dispatcher.publish(events.TICKET_ASSIGNED, {
        "ticketId": ticket.id,
        "assignedTo": "mod-1",
        "assignedBy": "admin-1",
    })

    assert result["success"] is True
    assert sender.sent[0].assigner.id == "admin-1"
