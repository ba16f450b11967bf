from datetime import timedelta

import pytest

from helpdesk.config import Priority, SLAState, TicketStatus, UserRole
from helpdesk.core import ValidationException
from helpdesk.tickets.application import TicketService
from helpdesk.tickets.domain import normalize_skills

from tests.fakes import T0, InMemoryTicketRepository, make_ticket, make_user


def test_title_and_description_bounds():
    with pytest.raises(ValidationException):
        make_ticket(title="Help")
    with pytest.raises(ValidationException):
        make_ticket(description="Broken")


def test_sla_due_date_set_at_creation_from_priority():
    ticket = make_ticket(priority=Priority.URGENT)
    assert ticket.sla_due_date == T0 + timedelta(hours=4)
    assert ticket.sla_breached is False


def test_sla_due_date_not_recomputed_when_priority_changes():
    ticket = make_ticket(priority=Priority.LOW)
    due = ticket.sla_due_date

    ticket.apply_analysis(["network"], "Check the VPN", 4, priority=Priority.URGENT)

    assert ticket.priority == Priority.URGENT
    assert ticket.sla_due_date == due
    assert ticket.ai_processed is True
    assert ticket.ai_processed_at is not None


def test_assign_moves_open_ticket_to_in_progress():
    ticket = make_ticket()
    ticket.assign_to("mod-1")
    assert ticket.assigned_to == "mod-1"
    assert ticket.status == TicketStatus.IN_PROGRESS

    escalated = make_ticket("t-2", status=TicketStatus.ESCALATED)
    escalated.assign_to("mod-1")
    assert escalated.status == TicketStatus.ESCALATED


def test_status_timestamps_set_once():
    ticket = make_ticket()
    first = T0 + timedelta(hours=5)
    second = T0 + timedelta(hours=9)

    ticket.transition_to(TicketStatus.RESOLVED, first)
    ticket.transition_to(TicketStatus.IN_PROGRESS, first)
    ticket.transition_to(TicketStatus.RESOLVED, second)

    assert ticket.resolved_at == first
    assert ticket.actual_resolution_time == 5


def test_mark_sla_breached_latch():
    ticket = make_ticket(priority=Priority.URGENT)
    assert ticket.mark_sla_breached(T0 + timedelta(hours=1)) is False
    assert ticket.mark_sla_breached(T0 + timedelta(hours=5)) is True
    assert ticket.mark_sla_breached(T0 + timedelta(hours=6)) is False
    assert ticket.sla_breached is True
    assert ticket.sla_state(T0) == SLAState.BREACHED


def test_derived_values():
    ticket = make_ticket(priority=Priority.HIGH)
    now = T0 + timedelta(hours=23)
    assert ticket.age_hours(now) == 23
    assert ticket.hours_until_sla_breach(now) == 1
    assert not ticket.is_overdue(now)
    assert ticket.is_overdue(T0 + timedelta(hours=25))


def test_normalize_skills():
    assert normalize_skills([" Java ", "java", "", "SQL", "  "]) == ["java", "sql"]


def test_user_skills_are_deduplicated_on_every_write():
    user = make_user("mod-1", skills=["Python", "python "])
    assert user.skills == ["python"]

    user.add_skills(["Docker", "PYTHON"])
    assert user.skills == ["python", "docker"]

    user.remove_skills(["python"])
    assert user.skills == ["docker"]


def test_only_active_moderators_and_admins_are_assignable():
    assert make_user("m", UserRole.MODERATOR).is_assignable
    assert make_user("a", UserRole.ADMIN).is_assignable
    assert not make_user("u", UserRole.USER).is_assignable
    assert not make_user("x", UserRole.MODERATOR, is_active=False).is_assignable


async def test_ticket_service_create_and_resolve():
    repo = InMemoryTicketRepository()
    service = TicketService(repo)

    ticket = await service.create_ticket(
        "Invoice shows wrong amount",
        "The March invoice charges twice for the same seat.",
        created_by="u-1",
        priority=Priority.HIGH,
        created_at=T0,
    )
    assert ticket.sla_due_date == T0 + timedelta(hours=24)

    resolved = await service.change_status(ticket.id, TicketStatus.RESOLVED, T0 + timedelta(hours=3))
    assert resolved.resolved_at == T0 + timedelta(hours=3)
    assert repo.tickets[ticket.id].status == TicketStatus.RESOLVED
