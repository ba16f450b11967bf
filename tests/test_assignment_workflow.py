import pytest

from helpdesk.assignment.application import (
    NO_ASSIGNEE_REASON,
    AssigneeSelector,
    SkillMatcher,
    TicketAssignmentWorkflow,
    WorkloadRanker,
)
from helpdesk.assignment.domain import FALLBACK_AI_NOTES, TicketAnalysis, WorkflowStage
from helpdesk.config import Priority, TicketStatus, TicketType, UserRole
from helpdesk.core import RepositoryException, ResourceNotFoundException
from helpdesk.notifications.application import TicketNotificationService

from tests.fakes import (
    FailingSender,
    InMemoryTicketRepository,
    InMemoryUserRepository,
    RecordingSender,
    StubAnalyzer,
    failing_analyzer,
    make_ticket,
    make_user,
)

ANALYSIS = TicketAnalysis(
    required_skills=["javascript"],
    priority=Priority.HIGH,
    ai_notes="Check the browser console for script errors.",
    estimated_resolution_time=6,
    category="technical",
)


def build_workflow(tickets, users, analyzer, sender=None):
    ticket_repo = tickets if isinstance(tickets, InMemoryTicketRepository) else InMemoryTicketRepository(tickets)
    user_repo = InMemoryUserRepository(users)
    sender = sender or RecordingSender()
    notifications = TicketNotificationService(ticket_repo, user_repo, sender)
    selector = AssigneeSelector(user_repo, SkillMatcher(user_repo), WorkloadRanker(ticket_repo))
    workflow = TicketAssignmentWorkflow(ticket_repo, analyzer, selector, notifications)
    return workflow, ticket_repo, sender


async def process(workflow, ticket):
    return await workflow.process(
        ticket.id, ticket.title, ticket.description, ticket.priority, ticket.type, ticket.created_by
    )


async def test_ticket_is_analyzed_assigned_and_notified():
    ticket = make_ticket()
    users = [make_user("u-creator", role=UserRole.USER), make_user("mod-js", skills=["JavaScript"])]
    workflow, repo, sender = build_workflow([ticket], users, StubAnalyzer(ANALYSIS))

    result = await process(workflow, ticket)

    stored = repo.tickets[ticket.id]
    assert result.processing_complete is True
    assert result.assignment_result.success is True
    assert result.assignment_result.assigned_to.id == "mod-js"
    assert result.notification_result.success is True
    assert result.final_stage == WorkflowStage.DONE

    assert stored.required_skills == ["javascript"]
    assert stored.ai_processed is True
    assert stored.estimated_resolution_time == 6
    assert stored.priority == Priority.HIGH
    assert stored.assigned_to == "mod-js"
    assert stored.status == TicketStatus.IN_PROGRESS

    [notification] = sender.sent
    assert notification.type == "assignment"
    assert notification.recipient.id == "mod-js"
    assert notification.ticket.creator.id == "u-creator"
    assert notification.ticket.assignee.id == "mod-js"


async def test_ai_priority_change_keeps_sla_deadline():
    ticket = make_ticket(priority=Priority.LOW)
    workflow, repo, _ = build_workflow([ticket], [make_user("mod-js", skills=["javascript"])], StubAnalyzer(ANALYSIS))

    await process(workflow, ticket)

    assert repo.tickets[ticket.id].priority == Priority.HIGH
    assert repo.tickets[ticket.id].sla_due_date == ticket.sla_due_date


async def test_ai_failure_does_not_abort_assignment():
    ticket = make_ticket(type=TicketType.BILLING)
    users = [
        make_user("mod-js", skills=["javascript"]),
        make_user("admin-1", role=UserRole.ADMIN),
    ]
    analyzer = failing_analyzer()
    workflow, repo, _ = build_workflow([ticket], users, analyzer)

    result = await process(workflow, ticket)

    stored = repo.tickets[ticket.id]
    assert analyzer.calls == 1
    assert result.ai_analysis.is_fallback is True
    assert result.ai_analysis.required_skills == ["billing"]
    assert stored.required_skills == ["billing"]
    assert stored.ai_notes == FALLBACK_AI_NOTES
    assert stored.estimated_resolution_time == 24
    assert result.assignment_result.success is True
    assert stored.assigned_to == "admin-1"
    assert WorkflowStage.ANALYSIS_FAILED in result.stages


async def test_fallback_skill_matches_moderator():
    ticket = make_ticket(type=TicketType.BILLING)
    users = [make_user("mod-billing", skills=["billing-disputes"])]
    workflow, repo, _ = build_workflow([ticket], users, failing_analyzer())

    result = await process(workflow, ticket)

    assert result.assignment_result.assigned_to.id == "mod-billing"


async def test_no_assignee_available_is_reported_not_raised():
    ticket = make_ticket()
    users = [make_user("admin-off", role=UserRole.ADMIN, is_active=False)]
    workflow, repo, sender = build_workflow([ticket], users, StubAnalyzer(ANALYSIS))

    result = await process(workflow, ticket)

    assert result.processing_complete is True
    assert result.assignment_result.success is False
    assert result.assignment_result.reason == NO_ASSIGNEE_REASON
    assert result.notification_result.skipped is True
    assert repo.tickets[ticket.id].assigned_to is None
    assert repo.tickets[ticket.id].status == TicketStatus.OPEN
    assert sender.sent == []


async def test_notification_failure_keeps_assignment():
    ticket = make_ticket()
    users = [make_user("mod-js", skills=["javascript"])]
    workflow, repo, _ = build_workflow([ticket], users, StubAnalyzer(ANALYSIS), sender=FailingSender())

    result = await process(workflow, ticket)

    assert result.assignment_result.success is True
    assert result.notification_result.success is False
    assert "SMTP relay unavailable" in result.notification_result.error
    assert repo.tickets[ticket.id].assigned_to == "mod-js"
    assert WorkflowStage.NOTIFY_FAILED in result.stages


async def test_missing_ticket_at_start_raises():
    workflow, _, _ = build_workflow([], [], StubAnalyzer(ANALYSIS))

    with pytest.raises(ResourceNotFoundException):
        await workflow.process("missing", "Some title", "Some description", Priority.LOW, TicketType.GENERAL)


class FlakyTicketRepository(InMemoryTicketRepository):
    """Rejects the analysis write but accepts everything else."""

    async def update_fields(self, ticket_id, **fields):
        if fields.get("ai_processed") is True:
            raise RepositoryException("connection reset")
        return await super().update_fields(ticket_id, **fields)


async def test_analysis_write_failure_is_recorded_and_assignment_continues():
    ticket = make_ticket()
    repo = FlakyTicketRepository([ticket])
    users = [make_user("mod-js", skills=["javascript"])]
    workflow, _, _ = build_workflow(repo, users, StubAnalyzer(ANALYSIS))

    result = await process(workflow, ticket)

    stored = repo.tickets[ticket.id]
    assert result.analysis_update.success is False
    assert stored.ai_processed is False
    assert "connection reset" in stored.ai_processing_error
    assert result.assignment_result.success is True
    assert stored.assigned_to == "mod-js"


async def test_rerunning_workflow_is_safe():
    ticket = make_ticket()
    users = [make_user("mod-js", skills=["javascript"])]
    workflow, repo, sender = build_workflow([ticket], users, StubAnalyzer(ANALYSIS))

    await process(workflow, ticket)
    second = await process(workflow, ticket)

    assert second.assignment_result.assigned_to.id == "mod-js"
    assert repo.tickets[ticket.id].required_skills == ["javascript"]
    assert len(sender.sent) == 2
