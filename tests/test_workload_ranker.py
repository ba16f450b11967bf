from datetime import timedelta

from helpdesk.assignment.application import AssigneeSelector, SkillMatcher, WorkloadRanker
from helpdesk.config import TicketStatus, UserRole

from tests.fakes import T0, InMemoryTicketRepository, InMemoryUserRepository, make_ticket, make_user


def tickets_for(assignee_id: str, count: int, status=TicketStatus.IN_PROGRESS):
    return [
        make_ticket(f"{assignee_id}-{i}", assigned_to=assignee_id, status=status)
        for i in range(count)
    ]


async def test_least_loaded_picks_minimum_workload():
    moderators = [make_user("mod-a"), make_user("mod-b"), make_user("mod-c")]
    tickets = tickets_for("mod-a", 5) + tickets_for("mod-b", 2) + tickets_for("mod-c", 8)
    ranker = WorkloadRanker(InMemoryTicketRepository(tickets))

    chosen = await ranker.least_loaded(moderators)

    assert chosen.id == "mod-b"


async def test_only_open_and_in_progress_tickets_count():
    moderators = [make_user("mod-a"), make_user("mod-b")]
    tickets = (
        tickets_for("mod-a", 3, TicketStatus.RESOLVED)
        + tickets_for("mod-a", 1, TicketStatus.CLOSED)
        + tickets_for("mod-b", 1, TicketStatus.OPEN)
    )
    ranker = WorkloadRanker(InMemoryTicketRepository(tickets))

    ranked = await ranker.rank(moderators)

    assert [(u.id, load) for u, load in ranked] == [("mod-a", 0), ("mod-b", 1)]


async def test_empty_candidate_list_returns_none():
    ranker = WorkloadRanker(InMemoryTicketRepository())
    assert await ranker.least_loaded([]) is None


async def test_tie_goes_to_first_candidate():
    moderators = [make_user("mod-z"), make_user("mod-a")]
    ranker = WorkloadRanker(InMemoryTicketRepository())

    chosen = await ranker.least_loaded(moderators)

    assert chosen.id == "mod-z"


async def test_selector_falls_back_to_most_recent_admin():
    users = InMemoryUserRepository([
        make_user("admin-old", role=UserRole.ADMIN, last_login=T0),
        make_user("admin-new", role=UserRole.ADMIN, last_login=T0 + timedelta(days=1)),
        make_user("admin-never", role=UserRole.ADMIN),
        make_user("admin-off", role=UserRole.ADMIN, is_active=False, last_login=T0 + timedelta(days=9)),
        make_user("mod-py", skills=["python"]),
    ])
    selector = AssigneeSelector(users, SkillMatcher(users), WorkloadRanker(InMemoryTicketRepository()))

    chosen = await selector.select(["billing"])

    assert chosen.id == "admin-new"


async def test_selector_with_no_required_skills_goes_to_admin():
    users = InMemoryUserRepository([
        make_user("mod-1", skills=["python"]),
        make_user("admin-1", role=UserRole.ADMIN),
    ])
    selector = AssigneeSelector(users, SkillMatcher(users), WorkloadRanker(InMemoryTicketRepository()))

    chosen = await selector.select([])

    assert chosen.id == "admin-1"


async def test_selector_prefers_skill_matched_moderator():
    users = InMemoryUserRepository([
        make_user("mod-db", skills=["postgresql"]),
        make_user("admin-1", role=UserRole.ADMIN, last_login=T0),
    ])
    selector = AssigneeSelector(users, SkillMatcher(users), WorkloadRanker(InMemoryTicketRepository()))

    chosen = await selector.select(["SQL"])

    assert chosen.id == "mod-db"


async def test_selector_returns_none_when_nobody_available():
    users = InMemoryUserRepository([make_user("user-1", role=UserRole.USER)])
    selector = AssigneeSelector(users, SkillMatcher(users), WorkloadRanker(InMemoryTicketRepository()))

    assert await selector.select(["sql"]) is None
