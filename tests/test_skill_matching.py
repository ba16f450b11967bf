from datetime import timedelta

import pytest

from helpdesk.assignment.application import SkillMatcher
from helpdesk.assignment.domain import matches_any, skill_matches
from helpdesk.config import UserRole

from tests.fakes import T0, InMemoryUserRepository, make_user


@pytest.mark.parametrize(
    "candidate, required, expected",
    [
        ("javascript", "java", True),
        ("java", "javascript", True),
        ("JavaScript", "JAVA", True),
        ("python", "java", False),
        ("", "java", False),
        ("java", "  ", False),
    ],
)
def test_skill_matches_is_bidirectional_substring(candidate, required, expected):
    assert skill_matches(candidate, required) is expected


def test_matches_any():
    assert matches_any(["sql", "react"], ["postgresql"])
    assert not matches_any(["sql", "react"], ["billing"])
    assert not matches_any([], ["billing"])


async def test_find_candidates_matches_substrings_case_insensitively():
    repo = InMemoryUserRepository([
        make_user("mod-js", skills=["javascript"]),
        make_user("mod-py", skills=["python"]),
    ])
    matcher = SkillMatcher(repo)

    lower = await matcher.find_candidates(["java"])
    upper = await matcher.find_candidates(["JAVA"])

    assert [u.id for u in lower] == ["mod-js"]
    assert [u.id for u in upper] == ["mod-js"]


async def test_empty_required_skills_returns_all_active_moderators():
    repo = InMemoryUserRepository([
        make_user("mod-1"),
        make_user("mod-2"),
        make_user("mod-3"),
        make_user("mod-off", is_active=False),
        make_user("admin-1", role=UserRole.ADMIN),
        make_user("user-1", role=UserRole.USER),
    ])

    candidates = await SkillMatcher(repo).find_candidates([])

    assert sorted(u.id for u in candidates) == ["mod-1", "mod-2", "mod-3"]


async def test_only_moderators_are_matched():
    repo = InMemoryUserRepository([
        make_user("admin-1", role=UserRole.ADMIN, skills=["billing"]),
        make_user("user-1", role=UserRole.USER, skills=["billing"]),
    ])
    assert await SkillMatcher(repo).find_candidates(["billing"]) == []


async def test_candidates_ordered_by_most_recent_update_then_id():
    repo = InMemoryUserRepository([
        make_user("mod-b", skills=["sql"], updated_at=T0),
        make_user("mod-c", skills=["sql"], updated_at=T0 + timedelta(hours=1)),
        make_user("mod-a", skills=["sql"], updated_at=T0),
    ])

    candidates = await SkillMatcher(repo).find_candidates(["sql"])

    assert [u.id for u in candidates] == ["mod-c", "mod-a", "mod-b"]
