"""
Ticket Domain Entities
=======================

Pure Python domain entities for helpdesk tickets and their assignees.

Following Domain-Driven Design principles, these entities contain
business logic and are free of infrastructure concerns.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from helpdesk.config import (
    ACTIVE_STATUSES, ASSIGNABLE_ROLES,
    Priority, SLAState, TicketStatus, TicketType, UserRole
)
from helpdesk.core import ValidationException
from helpdesk.sla.domain import SLACalculator, SLADeadline

TITLE_MIN_LENGTH = 5
TITLE_MAX_LENGTH = 200
DESCRIPTION_MIN_LENGTH = 10
DESCRIPTION_MAX_LENGTH = 5000
AI_ERROR_MAX_LENGTH = 500


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_skills(skills: Optional[Iterable[str]]) -> List[str]:
    """Trim, lowercase and de-duplicate skill tags, keeping first-seen order."""
    normalized: List[str] = []
    for skill in skills or []:
        if not skill:
            continue
        tag = skill.strip().lower()
        if tag and tag not in normalized:
            normalized.append(tag)
    return normalized


@dataclass
class User:
    """
    User entity. Moderators and admins are assignment candidates.

    Skills are normalised on construction and on every mutation.
    """

    id: str
    email: str
    name: str
    role: UserRole = UserRole.USER
    skills: List[str] = field(default_factory=list)
    is_active: bool = True
    last_login: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        self.role = UserRole(self.role)
        self.email = self.email.strip().lower()
        self.skills = normalize_skills(self.skills)

    @property
    def is_assignable(self) -> bool:
        """Active moderators and admins can receive tickets."""
        return self.is_active and self.role in ASSIGNABLE_ROLES

    def add_skills(self, new_skills: Iterable[str]) -> None:
        self.skills = normalize_skills([*self.skills, *new_skills])
        self.updated_at = utcnow()

    def remove_skills(self, skills_to_remove: Iterable[str]) -> None:
        removed = set(normalize_skills(skills_to_remove))
        self.skills = [skill for skill in self.skills if skill not in removed]
        self.updated_at = utcnow()

    def record_login(self, timestamp: Optional[datetime] = None) -> None:
        self.last_login = timestamp or utcnow()


@dataclass
class Ticket:
    """
    Ticket entity representing a support request.

    Invariants:
    - title and description respect their length bounds
    - ``sla_due_date`` is derived from the priority at creation and never
      recomputed, even when the priority changes later
    - ``sla_breached`` only ever goes from False to True
    - ``resolved_at``, ``closed_at`` and ``escalated_at`` are each set the
      first time the status enters the matching state
    """

    id: str
    title: str
    description: str
    created_by: str
    status: TicketStatus = TicketStatus.OPEN
    priority: Priority = Priority.MEDIUM
    type: TicketType = TicketType.GENERAL

    # Routing
    required_skills: List[str] = field(default_factory=list)
    assigned_to: Optional[str] = None

    # AI analysis
    ai_notes: Optional[str] = None
    ai_response: Optional[str] = None
    ai_processed: bool = False
    ai_processed_at: Optional[datetime] = None
    ai_processing_error: Optional[str] = None

    # SLA tracking
    sla_due_date: Optional[datetime] = None
    sla_breached: bool = False
    estimated_resolution_time: Optional[float] = None
    actual_resolution_time: Optional[float] = None

    # Timestamps
    created_at: datetime = field(default_factory=utcnow)
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    escalated_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate ticket and derive the SLA deadline on creation."""
        self.status = TicketStatus(self.status)
        self.priority = Priority(self.priority)
        self.type = TicketType(self.type)
        self.title = self.title.strip()
        self.description = self.description.strip()
        self.required_skills = normalize_skills(self.required_skills)
        self.validate()

        if self.updated_at is None:
            self.updated_at = self.created_at
        if self.sla_due_date is None:
            self.sla_due_date = SLACalculator.calculate_due_date(self.created_at, self.priority)

    def validate(self) -> None:
        """Raise ValidationException if the ticket violates an invariant."""
        if not TITLE_MIN_LENGTH <= len(self.title) <= TITLE_MAX_LENGTH:
            raise ValidationException(
                f"Title must be between {TITLE_MIN_LENGTH} and {TITLE_MAX_LENGTH} characters",
                {"field": "title"}
            )
        if not DESCRIPTION_MIN_LENGTH <= len(self.description) <= DESCRIPTION_MAX_LENGTH:
            raise ValidationException(
                f"Description must be between {DESCRIPTION_MIN_LENGTH} and "
                f"{DESCRIPTION_MAX_LENGTH} characters",
                {"field": "description"}
            )
        if self.estimated_resolution_time is not None and not 0.5 <= self.estimated_resolution_time <= 720:
            raise ValidationException(
                "Estimated resolution time must be between 0.5 and 720 hours",
                {"field": "estimated_resolution_time"}
            )

    # ========== Derived values ==========

    @property
    def is_active(self) -> bool:
        """Open or in progress - counts towards workload and SLA checks."""
        return self.status in ACTIVE_STATUSES

    def age_hours(self, now: Optional[datetime] = None) -> int:
        now = now or utcnow()
        return round((now - self.created_at).total_seconds() / 3600)

    def hours_until_sla_breach(self, now: Optional[datetime] = None) -> Optional[int]:
        return SLACalculator.hours_until_breach(now or utcnow(), self.sla_due_date)

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        return self.sla_due_date is not None and (now or utcnow()) > self.sla_due_date

    def sla_state(self, now: Optional[datetime] = None) -> SLAState:
        return SLACalculator.calculate_state(now or utcnow(), self.sla_due_date, self.sla_breached)

    @property
    def sla_deadline(self) -> Optional[SLADeadline]:
        if self.sla_due_date is None:
            return None
        return SLADeadline(
            ticket_id=self.id,
            priority=self.priority.value,
            due_date=self.sla_due_date,
            breached=self.sla_breached
        )

    # ========== Mutations ==========

    def touch(self, timestamp: Optional[datetime] = None) -> None:
        self.updated_at = timestamp or utcnow()

    def apply_analysis(
        self,
        required_skills: Iterable[str],
        ai_notes: str,
        estimated_resolution_time: float,
        priority: Optional[Priority] = None,
        timestamp: Optional[datetime] = None
    ) -> None:
        """
        Record a completed analysis.

        A suggested priority overrides the current one; the SLA deadline
        keeps the value computed at creation.
        """
        timestamp = timestamp or utcnow()
        self.required_skills = normalize_skills(required_skills)
        self.ai_notes = ai_notes
        self.estimated_resolution_time = estimated_resolution_time
        self.ai_processed = True
        self.ai_processed_at = timestamp
        self.ai_processing_error = None
        if priority is not None and Priority(priority) != self.priority:
            self.priority = Priority(priority)
        self.validate()
        self.touch(timestamp)

    def assign_to(self, user_id: str, timestamp: Optional[datetime] = None) -> None:
        """Assign the ticket; an open ticket moves to in-progress."""
        self.assigned_to = user_id
        if self.status == TicketStatus.OPEN:
            self.status = TicketStatus.IN_PROGRESS
        self.touch(timestamp)

    def transition_to(self, status: TicketStatus, timestamp: Optional[datetime] = None) -> None:
        """Change status, stamping resolution/close/escalation times once."""
        timestamp = timestamp or utcnow()
        status = TicketStatus(status)
        self.status = status

        if status == TicketStatus.RESOLVED and self.resolved_at is None:
            self.resolved_at = timestamp
            self.actual_resolution_time = self.age_hours(timestamp)
        elif status == TicketStatus.CLOSED and self.closed_at is None:
            self.closed_at = timestamp
        elif status == TicketStatus.ESCALATED and self.escalated_at is None:
            self.escalated_at = timestamp

        self.touch(timestamp)

    def mark_sla_breached(self, now: Optional[datetime] = None) -> bool:
        """
        Flag the SLA as breached if the deadline has passed.

        Returns:
            True if the flag changed, False otherwise (already flagged or
            not yet due)
        """
        now = now or utcnow()
        if not SLACalculator.is_breached(now, self.sla_due_date, self.sla_breached):
            return False
        self.sla_breached = True
        self.touch(now)
        return True
