"""
Assignment Domain Entities
==========================

Domain objects for ticket analysis and assignee matching.

Contains the validated analysis result, the prompt builder for the
analysis model, the skill matching rule and the workflow stages.
"""

from enum import Enum
from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from helpdesk.config import Priority, TicketType
from helpdesk.tickets.domain import normalize_skills

FALLBACK_AI_NOTES = "AI analysis unavailable. Manual review recommended."
FALLBACK_RESOLUTION_HOURS = 24.0


class WorkflowStage(str, Enum):
    """States a ticket passes through while being processed."""
    CREATED = "created"
    ANALYZING = "analyzing"
    ANALYZED = "analyzed"
    ANALYSIS_FAILED = "analysis_failed"
    ASSIGNING = "assigning"
    ASSIGNED = "assigned"
    ASSIGN_FAILED = "assign_failed"
    NOTIFYING = "notifying"
    NOTIFY_FAILED = "notify_failed"
    DONE = "done"


class TicketAnalysis(BaseModel):
    """
    Structured result of analysing a ticket.

    Accepts the camelCase keys produced by the analysis model as well as
    the snake_case field names. A priority outside the Priority enum fails
    validation.
    """
    model_config = ConfigDict(populate_by_name=True)

    required_skills: List[str] = Field(default_factory=list, alias="requiredSkills")
    priority: Optional[Priority] = None
    ai_notes: str = Field(default="", alias="aiNotes", max_length=2000)
    estimated_resolution_time: float = Field(
        default=FALLBACK_RESOLUTION_HOURS, alias="estimatedResolutionTime", ge=0.5, le=720
    )
    category: Optional[str] = None
    is_fallback: bool = False

    @field_validator("required_skills", mode="before")
    @classmethod
    def normalize_required_skills(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        return normalize_skills(str(skill) for skill in v)

    @field_validator("priority", mode="before")
    @classmethod
    def normalize_priority(cls, v):
        if isinstance(v, str):
            v = v.strip().lower()
            return v or None
        return v

    @classmethod
    def fallback(cls, ticket_type: TicketType, priority: Optional[Priority] = None) -> "TicketAnalysis":
        """Default analysis used when the analysis model is unavailable."""
        ticket_type = TicketType(ticket_type)
        return cls(
            required_skills=[ticket_type.value],
            priority=priority,
            ai_notes=FALLBACK_AI_NOTES,
            estimated_resolution_time=FALLBACK_RESOLUTION_HOURS,
            category=ticket_type.value,
            is_fallback=True
        )


def skill_matches(candidate_skill: str, required_skill: str) -> bool:
    """
    Case-insensitive substring match in either direction.

    "java" matches "javascript" and "javascript" matches "java".
    """
    candidate = candidate_skill.strip().lower()
    required = required_skill.strip().lower()
    if not candidate or not required:
        return False
    return required in candidate or candidate in required


def matches_any(candidate_skills: Iterable[str], required_skills: Iterable[str]) -> bool:
    """True if any candidate skill matches any required skill."""
    required = list(required_skills)
    return any(
        skill_matches(candidate, wanted)
        for candidate in candidate_skills
        for wanted in required
    )


class AnalysisPromptBuilder:
    """
    Builds prompts for ticket analysis.

    Following DRY principle - all prompt logic in one place.
    """

    SYSTEM_PROMPT = """You are a helpdesk triage assistant.

Your task is to analyze a support ticket and decide:
1. Required skills: short lowercase tags describing the expertise needed
   (e.g. "javascript", "database", "billing", "networking")
2. Priority: low, medium, high or urgent
3. Notes: concise guidance for the support agent who will handle it
4. Estimated resolution time in hours (between 0.5 and 720)
5. Category: one of technical, billing, feature-request, bug-report, general, account

PRIORITY LEVELS:
- urgent: Service down, security incident, data loss
- high: Major feature broken, significant impact
- medium: Minor issues, workarounds available
- low: Questions, documentation requests, nice-to-have

Respond ONLY in JSON format:
{
    "requiredSkills": ["skill"],
    "priority": "medium",
    "aiNotes": "guidance for the agent",
    "estimatedResolutionTime": 8,
    "category": "technical"
}"""

    @classmethod
    def build_prompt(cls, title: str, description: str, priority: Priority, ticket_type: TicketType) -> str:
        """Build analysis prompt from ticket content."""
        return f"""Title: {title}

Current priority: {Priority(priority).value}
Type: {TicketType(ticket_type).value}

Description:
{description}

Analyze this ticket (respond with JSON only):"""

    @classmethod
    def get_system_prompt(cls) -> str:
        """Get the system prompt for analysis."""
        return cls.SYSTEM_PROMPT
