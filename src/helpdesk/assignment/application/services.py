"""
Assignment Application Services
================================

Ticket analysis, assignee selection and the assignment workflow.

The workflow is an ordered pipeline of result-returning stages:

    analyze -> persist analysis -> select & assign -> notify

Every stage catches its own exceptions and converts them into a structured
result, so AI unavailability, a failed write or a failed notification
degrade the outcome without aborting the pipeline. The one hard failure is
a ticket that does not exist when processing starts.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from pydantic import ValidationError

from helpdesk.assignment.application.dto import (
    AnalysisUpdateResult,
    AssigneeInfo,
    AssignmentResult,
    NotificationStepResult,
    TicketProcessingResult,
)
from helpdesk.assignment.domain import (
    AnalysisPromptBuilder,
    TicketAnalysis,
    WorkflowStage,
    matches_any,
)
from helpdesk.config import Priority, TicketType, UserRole
from helpdesk.core import LLMException, ResourceNotFoundException
from helpdesk.infrastructure.llm import ILLMClient
from helpdesk.notifications.application import TicketNotificationService
from helpdesk.shared.infrastructure.logging import get_logger
from helpdesk.tickets.application import ITicketRepository, IUserRepository
from helpdesk.tickets.domain import User, normalize_skills, utcnow
from helpdesk.tickets.domain.entities import AI_ERROR_MAX_LENGTH

logger = get_logger(__name__)

NO_ASSIGNEE_REASON = "No available moderators or admins found"


# ========== Analysis ==========

class ITicketAnalyzer(ABC):
    """Interface for the ticket analysis function."""

    @abstractmethod
    async def analyze(
        self,
        title: str,
        description: str,
        priority: Priority,
        ticket_type: TicketType
    ) -> TicketAnalysis:
        """
        Analyze a ticket.

        Raises:
            LLMException: If the analysis is unavailable or malformed
        """


def extract_json(content: str) -> dict:
    """Pull the JSON object out of a model reply, fenced or not."""
    text = content.strip()
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0].strip()
    elif "```" in text:
        text = text.split("```")[1].split("```")[0].strip()

    if not text.startswith("{"):
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise json.JSONDecodeError("No JSON object found", text, 0)
        text = text[start:end + 1]

    data = json.loads(text)
    if not isinstance(data, dict):
        raise json.JSONDecodeError("Expected a JSON object", text, 0)
    return data


class LLMTicketAnalyzer(ITicketAnalyzer):
    """
    Ticket analysis using an LLM.

    The reply is validated into ``TicketAnalysis``; anything malformed is
    reported as ``LLMException``.
    """

    def __init__(self, llm_client: ILLMClient, temperature: float = 0.3, max_tokens: int = 800):
        self._llm = llm_client
        self._temperature = temperature
        self._max_tokens = max_tokens

    async def analyze(
        self,
        title: str,
        description: str,
        priority: Priority,
        ticket_type: TicketType
    ) -> TicketAnalysis:
        messages = [
            {"role": "system", "content": AnalysisPromptBuilder.get_system_prompt()},
            {"role": "user", "content": AnalysisPromptBuilder.build_prompt(
                title, description, priority, ticket_type
            )}
        ]

        response = await self._llm.chat_completion(
            messages=messages,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
            operation="ticket_analysis"
        )

        try:
            return TicketAnalysis.model_validate(extract_json(response.content))
        except json.JSONDecodeError as e:
            raise LLMException(f"Failed to parse analysis response: {e}")
        except ValidationError as e:
            raise LLMException(f"Invalid analysis response: {e.error_count()} error(s): {e}")


# ========== Selection ==========

class SkillMatcher:
    """
    Finds moderator candidates for a set of required skills.

    A moderator qualifies when any of their skills matches any required
    skill by case-insensitive substring in either direction. With no
    required skills every active moderator qualifies.
    """

    def __init__(self, user_repository: IUserRepository):
        self._user_repo = user_repository

    async def find_candidates(self, required_skills: Iterable[str]) -> List[User]:
        """
        Returns:
            Active moderators, most recently updated first, ties by id
        """
        required = normalize_skills(required_skills)
        moderators = [
            user for user in await self._user_repo.find_active_by_role(UserRole.MODERATOR)
            if user.is_active
        ]
        if required:
            moderators = [user for user in moderators if matches_any(user.skills, required)]

        moderators.sort(key=lambda user: user.id)
        moderators.sort(key=lambda user: user.updated_at, reverse=True)
        return moderators


class WorkloadRanker:
    """
    Ranks candidates by their number of open and in-progress tickets.

    Counts are fetched concurrently and never cached. Candidates with equal
    workload keep their input order, so the first one encountered wins.
    """

    def __init__(self, ticket_repository: ITicketRepository):
        self._ticket_repo = ticket_repository

    async def rank(self, candidates: List[User]) -> List[Tuple[User, int]]:
        workloads = await asyncio.gather(*(
            self._ticket_repo.count_active_for_assignee(candidate.id)
            for candidate in candidates
        ))
        # sorted() is stable
        return sorted(zip(candidates, workloads), key=lambda pair: pair[1])

    async def least_loaded(self, candidates: List[User]) -> Optional[User]:
        if not candidates:
            return None
        ranked = await self.rank(candidates)
        user, workload = ranked[0]
        logger.info(
            "Selected least loaded candidate",
            extra={"user_id": user.id, "workload": workload, "candidates": len(candidates)}
        )
        return user


class AssigneeSelector:
    """
    Picks the assignee for a ticket.

    Skill-matched moderators are ranked by workload; without one, the
    active admin with the most recent login is chosen.
    """

    def __init__(
        self,
        user_repository: IUserRepository,
        skill_matcher: SkillMatcher,
        workload_ranker: WorkloadRanker
    ):
        self._user_repo = user_repository
        self._matcher = skill_matcher
        self._ranker = workload_ranker

    async def fallback_admin(self) -> Optional[User]:
        """Active admin with the latest login; never-logged-in admins last."""
        admins = [
            user for user in await self._user_repo.find_active_by_role(UserRole.ADMIN)
            if user.is_active
        ]
        if not admins:
            return None
        admins.sort(key=lambda user: user.id)
        admins.sort(
            key=lambda user: (user.last_login is not None, user.last_login or datetime.min),
            reverse=True
        )
        return admins[0]

    async def select(self, required_skills: Iterable[str]) -> Optional[User]:
        required = normalize_skills(required_skills)

        if required:
            candidates = await self._matcher.find_candidates(required)
            if candidates:
                return await self._ranker.least_loaded(candidates)
            logger.info("No moderators with matching skills", extra={"required_skills": required})

        logger.info("Falling back to admin assignment")
        return await self.fallback_admin()


# ========== Workflow ==========

class TicketAssignmentWorkflow:
    """
    Processes a newly created ticket.

    One instance can serve many tickets concurrently; all state lives in
    the call. Re-running for the same ticket overwrites the analysis and
    re-selects the assignee.
    """

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        analyzer: ITicketAnalyzer,
        selector: AssigneeSelector,
        notification_service: TicketNotificationService
    ):
        self._ticket_repo = ticket_repository
        self._analyzer = analyzer
        self._selector = selector
        self._notifications = notification_service

    async def process(
        self,
        ticket_id: str,
        title: str,
        description: str,
        priority: Priority,
        ticket_type: TicketType,
        created_by: Optional[str] = None
    ) -> TicketProcessingResult:
        """
        Analyze, assign and notify for one ticket.

        Raises:
            ResourceNotFoundException: If the ticket does not exist
        """
        if await self._ticket_repo.get_by_id(ticket_id) is None:
            raise ResourceNotFoundException("Ticket", ticket_id)

        stages = [WorkflowStage.CREATED, WorkflowStage.ANALYZING]
        log_extra = {"ticket_id": ticket_id, "created_by": created_by}

        analysis = await self._analyze(ticket_id, title, description, priority, ticket_type)
        stages.append(WorkflowStage.ANALYSIS_FAILED if analysis.is_fallback else WorkflowStage.ANALYZED)

        analysis_update = await self._persist_analysis(ticket_id, analysis)

        stages.append(WorkflowStage.ASSIGNING)
        assignment = await self._assign(ticket_id, analysis)

        if assignment.success and assignment.assigned_to:
            stages.extend([WorkflowStage.ASSIGNED, WorkflowStage.NOTIFYING])
            notification = await self._notify(ticket_id, assignment.assigned_to.id)
            if not notification.success:
                stages.append(WorkflowStage.NOTIFY_FAILED)
        else:
            stages.append(WorkflowStage.ASSIGN_FAILED)
            notification = NotificationStepResult(success=False, skipped=True)

        stages.append(WorkflowStage.DONE)
        logger.info(
            "Ticket processing complete",
            extra={
                **log_extra,
                "ai_fallback": analysis.is_fallback,
                "analysis_saved": analysis_update.success,
                "assigned": assignment.success,
                "notified": notification.success
            }
        )

        return TicketProcessingResult(
            ticket_id=ticket_id,
            ai_analysis=analysis,
            analysis_update=analysis_update,
            assignment_result=assignment,
            notification_result=notification,
            stages=stages,
            processing_complete=True,
            completed_at=utcnow()
        )

    async def _analyze(
        self,
        ticket_id: str,
        title: str,
        description: str,
        priority: Priority,
        ticket_type: TicketType
    ) -> TicketAnalysis:
        """Step 1. Never raises; falls back to the default analysis."""
        try:
            analysis = await self._analyzer.analyze(title, description, priority, ticket_type)
            logger.info(
                "AI analysis completed",
                extra={"ticket_id": ticket_id, "required_skills": analysis.required_skills}
            )
            return analysis
        except Exception as e:
            logger.error(
                "AI analysis failed, using default analysis",
                extra={"ticket_id": ticket_id, "error": str(e)}
            )
            return TicketAnalysis.fallback(ticket_type, priority)

    async def _persist_analysis(self, ticket_id: str, analysis: TicketAnalysis) -> AnalysisUpdateResult:
        """Step 2. On failure, flags the ticket as not processed."""
        try:
            ticket = await self._ticket_repo.get_by_id(ticket_id)
            if ticket is None:
                raise ResourceNotFoundException("Ticket", ticket_id)

            ticket.apply_analysis(
                required_skills=analysis.required_skills,
                ai_notes=analysis.ai_notes,
                estimated_resolution_time=analysis.estimated_resolution_time,
                priority=analysis.priority
            )
            found = await self._ticket_repo.update_fields(
                ticket_id,
                required_skills=ticket.required_skills,
                ai_notes=ticket.ai_notes,
                ai_processed=True,
                ai_processed_at=ticket.ai_processed_at,
                ai_processing_error=None,
                estimated_resolution_time=ticket.estimated_resolution_time,
                priority=ticket.priority,
                updated_at=ticket.updated_at
            )
            if not found:
                raise ResourceNotFoundException("Ticket", ticket_id)

            logger.info("Ticket updated with AI analysis", extra={"ticket_id": ticket_id})
            return AnalysisUpdateResult(success=True)

        except Exception as e:
            logger.error(
                "Failed to update ticket with AI analysis",
                extra={"ticket_id": ticket_id, "error": str(e)}
            )
            await self._record_analysis_failure(ticket_id, str(e))
            return AnalysisUpdateResult(success=False, error=str(e))

    async def _record_analysis_failure(self, ticket_id: str, error: str) -> None:
        try:
            await self._ticket_repo.update_fields(
                ticket_id,
                ai_processed=False,
                ai_processing_error=error[:AI_ERROR_MAX_LENGTH]
            )
        except Exception as e:
            logger.error(
                "Failed to record AI processing error",
                extra={"ticket_id": ticket_id, "error": str(e)}
            )

    async def _assign(self, ticket_id: str, analysis: TicketAnalysis) -> AssignmentResult:
        """Step 3. Uses the analysis skills even if step 2 failed to save them."""
        try:
            assignee = await self._selector.select(analysis.required_skills)
            if assignee is None:
                logger.warning("No suitable assignee found", extra={"ticket_id": ticket_id})
                return AssignmentResult(success=False, reason=NO_ASSIGNEE_REASON)

            ticket = await self._ticket_repo.get_by_id(ticket_id)
            if ticket is None:
                raise ResourceNotFoundException("Ticket", ticket_id)

            ticket.assign_to(assignee.id)
            found = await self._ticket_repo.update_fields(
                ticket_id,
                assigned_to=ticket.assigned_to,
                status=ticket.status,
                updated_at=ticket.updated_at
            )
            if not found:
                raise ResourceNotFoundException("Ticket", ticket_id)

            logger.info(
                "Ticket assigned",
                extra={"ticket_id": ticket_id, "assignee_id": assignee.id, "role": assignee.role.value}
            )
            return AssignmentResult(success=True, assigned_to=AssigneeInfo.from_domain(assignee))

        except Exception as e:
            logger.error(
                "Failed to assign ticket",
                extra={"ticket_id": ticket_id, "error": str(e)}
            )
            return AssignmentResult(success=False, error=str(e))

    async def _notify(self, ticket_id: str, assignee_id: str) -> NotificationStepResult:
        """Step 4. A failure here never rolls back the assignment."""
        try:
            await self._notifications.notify_assignment(ticket_id, assignee_id)
            return NotificationStepResult(success=True)
        except Exception as e:
            logger.error(
                "Failed to send assignment notification",
                extra={"ticket_id": ticket_id, "error": str(e)}
            )
            return NotificationStepResult(success=False, error=str(e))
