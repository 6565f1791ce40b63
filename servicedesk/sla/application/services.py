"""
SLA Application Services
=========================

Application services orchestrate business logic and coordinate between
domain entities and repositories.

Following SOLID principles:
- Single Responsibility: SlaClockService owns the ticket's SLA record
- Dependency Inversion: Depend on abstractions (repositories), not concrete implementations
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional

from servicedesk.audit.application import AuditEventRecorder
from servicedesk.audit.domain import (
    FirstResponseBreached,
    FirstResponseMarked,
    MarkCorrected,
    ResolutionBreached,
    ResolvedMarked,
    StoredEvent,
)
from servicedesk.config import VALID_DEADLINE_KINDS, DeadlineKind, settings
from servicedesk.core import (
    PersistenceException,
    RepositoryException,
    ResourceNotFoundException,
    ValidationException,
)
from servicedesk.infrastructure.database import UnitOfWork, as_utc
from servicedesk.shared.infrastructure.logging import get_logger
from servicedesk.shared.infrastructure.timeouts import with_deadline
from servicedesk.sla.domain import (
    BreachState,
    DeadlineStatus,
    PolicyMatcher,
    SLACalculator,
    SlaPolicy,
    TicketSla,
)
from servicedesk.tickets.application import AuthorizationService, ITicketStore
from servicedesk.tickets.domain import Actor

logger = get_logger(__name__)


# ========== Repository Interfaces (Dependency Inversion) ==========

class ISlaPolicyRepository(ABC):
    """Interface for SLA policy data access."""

    @abstractmethod
    async def list_active(self) -> List[SlaPolicy]:
        """All active policies."""


class ITicketSlaRepository(ABC):
    """Interface for the per-ticket SLA record."""

    @abstractmethod
    async def get(self, ticket_id: str) -> Optional[TicketSla]:
        """Fresh read of the record (never served from the identity map)."""

    @abstractmethod
    async def upsert_due_dates(
        self,
        ticket_id: str,
        sla_policy_id: str,
        first_response_due_at: Optional[datetime],
        resolution_due_at: Optional[datetime],
        now: datetime
    ) -> TicketSla:
        """Atomic insert-or-update keyed by ticket_id; leaves marks and breach flags alone."""

    @abstractmethod
    async def set_mark_if_unset(self, ticket_id: str, kind: str, at: datetime) -> bool:
        """Record a mark only when none exists. True if this call set it."""

    @abstractmethod
    async def overwrite_mark(self, ticket_id: str, kind: str, at: datetime) -> None:
        """Move a recorded mark (explicit correction only)."""

    @abstractmethod
    async def flag_breach_if_unset(self, ticket_id: str, kind: str, breached_at: datetime) -> bool:
        """Set a breach flag only when it is still false. True if this call set it."""


# ========== Results ==========

@dataclass
class ApplyPolicyResult:
    ticket_id: str
    matched: bool
    policy: Optional[SlaPolicy] = None
    ticket_sla: Optional[TicketSla] = None


@dataclass
class MarkResult:
    ticket_sla: TicketSla
    kind: str
    at: datetime
    already_marked: bool = False
    previous_at: Optional[datetime] = None
    breaches_detected: List[str] = field(default_factory=list)


@dataclass
class BreachEvaluation:
    ticket_sla: TicketSla
    breach_state: BreachState
    breaches_detected: List[str] = field(default_factory=list)


@dataclass
class SlaStatusView:
    ticket_sla: TicketSla
    first_response: DeadlineStatus
    resolution: DeadlineStatus
    evaluated_at: datetime


_MARK_EVENTS = {
    DeadlineKind.FIRST_RESPONSE: FirstResponseMarked,
    DeadlineKind.RESOLUTION: ResolvedMarked,
}

_BREACH_EVENTS = {
    DeadlineKind.FIRST_RESPONSE: FirstResponseBreached,
    DeadlineKind.RESOLUTION: ResolutionBreached,
}


# ========== Application Services ==========

class SlaClockService:
    """
    Owns the SLA record of a ticket.

    Applies the matching policy, records first-response / resolution marks
    and persists breaches. Breach detection happens whenever the record is
    read through ``get_status`` or ``evaluate_breaches``.
    """

    def __init__(
        self,
        ticket_store: ITicketStore,
        policy_repository: ISlaPolicyRepository,
        ticket_sla_repository: ITicketSlaRepository,
        recorder: AuditEventRecorder,
        authorization: AuthorizationService,
        unit_of_work: UnitOfWork,
        clock: Optional[Callable[[], datetime]] = None,
        lookup_timeout_seconds: Optional[float] = None,
        warning_minutes: Optional[int] = None
    ):
        self._tickets = ticket_store
        self._policies = policy_repository
        self._slas = ticket_sla_repository
        self._recorder = recorder
        self._authorization = authorization
        self._uow = unit_of_work
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lookup_timeout = (
            lookup_timeout_seconds if lookup_timeout_seconds is not None
            else settings.lookup_timeout_seconds
        )
        self._warning_minutes = (
            warning_minutes if warning_minutes is not None
            else settings.sla_warning_minutes
        )

    async def apply_policy(self, ticket_id: str, timeout_seconds: Optional[float] = None) -> ApplyPolicyResult:
        """
        Match the ticket against active policies and upsert its due dates.

        No match is a normal outcome: nothing is written and ``matched`` is
        False.
        """
        ticket = await self._tickets.get(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)

        policies = await with_deadline(
            self._policies.list_active(),
            timeout_seconds if timeout_seconds is not None else self._lookup_timeout,
            "sla_policy_lookup",
        )
        policy = PolicyMatcher.match(ticket, policies)

        if policy is None:
            logger.info(
                "No SLA policy matched",
                extra={
                    "ticket_id": ticket_id,
                    "ticket_type": ticket.ticket_type,
                    "priority": ticket.priority,
                    "category": ticket.category,
                    "active_policies": len(policies),
                }
            )
            return ApplyPolicyResult(ticket_id=ticket_id, matched=False)

        now = self._clock()
        first_response_due_at = SLACalculator.calculate_deadline(now, policy.first_response_minutes)
        resolution_due_at = SLACalculator.calculate_deadline(now, policy.resolution_minutes)

        try:
            ticket_sla = await self._slas.upsert_due_dates(
                ticket_id=ticket_id,
                sla_policy_id=policy.id,
                first_response_due_at=first_response_due_at,
                resolution_due_at=resolution_due_at,
                now=now,
            )
            await self._uow.commit()
        except RepositoryException as e:
            await self._uow.rollback()
            logger.error("SLA policy application failed", extra={"ticket_id": ticket_id, "error": e.message})
            raise PersistenceException("apply_policy", e.message) from e

        logger.info(
            "SLA policy applied",
            extra={
                "ticket_id": ticket_id,
                "policy_key": policy.policy_key,
                "first_response_due_at": first_response_due_at.isoformat() if first_response_due_at else None,
                "resolution_due_at": resolution_due_at.isoformat() if resolution_due_at else None,
            }
        )
        return ApplyPolicyResult(ticket_id=ticket_id, matched=True, policy=policy, ticket_sla=ticket_sla)

    async def mark_first_response(self, ticket_id: str, actor_id: Optional[str] = None) -> MarkResult:
        return await self._mark(ticket_id, DeadlineKind.FIRST_RESPONSE, actor_id)

    async def mark_resolved(self, ticket_id: str, actor_id: Optional[str] = None) -> MarkResult:
        return await self._mark(ticket_id, DeadlineKind.RESOLUTION, actor_id)

    async def _mark(self, ticket_id: str, kind: str, actor_id: Optional[str]) -> MarkResult:
        """The first mark wins; later calls report ``already_marked`` and write nothing."""
        ticket_sla = await self._require_sla(ticket_id)
        now = self._clock()
        step = f"mark_{kind}"

        try:
            marked = await self._slas.set_mark_if_unset(ticket_id, kind, now)
            if not marked:
                await self._uow.rollback()
                current = await self._require_sla(ticket_id)
                logger.info(
                    "SLA mark already recorded",
                    extra={"ticket_id": ticket_id, "deadline": kind}
                )
                return MarkResult(
                    ticket_sla=current,
                    kind=kind,
                    at=current.mark_at(kind),
                    already_marked=True,
                )

            await self._recorder.record(ticket_id, _MARK_EVENTS[kind](at=now), actor_id=actor_id, created_at=now)
            evaluation = await self._persist_breaches(ticket_id, now, actor_id)
            await self._uow.commit()
        except RepositoryException as e:
            await self._uow.rollback()
            logger.error("SLA mark failed", extra={"ticket_id": ticket_id, "step": step, "error": e.message})
            raise PersistenceException(step, e.message) from e

        logger.info(
            "SLA mark recorded",
            extra={
                "ticket_id": ticket_id,
                "deadline": kind,
                "at": now.isoformat(),
                "due_at": ticket_sla.due_at(kind).isoformat() if ticket_sla.due_at(kind) else None,
            }
        )
        return MarkResult(
            ticket_sla=evaluation.ticket_sla,
            kind=kind,
            at=now,
            breaches_detected=evaluation.breaches_detected,
        )

    async def correct_mark(
        self,
        ticket_id: str,
        deadline: str,
        at: datetime,
        reason: str,
        actor: Actor
    ) -> MarkResult:
        """
        Move a recorded mark to ``at``.

        This is the only way to change a mark once set. The correction is
        logged with the previous value; breach flags stay as they are even
        if the corrected mark is on time.
        """
        if deadline not in VALID_DEADLINE_KINDS:
            raise ValidationException(
                f"deadline must be one of {VALID_DEADLINE_KINDS}",
                {"deadline": deadline}
            )
        if not reason or not reason.strip():
            raise ValidationException("A reason is required to correct a mark")

        ticket = await self._tickets.get(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)
        await self._authorization.ensure_can_work_ticket(actor, ticket)

        ticket_sla = await self._require_sla(ticket_id)
        at = as_utc(at).astimezone(timezone.utc)
        previous_at = ticket_sla.mark_at(deadline)
        now = self._clock()

        try:
            await self._slas.overwrite_mark(ticket_id, deadline, at)
            await self._recorder.record(
                ticket_id,
                MarkCorrected(
                    deadline=deadline,
                    previous_at=previous_at,
                    corrected_at=at,
                    reason=reason.strip(),
                ),
                actor_id=actor.id,
                created_at=now,
            )
            evaluation = await self._persist_breaches(ticket_id, now, actor.id)
            await self._uow.commit()
        except RepositoryException as e:
            await self._uow.rollback()
            raise PersistenceException("correct_mark", e.message) from e

        logger.warning(
            "SLA mark corrected",
            extra={
                "ticket_id": ticket_id,
                "deadline": deadline,
                "previous_at": previous_at.isoformat() if previous_at else None,
                "corrected_at": at.isoformat(),
                "actor_id": actor.id,
            }
        )
        return MarkResult(
            ticket_sla=evaluation.ticket_sla,
            kind=deadline,
            at=at,
            previous_at=previous_at,
            breaches_detected=evaluation.breaches_detected,
        )

    async def evaluate_breaches(self, ticket_id: str, actor_id: Optional[str] = None) -> BreachEvaluation:
        """Recompute breach state from a fresh read and persist new breaches."""
        await self._require_sla(ticket_id)
        now = self._clock()
        try:
            evaluation = await self._persist_breaches(ticket_id, now, actor_id)
            await self._uow.commit()
        except RepositoryException as e:
            await self._uow.rollback()
            raise PersistenceException("evaluate_breaches", e.message) from e
        return evaluation

    async def get_status(self, ticket_id: str) -> SlaStatusView:
        """SLA record plus per-deadline status, after persisting any new breach."""
        evaluation = await self.evaluate_breaches(ticket_id)
        now = self._clock()
        ticket_sla = evaluation.ticket_sla
        state = evaluation.breach_state

        return SlaStatusView(
            ticket_sla=ticket_sla,
            first_response=SLACalculator.status_view(
                state.first_response, ticket_sla.first_response_at, now, self._warning_minutes
            ),
            resolution=SLACalculator.status_view(
                state.resolution, ticket_sla.resolved_at, now, self._warning_minutes
            ),
            evaluated_at=now,
        )

    async def list_events(self, ticket_id: str, limit: Optional[int] = None) -> List[StoredEvent]:
        return await self._recorder.list_sla(ticket_id, limit)

    async def _require_sla(self, ticket_id: str) -> TicketSla:
        ticket_sla = await self._slas.get(ticket_id)
        if ticket_sla is None:
            raise ResourceNotFoundException("Ticket SLA", ticket_id)
        return ticket_sla

    async def _persist_breaches(self, ticket_id: str, now: datetime, actor_id: Optional[str]) -> BreachEvaluation:
        """
        Flag newly detected breaches.

        Reads the record fresh and sets each flag with a conditional update,
        so a concurrent writer cannot clear a breach or log it twice.
        """
        ticket_sla = await self._require_sla(ticket_id)
        state = SLACalculator.compute_breach_state(ticket_sla, now)

        detected = []
        for deadline in state.newly_detected:
            flagged = await self._slas.flag_breach_if_unset(ticket_id, deadline.kind, deadline.breached_at)
            if not flagged:
                continue
            detected.append(deadline.kind)
            await self._recorder.record(
                ticket_id,
                _BREACH_EVENTS[deadline.kind](at=deadline.breached_at, due_at=deadline.due_at),
                actor_id=actor_id,
                created_at=now,
            )
            logger.warning(
                "SLA breach detected",
                extra={
                    "ticket_id": ticket_id,
                    "deadline": deadline.kind,
                    "due_at": deadline.due_at.isoformat() if deadline.due_at else None,
                    "breached_at": deadline.breached_at.isoformat(),
                }
            )

        if detected:
            ticket_sla = await self._require_sla(ticket_id)
            state = SLACalculator.compute_breach_state(ticket_sla, now)

        return BreachEvaluation(ticket_sla=ticket_sla, breach_state=state, breaches_detected=detected)
