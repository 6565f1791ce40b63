"""
SLA Controllers (API Routes)
=============================

FastAPI routes for SLA tracking endpoints.

Controllers are thin - they delegate to application services.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from servicedesk.audit.application import AuditEventRecorder, EventListResponse
from servicedesk.infrastructure.database import UnitOfWork, get_session
from servicedesk.shared.api.dependencies import (
    get_actor,
    get_authorization,
    get_optional_actor,
    get_recorder,
    get_unit_of_work,
)
from servicedesk.sla.application import (
    ApplyPolicyResponse,
    DeadlineStatusResponse,
    MarkCorrectionRequest,
    MarkResponse,
    MarkResult,
    SlaClockService,
    SlaPolicyResponse,
    SlaStatusResponse,
    TicketSlaResponse,
)
from servicedesk.sla.infrastructure import SQLAlchemySlaPolicyRepository, SQLAlchemyTicketSlaRepository
from servicedesk.tickets.application import AuthorizationService
from servicedesk.tickets.domain import Actor
from servicedesk.tickets.infrastructure import SQLAlchemyTicketStore

router = APIRouter(prefix="/sla", tags=["SLA"])


# ========== Example payloads for Swagger ==========

SLA_STATUS_EXAMPLE = {
    "ticket_id": "123e4567-e89b-12d3-a456-426614174000",
    "sla": {
        "ticket_id": "123e4567-e89b-12d3-a456-426614174000",
        "sla_policy_id": "0b4c3f3e-8d2a-4f7e-9a51-2f6f1d1c9e01",
        "first_response_due_at": "2024-01-15T10:30:00Z",
        "resolution_due_at": "2024-01-15T14:00:00Z",
        "first_response_at": None,
        "resolved_at": None,
        "first_response_breached": False,
        "first_response_breached_at": None,
        "resolution_breached": False,
        "resolution_breached_at": None
    },
    "first_response": {
        "status": "warning",
        "state": "scheduled",
        "due_at": "2024-01-15T10:30:00Z",
        "minutes_remaining": 12,
        "countdown": "Due in 12m"
    },
    "resolution": {
        "status": "within",
        "state": "scheduled",
        "due_at": "2024-01-15T14:00:00Z",
        "minutes_remaining": 222,
        "countdown": "Due in 3h 42m"
    },
    "evaluated_at": "2024-01-15T10:18:00Z"
}


# ========== Dependencies ==========

async def get_sla_clock_service(
    session: AsyncSession = Depends(get_session),
    recorder: AuditEventRecorder = Depends(get_recorder),
    authorization: AuthorizationService = Depends(get_authorization),
    unit_of_work: UnitOfWork = Depends(get_unit_of_work)
) -> SlaClockService:
    """Get SLA clock service instance."""
    return SlaClockService(
        ticket_store=SQLAlchemyTicketStore(session),
        policy_repository=SQLAlchemySlaPolicyRepository(session),
        ticket_sla_repository=SQLAlchemyTicketSlaRepository(session),
        recorder=recorder,
        authorization=authorization,
        unit_of_work=unit_of_work,
    )


def _actor_id(actor: Optional[Actor]) -> Optional[str]:
    return actor.id if actor else None


def _mark_response(ticket_id: str, result: MarkResult) -> MarkResponse:
    return MarkResponse(
        ticket_id=ticket_id,
        deadline=result.kind,
        at=result.at,
        already_marked=result.already_marked,
        previous_at=result.previous_at,
        breaches_detected=result.breaches_detected,
        sla=TicketSlaResponse.from_domain(result.ticket_sla),
    )


# ========== Route Handlers ==========

@router.post(
    "/tickets/{ticket_id}/apply",
    response_model=ApplyPolicyResponse,
    summary="Apply the matching SLA policy",
    description="""
    Match the ticket against active SLA policies and set its due dates.

    The most specific policy wins (most non-wildcard predicates), then the
    lowest rank. When nothing matches, `matched` is false and nothing is
    written. Calling again recomputes the due dates from now; recorded
    marks and breaches are kept.
    """,
    responses={404: {"description": "Ticket not found"}}
)
async def apply_policy(
    ticket_id: str,
    timeout_seconds: Optional[float] = Query(None, gt=0, le=60, description="Deadline for the policy lookup"),
    service: SlaClockService = Depends(get_sla_clock_service)
):
    result = await service.apply_policy(ticket_id, timeout_seconds=timeout_seconds)
    return ApplyPolicyResponse(
        ticket_id=ticket_id,
        matched=result.matched,
        policy=SlaPolicyResponse.from_domain(result.policy) if result.policy else None,
        sla=TicketSlaResponse.from_domain(result.ticket_sla) if result.ticket_sla else None,
    )


@router.post(
    "/tickets/{ticket_id}/first-response",
    response_model=MarkResponse,
    summary="Record the first response",
    description="Records the first response once. Repeated calls return `already_marked: true` and change nothing.",
    responses={404: {"description": "Ticket has no SLA"}}
)
async def mark_first_response(
    ticket_id: str,
    actor: Optional[Actor] = Depends(get_optional_actor),
    service: SlaClockService = Depends(get_sla_clock_service)
):
    result = await service.mark_first_response(ticket_id, actor_id=_actor_id(actor))
    return _mark_response(ticket_id, result)


@router.post(
    "/tickets/{ticket_id}/resolved",
    response_model=MarkResponse,
    summary="Record the resolution",
    description="Records the resolution once. Repeated calls return `already_marked: true` and change nothing.",
    responses={404: {"description": "Ticket has no SLA"}}
)
async def mark_resolved(
    ticket_id: str,
    actor: Optional[Actor] = Depends(get_optional_actor),
    service: SlaClockService = Depends(get_sla_clock_service)
):
    result = await service.mark_resolved(ticket_id, actor_id=_actor_id(actor))
    return _mark_response(ticket_id, result)


@router.post(
    "/tickets/{ticket_id}/marks/correct",
    response_model=MarkResponse,
    summary="Correct a recorded mark",
    description="Moves a first-response or resolution mark. Logged as `mark_corrected`; breach flags are never cleared.",
    responses={
        401: {"description": "Missing actor"},
        403: {"description": "Actor may not work the ticket"},
        404: {"description": "Ticket has no SLA"}
    }
)
async def correct_mark(
    ticket_id: str,
    request: MarkCorrectionRequest,
    actor: Actor = Depends(get_actor),
    service: SlaClockService = Depends(get_sla_clock_service)
):
    result = await service.correct_mark(
        ticket_id,
        deadline=request.deadline,
        at=request.at,
        reason=request.reason,
        actor=actor,
    )
    return _mark_response(ticket_id, result)


@router.get(
    "/tickets/{ticket_id}",
    response_model=SlaStatusResponse,
    summary="Get ticket SLA status",
    description="""
    SLA record plus a status per deadline (`within`, `warning`, `breached`,
    `met`) with a countdown. Breaches detected by this read are persisted.
    """,
    responses={
        200: {"content": {"application/json": {"example": SLA_STATUS_EXAMPLE}}},
        404: {"description": "Ticket has no SLA"}
    }
)
async def get_ticket_sla(
    ticket_id: str,
    service: SlaClockService = Depends(get_sla_clock_service)
):
    view = await service.get_status(ticket_id)
    return SlaStatusResponse(
        ticket_id=ticket_id,
        sla=TicketSlaResponse.from_domain(view.ticket_sla),
        first_response=DeadlineStatusResponse.from_domain(view.first_response),
        resolution=DeadlineStatusResponse.from_domain(view.resolution),
        evaluated_at=view.evaluated_at,
    )


@router.get(
    "/tickets/{ticket_id}/events",
    response_model=EventListResponse,
    summary="List SLA events",
    description="SLA stream of the ticket (marks, breaches, corrections, manual escalations), oldest first."
)
async def list_sla_events(
    ticket_id: str,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    service: SlaClockService = Depends(get_sla_clock_service)
):
    events = await service.list_events(ticket_id, limit=limit)
    return EventListResponse.from_events(ticket_id, events)


# Export router for inclusion in main app
sla_router = router
