"""
Escalation Controllers (API Routes)
===================================
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from servicedesk.audit.application import AuditEventRecorder
from servicedesk.escalation.application import EscalateRequest, EscalationResponse, EscalationService
from servicedesk.infrastructure.database import UnitOfWork, get_session
from servicedesk.notifications.application import NotificationDispatcher
from servicedesk.notifications.interfaces import get_notification_dispatcher
from servicedesk.shared.api.dependencies import (
    get_actor,
    get_authorization,
    get_recorder,
    get_unit_of_work,
)
from servicedesk.tickets.application import AuthorizationService
from servicedesk.tickets.domain import Actor
from servicedesk.tickets.infrastructure import (
    SQLAlchemyCommentStore,
    SQLAlchemyDirectory,
    SQLAlchemyTicketStore,
)

router = APIRouter(prefix="/escalations", tags=["Escalation"])

ESCALATION_RESPONSE_EXAMPLE = {
    "status": "applied_with_warnings",
    "ticket": {
        "id": "123e4567-e89b-12d3-a456-426614174000",
        "ticket_number": "INC-000123",
        "priority": "urgent",
        "assignment_group_id": "9c1d0b8e-3c52-4a4e-8f0e-0d6c1f2a7b11",
        "assignee_id": None
    },
    "escalation_event_id": "f7a4c1de-0b5e-4d7b-9d0a-6c2e8e1b4a20",
    "changed_fields": ["assignment_group_id", "assignee_id", "priority"],
    "priority_raised": True,
    "notification": None,
    "warnings": [
        {
            "step": "notify",
            "code": "notification_failed",
            "message": "Email Provider: send failed: 500 upstream error"
        }
    ]
}


async def get_escalation_service(
    session: AsyncSession = Depends(get_session),
    authorization: AuthorizationService = Depends(get_authorization),
    recorder: AuditEventRecorder = Depends(get_recorder),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
    unit_of_work: UnitOfWork = Depends(get_unit_of_work)
) -> EscalationService:
    """Get escalation service instance."""
    return EscalationService(
        ticket_store=SQLAlchemyTicketStore(session),
        comment_store=SQLAlchemyCommentStore(session),
        directory=SQLAlchemyDirectory(session),
        authorization=authorization,
        recorder=recorder,
        dispatcher=dispatcher,
        unit_of_work=unit_of_work,
    )


@router.post(
    "/tickets/{ticket_id}",
    response_model=EscalationResponse,
    summary="Escalate a ticket",
    description="""
    Reroutes the ticket, optionally raises it to urgent and records the
    escalation. The ticket update, audit event and internal note commit
    together. The SLA event and the notification are best-effort: when they
    fail the escalation still stands and `status` is `applied_with_warnings`.

    **Assignee actions**: `keep`, `unassign`, `set` (with `to_assignee_id`)
    """,
    responses={
        200: {"content": {"application/json": {"example": ESCALATION_RESPONSE_EXAMPLE}}},
        400: {"description": "Nothing to escalate, or invalid assignee"},
        403: {"description": "Caller may not work this ticket"},
        404: {"description": "Ticket, queue or user not found"}
    }
)
async def escalate_ticket(
    ticket_id: str,
    request: EscalateRequest,
    actor: Actor = Depends(get_actor),
    service: EscalationService = Depends(get_escalation_service)
):
    result = await service.escalate(ticket_id, actor, request.to_domain())
    return EscalationResponse.from_result(result)


escalation_router = router
