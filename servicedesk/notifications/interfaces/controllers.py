"""
Notification Controllers (API Routes)
=====================================
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from servicedesk.audit.application import AuditEventRecorder
from servicedesk.infrastructure.database import UnitOfWork, get_session
from servicedesk.notifications.application import (
    EscalationNotificationRequest,
    IEmailClient,
    NotificationDispatcher,
    NotificationResponse,
)
from servicedesk.shared.api.dependencies import (
    get_actor,
    get_authorization,
    get_email_client,
    get_recorder,
    get_unit_of_work,
)
from servicedesk.tickets.application import AuthorizationService
from servicedesk.tickets.domain import Actor
from servicedesk.tickets.infrastructure import SQLAlchemyDirectory, SQLAlchemyTicketStore

router = APIRouter(prefix="/notifications", tags=["Notifications"])


async def get_notification_dispatcher(
    session: AsyncSession = Depends(get_session),
    authorization: AuthorizationService = Depends(get_authorization),
    email_client: IEmailClient = Depends(get_email_client),
    recorder: AuditEventRecorder = Depends(get_recorder),
    unit_of_work: UnitOfWork = Depends(get_unit_of_work)
) -> NotificationDispatcher:
    """Get notification dispatcher instance."""
    return NotificationDispatcher(
        ticket_store=SQLAlchemyTicketStore(session),
        directory=SQLAlchemyDirectory(session),
        authorization=authorization,
        email_client=email_client,
        recorder=recorder,
        unit_of_work=unit_of_work,
    )


@router.post(
    "/escalation",
    response_model=NotificationResponse,
    summary="Send an escalation email",
    description="""
    Emails the given assignee and/or every active member of the given queue
    about a ticket escalation, then records `escalation_notification_sent`.

    - 400 `No recipients` when nobody is left after de-duplication and
      (with `exclude_actor`) removing the caller
    - 403 when the caller may not work the ticket
    - 502 when the email provider rejects the send (nothing is recorded)
    """
)
async def send_escalation_notification(
    request: EscalationNotificationRequest,
    actor: Actor = Depends(get_actor),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher)
):
    result = await dispatcher.notify(
        ticket_id=request.ticket_id,
        actor=actor,
        target_group_id=request.to_assignment_group_id,
        target_assignee_id=request.to_assignee_id,
        note=request.note,
        notify_assignee=request.notify_assignee,
        notify_group=request.notify_group,
        exclude_actor=request.exclude_actor,
    )
    return NotificationResponse(
        sent=result.sent,
        recipients=result.recipients,
        provider_message_id=result.provider_message_id,
    )


notifications_router = router
