"""
Notification Application Services
=================================

Sends the escalation email and records that it was sent.

Transport failures are not retried here; the caller decides. A send that
did not reach the provider leaves no audit event behind.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from servicedesk.audit.application import AuditEventRecorder
from servicedesk.audit.domain import EscalationNotificationSent
from servicedesk.config import settings
from servicedesk.core import (
    PersistenceException,
    RepositoryException,
    ResourceNotFoundException,
    ValidationException,
)
from servicedesk.infrastructure.database import UnitOfWork
from servicedesk.notifications.domain import (
    EmailMessage,
    build_escalation_email,
    exclude_address,
    unique_emails,
)
from servicedesk.shared.infrastructure.logging import get_logger, log_latency
from servicedesk.shared.infrastructure.timeouts import with_deadline
from servicedesk.tickets.application import AuthorizationService, IDirectory, ITicketStore
from servicedesk.tickets.domain import Actor

logger = get_logger(__name__)


class IEmailClient(ABC):
    """Interface for the transactional email provider."""

    @abstractmethod
    async def send(self, message: EmailMessage) -> Optional[str]:
        """Deliver ``message``; returns the provider's message id."""

    async def close(self) -> None:
        """Release transport resources."""


@dataclass
class NotificationResult:
    recipients: List[str] = field(default_factory=list)
    provider_message_id: Optional[str] = None
    event_id: Optional[str] = None

    @property
    def sent(self) -> int:
        return len(self.recipients)


class NotificationDispatcher:
    """
    Escalation email dispatcher.

    Flow:
        1. Load ticket and check the actor may work it
        2. Resolve recipients (assignee and/or active queue members)
        3. Send through the email provider
        4. Append ``escalation_notification_sent`` to the audit stream
    """

    def __init__(
        self,
        ticket_store: ITicketStore,
        directory: IDirectory,
        authorization: AuthorizationService,
        email_client: IEmailClient,
        recorder: AuditEventRecorder,
        unit_of_work: UnitOfWork,
        sender: Optional[str] = None,
        app_url: Optional[str] = None,
        lookup_timeout_seconds: Optional[float] = None,
        send_timeout_seconds: Optional[float] = None
    ):
        self._tickets = ticket_store
        self._directory = directory
        self._authorization = authorization
        self._email = email_client
        self._recorder = recorder
        self._uow = unit_of_work
        self._sender = sender or settings.support_from_email
        self._app_url = app_url or settings.app_url
        self._lookup_timeout = (
            lookup_timeout_seconds if lookup_timeout_seconds is not None
            else settings.lookup_timeout_seconds
        )
        self._send_timeout = (
            send_timeout_seconds if send_timeout_seconds is not None
            else settings.email_timeout_seconds
        )

    async def notify(
        self,
        ticket_id: str,
        actor: Actor,
        target_group_id: Optional[str] = None,
        target_assignee_id: Optional[str] = None,
        note: Optional[str] = None,
        notify_assignee: bool = False,
        notify_group: bool = False,
        exclude_actor: bool = True,
        timeout_seconds: Optional[float] = None
    ) -> NotificationResult:
        """
        Raises:
            ResourceNotFoundException: Ticket does not exist
            AuthorizationException: Actor may not work the ticket
            ValidationException: No recipients left after resolution
            EmailDeliveryException: Provider unreachable or non-2xx
            OperationTimeoutException: A lookup or the send ran out of time
        """
        ticket = await self._tickets.get(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)

        await self._authorization.ensure_can_work_ticket(actor, ticket)

        lookup_timeout = timeout_seconds if timeout_seconds is not None else self._lookup_timeout
        recipients = await self._resolve_recipients(
            actor=actor,
            target_group_id=target_group_id,
            target_assignee_id=target_assignee_id,
            notify_assignee=notify_assignee,
            notify_group=notify_group,
            exclude_actor=exclude_actor,
            timeout_seconds=lookup_timeout,
        )
        if not recipients:
            logger.warning(
                "Escalation notification has no recipients",
                extra={
                    "ticket_id": ticket_id,
                    "notify_assignee": notify_assignee,
                    "notify_group": notify_group,
                    "exclude_actor": exclude_actor,
                }
            )
            raise ValidationException(
                "No recipients",
                {"ticket_id": ticket_id, "notify_assignee": notify_assignee, "notify_group": notify_group}
            )

        message = build_escalation_email(
            ticket=ticket,
            recipients=recipients,
            sender=self._sender,
            app_url=self._app_url,
            note=note,
        )

        with log_latency(logger, "escalation_email_send", ticket_id=ticket_id, recipients=len(recipients)):
            message_id = await with_deadline(
                self._email.send(message),
                timeout_seconds if timeout_seconds is not None else self._send_timeout,
                "email_send",
            )

        try:
            event = await self._recorder.record(
                ticket_id,
                EscalationNotificationSent(
                    channel="email",
                    to_assignment_group_id=target_group_id,
                    to_assignee_id=target_assignee_id,
                    recipients=recipients,
                    provider_message_id=message_id,
                    notify_assignee=notify_assignee,
                    notify_group=notify_group,
                ),
                actor_id=actor.id,
            )
            await self._uow.commit()
        except RepositoryException as e:
            await self._uow.rollback()
            logger.error(
                "Email sent but audit record failed",
                extra={"ticket_id": ticket_id, "provider_message_id": message_id, "error": e.message}
            )
            raise PersistenceException("record_notification", e.message) from e

        logger.info(
            "Escalation notification sent",
            extra={
                "ticket_id": ticket_id,
                "recipients": recipients,
                "provider_message_id": message_id,
            }
        )
        return NotificationResult(recipients=recipients, provider_message_id=message_id, event_id=event.id)

    async def _resolve_recipients(
        self,
        actor: Actor,
        target_group_id: Optional[str],
        target_assignee_id: Optional[str],
        notify_assignee: bool,
        notify_group: bool,
        exclude_actor: bool,
        timeout_seconds: Optional[float]
    ) -> List[str]:
        raw: List[Optional[str]] = []

        if notify_assignee and target_assignee_id:
            profile = await with_deadline(
                self._directory.get_profile(target_assignee_id), timeout_seconds, "assignee_lookup"
            )
            if profile is not None:
                raw.append(profile.email)

        if notify_group and target_group_id:
            members = await with_deadline(
                self._directory.list_active_member_profiles(target_group_id), timeout_seconds, "group_member_lookup"
            )
            raw.extend(member.email for member in members)

        recipients = unique_emails(raw)

        if exclude_actor and recipients:
            actor_email = actor.email
            if not actor_email:
                profile = await with_deadline(
                    self._directory.get_profile(actor.id), timeout_seconds, "actor_lookup"
                )
                actor_email = profile.email if profile else None
            recipients = exclude_address(recipients, actor_email)

        return recipients
