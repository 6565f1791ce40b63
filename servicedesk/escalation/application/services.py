"""
Escalation Application Services
===============================

Runs a manual escalation.

The ticket update, the ``escalation`` audit event and the internal note
commit together. The SLA event and the notification run afterwards and
only degrade the result to warnings when they fail.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from servicedesk.audit.application import AuditEventRecorder
from servicedesk.audit.domain import Escalation, ManualEscalation
from servicedesk.config import AssigneeAction, WarningCode, settings
from servicedesk.core import (
    ApplicationException,
    OperationResult,
    OperationWarning,
    PersistenceException,
    RepositoryException,
    ResourceNotFoundException,
    ValidationException,
)
from servicedesk.escalation.domain import EscalationPlan, EscalationRequest
from servicedesk.infrastructure.database import UnitOfWork
from servicedesk.notifications.application import NotificationDispatcher, NotificationResult
from servicedesk.shared.infrastructure.logging import get_logger
from servicedesk.shared.infrastructure.timeouts import with_deadline
from servicedesk.tickets.application import (
    AuthorizationService,
    ICommentStore,
    IDirectory,
    ITicketStore,
)
from servicedesk.tickets.domain import Actor, OperatorGroup, Profile, TicketSnapshot

logger = get_logger(__name__)


@dataclass
class EscalationOutcome:
    ticket: TicketSnapshot
    escalation_event_id: str
    changed_fields: List[str] = field(default_factory=list)
    priority_raised: bool = False
    internal_note_id: Optional[str] = None
    sla_event_id: Optional[str] = None
    notification: Optional[NotificationResult] = None


class EscalationService:
    """
    Escalation workflow.

    Steps:
        1. Plan the field changes (reject when there is nothing to do)
        2. Update the ticket
        3. Append the ``escalation`` audit event
        4. Add the note as an internal comment
        5. Append ``manual_escalation`` to the SLA stream (best-effort)
        6. Notify the new assignee and/or queue (best-effort)
    """

    def __init__(
        self,
        ticket_store: ITicketStore,
        comment_store: ICommentStore,
        directory: IDirectory,
        authorization: AuthorizationService,
        recorder: AuditEventRecorder,
        dispatcher: NotificationDispatcher,
        unit_of_work: UnitOfWork,
        lookup_timeout_seconds: Optional[float] = None
    ):
        self._tickets = ticket_store
        self._comments = comment_store
        self._directory = directory
        self._authorization = authorization
        self._recorder = recorder
        self._dispatcher = dispatcher
        self._uow = unit_of_work
        self._lookup_timeout = (
            lookup_timeout_seconds if lookup_timeout_seconds is not None
            else settings.lookup_timeout_seconds
        )

    async def escalate(
        self,
        ticket_id: str,
        actor: Actor,
        request: EscalationRequest
    ) -> OperationResult[EscalationOutcome]:
        """
        Raises:
            ResourceNotFoundException: Ticket, target queue or target user missing
            AuthorizationException: Actor may not work the ticket
            ValidationException: Nothing to escalate, or bad assignee choice
            PersistenceException: Steps 2-4 failed and were rolled back
        """
        ticket = await self._tickets.get(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)

        await self._authorization.ensure_can_work_ticket(actor, ticket)
        request.validate()

        plan = EscalationPlan.build(ticket, request)
        if plan.is_empty:
            raise ValidationException("Nothing to escalate", {"ticket_id": ticket_id})

        target_group = await self._resolve_target_group(plan)
        target_assignee = await self._resolve_target_assignee(plan, request)

        # Steps 2-4: one transaction
        step = "update_ticket"
        internal_note_id = None
        try:
            if plan.changes:
                ticket = await self._tickets.update_fields(ticket_id, **plan.changes)

            step = "record_escalation"
            event = await self._recorder.record(
                ticket_id,
                Escalation(
                    note=plan.note,
                    from_assignment_group_id=plan.from_group_id,
                    to_assignment_group_id=plan.to_group_id,
                    to_assignment_group_name=target_group.name if target_group else None,
                    from_assignee_id=plan.from_assignee_id,
                    to_assignee_id=plan.to_assignee_id,
                    to_assignee_name=target_assignee.display_name if target_assignee else None,
                    from_priority=plan.from_priority,
                    priority_raised=plan.priority_raised,
                ),
                actor_id=actor.id,
            )

            if plan.note and request.add_internal_note:
                step = "add_internal_note"
                internal_note_id = await self._comments.add_internal_note(
                    ticket_id, actor.id, f"Escalation: {plan.note}"
                )

            step = "commit_escalation"
            await self._uow.commit()
        except RepositoryException as e:
            await self._uow.rollback()
            logger.error(
                "Escalation failed",
                extra={"ticket_id": ticket_id, "step": step, "error": e.message}
            )
            raise PersistenceException(step, e.message) from e

        logger.info(
            "Ticket escalated",
            extra={
                "ticket_id": ticket_id,
                "actor_id": actor.id,
                "changed_fields": plan.changed_fields,
                "to_assignment_group_id": plan.to_group_id,
                "priority_raised": plan.priority_raised,
            }
        )

        result = OperationResult(
            EscalationOutcome(
                ticket=ticket,
                escalation_event_id=event.id,
                changed_fields=plan.changed_fields,
                priority_raised=plan.priority_raised,
                internal_note_id=internal_note_id,
            )
        )

        await self._record_sla_event(result, ticket, actor, plan)

        if request.notify_assignee or request.notify_group:
            await self._notify(result, ticket, actor, plan, request)

        return result

    async def _resolve_target_group(self, plan: EscalationPlan) -> Optional[OperatorGroup]:
        if "assignment_group_id" not in plan.changes:
            return None
        group = await with_deadline(
            self._directory.get_group(plan.to_group_id), self._lookup_timeout, "group_lookup"
        )
        if group is None:
            raise ResourceNotFoundException("Operator group", plan.to_group_id)
        if not group.is_active:
            raise ValidationException(
                "Target queue is inactive",
                {"assignment_group_id": group.id, "group_key": group.group_key}
            )
        return group

    async def _resolve_target_assignee(
        self,
        plan: EscalationPlan,
        request: EscalationRequest
    ) -> Optional[Profile]:
        if request.assignee_action != AssigneeAction.SET:
            return None
        profile = await with_deadline(
            self._directory.get_profile(request.target_assignee_id), self._lookup_timeout, "assignee_lookup"
        )
        if profile is None:
            raise ResourceNotFoundException("User", request.target_assignee_id)
        if plan.to_group_id:
            is_member = await with_deadline(
                self._directory.is_member(plan.to_group_id, profile.id), self._lookup_timeout, "membership_lookup"
            )
            if not is_member:
                raise ValidationException(
                    "Assignee is not a member of the target queue",
                    {"assignee_id": profile.id, "assignment_group_id": plan.to_group_id}
                )
        return profile

    async def _record_sla_event(
        self,
        result: OperationResult[EscalationOutcome],
        ticket: TicketSnapshot,
        actor: Actor,
        plan: EscalationPlan
    ) -> None:
        try:
            event = await self._recorder.record(
                ticket.id,
                ManualEscalation(note=plan.note, to_assignment_group_id=ticket.assignment_group_id),
                actor_id=actor.id,
            )
            await self._uow.commit()
            result.value.sla_event_id = event.id
        except Exception as e:
            await self._rollback_after(ticket.id, "record_sla_event")
            warning = OperationWarning.from_exception("record_sla_event", WarningCode.SLA_EVENT_FAILED, e)
            logger.warning(
                "Manual escalation SLA event not recorded",
                extra={"ticket_id": ticket.id, "error": warning.message}
            )
            result.warn(warning)

    async def _notify(
        self,
        result: OperationResult[EscalationOutcome],
        ticket: TicketSnapshot,
        actor: Actor,
        plan: EscalationPlan,
        request: EscalationRequest
    ) -> None:
        try:
            result.value.notification = await self._dispatcher.notify(
                ticket_id=ticket.id,
                actor=actor,
                target_group_id=ticket.assignment_group_id,
                target_assignee_id=ticket.assignee_id,
                note=plan.note,
                notify_assignee=request.notify_assignee,
                notify_group=request.notify_group,
                exclude_actor=True,
            )
        except ValidationException as e:
            result.warn(OperationWarning.from_exception("notify", WarningCode.NO_RECIPIENTS, e))
        except Exception as e:
            await self._rollback_after(ticket.id, "notify")
            warning = OperationWarning.from_exception("notify", WarningCode.NOTIFICATION_FAILED, e)
            log = logger.warning if isinstance(e, ApplicationException) else logger.exception
            log(
                "Escalation applied but notification failed",
                extra={"ticket_id": ticket.id, "error": warning.message}
            )
            result.warn(warning)

    async def _rollback_after(self, ticket_id: str, step: str) -> None:
        try:
            await self._uow.rollback()
        except RepositoryException as e:
            logger.error(
                "Rollback after best-effort step failed",
                extra={"ticket_id": ticket_id, "step": step, "error": e.message}
            )
