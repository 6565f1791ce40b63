"""
Escalation DTOs
===============

Request/response models for the escalation endpoint.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from servicedesk.core import OperationResult, OperationWarning
from servicedesk.escalation.domain import EscalationRequest

AssigneeActionStr = Literal["keep", "unassign", "set"]
EscalationStatusStr = Literal["applied", "applied_with_warnings"]


class EscalateRequest(BaseModel):
    """Request model for escalating a ticket."""
    to_assignment_group_id: Optional[str] = Field(None, description="Target queue; omit to keep the current one")
    assignee_action: AssigneeActionStr = Field("keep", description="keep, unassign or set")
    to_assignee_id: Optional[str] = Field(None, description="Required when assignee_action is 'set'")
    note: Optional[str] = Field(None, max_length=5000)
    make_urgent: bool = False
    notify_assignee: bool = False
    notify_group: bool = False
    add_internal_note: bool = True

    @model_validator(mode="after")
    def check_assignee(self) -> "EscalateRequest":
        if self.assignee_action == "set" and not self.to_assignee_id:
            raise ValueError("to_assignee_id is required when assignee_action is 'set'")
        return self

    def to_domain(self) -> EscalationRequest:
        return EscalationRequest(
            target_group_id=self.to_assignment_group_id,
            assignee_action=self.assignee_action,
            target_assignee_id=self.to_assignee_id,
            note=self.note,
            make_urgent=self.make_urgent,
            notify_assignee=self.notify_assignee,
            notify_group=self.notify_group,
            add_internal_note=self.add_internal_note,
        )


class WarningResponse(BaseModel):
    step: str
    code: str
    message: str

    @classmethod
    def from_domain(cls, warning: OperationWarning) -> "WarningResponse":
        return cls(step=warning.step, code=warning.code, message=warning.message)


class EscalatedTicket(BaseModel):
    id: str
    ticket_number: str
    priority: str
    assignment_group_id: Optional[str] = None
    assignee_id: Optional[str] = None


class NotificationSummary(BaseModel):
    sent: int
    recipients: List[str] = Field(default_factory=list)
    provider_message_id: Optional[str] = None


class EscalationResponse(BaseModel):
    """Response model for an escalation."""
    status: EscalationStatusStr
    ticket: EscalatedTicket
    escalation_event_id: str
    changed_fields: List[str] = Field(default_factory=list)
    priority_raised: bool = False
    notification: Optional[NotificationSummary] = None
    warnings: List[WarningResponse] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: OperationResult) -> "EscalationResponse":
        outcome = result.value
        ticket = outcome.ticket
        notification = None
        if outcome.notification is not None:
            notification = NotificationSummary(
                sent=outcome.notification.sent,
                recipients=outcome.notification.recipients,
                provider_message_id=outcome.notification.provider_message_id,
            )
        return cls(
            status="applied_with_warnings" if result.has_warnings else "applied",
            ticket=EscalatedTicket(
                id=ticket.id,
                ticket_number=ticket.ticket_number,
                priority=ticket.priority,
                assignment_group_id=ticket.assignment_group_id,
                assignee_id=ticket.assignee_id,
            ),
            escalation_event_id=outcome.escalation_event_id,
            changed_fields=outcome.changed_fields,
            priority_raised=outcome.priority_raised,
            notification=notification,
            warnings=[WarningResponse.from_domain(w) for w in result.warnings],
        )
