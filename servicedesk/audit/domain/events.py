"""
Audit Event Payloads
====================

Tagged union of every event kind the engine writes or reads back.

Each payload carries a literal ``event_type`` discriminator, so consumers can
handle known kinds exhaustively. Rows with an event type this module does not
know are surfaced as ``UnknownEventPayload`` instead of failing the read.

Two append-only streams exist:
- SLA stream (``ticket_sla_events``): marks, breaches, manual escalations
- Audit stream (``ticket_events``): escalations, notifications, ticket edits
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Annotated, Any, ClassVar, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError


class EventStream(str):
    """Storage stream an event belongs to."""
    SLA = "sla"
    AUDIT = "audit"


class EventType(str):
    """Known event types."""
    FIRST_RESPONSE_MARKED = "first_response_marked"
    RESOLVED_MARKED = "resolved_marked"
    FIRST_RESPONSE_BREACHED = "first_response_breached"
    RESOLUTION_BREACHED = "resolution_breached"
    MARK_CORRECTED = "mark_corrected"
    MANUAL_ESCALATION = "manual_escalation"
    ESCALATION = "escalation"
    ESCALATION_NOTIFICATION_SENT = "escalation_notification_sent"
    TICKET_STATUS_CHANGED = "ticket_status_changed"
    TICKET_UPDATED = "ticket_updated"


class _Payload(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    stream: ClassVar[str] = EventStream.AUDIT

    def to_storage(self) -> Dict[str, Any]:
        """JSON payload without the discriminator (stored in its own column)."""
        return self.model_dump(mode="json", exclude={"event_type"})


# ========== SLA stream ==========

class FirstResponseMarked(_Payload):
    event_type: Literal["first_response_marked"] = "first_response_marked"
    stream: ClassVar[str] = EventStream.SLA
    at: datetime


class ResolvedMarked(_Payload):
    event_type: Literal["resolved_marked"] = "resolved_marked"
    stream: ClassVar[str] = EventStream.SLA
    at: datetime


class FirstResponseBreached(_Payload):
    event_type: Literal["first_response_breached"] = "first_response_breached"
    stream: ClassVar[str] = EventStream.SLA
    at: datetime
    due_at: Optional[datetime] = None


class ResolutionBreached(_Payload):
    event_type: Literal["resolution_breached"] = "resolution_breached"
    stream: ClassVar[str] = EventStream.SLA
    at: datetime
    due_at: Optional[datetime] = None


class MarkCorrected(_Payload):
    event_type: Literal["mark_corrected"] = "mark_corrected"
    stream: ClassVar[str] = EventStream.SLA
    deadline: str
    previous_at: Optional[datetime] = None
    corrected_at: datetime
    reason: str


class ManualEscalation(_Payload):
    event_type: Literal["manual_escalation"] = "manual_escalation"
    stream: ClassVar[str] = EventStream.SLA
    note: Optional[str] = None
    to_assignment_group_id: Optional[str] = None


# ========== Audit stream ==========

class Escalation(_Payload):
    event_type: Literal["escalation"] = "escalation"
    note: Optional[str] = None
    from_assignment_group_id: Optional[str] = None
    to_assignment_group_id: Optional[str] = None
    to_assignment_group_name: Optional[str] = None
    from_assignee_id: Optional[str] = None
    to_assignee_id: Optional[str] = None
    to_assignee_name: Optional[str] = None
    from_priority: Optional[str] = None
    priority_raised: bool = False


class EscalationNotificationSent(_Payload):
    event_type: Literal["escalation_notification_sent"] = "escalation_notification_sent"
    channel: str = "email"
    to_assignment_group_id: Optional[str] = None
    to_assignee_id: Optional[str] = None
    recipients: List[str] = Field(default_factory=list)
    provider_message_id: Optional[str] = None
    notify_assignee: bool = False
    notify_group: bool = False


class TicketStatusChanged(_Payload):
    event_type: Literal["ticket_status_changed"] = "ticket_status_changed"
    from_status: Optional[str] = None
    to_status: str


class FieldChange(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    field: str
    from_value: Optional[Any] = Field(default=None, alias="from")
    to_value: Optional[Any] = Field(default=None, alias="to")


class TicketUpdated(_Payload):
    event_type: Literal["ticket_updated"] = "ticket_updated"
    changes: List[FieldChange] = Field(default_factory=list)

    def to_storage(self) -> Dict[str, Any]:
        return {
            "changes": [c.model_dump(mode="json", by_alias=True) for c in self.changes]
        }


EventPayload = Annotated[
    Union[
        FirstResponseMarked,
        ResolvedMarked,
        FirstResponseBreached,
        ResolutionBreached,
        MarkCorrected,
        ManualEscalation,
        Escalation,
        EscalationNotificationSent,
        TicketStatusChanged,
        TicketUpdated,
    ],
    Field(discriminator="event_type"),
]

_payload_adapter: TypeAdapter = TypeAdapter(EventPayload)


@dataclass(frozen=True)
class UnknownEventPayload:
    """Stored event whose type (or shape) this version does not understand."""
    event_type: str
    raw: Dict[str, Any]
    stream: str = EventStream.AUDIT


def parse_payload(event_type: str, raw: Optional[Dict[str, Any]]):
    """
    Rebuild a typed payload from a stored row.

    Returns ``UnknownEventPayload`` when the type is unknown or the stored
    payload no longer validates; callers decide whether to log or skip.
    """
    data = dict(raw or {})
    data["event_type"] = event_type
    try:
        return _payload_adapter.validate_python(data)
    except ValidationError:
        return UnknownEventPayload(event_type=event_type, raw=dict(raw or {}))


@dataclass(frozen=True)
class StoredEvent:
    """An event as persisted in one of the append-only streams."""
    id: str
    ticket_id: str
    event_type: str
    payload: Any
    created_at: datetime
    actor_id: Optional[str] = None

    @property
    def is_known(self) -> bool:
        return not isinstance(self.payload, UnknownEventPayload)
