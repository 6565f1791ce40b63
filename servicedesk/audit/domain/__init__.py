"""
Audit Domain Layer
==================

Event payload tagged union and the stored event value object.
"""

from servicedesk.audit.domain.events import (
    EventStream,
    EventType,
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
    FieldChange,
    EventPayload,
    UnknownEventPayload,
    StoredEvent,
    parse_payload,
)

__all__ = [
    "EventStream",
    "EventType",
    "FirstResponseMarked",
    "ResolvedMarked",
    "FirstResponseBreached",
    "ResolutionBreached",
    "MarkCorrected",
    "ManualEscalation",
    "Escalation",
    "EscalationNotificationSent",
    "TicketStatusChanged",
    "TicketUpdated",
    "FieldChange",
    "EventPayload",
    "UnknownEventPayload",
    "StoredEvent",
    "parse_payload",
]
