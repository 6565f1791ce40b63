"""
Audit Application DTOs
======================

Response models for reading the event streams.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from servicedesk.audit.domain import StoredEvent


class EventResponse(BaseModel):
    """A stored event of either stream."""
    id: str
    ticket_id: str
    event_type: str
    actor_id: Optional[str] = None
    created_at: datetime
    known: bool = Field(True, description="False for event types this service does not recognize")
    payload: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, event: StoredEvent) -> "EventResponse":
        if event.is_known:
            payload = event.payload.to_storage()
        else:
            payload = dict(event.payload.raw)
        return cls(
            id=event.id,
            ticket_id=event.ticket_id,
            event_type=event.event_type,
            actor_id=event.actor_id,
            created_at=event.created_at,
            known=event.is_known,
            payload=payload,
        )


class EventListResponse(BaseModel):
    ticket_id: str
    events: List[EventResponse]
    total: int

    @classmethod
    def from_events(cls, ticket_id: str, events: List[StoredEvent]) -> "EventListResponse":
        items = [EventResponse.from_domain(e) for e in events]
        return cls(ticket_id=ticket_id, events=items, total=len(items))
