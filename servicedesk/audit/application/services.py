"""
Audit Application Services
==========================

Append-only recording and reading of ticket events.

The recorder routes each payload to its stream (SLA or audit) and never
updates or deletes a stored event. Readers get events ordered by
``created_at``.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, List, Optional

from servicedesk.audit.domain import EventStream, StoredEvent, UnknownEventPayload
from servicedesk.audit.domain.events import _Payload
from servicedesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


# ========== Repository Interfaces (Dependency Inversion) ==========

class IEventRepository(ABC):
    """Interface for one append-only event stream."""

    @abstractmethod
    async def append(
        self,
        ticket_id: str,
        event_type: str,
        payload: dict,
        created_at: datetime,
        actor_id: Optional[str] = None
    ) -> StoredEvent:
        """Insert a new event."""

    @abstractmethod
    async def list_for_ticket(self, ticket_id: str, limit: Optional[int] = None) -> List[StoredEvent]:
        """Events of one ticket ordered by created_at."""


# ========== Application Services ==========

class AuditEventRecorder:
    """
    Append-only event log for a ticket.

    Writes go through ``record``; the payload type decides the stream.
    The caller owns the transaction.
    """

    def __init__(
        self,
        audit_repository: IEventRepository,
        sla_repository: IEventRepository,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self._repos = {
            EventStream.AUDIT: audit_repository,
            EventStream.SLA: sla_repository,
        }
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def record(
        self,
        ticket_id: str,
        payload: _Payload,
        actor_id: Optional[str] = None,
        created_at: Optional[datetime] = None
    ) -> StoredEvent:
        """Append one event to the stream its payload belongs to."""
        repo = self._repos[payload.stream]
        event = await repo.append(
            ticket_id=ticket_id,
            event_type=payload.event_type,
            payload=payload.to_storage(),
            created_at=created_at or self._clock(),
            actor_id=actor_id,
        )
        logger.info(
            "Event recorded",
            extra={
                "ticket_id": ticket_id,
                "event_type": payload.event_type,
                "stream": payload.stream,
                "event_id": event.id,
            }
        )
        return event

    async def list_audit(self, ticket_id: str, limit: Optional[int] = None) -> List[StoredEvent]:
        return self._log_unknown(await self._repos[EventStream.AUDIT].list_for_ticket(ticket_id, limit))

    async def list_sla(self, ticket_id: str, limit: Optional[int] = None) -> List[StoredEvent]:
        return self._log_unknown(await self._repos[EventStream.SLA].list_for_ticket(ticket_id, limit))

    @staticmethod
    def _log_unknown(events: List[StoredEvent]) -> List[StoredEvent]:
        for event in events:
            if isinstance(event.payload, UnknownEventPayload):
                logger.warning(
                    "Unknown event type in stream",
                    extra={"event_id": event.id, "event_type": event.event_type}
                )
        return events
