"""
Audit Infrastructure Repositories
=================================

Append-only SQLAlchemy repository shared by both event streams.
"""

from datetime import datetime
from typing import List, Optional, Type, Union
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from servicedesk.audit.application.services import IEventRepository
from servicedesk.audit.domain import StoredEvent, parse_payload
from servicedesk.core import RepositoryException, ResourceNotFoundException
from servicedesk.infrastructure.database import as_utc, to_uuid
from servicedesk.audit.infrastructure.models import AuditEventModel, SlaEventModel

EventModel = Union[SlaEventModel, AuditEventModel]


class SQLAlchemyEventRepository(IEventRepository):
    """
    Append-only event repository.

    The same implementation serves both streams; the model class picks the
    table. There is no update or delete method.
    """

    def __init__(self, session: AsyncSession, model: Type[EventModel]):
        self._session = session
        self._model = model

    @staticmethod
    def _to_entity(model: EventModel) -> StoredEvent:
        return StoredEvent(
            id=str(model.id),
            ticket_id=str(model.ticket_id),
            event_type=model.event_type,
            payload=parse_payload(model.event_type, model.payload),
            created_at=as_utc(model.created_at),
            actor_id=str(model.actor_id) if model.actor_id else None,
        )

    async def append(
        self,
        ticket_id: str,
        event_type: str,
        payload: dict,
        created_at: datetime,
        actor_id: Optional[str] = None
    ) -> StoredEvent:
        ticket_uuid = to_uuid(ticket_id)
        if ticket_uuid is None:
            raise ResourceNotFoundException("Ticket", ticket_id)

        row = self._model(
            id=uuid4(),
            ticket_id=ticket_uuid,
            actor_id=to_uuid(actor_id),
            event_type=event_type,
            payload=payload,
            created_at=created_at,
        )
        try:
            self._session.add(row)
            await self._session.flush()
        except SQLAlchemyError as e:
            raise RepositoryException(f"Event insert into {self._model.__tablename__} failed: {e}") from e
        return self._to_entity(row)

    async def list_for_ticket(self, ticket_id: str, limit: Optional[int] = None) -> List[StoredEvent]:
        ticket_uuid = to_uuid(ticket_id)
        if ticket_uuid is None:
            return []

        stmt = (
            select(self._model)
            .where(self._model.ticket_id == ticket_uuid)
            .order_by(self._model.created_at, self._model.id)
        )
        if limit:
            stmt = stmt.limit(limit)

        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryException(f"Event read from {self._model.__tablename__} failed: {e}") from e
        return [self._to_entity(m) for m in result.scalars().all()]
