"""
SLA Infrastructure Repositories
=================================

Concrete implementations of repository interfaces using SQLAlchemy.

Writes to ``ticket_slas`` are single statements: an atomic upsert for due
dates and conditional updates for marks and breach flags, so concurrent
callers never overwrite each other from stale application memory.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from servicedesk.config import DeadlineKind
from servicedesk.core import RepositoryException
from servicedesk.infrastructure.database import as_utc, dialect_insert, to_uuid
from servicedesk.sla.application.services import ISlaPolicyRepository, ITicketSlaRepository
from servicedesk.sla.domain import SlaPolicy, TicketSla
from servicedesk.sla.infrastructure.models import SlaPolicyModel, TicketSlaModel

_MARK_COLUMNS = {
    DeadlineKind.FIRST_RESPONSE: "first_response_at",
    DeadlineKind.RESOLUTION: "resolved_at",
}

_BREACH_COLUMNS = {
    DeadlineKind.FIRST_RESPONSE: ("first_response_breached", "first_response_breached_at"),
    DeadlineKind.RESOLUTION: ("resolution_breached", "resolution_breached_at"),
}


class SQLAlchemySlaPolicyRepository(ISlaPolicyRepository):
    """SQLAlchemy implementation of SLA policy repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    @staticmethod
    def _to_entity(model: SlaPolicyModel) -> SlaPolicy:
        return SlaPolicy(
            id=str(model.id),
            policy_key=model.policy_key,
            name=model.name,
            description=model.description,
            is_active=model.is_active,
            rank=model.rank,
            match_ticket_type=model.match_ticket_type,
            match_priority=model.match_priority,
            match_category=model.match_category,
            first_response_minutes=model.first_response_minutes,
            resolution_minutes=model.resolution_minutes,
        )

    async def list_active(self) -> List[SlaPolicy]:
        stmt = (
            select(SlaPolicyModel)
            .where(SlaPolicyModel.is_active.is_(True))
            .order_by(SlaPolicyModel.rank, SlaPolicyModel.id)
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryException(f"SLA policy query failed: {e}") from e
        return [self._to_entity(m) for m in result.scalars().all()]


class SQLAlchemyTicketSlaRepository(ITicketSlaRepository):
    """
    SQLAlchemy implementation of the ticket SLA repository.

    Every read refreshes from the database (``populate_existing``) so breach
    computation never works from a cached row.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    @staticmethod
    def _to_entity(model: TicketSlaModel) -> TicketSla:
        return TicketSla(
            ticket_id=str(model.ticket_id),
            sla_policy_id=str(model.sla_policy_id) if model.sla_policy_id else None,
            first_response_due_at=as_utc(model.first_response_due_at),
            resolution_due_at=as_utc(model.resolution_due_at),
            first_response_at=as_utc(model.first_response_at),
            resolved_at=as_utc(model.resolved_at),
            first_response_breached=bool(model.first_response_breached),
            first_response_breached_at=as_utc(model.first_response_breached_at),
            resolution_breached=bool(model.resolution_breached),
            resolution_breached_at=as_utc(model.resolution_breached_at),
            created_at=as_utc(model.created_at),
            updated_at=as_utc(model.updated_at),
        )

    async def get(self, ticket_id: str) -> Optional[TicketSla]:
        ticket_uuid = to_uuid(ticket_id)
        if ticket_uuid is None:
            return None

        stmt = (
            select(TicketSlaModel)
            .where(TicketSlaModel.ticket_id == ticket_uuid)
            .execution_options(populate_existing=True)
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryException(f"Ticket SLA read failed: {e}") from e
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def upsert_due_dates(
        self,
        ticket_id: str,
        sla_policy_id: str,
        first_response_due_at: Optional[datetime],
        resolution_due_at: Optional[datetime],
        now: datetime
    ) -> TicketSla:
        table = TicketSlaModel.__table__
        stmt = dialect_insert(self._session, table).values(
            ticket_id=to_uuid(ticket_id),
            sla_policy_id=to_uuid(sla_policy_id),
            first_response_due_at=first_response_due_at,
            resolution_due_at=resolution_due_at,
            first_response_breached=False,
            resolution_breached=False,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.ticket_id],
            set_={
                "sla_policy_id": stmt.excluded.sla_policy_id,
                "first_response_due_at": stmt.excluded.first_response_due_at,
                "resolution_due_at": stmt.excluded.resolution_due_at,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        try:
            await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryException(f"Ticket SLA upsert failed: {e}") from e

        ticket_sla = await self.get(ticket_id)
        if ticket_sla is None:
            raise RepositoryException(f"Ticket SLA for '{ticket_id}' missing after upsert")
        return ticket_sla

    async def set_mark_if_unset(self, ticket_id: str, kind: str, at: datetime) -> bool:
        column = getattr(TicketSlaModel, _MARK_COLUMNS[kind])
        stmt = (
            update(TicketSlaModel)
            .where(TicketSlaModel.ticket_id == to_uuid(ticket_id), column.is_(None))
            .values({column: at, TicketSlaModel.updated_at: at})
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryException(f"Ticket SLA mark failed: {e}") from e
        return result.rowcount == 1

    async def overwrite_mark(self, ticket_id: str, kind: str, at: datetime) -> None:
        column = getattr(TicketSlaModel, _MARK_COLUMNS[kind])
        stmt = (
            update(TicketSlaModel)
            .where(TicketSlaModel.ticket_id == to_uuid(ticket_id))
            .values({column: at, TicketSlaModel.updated_at: at})
            .execution_options(synchronize_session=False)
        )
        try:
            await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryException(f"Ticket SLA mark correction failed: {e}") from e

    async def flag_breach_if_unset(self, ticket_id: str, kind: str, breached_at: datetime) -> bool:
        flag_name, at_name = _BREACH_COLUMNS[kind]
        flag = getattr(TicketSlaModel, flag_name)
        at_column = getattr(TicketSlaModel, at_name)
        stmt = (
            update(TicketSlaModel)
            .where(TicketSlaModel.ticket_id == to_uuid(ticket_id), flag.is_(False))
            .values({flag: True, at_column: breached_at})
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryException(f"Ticket SLA breach flag failed: {e}") from e
        return result.rowcount == 1
