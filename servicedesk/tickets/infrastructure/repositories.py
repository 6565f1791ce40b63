"""
Ticket Infrastructure Repositories
==================================

SQLAlchemy implementations of the ticket store, comment store and
directory ports.
"""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from servicedesk.core import RepositoryException, ResourceNotFoundException, ValidationException
from servicedesk.infrastructure.database import as_utc, to_uuid
from servicedesk.tickets.application import ICommentStore, IDirectory, ITicketStore
from servicedesk.tickets.domain import OperatorGroup, Profile, TicketSnapshot
from servicedesk.tickets.infrastructure.models import (
    OperatorGroupMemberModel,
    OperatorGroupModel,
    ProfileModel,
    TicketCommentModel,
    TicketModel,
)

WRITABLE_TICKET_FIELDS = frozenset({"priority", "assignment_group_id", "assignee_id"})
UUID_TICKET_FIELDS = frozenset({"assignment_group_id", "assignee_id"})


def _str_or_none(value) -> Optional[str]:
    return str(value) if value is not None else None


class SQLAlchemyTicketStore(ITicketStore):
    """
    SQLAlchemy implementation of the ticket store.

    Reads the ticket fields the engine needs and writes back only priority,
    queue and assignee.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    @staticmethod
    def _to_entity(model: TicketModel) -> TicketSnapshot:
        return TicketSnapshot(
            id=str(model.id),
            ticket_number=model.ticket_number,
            title=model.title,
            ticket_type=model.ticket_type,
            priority=model.priority,
            category=model.category,
            status=model.status,
            assignment_group_id=_str_or_none(model.assignment_group_id),
            assignee_id=_str_or_none(model.assignee_id),
            updated_at=as_utc(model.updated_at),
        )

    async def get(self, ticket_id: str) -> Optional[TicketSnapshot]:
        ticket_uuid = to_uuid(ticket_id)
        if ticket_uuid is None:
            return None

        stmt = (
            select(TicketModel)
            .where(TicketModel.id == ticket_uuid)
            .execution_options(populate_existing=True)
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryException(f"Ticket read failed: {e}") from e
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def update_fields(self, ticket_id: str, **fields) -> TicketSnapshot:
        unknown = set(fields) - WRITABLE_TICKET_FIELDS
        if unknown:
            raise ValidationException(
                "Fields not writable by the engine", {"fields": sorted(unknown)}
            )

        ticket_uuid = to_uuid(ticket_id)
        if ticket_uuid is None:
            raise ResourceNotFoundException("Ticket", ticket_id)

        values = {
            key: (to_uuid(value) if key in UUID_TICKET_FIELDS else value)
            for key, value in fields.items()
        }
        values["updated_at"] = datetime.now(timezone.utc)

        try:
            result = await self._session.execute(
                update(TicketModel)
                .where(TicketModel.id == ticket_uuid)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            await self._session.flush()
        except SQLAlchemyError as e:
            raise RepositoryException(f"Ticket update failed: {e}") from e

        if result.rowcount == 0:
            raise ResourceNotFoundException("Ticket", ticket_id)

        ticket = await self.get(ticket_id)
        return ticket


class SQLAlchemyCommentStore(ICommentStore):
    """SQLAlchemy implementation of the comment store."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def add_internal_note(self, ticket_id: str, author_id: str, body: str) -> str:
        model = TicketCommentModel(
            id=uuid4(),
            ticket_id=to_uuid(ticket_id),
            author_id=to_uuid(author_id),
            body=body,
            is_internal=True,
            created_at=datetime.now(timezone.utc),
        )
        try:
            self._session.add(model)
            await self._session.flush()
        except SQLAlchemyError as e:
            raise RepositoryException(f"Comment insert failed: {e}") from e
        return str(model.id)


class SQLAlchemyDirectory(IDirectory):
    """
    SQLAlchemy implementation of directory lookups.

    Resolves users to profiles and queues to their active members.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    @staticmethod
    def _to_profile(model: ProfileModel) -> Profile:
        return Profile(
            id=str(model.id),
            email=model.email,
            full_name=model.full_name,
            is_active=model.is_active,
        )

    @staticmethod
    def _to_group(model: OperatorGroupModel) -> OperatorGroup:
        return OperatorGroup(
            id=str(model.id),
            group_key=model.group_key,
            name=model.name,
            is_active=model.is_active,
        )

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        user_uuid = to_uuid(user_id)
        if user_uuid is None:
            return None
        try:
            model = await self._session.get(ProfileModel, user_uuid)
        except SQLAlchemyError as e:
            raise RepositoryException(f"Profile lookup failed: {e}") from e
        return self._to_profile(model) if model else None

    async def get_group(self, group_id: str) -> Optional[OperatorGroup]:
        group_uuid = to_uuid(group_id)
        if group_uuid is None:
            return None
        try:
            model = await self._session.get(OperatorGroupModel, group_uuid)
        except SQLAlchemyError as e:
            raise RepositoryException(f"Operator group lookup failed: {e}") from e
        return self._to_group(model) if model else None

    async def get_group_by_key(self, group_key: str) -> Optional[OperatorGroup]:
        stmt = select(OperatorGroupModel).where(OperatorGroupModel.group_key == group_key)
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryException(f"Operator group lookup failed: {e}") from e
        model = result.scalar_one_or_none()
        return self._to_group(model) if model else None

    async def list_active_member_profiles(self, group_id: str) -> List[Profile]:
        group_uuid = to_uuid(group_id)
        if group_uuid is None:
            return []

        stmt = (
            select(ProfileModel)
            .join(OperatorGroupMemberModel, OperatorGroupMemberModel.user_id == ProfileModel.id)
            .where(
                OperatorGroupMemberModel.group_id == group_uuid,
                ProfileModel.is_active.is_(True),
            )
            .order_by(ProfileModel.email)
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryException(f"Queue member lookup failed: {e}") from e
        return [self._to_profile(m) for m in result.scalars().all()]

    async def is_member(self, group_id: str, user_id: str) -> bool:
        group_uuid = to_uuid(group_id)
        user_uuid = to_uuid(user_id)
        if group_uuid is None or user_uuid is None:
            return False

        stmt = select(OperatorGroupMemberModel.user_id).where(
            OperatorGroupMemberModel.group_id == group_uuid,
            OperatorGroupMemberModel.user_id == user_uuid,
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryException(f"Membership lookup failed: {e}") from e
        return result.scalar_one_or_none() is not None
