"""
Ticket Infrastructure Models
============================

SQLAlchemy ORM models for the helpdesk-owned tables the engine reads.

The helpdesk application owns the schema and migrations of these tables;
the engine maps only the columns it needs.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from servicedesk.infrastructure.database import Base
from servicedesk.config import Priority, TicketStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TicketModel(Base):
    """
    Database model for tickets.

    Maps to the 'tickets' table.
    """
    __tablename__ = "tickets"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    ticket_number: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    ticket_type: Mapped[str] = mapped_column(String(50), nullable=False, default="incident")
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default=Priority.MEDIUM)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default=TicketStatus.NEW)

    # Routing
    assignment_group_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid, ForeignKey("operator_groups.id"), nullable=True, index=True
    )
    assignee_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid, ForeignKey("profiles.id"), nullable=True, index=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class ProfileModel(Base):
    """
    Database model for user profiles.

    Maps to the 'profiles' table.
    """
    __tablename__ = "profiles"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class OperatorGroupModel(Base):
    """
    Database model for operator groups (queues).

    Maps to the 'operator_groups' table.
    """
    __tablename__ = "operator_groups"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    group_key: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class OperatorGroupMemberModel(Base):
    """
    Queue membership.

    Maps to the 'operator_group_members' table.
    """
    __tablename__ = "operator_group_members"

    group_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("operator_groups.id"), primary_key=True)
    user_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("profiles.id"), primary_key=True)


class TicketCommentModel(Base):
    """
    Ticket comments; the engine only inserts internal notes.

    Maps to the 'ticket_comments' table.
    """
    __tablename__ = "ticket_comments"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    ticket_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("tickets.id"), nullable=False, index=True)
    author_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    is_internal: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
