"""
Audit Infrastructure Models
===========================

SQLAlchemy ORM models for the two append-only event streams.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from servicedesk.infrastructure.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SlaEventModel(Base):
    """
    SLA event stream.

    Maps to the 'ticket_sla_events' table. Rows are never updated or deleted.
    """
    __tablename__ = "ticket_sla_events"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    ticket_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("tickets.id"), nullable=False, index=True)
    actor_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True)
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (
        Index("idx_ticket_sla_events_ticket_created", "ticket_id", "created_at"),
    )


class AuditEventModel(Base):
    """
    Ticket audit stream.

    Maps to the 'ticket_events' table. Rows are never updated or deleted.
    """
    __tablename__ = "ticket_events"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    ticket_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("tickets.id"), nullable=False, index=True)
    actor_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True)
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (
        Index("idx_ticket_events_ticket_created", "ticket_id", "created_at"),
    )
