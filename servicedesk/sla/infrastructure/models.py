"""
SLA Infrastructure Models
==========================

SQLAlchemy ORM models for SLA module.

These are the database representations of our domain entities.
They belong in the infrastructure layer, not the domain layer.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from servicedesk.infrastructure.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SlaPolicyModel(Base):
    """
    Database model for SlaPolicy entity.

    Maps to the 'sla_policies' table. Null ``match_*`` columns are wildcards.
    """
    __tablename__ = "sla_policies"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    policy_key: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    # Lower rank is preferred when equally specific policies match
    rank: Mapped[int] = mapped_column(Integer, nullable=False, default=100)

    # Predicates
    match_ticket_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    match_priority: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    match_category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Targets
    first_response_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    resolution_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class TicketSlaModel(Base):
    """
    Database model for TicketSla entity.

    Maps to the 'ticket_slas' table, one row per ticket.
    """
    __tablename__ = "ticket_slas"

    ticket_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("tickets.id"), primary_key=True)
    sla_policy_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid, ForeignKey("sla_policies.id"), nullable=True
    )

    # Deadlines
    first_response_due_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    resolution_due_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Marks (set once)
    first_response_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Breach flags (monotonic)
    first_response_breached: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    first_response_breached_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    resolution_breached: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    resolution_breached_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
