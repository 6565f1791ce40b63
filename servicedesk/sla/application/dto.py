"""
SLA Application DTOs
=====================

Data Transfer Objects for SLA API layer.

These Pydantic models handle serialization/deserialization and validation
for API requests and responses.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from servicedesk.sla.domain import DeadlineStatus, SlaPolicy, TicketSla


# ========== Type Aliases for Literals ==========
DeadlineKindStr = Literal["first_response", "resolution"]
DeadlineStateStr = Literal["pending", "scheduled", "met", "breached"]
SLAStatusStr = Literal["within", "warning", "breached", "met"]


# ========== Request DTOs ==========

class MarkCorrectionRequest(BaseModel):
    """Request model for correcting a recorded mark."""
    deadline: DeadlineKindStr = Field(..., description="Which mark to move")
    at: datetime = Field(..., description="Corrected timestamp")
    reason: str = Field(..., min_length=1, max_length=2000, description="Why the mark is corrected")


# ========== Response DTOs ==========

class SlaPolicyResponse(BaseModel):
    id: str
    policy_key: str
    name: str
    rank: int
    match_ticket_type: Optional[str] = None
    match_priority: Optional[str] = None
    match_category: Optional[str] = None
    first_response_minutes: Optional[int] = None
    resolution_minutes: Optional[int] = None

    @classmethod
    def from_domain(cls, policy: SlaPolicy) -> "SlaPolicyResponse":
        return cls(
            id=policy.id,
            policy_key=policy.policy_key,
            name=policy.name,
            rank=policy.rank,
            match_ticket_type=policy.match_ticket_type,
            match_priority=policy.match_priority,
            match_category=policy.match_category,
            first_response_minutes=policy.first_response_minutes,
            resolution_minutes=policy.resolution_minutes,
        )


class TicketSlaResponse(BaseModel):
    """Response model for the SLA record of a ticket."""
    ticket_id: str
    sla_policy_id: Optional[str] = None
    first_response_due_at: Optional[datetime] = None
    resolution_due_at: Optional[datetime] = None
    first_response_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    first_response_breached: bool = False
    first_response_breached_at: Optional[datetime] = None
    resolution_breached: bool = False
    resolution_breached_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, ticket_sla: TicketSla) -> "TicketSlaResponse":
        return cls(
            ticket_id=ticket_sla.ticket_id,
            sla_policy_id=ticket_sla.sla_policy_id,
            first_response_due_at=ticket_sla.first_response_due_at,
            resolution_due_at=ticket_sla.resolution_due_at,
            first_response_at=ticket_sla.first_response_at,
            resolved_at=ticket_sla.resolved_at,
            first_response_breached=ticket_sla.first_response_breached,
            first_response_breached_at=ticket_sla.first_response_breached_at,
            resolution_breached=ticket_sla.resolution_breached,
            resolution_breached_at=ticket_sla.resolution_breached_at,
            created_at=ticket_sla.created_at,
            updated_at=ticket_sla.updated_at,
        )


class ApplyPolicyResponse(BaseModel):
    ticket_id: str
    matched: bool = Field(..., description="False when no active policy matched; nothing was written")
    policy: Optional[SlaPolicyResponse] = None
    sla: Optional[TicketSlaResponse] = None


class MarkResponse(BaseModel):
    ticket_id: str
    deadline: DeadlineKindStr
    at: Optional[datetime] = None
    already_marked: bool = Field(False, description="True when the mark existed and nothing changed")
    previous_at: Optional[datetime] = None
    breaches_detected: List[DeadlineKindStr] = Field(default_factory=list)
    sla: TicketSlaResponse


class DeadlineStatusResponse(BaseModel):
    """Status of one SLA clock."""
    status: SLAStatusStr
    state: DeadlineStateStr
    due_at: Optional[datetime] = None
    met_at: Optional[datetime] = None
    breached: bool = False
    breached_at: Optional[datetime] = None
    minutes_remaining: Optional[int] = Field(None, description="Negative once overdue")
    countdown: Optional[str] = Field(None, description="e.g. 'Due in 1h 5m', 'Overdue by 12m'")

    @classmethod
    def from_domain(cls, view: DeadlineStatus) -> "DeadlineStatusResponse":
        return cls(
            status=view.status,
            state=view.state,
            due_at=view.due_at,
            met_at=view.met_at,
            breached=view.breached,
            breached_at=view.breached_at,
            minutes_remaining=view.minutes_remaining,
            countdown=view.countdown,
        )


class SlaStatusResponse(BaseModel):
    """Response model for ticket SLA status."""
    ticket_id: str
    sla: TicketSlaResponse
    first_response: DeadlineStatusResponse
    resolution: DeadlineStatusResponse
    evaluated_at: datetime
