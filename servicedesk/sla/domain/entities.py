"""
SLA Domain Entities
====================

Pure Python domain entities for SLA tracking.

Following Domain-Driven Design principles, these entities contain
business logic and are free of infrastructure concerns.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from servicedesk.config import DeadlineKind


@dataclass(frozen=True)
class SlaPolicy:
    """
    SLA policy entity.

    A policy applies to tickets whose type, priority and category equal its
    non-null ``match_*`` predicates; a null predicate is a wildcard.
    """

    id: str
    policy_key: str
    name: str
    is_active: bool = True
    rank: int = 100
    description: Optional[str] = None

    match_ticket_type: Optional[str] = None
    match_priority: Optional[str] = None
    match_category: Optional[str] = None

    first_response_minutes: Optional[int] = None
    resolution_minutes: Optional[int] = None

    @property
    def specificity(self) -> int:
        """Number of non-wildcard predicates."""
        return sum(
            1 for predicate in (self.match_ticket_type, self.match_priority, self.match_category)
            if predicate is not None
        )

    def matches(self, ticket_type: Optional[str], priority: Optional[str], category: Optional[str]) -> bool:
        """Check every non-null predicate against the ticket's fields."""
        if not self.is_active:
            return False
        pairs = (
            (self.match_ticket_type, ticket_type),
            (self.match_priority, priority),
            (self.match_category, category),
        )
        return all(predicate is None or predicate == value for predicate, value in pairs)


@dataclass
class TicketSla:
    """
    SLA record of one ticket (1:1 with the ticket).

    Marks are set once; breach flags only ever go from False to True.
    """

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

    def due_at(self, kind: str) -> Optional[datetime]:
        if kind == DeadlineKind.FIRST_RESPONSE:
            return self.first_response_due_at
        return self.resolution_due_at

    def mark_at(self, kind: str) -> Optional[datetime]:
        if kind == DeadlineKind.FIRST_RESPONSE:
            return self.first_response_at
        return self.resolved_at

    def is_breached(self, kind: str) -> bool:
        if kind == DeadlineKind.FIRST_RESPONSE:
            return self.first_response_breached
        return self.resolution_breached

    def breached_at(self, kind: str) -> Optional[datetime]:
        if kind == DeadlineKind.FIRST_RESPONSE:
            return self.first_response_breached_at
        return self.resolution_breached_at


@dataclass(frozen=True)
class DeadlineBreach:
    """Breach evaluation of a single deadline."""
    kind: str
    state: str
    breached: bool
    breached_at: Optional[datetime] = None
    due_at: Optional[datetime] = None
    newly_detected: bool = False


@dataclass(frozen=True)
class BreachState:
    """Breach evaluation of both deadlines of a ticket."""
    first_response: DeadlineBreach
    resolution: DeadlineBreach

    @property
    def newly_detected(self) -> list:
        return [d for d in (self.first_response, self.resolution) if d.newly_detected]

    @property
    def is_any_breached(self) -> bool:
        return self.first_response.breached or self.resolution.breached


@dataclass(frozen=True)
class DeadlineStatus:
    """Display view of one deadline."""
    kind: str
    status: str
    state: str
    due_at: Optional[datetime]
    met_at: Optional[datetime]
    breached: bool
    breached_at: Optional[datetime]
    minutes_remaining: Optional[int]
    countdown: Optional[str]
