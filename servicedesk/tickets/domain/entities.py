"""
Ticket Domain Entities
======================

Read models for the rows the SLA engine borrows from the surrounding
helpdesk application: tickets, user profiles and operator groups, plus the
acting user.

The helpdesk owns these records. The engine reads them and writes back only
the ticket's priority, queue and assignee.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, Optional

from servicedesk.config import WORK_CAPABILITIES


@dataclass(frozen=True)
class Actor:
    """
    The user performing an operation.

    Passed explicitly into every operation instead of being read from a
    session, so services stay testable without a live login.
    """
    id: str
    email: Optional[str] = None
    capabilities: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def can_work_tickets(self) -> bool:
        """Operators and admins may work any ticket."""
        return bool(self.capabilities & WORK_CAPABILITIES)


@dataclass
class TicketSnapshot:
    """Ticket fields relevant to SLA matching and escalation."""
    id: str
    ticket_number: str
    title: str
    ticket_type: str
    priority: str
    category: Optional[str]
    status: str
    assignment_group_id: Optional[str] = None
    assignee_id: Optional[str] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Profile:
    """Directory entry for a user."""
    id: str
    email: Optional[str]
    full_name: Optional[str] = None
    is_active: bool = True

    @property
    def display_name(self) -> Optional[str]:
        return self.full_name or self.email


@dataclass(frozen=True)
class OperatorGroup:
    """A queue tickets can be routed to."""
    id: str
    group_key: str
    name: str
    is_active: bool = True
