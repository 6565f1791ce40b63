"""
SLA Domain Layer
================

Domain layer for SLA tracking.

Contains:
- Entities: SlaPolicy, TicketSla and the breach/status views
- Domain Services: PolicyMatcher and SLACalculator (stateless)

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from servicedesk.sla.domain.entities import (
    SlaPolicy,
    TicketSla,
    DeadlineBreach,
    BreachState,
    DeadlineStatus,
)
from servicedesk.sla.domain.value_objects import PolicyMatcher, SLACalculator

__all__ = [
    # Entities
    "SlaPolicy",
    "TicketSla",
    "DeadlineBreach",
    "BreachState",
    "DeadlineStatus",
    # Domain Services
    "PolicyMatcher",
    "SLACalculator",
]
