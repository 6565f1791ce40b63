"""
SLA Application Layer
======================

Application layer for SLA tracking.

Contains:
- Services: SlaClockService and the repository interfaces it depends on
- DTOs: Data transfer objects for API serialization

This layer depends on the domain layer and repository interfaces,
but not on concrete infrastructure implementations.
"""

from servicedesk.sla.application.dto import (
    MarkCorrectionRequest,
    SlaPolicyResponse,
    TicketSlaResponse,
    ApplyPolicyResponse,
    MarkResponse,
    DeadlineStatusResponse,
    SlaStatusResponse,
)
from servicedesk.sla.application.services import (
    SlaClockService,
    ISlaPolicyRepository,
    ITicketSlaRepository,
    ApplyPolicyResult,
    MarkResult,
    BreachEvaluation,
    SlaStatusView,
)

__all__ = [
    # DTOs
    "MarkCorrectionRequest",
    "SlaPolicyResponse",
    "TicketSlaResponse",
    "ApplyPolicyResponse",
    "MarkResponse",
    "DeadlineStatusResponse",
    "SlaStatusResponse",
    # Services
    "SlaClockService",
    "ApplyPolicyResult",
    "MarkResult",
    "BreachEvaluation",
    "SlaStatusView",
    # Repository Interfaces
    "ISlaPolicyRepository",
    "ITicketSlaRepository",
]
