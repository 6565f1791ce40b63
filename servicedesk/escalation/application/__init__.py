"""
Escalation Application Layer
============================
"""

from servicedesk.escalation.application.dto import EscalateRequest, EscalationResponse, WarningResponse
from servicedesk.escalation.application.services import EscalationOutcome, EscalationService

__all__ = [
    "EscalateRequest",
    "EscalationResponse",
    "WarningResponse",
    "EscalationOutcome",
    "EscalationService",
]
