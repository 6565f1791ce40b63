"""
Escalation Domain Layer
=======================
"""

from servicedesk.escalation.domain.entities import EscalationPlan, EscalationRequest

__all__ = ["EscalationPlan", "EscalationRequest"]
