"""
Escalation Interfaces Layer
===========================
"""

from servicedesk.escalation.interfaces.controllers import escalation_router

__all__ = ["escalation_router"]
