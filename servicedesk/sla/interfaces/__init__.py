"""
SLA Interfaces Layer
====================

FastAPI routes for SLA tracking.
"""

from servicedesk.sla.interfaces.controllers import sla_router

__all__ = ["sla_router"]
