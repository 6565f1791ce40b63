"""
Audit Interfaces Layer
======================
"""

from servicedesk.audit.interfaces.controllers import audit_router

__all__ = ["audit_router"]
