"""
Audit Infrastructure Layer
==========================
"""

from servicedesk.audit.infrastructure.models import AuditEventModel, SlaEventModel
from servicedesk.audit.infrastructure.repositories import SQLAlchemyEventRepository

__all__ = ["AuditEventModel", "SlaEventModel", "SQLAlchemyEventRepository"]
