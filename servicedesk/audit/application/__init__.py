"""
Audit Application Layer
=======================
"""

from servicedesk.audit.application.dto import EventListResponse, EventResponse
from servicedesk.audit.application.services import AuditEventRecorder, IEventRepository

__all__ = ["AuditEventRecorder", "IEventRepository", "EventResponse", "EventListResponse"]
