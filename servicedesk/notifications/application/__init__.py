"""
Notifications Application Layer
===============================
"""

from servicedesk.notifications.application.dto import (
    EscalationNotificationRequest,
    NotificationResponse,
)
from servicedesk.notifications.application.services import (
    IEmailClient,
    NotificationDispatcher,
    NotificationResult,
)

__all__ = [
    "EscalationNotificationRequest",
    "NotificationResponse",
    "IEmailClient",
    "NotificationDispatcher",
    "NotificationResult",
]
