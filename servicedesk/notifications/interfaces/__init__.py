"""
Notifications Interfaces Layer
==============================
"""

from servicedesk.notifications.interfaces.controllers import (
    get_notification_dispatcher,
    notifications_router,
)

__all__ = ["get_notification_dispatcher", "notifications_router"]
