"""
Notifications Infrastructure Layer
==================================
"""

from servicedesk.notifications.infrastructure.external import ResendEmailClient

__all__ = ["ResendEmailClient"]
