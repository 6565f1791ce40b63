"""
Notifications Domain Layer
==========================

Recipient normalization and the escalation email.
"""

from servicedesk.notifications.domain.recipients import (
    extract_first_email_address,
    unique_emails,
    exclude_address,
)
from servicedesk.notifications.domain.messages import (
    EmailMessage,
    build_escalation_email,
    ticket_link,
)

__all__ = [
    "extract_first_email_address",
    "unique_emails",
    "exclude_address",
    "EmailMessage",
    "build_escalation_email",
    "ticket_link",
]
