"""
Ticket Application Layer
========================

Ports for the helpdesk-owned rows and the authorization service.
"""

from servicedesk.tickets.application.services import (
    ITicketStore,
    ICommentStore,
    IDirectory,
    AuthorizationService,
)

__all__ = [
    "ITicketStore",
    "ICommentStore",
    "IDirectory",
    "AuthorizationService",
]
