"""
Ticket Infrastructure Layer
===========================

SQLAlchemy models and repositories for the helpdesk-owned rows.
"""

from servicedesk.tickets.infrastructure.models import (
    TicketModel,
    ProfileModel,
    OperatorGroupModel,
    OperatorGroupMemberModel,
    TicketCommentModel,
)
from servicedesk.tickets.infrastructure.repositories import (
    SQLAlchemyTicketStore,
    SQLAlchemyCommentStore,
    SQLAlchemyDirectory,
)

__all__ = [
    "TicketModel",
    "ProfileModel",
    "OperatorGroupModel",
    "OperatorGroupMemberModel",
    "TicketCommentModel",
    "SQLAlchemyTicketStore",
    "SQLAlchemyCommentStore",
    "SQLAlchemyDirectory",
]
