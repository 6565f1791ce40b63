"""
Ticket Domain Layer
===================

Read models for externally owned rows (tickets, profiles, queues) and the
acting user.
"""

from servicedesk.tickets.domain.entities import (
    Actor,
    TicketSnapshot,
    Profile,
    OperatorGroup,
)

__all__ = [
    "Actor",
    "TicketSnapshot",
    "Profile",
    "OperatorGroup",
]
