"""
SLA Infrastructure Layer
=========================

Infrastructure layer for SLA tracking.

Contains:
- Models: SQLAlchemy ORM models (sla_policies, ticket_slas)
- Repositories: Concrete data access implementations
"""

from servicedesk.sla.infrastructure.models import SlaPolicyModel, TicketSlaModel
from servicedesk.sla.infrastructure.repositories import (
    SQLAlchemySlaPolicyRepository,
    SQLAlchemyTicketSlaRepository,
)

__all__ = [
    # Models
    "SlaPolicyModel",
    "TicketSlaModel",
    # Repositories
    "SQLAlchemySlaPolicyRepository",
    "SQLAlchemyTicketSlaRepository",
]
