"""
Ticket Application Services
===========================

Ports for the helpdesk-owned rows and the authorization rules built on them.

Following SOLID principles:
- Dependency Inversion: SLA, escalation and notification services depend on
  these abstractions, not on the SQLAlchemy implementations
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from servicedesk.config import TicketType, settings
from servicedesk.core import AuthorizationException
from servicedesk.tickets.domain import Actor, OperatorGroup, Profile, TicketSnapshot
from servicedesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


# ========== Repository Interfaces (Dependency Inversion) ==========

class ITicketStore(ABC):
    """Interface for ticket data access."""

    @abstractmethod
    async def get(self, ticket_id: str) -> Optional[TicketSnapshot]:
        """Get ticket by ID."""

    @abstractmethod
    async def update_fields(self, ticket_id: str, **fields) -> TicketSnapshot:
        """Write priority / assignment_group_id / assignee_id in one update."""


class ICommentStore(ABC):
    """Interface for ticket comments."""

    @abstractmethod
    async def add_internal_note(self, ticket_id: str, author_id: str, body: str) -> str:
        """Insert an operator-only comment; returns its id."""


class IDirectory(ABC):
    """Interface for user and queue lookups."""

    @abstractmethod
    async def get_profile(self, user_id: str) -> Optional[Profile]:
        """Resolve a user id to its profile."""

    @abstractmethod
    async def get_group(self, group_id: str) -> Optional[OperatorGroup]:
        """Resolve a queue by id."""

    @abstractmethod
    async def get_group_by_key(self, group_key: str) -> Optional[OperatorGroup]:
        """Resolve a queue by its key."""

    @abstractmethod
    async def list_active_member_profiles(self, group_id: str) -> List[Profile]:
        """Profiles of every active member of a queue."""

    @abstractmethod
    async def is_member(self, group_id: str, user_id: str) -> bool:
        """Whether the user belongs to the queue."""


# ========== Authorization ==========

class AuthorizationService:
    """
    Decides whether an actor may work a ticket.

    An actor may work a ticket when they are its assignee, hold an operator
    or admin capability, or, for customer service tickets, belong to the
    customer service queue.
    """

    def __init__(
        self,
        directory: IDirectory,
        customer_service_group_key: Optional[str] = None
    ):
        self._directory = directory
        self._cs_group_key = customer_service_group_key or settings.customer_service_group_key

    async def can_work_ticket(self, actor: Actor, ticket: TicketSnapshot) -> bool:
        if actor.can_work_tickets:
            return True
        if ticket.assignee_id is not None and ticket.assignee_id == actor.id:
            return True
        if ticket.ticket_type == TicketType.CUSTOMER_SERVICE:
            return await self.is_in_operator_group(actor, self._cs_group_key)
        return False

    async def is_in_operator_group(self, actor: Actor, group_key: str) -> bool:
        group = await self._directory.get_group_by_key(group_key)
        if group is None or not group.is_active:
            return False
        return await self._directory.is_member(group.id, actor.id)

    async def ensure_can_work_ticket(self, actor: Actor, ticket: TicketSnapshot) -> None:
        if not await self.can_work_ticket(actor, ticket):
            logger.warning(
                "Actor not allowed to work ticket",
                extra={"actor_id": actor.id, "ticket_id": ticket.id}
            )
            raise AuthorizationException(
                "Forbidden",
                {"actor_id": actor.id, "ticket_id": ticket.id}
            )
