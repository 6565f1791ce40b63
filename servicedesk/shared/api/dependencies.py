"""
Request Dependencies
====================

FastAPI dependencies shared across routers: the acting user, the unit of
work, the audit recorder and the email client.

Authentication happens upstream; the gateway forwards the verified user in
``X-Actor-Id``, ``X-Actor-Email`` and ``X-Actor-Capabilities`` (comma
separated).
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from servicedesk.audit.application import AuditEventRecorder
from servicedesk.audit.infrastructure import AuditEventModel, SlaEventModel, SQLAlchemyEventRepository
from servicedesk.infrastructure.database import UnitOfWork, get_session
from servicedesk.notifications.application import IEmailClient
from servicedesk.notifications.infrastructure import ResendEmailClient
from servicedesk.tickets.application import AuthorizationService
from servicedesk.tickets.domain import Actor
from servicedesk.tickets.infrastructure import SQLAlchemyDirectory

_email_client: Optional[IEmailClient] = None


def parse_capabilities(raw: Optional[str]) -> frozenset:
    if not raw:
        return frozenset()
    return frozenset(c.strip().lower() for c in raw.split(",") if c.strip())


async def get_optional_actor(
    x_actor_id: Optional[str] = Header(None),
    x_actor_email: Optional[str] = Header(None),
    x_actor_capabilities: Optional[str] = Header(None),
) -> Optional[Actor]:
    if not x_actor_id:
        return None
    return Actor(
        id=x_actor_id.strip(),
        email=x_actor_email.strip() if x_actor_email else None,
        capabilities=parse_capabilities(x_actor_capabilities),
    )


async def get_actor(actor: Optional[Actor] = Depends(get_optional_actor)) -> Actor:
    if actor is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-Actor-Id header"
        )
    return actor


async def get_unit_of_work(session: AsyncSession = Depends(get_session)) -> UnitOfWork:
    return UnitOfWork(session)


async def get_recorder(session: AsyncSession = Depends(get_session)) -> AuditEventRecorder:
    return AuditEventRecorder(
        audit_repository=SQLAlchemyEventRepository(session, AuditEventModel),
        sla_repository=SQLAlchemyEventRepository(session, SlaEventModel),
    )


async def get_authorization(session: AsyncSession = Depends(get_session)) -> AuthorizationService:
    return AuthorizationService(SQLAlchemyDirectory(session))


def get_email_client() -> IEmailClient:
    """Process-wide email client (one pooled HTTP connection set)."""
    global _email_client
    if _email_client is None:
        _email_client = ResendEmailClient()
    return _email_client


async def close_email_client() -> None:
    global _email_client
    if _email_client is not None:
        await _email_client.close()
        _email_client = None
