"""
Test fixtures: SQLite database per test, seed helpers, a mocked email
provider and an HTTP client against the app.

Uses SQLite async so tests run without PostgreSQL.
"""

import json
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Iterable, List, Optional
from uuid import UUID, uuid4

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from servicedesk.audit.application import AuditEventRecorder
from servicedesk.audit.infrastructure import AuditEventModel, SlaEventModel, SQLAlchemyEventRepository
from servicedesk.escalation.application import EscalationService
from servicedesk.infrastructure.database import Base, UnitOfWork, get_session
from servicedesk.main import app
from servicedesk.notifications.application import NotificationDispatcher
from servicedesk.notifications.infrastructure import ResendEmailClient
from servicedesk.shared.api.dependencies import get_email_client
from servicedesk.sla.application import SlaClockService
from servicedesk.sla.infrastructure import (
    SlaPolicyModel,
    SQLAlchemySlaPolicyRepository,
    SQLAlchemyTicketSlaRepository,
)
from servicedesk.tickets.application import AuthorizationService
from servicedesk.tickets.domain import Actor
from servicedesk.tickets.infrastructure import (
    OperatorGroupMemberModel,
    OperatorGroupModel,
    ProfileModel,
    SQLAlchemyCommentStore,
    SQLAlchemyDirectory,
    SQLAlchemyTicketStore,
    TicketModel,
)

T0 = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)
EMAIL_API_URL = "https://email.test/emails"
APP_URL = "https://desk.test"
SENDER = "support@desk.test"


class FrozenClock:
    """Callable clock tests move by hand."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, minutes: int = 0, seconds: int = 0) -> datetime:
        self.now = self.now + timedelta(minutes=minutes, seconds=seconds)
        return self.now


class FakeEmailProvider:
    """Request handler for ``httpx.MockTransport`` mimicking the provider API."""

    def __init__(self):
        self.requests: List[dict] = []
        self.status_code = 200

    @property
    def sent_to(self) -> List[List[str]]:
        return [r["json"]["to"] for r in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append({
            "url": str(request.url),
            "headers": dict(request.headers),
            "json": json.loads(request.content),
        })
        if self.status_code >= 400:
            return httpx.Response(self.status_code, text="upstream error")
        return httpx.Response(self.status_code, json={"id": f"msg_{len(self.requests)}"})


class Seeder:
    """Inserts the helpdesk-owned rows the engine reads."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._tickets = 0

    async def profile(self, email: Optional[str], full_name: Optional[str] = None, is_active: bool = True) -> str:
        model = ProfileModel(id=uuid4(), email=email, full_name=full_name, is_active=is_active)
        self._session.add(model)
        await self._session.commit()
        return str(model.id)

    async def group(
        self,
        group_key: str,
        name: Optional[str] = None,
        members: Iterable[str] = (),
        is_active: bool = True
    ) -> str:
        group = OperatorGroupModel(
            id=uuid4(), group_key=group_key, name=name or group_key.title(), is_active=is_active
        )
        self._session.add(group)
        await self._session.flush()
        for user_id in members:
            self._session.add(OperatorGroupMemberModel(group_id=group.id, user_id=UUID(user_id)))
        await self._session.commit()
        return str(group.id)

    async def ticket(
        self,
        priority: str = "medium",
        ticket_type: str = "incident",
        category: Optional[str] = None,
        title: str = "VPN drops every hour",
        assignment_group_id: Optional[str] = None,
        assignee_id: Optional[str] = None
    ) -> str:
        self._tickets += 1
        model = TicketModel(
            id=uuid4(),
            ticket_number=f"INC-{self._tickets:06d}",
            title=title,
            ticket_type=ticket_type,
            priority=priority,
            category=category,
            status="open",
            assignment_group_id=UUID(assignment_group_id) if assignment_group_id else None,
            assignee_id=UUID(assignee_id) if assignee_id else None,
        )
        self._session.add(model)
        await self._session.commit()
        return str(model.id)

    async def policy(
        self,
        policy_key: str,
        first_response_minutes: Optional[int] = None,
        resolution_minutes: Optional[int] = None,
        rank: int = 100,
        is_active: bool = True,
        match_ticket_type: Optional[str] = None,
        match_priority: Optional[str] = None,
        match_category: Optional[str] = None
    ) -> str:
        model = SlaPolicyModel(
            id=uuid4(),
            policy_key=policy_key,
            name=policy_key.replace("_", " ").title(),
            is_active=is_active,
            rank=rank,
            match_ticket_type=match_ticket_type,
            match_priority=match_priority,
            match_category=match_category,
            first_response_minutes=first_response_minutes,
            resolution_minutes=resolution_minutes,
        )
        self._session.add(model)
        await self._session.commit()
        return str(model.id)


def operator(actor_id: str, email: Optional[str] = None) -> Actor:
    return Actor(id=actor_id, email=email, capabilities=frozenset({"operator"}))


def actor_headers(actor_id: str, email: Optional[str] = None, capabilities: str = "operator") -> dict:
    headers = {"X-Actor-Id": actor_id, "X-Actor-Capabilities": capabilities}
    if email:
        headers["X-Actor-Email"] = email
    return headers


def db_error(message: str = "database is locked") -> OperationalError:
    return OperationalError("COMMIT", {}, Exception(message))


# ========== Database ==========

@pytest_asyncio.fixture
async def engine(tmp_path):
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_maker(engine) -> async_sessionmaker:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as s:
        yield s


@pytest.fixture
def seed(session) -> Seeder:
    return Seeder(session)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


# ========== Email provider ==========

@pytest.fixture
def email_provider() -> FakeEmailProvider:
    return FakeEmailProvider()


@pytest_asyncio.fixture
async def email_client(email_provider) -> AsyncGenerator[ResendEmailClient, None]:
    client = ResendEmailClient(
        api_key="re_test_key",
        api_url=EMAIL_API_URL,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(email_provider)),
    )
    yield client
    await client.close()


# ========== Services ==========

@pytest.fixture
def recorder(session) -> AuditEventRecorder:
    return AuditEventRecorder(
        audit_repository=SQLAlchemyEventRepository(session, AuditEventModel),
        sla_repository=SQLAlchemyEventRepository(session, SlaEventModel),
    )


@pytest.fixture
def authorization(session) -> AuthorizationService:
    return AuthorizationService(SQLAlchemyDirectory(session), customer_service_group_key="customer_service")


@pytest.fixture
def sla_service(session, recorder, authorization, clock) -> SlaClockService:
    return SlaClockService(
        ticket_store=SQLAlchemyTicketStore(session),
        policy_repository=SQLAlchemySlaPolicyRepository(session),
        ticket_sla_repository=SQLAlchemyTicketSlaRepository(session),
        recorder=recorder,
        authorization=authorization,
        unit_of_work=UnitOfWork(session),
        clock=clock,
        warning_minutes=60,
    )


@pytest.fixture
def dispatcher(session, recorder, email_client) -> NotificationDispatcher:
    return NotificationDispatcher(
        ticket_store=SQLAlchemyTicketStore(session),
        directory=SQLAlchemyDirectory(session),
        authorization=AuthorizationService(SQLAlchemyDirectory(session), customer_service_group_key="customer_service"),
        email_client=email_client,
        recorder=recorder,
        unit_of_work=UnitOfWork(session),
        sender=SENDER,
        app_url=APP_URL,
    )


@pytest.fixture
def escalation_service(session, recorder, dispatcher) -> EscalationService:
    return EscalationService(
        ticket_store=SQLAlchemyTicketStore(session),
        comment_store=SQLAlchemyCommentStore(session),
        directory=SQLAlchemyDirectory(session),
        authorization=AuthorizationService(SQLAlchemyDirectory(session), customer_service_group_key="customer_service"),
        recorder=recorder,
        dispatcher=dispatcher,
        unit_of_work=UnitOfWork(session),
    )


# ========== HTTP ==========

@pytest_asyncio.fixture
async def client(session_maker, email_client) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_email_client] = lambda: email_client

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
