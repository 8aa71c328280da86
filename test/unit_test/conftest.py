from __future__ import annotations

from typing import AsyncGenerator, List, Optional

import pytest
import pytest_asyncio
from pydantic_ai.messages import ModelMessage, ModelResponse, TextPart
from pydantic_ai.models.function import AgentInfo, FunctionModel
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlmodel.pool import StaticPool

from serviceos.core.database import create_all, create_sessionmaker
from serviceos.core.database.entities.organizations import Client, Member, MemberRole, Organization, User

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class ScriptedModel:
    """FunctionModel answering with a fixed sequence of responses.

    Once the script is used up every further request is answered with
    ``fallback``. Each request's messages and agent info are kept for
    assertions.
    """

    def __init__(self, *responses: ModelResponse, fallback: str = "Done.") -> None:
        self.responses = list(responses)
        self.fallback = fallback
        self.requests: List[List[ModelMessage]] = []
        self.infos: List[AgentInfo] = []
        self.model = FunctionModel(self._respond)

    def _respond(self, messages: List[ModelMessage], info: AgentInfo) -> ModelResponse:
        self.requests.append(list(messages))
        self.infos.append(info)
        if self.responses:
            return self.responses.pop(0)
        return ModelResponse(parts=[TextPart(content=self.fallback)])

    @property
    def call_count(self) -> int:
        return len(self.requests)


@pytest.fixture
def scripted_model():
    """Factory building a :class:`ScriptedModel` from responses."""
    return ScriptedModel


@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return create_sessionmaker(test_engine)


@pytest_asyncio.fixture(name="session")
async def session_fixture(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


async def _add(session: AsyncSession, *rows):
    for row in rows:
        session.add(row)
    await session.commit()
    for row in rows:
        await session.refresh(row)


@pytest_asyncio.fixture
async def organization(session: AsyncSession) -> Organization:
    org = Organization(
        name="Acme Studio",
        industry="Photography",
        tone="warm",
        description="Portrait and event photography",
        target_audience="Young families",
        timezone="Europe/Amsterdam",
        currency="EUR",
    )
    await _add(session, org)
    return org


@pytest_asyncio.fixture
async def other_organization(session: AsyncSession) -> Organization:
    org = Organization(name="Other Co")
    await _add(session, org)
    return org


async def _member(session: AsyncSession, organization: Organization, email: str, role: MemberRole) -> User:
    user = User(email=email, name=email.split("@")[0])
    await _add(session, user)
    await _add(session, Member(organization_id=organization.id, user_id=user.id, role=role))
    return user


@pytest_asyncio.fixture
async def owner(session: AsyncSession, organization: Organization) -> User:
    return await _member(session, organization, "owner@acme.test", MemberRole.OWNER)


@pytest_asyncio.fixture
async def viewer(session: AsyncSession, organization: Organization) -> User:
    return await _member(session, organization, "viewer@acme.test", MemberRole.VIEWER)


@pytest_asyncio.fixture
async def customer(session: AsyncSession, organization: Organization) -> Client:
    client = Client(
        organization_id=organization.id,
        name="Jane Doe",
        email="jane@example.com",
        company="Doe & Co",
    )
    await _add(session, client)
    return client


@pytest.fixture
def make_client(session: AsyncSession):
    async def _make(organization: Organization, name: str, email: Optional[str] = None, **fields) -> Client:
        client = Client(organization_id=organization.id, name=name, email=email, **fields)
        await _add(session, client)
        return client

    return _make
