"""Unit tests for portal session issuing and resolution."""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlmodel import select

from serviceos.core.database.entities.portal import PortalSession
from serviceos.core.database.repositories.portal import PortalSessionRepository

TTL = timedelta(hours=24)


@pytest.fixture
def portal(session) -> PortalSessionRepository:
    return PortalSessionRepository(session)


async def test_issue_replaces_earlier_sessions(session, portal, customer):
    first = await portal.issue(customer, TTL)
    second = await portal.issue(customer, TTL)

    tokens = (await session.exec(select(PortalSession.token))).all()
    assert tokens == [second.token]
    assert first.token != second.token
    assert second.organization_id == customer.organization_id


async def test_resolve_live_token(portal, customer):
    issued = await portal.issue(customer, TTL)

    found = await portal.resolve(issued.token, organization_id=customer.organization_id)

    assert found is not None
    portal_session, client = found
    assert portal_session.id == issued.id
    assert client.id == customer.id


async def test_resolve_rejects_expired(portal, customer):
    issued = await portal.issue(customer, timedelta(seconds=-1))

    assert await portal.resolve(issued.token) is None


async def test_resolve_rejects_other_organization(portal, customer, other_organization):
    issued = await portal.issue(customer, TTL)

    assert await portal.resolve(issued.token, organization_id=other_organization.id) is None


@pytest.mark.parametrize("changes", [{"is_archived": True}, {"portal_enabled": False}])
async def test_resolve_rejects_blocked_clients(session, portal, customer, changes):
    issued = await portal.issue(customer, TTL)
    for key, value in changes.items():
        setattr(customer, key, value)
    session.add(customer)
    await session.commit()

    assert await portal.resolve(issued.token) is None


async def test_resolve_unknown_token(portal):
    assert await portal.resolve("not-a-token") is None
