"""
Client portal session repository.

Sessions are bearer tokens issued per client; issuing a new one replaces any
earlier session of the same client.
"""

from __future__ import annotations

import secrets
from datetime import timedelta
from typing import Optional, Tuple

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..base import utc_now_naive
from ..entities.organizations import Client
from ..entities.portal import PortalSession

TOKEN_BYTES = 32


class PortalSessionRepository:
    """Issue and resolve portal sessions."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def issue(self, client: Client, ttl: timedelta) -> PortalSession:
        """Replace the client's sessions with a fresh token valid for ``ttl``."""
        existing = await self.session.exec(select(PortalSession).where(PortalSession.client_id == client.id))
        for old in existing.all():
            await self.session.delete(old)
        await self.session.flush()

        portal_session = PortalSession(
            organization_id=client.organization_id,
            client_id=client.id,
            token=secrets.token_hex(TOKEN_BYTES),
            expires_at=utc_now_naive() + ttl,
        )
        self.session.add(portal_session)
        await self.session.commit()
        await self.session.refresh(portal_session)
        return portal_session

    async def resolve(
        self, token: str, organization_id: Optional[str] = None
    ) -> Optional[Tuple[PortalSession, Client]]:
        """Find the live session behind ``token`` and its client.

        Expired tokens, archived or portal-disabled clients, and sessions of
        another organization (when ``organization_id`` is given) resolve to ``None``.
        """
        stmt = (
            select(PortalSession, Client)
            .join(Client, Client.id == PortalSession.client_id)
            .where(PortalSession.token == token, PortalSession.expires_at > utc_now_naive())
        )
        if organization_id is not None:
            stmt = stmt.where(PortalSession.organization_id == organization_id)
        result = await self.session.exec(stmt)
        row = result.one_or_none()
        if row is None:
            return None
        _, client = row
        if client.is_archived or not client.portal_enabled:
            return None
        return row
