"""Client portal session entity."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Field

from ..base import TenantBase


class PortalSession(TenantBase, table=True):
    """Magic-link session of a client.

    Table: portal_sessions
    """

    __tablename__ = "portal_sessions"

    client_id: str = Field(foreign_key="clients.id", index=True)
    token: str = Field(index=True, unique=True, max_length=64)
    expires_at: datetime = Field(sa_type=DateTime)

    def __repr__(self) -> str:
        return f"PortalSession(id={self.id}, client_id={self.client_id}, expires_at={self.expires_at})"
