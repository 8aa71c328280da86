"""
Organization, membership and client entities.

An organization is the tenant: every other business record points at it.
Users join organizations through a membership carrying a role, and clients
are the organization's own customers.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from sqlalchemy import JSON, UniqueConstraint
from sqlmodel import Field

from ..base import TenantBase, TimestampedBase


class MemberRole(str, Enum):
    """Organization roles, lowest privilege first."""

    VIEWER = "VIEWER"
    BOOKKEEPER = "BOOKKEEPER"
    MEMBER = "MEMBER"
    ADMIN = "ADMIN"
    OWNER = "OWNER"

    @property
    def rank(self) -> int:
        return list(MemberRole).index(self)

    def satisfies(self, minimum: "MemberRole") -> bool:
        return self.rank >= minimum.rank


class Organization(TimestampedBase, table=True):
    """Tenant account together with its business profile and booking settings.

    Table: organizations
    """

    __tablename__ = "organizations"

    name: str = Field(description="Business name")
    industry: Optional[str] = Field(default=None, description="Industry the business operates in")
    tone: Optional[str] = Field(default=None, description="Preferred writing tone for generated content")
    description: Optional[str] = Field(default=None, description="Short business description")
    target_audience: Optional[str] = Field(default=None, description="Who the business serves")
    timezone: str = Field(default="UTC", description="IANA timezone used for new bookings")
    currency: str = Field(default="USD", max_length=3, description="Default ISO currency code")

    # Booking settings
    public_booking_title: str = Field(default="Intro Call")
    public_booking_durations: List[int] = Field(default_factory=lambda: [15, 30], sa_type=JSON)
    public_booking_buffer: int = Field(default=0, ge=0)
    public_booking_confirm: bool = Field(default=False)
    portal_booking_durations: List[int] = Field(default_factory=lambda: [30, 60], sa_type=JSON)
    portal_booking_buffer: int = Field(default=0, ge=0)
    portal_booking_confirm: bool = Field(default=True)

    def __repr__(self) -> str:
        return f"Organization(id={self.id}, name={self.name})"


class User(TimestampedBase, table=True):
    """Authenticated dashboard user.

    Table: users
    """

    __tablename__ = "users"

    email: str = Field(index=True, unique=True)
    name: Optional[str] = Field(default=None)


class Member(TimestampedBase, table=True):
    """A user's role inside one organization.

    Table: members
    """

    __tablename__ = "members"
    __table_args__ = (UniqueConstraint("organization_id", "user_id"),)

    organization_id: str = Field(foreign_key="organizations.id", index=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    role: MemberRole = Field(default=MemberRole.MEMBER)


class Service(TenantBase, table=True):
    """A service the organization offers; feeds the assistants' business context.

    Table: services
    """

    __tablename__ = "services"

    name: str
    description: Optional[str] = Field(default=None)
    is_active: bool = Field(default=True)


class Client(TenantBase, table=True):
    """Customer of the organization.

    Table: clients
    """

    __tablename__ = "clients"

    name: str = Field(description="Client display name")
    email: Optional[str] = Field(default=None, index=True)
    phone: Optional[str] = Field(default=None)
    company: Optional[str] = Field(default=None)
    is_archived: bool = Field(default=False)
    portal_enabled: bool = Field(default=True, description="Whether the client may sign in to the portal")

    def __repr__(self) -> str:
        return f"Client(id={self.id}, name={self.name})"
