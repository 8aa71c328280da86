"""
Organization, membership and client repositories.

Resolves who is calling (user plus membership) and exposes the organization
profile that assistants use as business context.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from serviceos.core.errors import NotAuthorizedError, NotFoundError, PermissionDeniedError

from ..base import utc_now_naive
from ..entities.organizations import Client, Member, MemberRole, Organization, Service, User
from .base import TenantRepository


@dataclass(frozen=True)
class TenantContext:
    """The authenticated user acting inside one organization."""

    organization: Organization
    user: User
    role: MemberRole

    @property
    def organization_id(self) -> str:
        return self.organization.id

    @property
    def user_id(self) -> str:
        return self.user.id

    def require_role(self, minimum: MemberRole) -> None:
        if not self.role.satisfies(minimum):
            raise PermissionDeniedError()


async def resolve_tenant(
    session: AsyncSession, user_id: Optional[str], organization_id: Optional[str]
) -> TenantContext:
    """Load the user, organization and membership behind a request.

    Raises:
        NotAuthorizedError: No user id was given or it matches no user.
        PermissionDeniedError: The user is not a member of the organization.
    """
    if not user_id:
        raise NotAuthorizedError()
    user = await session.get(User, user_id)
    if user is None:
        raise NotAuthorizedError()

    if not organization_id:
        raise PermissionDeniedError("No organization found")
    result = await session.exec(
        select(Member, Organization)
        .join(Organization, Organization.id == Member.organization_id)
        .where(Member.user_id == user.id, Member.organization_id == organization_id)
    )
    row = result.one_or_none()
    if row is None:
        raise PermissionDeniedError("No organization found")
    member, organization = row
    return TenantContext(organization=organization, user=user, role=member.role)


class OrganizationRepository:
    """Access to the current organization's own row."""

    def __init__(self, session: AsyncSession, organization_id: str) -> None:
        self.session = session
        self.organization_id = organization_id

    async def get(self) -> Organization:
        organization = await self.session.get(Organization, self.organization_id)
        if organization is None:
            raise NotFoundError("Organization not found")
        return organization

    async def update(self, changes: Dict[str, Any]) -> Organization:
        organization = await self.get()
        for key, value in changes.items():
            setattr(organization, key, value)
        organization.updated_at = utc_now_naive()
        self.session.add(organization)
        await self.session.commit()
        await self.session.refresh(organization)
        return organization

    async def active_services(self) -> List[Service]:
        result = await self.session.exec(
            select(Service)
            .where(Service.organization_id == self.organization_id, Service.is_active == True)  # noqa: E712
            .order_by(Service.name)
        )
        return list(result.all())

    async def business_context(self) -> Dict[str, Any]:
        """Business profile and active services, as fed to assistant prompts."""
        organization = await self.get()
        services = await self.active_services()
        return {
            "name": organization.name,
            "industry": organization.industry,
            "description": organization.description,
            "target_audience": organization.target_audience,
            "tone": organization.tone,
            "services": [service.name for service in services],
        }


class ClientRepository(TenantRepository[Client]):
    """Repository for the organization's clients."""

    label = "Client"

    def __init__(self, session: AsyncSession, organization_id: str) -> None:
        super().__init__(session, Client, organization_id)

    async def list_for_select(self, include_archived: bool = False) -> List[Client]:
        stmt = self.scoped()
        if not include_archived:
            stmt = stmt.where(Client.is_archived == False)  # noqa: E712
        result = await self.session.exec(stmt.order_by(Client.name))
        return list(result.all())

    async def find_by_email(self, email: str) -> Optional[Client]:
        result = await self.session.exec(
            self.scoped().where(Client.email == email.strip().lower(), Client.is_archived == False)  # noqa: E712
        )
        return result.first()
