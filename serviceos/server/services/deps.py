"""
FastAPI dependencies.

Resolves the calling tenant from the request headers and provides the
database session, the assistant model and the third-party integrations to the
route handlers. Tests override these through ``app.dependency_overrides``.
"""

from __future__ import annotations

from typing import Annotated, AsyncGenerator, Callable, Optional, Tuple, Union

from fastapi import Depends, Header
from pydantic_ai.models import Model
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from serviceos.assistants.model_provider import build_model
from serviceos.core.database import async_session_maker, get_session
from serviceos.core.database.entities.organizations import Client, MemberRole
from serviceos.core.database.entities.portal import PortalSession
from serviceos.core.database.repositories.organizations import TenantContext, resolve_tenant
from serviceos.core.database.repositories.portal import PortalSessionRepository
from serviceos.core.errors import NotAuthorizedError
from serviceos.integrations.file_analyzer import FileAnalyzer
from serviceos.integrations.freepik import FreepikClient
from serviceos.integrations.storage import MediaStorage
from serviceos.server.core.config import Settings, get_settings
from serviceos.server.core.constant import ORGANIZATION_HEADER, PORTAL_TOKEN_HEADER, USER_HEADER

SessionDep = Annotated[AsyncSession, Depends(get_session)]
SettingsDep = Annotated[Settings, Depends(get_settings)]


async def get_tenant(
    session: SessionDep,
    organization_id: Annotated[Optional[str], Header(alias=ORGANIZATION_HEADER)] = None,
    user_id: Annotated[Optional[str], Header(alias=USER_HEADER)] = None,
) -> TenantContext:
    return await resolve_tenant(session, user_id, organization_id)


TenantDep = Annotated[TenantContext, Depends(get_tenant)]


def require_role(minimum: MemberRole) -> Callable:
    """Dependency rejecting members below ``minimum`` with 403."""

    async def _check(tenant: TenantDep) -> TenantContext:
        tenant.require_role(minimum)
        return tenant

    return _check


MemberDep = Annotated[TenantContext, Depends(require_role(MemberRole.MEMBER))]
AdminDep = Annotated[TenantContext, Depends(require_role(MemberRole.ADMIN))]


def get_session_factory() -> async_sessionmaker:
    """Session factory for work that outlives the request, such as background analysis."""
    return async_session_maker


SessionFactoryDep = Annotated[async_sessionmaker, Depends(get_session_factory)]


def get_assistant_model(settings: SettingsDep) -> Union[Model, str]:
    return build_model(settings.assistant)


AssistantModelDep = Annotated[Union[Model, str], Depends(get_assistant_model)]


def get_file_analyzer(model: AssistantModelDep) -> FileAnalyzer:
    return FileAnalyzer(model)


AnalyzerDep = Annotated[FileAnalyzer, Depends(get_file_analyzer)]


def get_storage(settings: SettingsDep) -> MediaStorage:
    return MediaStorage(settings.cloudinary, settings.blob)


StorageDep = Annotated[MediaStorage, Depends(get_storage)]


async def get_freepik(settings: SettingsDep) -> AsyncGenerator[FreepikClient, None]:
    client = FreepikClient(settings.freepik)
    try:
        yield client
    finally:
        await client.aclose()


FreepikDep = Annotated[FreepikClient, Depends(get_freepik)]


async def get_portal_client(
    session: SessionDep,
    token: Annotated[Optional[str], Header(alias=PORTAL_TOKEN_HEADER)] = None,
) -> Tuple[PortalSession, Client]:
    """The live portal session and client behind the ``X-Portal-Token`` header."""
    if not token:
        raise NotAuthorizedError()
    found = await PortalSessionRepository(session).resolve(token)
    if found is None:
        raise NotAuthorizedError("Invalid or expired portal session")
    return found


PortalClientDep = Annotated[Tuple[PortalSession, Client], Depends(get_portal_client)]
