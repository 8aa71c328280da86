"""
API endpoints for clients.

Lists clients for booking and file forms, creates them, and issues client
portal sessions.
"""

from __future__ import annotations

from datetime import timedelta
from typing import List

from fastapi import APIRouter, status

from serviceos.core.database.entities.organizations import Client
from serviceos.core.database.repositories.organizations import ClientRepository
from serviceos.core.database.repositories.portal import PortalSessionRepository
from serviceos.core.errors import InvalidOperationError
from serviceos.core.logging_config import get_logger
from serviceos.core.models.io.bookings import ClientCreate, ClientRead, PortalLinkRead
from serviceos.server.services.deps import MemberDep, SessionDep, SettingsDep, TenantDep

logger = get_logger(__name__)

router = APIRouter(tags=["clients"])


@router.get("", response_model=List[ClientRead], summary="List Clients")
async def list_clients(session: SessionDep, tenant: TenantDep, include_archived: bool = False) -> List[ClientRead]:
    clients = await ClientRepository(session, tenant.organization_id).list_for_select(include_archived)
    return [ClientRead.model_validate(client) for client in clients]


@router.post("", response_model=ClientRead, status_code=status.HTTP_201_CREATED, summary="Create Client")
async def create_client(payload: ClientCreate, session: SessionDep, tenant: TenantDep) -> ClientRead:
    client = await ClientRepository(session, tenant.organization_id).create(
        Client(organization_id=tenant.organization_id, **payload.model_dump())
    )
    return ClientRead.model_validate(client)


@router.post(
    "/{client_id}/portal-link",
    response_model=PortalLinkRead,
    status_code=status.HTTP_201_CREATED,
    summary="Issue Portal Session",
    description=(
        "Issue a portal session token for the client, replacing earlier sessions. "
        "Requires the MEMBER role."
    ),
    responses={
        404: {"description": "Client not found"},
        409: {"description": "The client has no portal access"},
    },
)
async def issue_portal_link(
    client_id: str, session: SessionDep, tenant: MemberDep, settings: SettingsDep
) -> PortalLinkRead:
    client = await ClientRepository(session, tenant.organization_id).get_or_raise(client_id)
    if client.is_archived or not client.portal_enabled:
        raise InvalidOperationError("Portal access is disabled for this client")
    portal_session = await PortalSessionRepository(session).issue(
        client, timedelta(hours=settings.portal.session_ttl_hours)
    )
    logger.info(f"Issued portal session for client {client.id}")
    return PortalLinkRead.model_validate(portal_session)
