"""
API endpoints for the client portal.

Clients of an organization sign in on one of its published sites and then
see their portal-visible bookings and assigned files, and request new
bookings. These routes use the ``X-Portal-Token`` session header instead of
the tenant headers.
"""

from __future__ import annotations

from datetime import timedelta
from typing import List

from fastapi import APIRouter, status

from serviceos.core.database.entities.bookings import Booking, BookingStatus
from serviceos.core.database.repositories.bookings import BookingRepository
from serviceos.core.database.repositories.files import FileRepository
from serviceos.core.database.repositories.organizations import ClientRepository, OrganizationRepository
from serviceos.core.database.repositories.portal import PortalSessionRepository
from serviceos.core.database.repositories.sites import SiteRepository
from serviceos.core.errors import NotAuthorizedError, ServiceOSError
from serviceos.core.logging_config import get_logger
from serviceos.core.models.io.bookings import BookingRead, ClientRead
from serviceos.core.models.io.files import FileRead
from serviceos.core.models.io.portal import (
    MagicLinkRequest,
    MagicLinkResponse,
    PortalBookingCreate,
    PortalSessionRead,
    VerifyRequest,
)
from serviceos.server.services.deps import PortalClientDep, SessionDep, SettingsDep

logger = get_logger(__name__)

router = APIRouter(tags=["portal"])

DEFAULT_BOOKING_TITLE = "Portal booking"


@router.post(
    "/magic-link",
    response_model=MagicLinkResponse,
    summary="Request Portal Sign-In",
    description=(
        "Start a portal sign-in for the e-mail address on the given site. The answer is the same "
        "whether or not the address belongs to a client."
    ),
)
async def request_magic_link(
    payload: MagicLinkRequest, session: SessionDep, settings: SettingsDep
) -> MagicLinkResponse:
    site = await SiteRepository(session, "").get_published(payload.site_id)
    if site is None or not site.portal_enabled:
        logger.debug(f"Portal sign-in requested for unavailable site {payload.site_id}")
        return MagicLinkResponse()
    client = await ClientRepository(session, site.organization_id).find_by_email(payload.email)
    if client is None or not client.portal_enabled:
        return MagicLinkResponse()
    await PortalSessionRepository(session).issue(client, timedelta(hours=settings.portal.session_ttl_hours))
    logger.info(f"Issued portal session for client {client.id} on site {site.id}")
    return MagicLinkResponse()


@router.post(
    "/verify",
    response_model=PortalSessionRead,
    summary="Verify Portal Token",
    responses={401: {"description": "Invalid or expired link"}},
)
async def verify_token(payload: VerifyRequest, session: SessionDep) -> PortalSessionRead:
    site = await SiteRepository(session, "").get_published(payload.site_id)
    if site is None or not site.portal_enabled:
        raise NotAuthorizedError("Invalid or expired link")
    found = await PortalSessionRepository(session).resolve(payload.token, organization_id=site.organization_id)
    if found is None:
        raise NotAuthorizedError("Invalid or expired link")
    portal_session, client = found
    return PortalSessionRead(
        client_id=client.id,
        client_name=client.name,
        organization_id=portal_session.organization_id,
        expires_at=portal_session.expires_at,
    )


@router.get("/me", response_model=ClientRead, summary="Portal Profile")
async def portal_profile(portal: PortalClientDep) -> ClientRead:
    _, client = portal
    return ClientRead.model_validate(client)


@router.get(
    "/bookings",
    response_model=List[BookingRead],
    summary="Portal Bookings",
    description="The client's bookings that were made visible in the portal.",
)
async def portal_bookings(portal: PortalClientDep, session: SessionDep) -> List[BookingRead]:
    _, client = portal
    rows = await BookingRepository(session, client.organization_id).list_detailed(
        client_id=client.id, portal_visible=True
    )
    return [BookingRead.from_row(row) for row in rows]


@router.post(
    "/bookings",
    response_model=BookingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Request Booking",
    description=(
        "Book an appointment from the portal. The duration must be one of the organization's portal "
        "durations; the booking waits for confirmation when the organization asks for it."
    ),
    responses={400: {"description": "Duration not offered"}},
)
async def request_booking(payload: PortalBookingCreate, portal: PortalClientDep, session: SessionDep) -> BookingRead:
    _, client = portal
    organization = await OrganizationRepository(session, client.organization_id).get()
    if payload.duration_minutes not in organization.portal_booking_durations:
        raise ServiceOSError(
            "Duration not offered",
            details={"allowed": organization.portal_booking_durations},
        )
    bookings = BookingRepository(session, client.organization_id)
    booking = await bookings.create(
        Booking(
            organization_id=client.organization_id,
            client_id=client.id,
            title=payload.title or DEFAULT_BOOKING_TITLE,
            notes=payload.notes,
            starts_at=payload.starts_at,
            ends_at=payload.starts_at + timedelta(minutes=payload.duration_minutes),
            timezone=organization.timezone,
            status=BookingStatus.PENDING if organization.portal_booking_confirm else BookingStatus.CONFIRMED,
            portal_visible=True,
        )
    )
    logger.info(f"Client {client.id} requested booking {booking.id}")
    return BookingRead.from_row(await bookings.get_detailed(booking.id))


@router.get("/files", response_model=List[FileRead], summary="Portal Files")
async def portal_files(portal: PortalClientDep, session: SessionDep) -> List[FileRead]:
    _, client = portal
    files = await FileRepository(session, client.organization_id).for_client(client.id)
    return [FileRead.model_validate(file) for file in files]
