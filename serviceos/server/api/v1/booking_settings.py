"""
API endpoints for the organization's booking settings.
"""

from __future__ import annotations

from fastapi import APIRouter

from serviceos.core.database.repositories.organizations import OrganizationRepository
from serviceos.core.models.io.bookings import BookingSettings, BookingSettingsUpdate
from serviceos.server.services.deps import AdminDep, SessionDep, TenantDep

router = APIRouter(tags=["booking-settings"])


@router.get("", response_model=BookingSettings, summary="Get Booking Settings")
async def get_booking_settings(session: SessionDep, tenant: TenantDep) -> BookingSettings:
    organization = await OrganizationRepository(session, tenant.organization_id).get()
    return BookingSettings.model_validate(organization)


@router.patch(
    "",
    response_model=BookingSettings,
    summary="Update Booking Settings",
    description="Update public and portal booking preferences. Requires the ADMIN role.",
    responses={403: {"description": "Insufficient permissions"}},
)
async def update_booking_settings(
    payload: BookingSettingsUpdate, session: SessionDep, tenant: AdminDep
) -> BookingSettings:
    organization = await OrganizationRepository(session, tenant.organization_id).update(
        payload.model_dump(exclude_unset=True)
    )
    return BookingSettings.model_validate(organization)
