"""
API endpoints for booking types.

A booking type is a bookable kind of appointment with a duration, an optional
price and buffers around it.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, status

from serviceos.core.database.entities.bookings import BookingType
from serviceos.core.database.repositories.bookings import BookingTypeRepository
from serviceos.core.models.io.bookings import BookingTypeCreate, BookingTypeRead, BookingTypeUpdate
from serviceos.server.services.deps import SessionDep, TenantDep

router = APIRouter(tags=["booking-types"])


@router.get("", response_model=List[BookingTypeRead], summary="List Booking Types")
async def list_booking_types(
    session: SessionDep, tenant: TenantDep, active_only: bool = False
) -> List[BookingTypeRead]:
    types = await BookingTypeRepository(session, tenant.organization_id).list_all(active_only=active_only)
    return [BookingTypeRead.model_validate(booking_type) for booking_type in types]


@router.post(
    "",
    response_model=BookingTypeRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Booking Type",
    description="Create a booking type. The currency defaults to the organization's currency.",
)
async def create_booking_type(payload: BookingTypeCreate, session: SessionDep, tenant: TenantDep) -> BookingTypeRead:
    data = payload.model_dump()
    data["currency"] = (payload.currency or tenant.organization.currency).upper()
    booking_type = await BookingTypeRepository(session, tenant.organization_id).create(
        BookingType(organization_id=tenant.organization_id, **data)
    )
    return BookingTypeRead.model_validate(booking_type)


@router.patch(
    "/{booking_type_id}",
    response_model=BookingTypeRead,
    summary="Update Booking Type",
    responses={404: {"description": "Booking type not found"}},
)
async def update_booking_type(
    booking_type_id: str, payload: BookingTypeUpdate, session: SessionDep, tenant: TenantDep
) -> BookingTypeRead:
    types = BookingTypeRepository(session, tenant.organization_id)
    booking_type = await types.get_or_raise(booking_type_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("currency"):
        changes["currency"] = changes["currency"].upper()
    return BookingTypeRead.model_validate(await types.apply_changes(booking_type, changes))


@router.delete(
    "/{booking_type_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Booking Type",
    responses={404: {"description": "Booking type not found"}},
)
async def delete_booking_type(booking_type_id: str, session: SessionDep, tenant: TenantDep) -> None:
    types = BookingTypeRepository(session, tenant.organization_id)
    await types.get_or_raise(booking_type_id)
    await types.delete(booking_type_id)
