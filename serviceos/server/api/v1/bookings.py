"""
API endpoints for bookings.

Lists bookings for the dashboard and the month calendar, creates and edits
them, and moves them through their status lifecycle
(``PENDING -> CONFIRMED -> COMPLETED | NO_SHOW``, cancellation from either
open state).
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from serviceos.core import calendar
from serviceos.core.database import utc_now_naive
from serviceos.core.database.entities.bookings import Booking, BookingStatus
from serviceos.core.database.repositories.bookings import BookingRepository, BookingTypeRepository
from serviceos.core.database.repositories.organizations import ClientRepository
from serviceos.core.logging_config import get_logger
from serviceos.core.models.io.bookings import (
    BookingCancel,
    BookingCreate,
    BookingRead,
    BookingUpdate,
    CalendarDay,
    CalendarMonth,
    MonthRef,
)
from serviceos.core.models.io.common import UTCDateTime
from serviceos.server.services.deps import SessionDep, TenantDep

logger = get_logger(__name__)

router = APIRouter(tags=["bookings"])


async def _read(bookings: BookingRepository, booking_id: str) -> BookingRead:
    return BookingRead.from_row(await bookings.get_detailed(booking_id))


async def _check_references(
    session: AsyncSession, organization_id: str, client_id: Optional[str], booking_type_id: Optional[str]
) -> None:
    if client_id:
        await ClientRepository(session, organization_id).get_or_raise(client_id)
    if booking_type_id:
        await BookingTypeRepository(session, organization_id).get_or_raise(booking_type_id)


@router.get(
    "",
    response_model=List[BookingRead],
    summary="List Bookings",
    description="List bookings starting inside an optional time window, ordered by start time.",
)
async def list_bookings(
    session: SessionDep,
    tenant: TenantDep,
    start: Optional[UTCDateTime] = None,
    end: Optional[UTCDateTime] = None,
    status_filter: Optional[BookingStatus] = Query(default=None, alias="status"),
) -> List[BookingRead]:
    rows = await BookingRepository(session, tenant.organization_id).list_detailed(
        start=start, end=end, status=status_filter
    )
    return [BookingRead.from_row(row) for row in rows]


@router.get(
    "/upcoming",
    response_model=List[BookingRead],
    summary="Upcoming Bookings",
    description="Pending or confirmed bookings starting within the next seven days.",
)
async def upcoming_bookings(session: SessionDep, tenant: TenantDep) -> List[BookingRead]:
    rows = await BookingRepository(session, tenant.organization_id).upcoming()
    return [BookingRead.from_row(row) for row in rows]


@router.get(
    "/calendar",
    response_model=CalendarMonth,
    summary="Calendar Month",
    description="Monday-first month grid with the bookings of each day.",
)
async def calendar_month(
    session: SessionDep,
    tenant: TenantDep,
    year: Optional[int] = Query(default=None, ge=1970, le=9999),
    month: Optional[int] = Query(default=None, ge=1, le=12),
    search: Optional[str] = None,
    status_filter: Optional[BookingStatus] = Query(default=None, alias="status"),
) -> CalendarMonth:
    """
    Month view of the calendar.

    Days and the default month are those of the organization's timezone.
    Cancelled and no-show bookings are hidden unless ``status`` asks for them
    explicitly; ``search`` matches titles, guest names, client names and
    companies, and booking type names.
    """
    zone = calendar.zone_for(tenant.organization.timezone)
    today = calendar.to_local(utc_now_naive(), zone)
    year = year or today.year
    month = month or today.month

    start, end = calendar.month_range(year, month, zone)
    rows = await BookingRepository(session, tenant.organization_id).list_detailed(start=start, end=end)
    bookings = [BookingRead.from_row(row) for row in rows]
    buckets = calendar.bucket_by_day(
        (booking for booking in bookings if calendar.matches_search(booking, search)), zone
    )

    cells = [
        CalendarDay(date=day, bookings=calendar.visible_on_day(buckets.get(day, []), day, status_filter, zone))
        if day
        else None
        for day in calendar.month_grid(year, month)
    ]
    previous_year, previous_month = calendar.shift_month(year, month, -1)
    next_year, next_month = calendar.shift_month(year, month, 1)
    return CalendarMonth(
        year=year,
        month=month,
        previous=MonthRef(year=previous_year, month=previous_month),
        next=MonthRef(year=next_year, month=next_month),
        cells=cells,
    )


@router.get(
    "/{booking_id}",
    response_model=BookingRead,
    summary="Get Booking",
    responses={404: {"description": "Booking not found"}},
)
async def get_booking(booking_id: str, session: SessionDep, tenant: TenantDep) -> BookingRead:
    return await _read(BookingRepository(session, tenant.organization_id), booking_id)


@router.post(
    "",
    response_model=BookingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Booking",
    description="Create a booking. Status defaults to CONFIRMED and the timezone to the organization's.",
    responses={
        201: {"description": "Booking created successfully"},
        404: {"description": "Client or booking type not found"},
        422: {"description": "Invalid booking data"},
    },
)
async def create_booking(payload: BookingCreate, session: SessionDep, tenant: TenantDep) -> BookingRead:
    await _check_references(session, tenant.organization_id, payload.client_id, payload.booking_type_id)
    bookings = BookingRepository(session, tenant.organization_id)
    data = payload.model_dump()
    data["timezone"] = payload.timezone or tenant.organization.timezone
    booking = await bookings.create(Booking(organization_id=tenant.organization_id, **data))
    logger.info(f"Created booking {booking.id} for organization {tenant.organization_id}")
    return await _read(bookings, booking.id)


@router.patch(
    "/{booking_id}",
    response_model=BookingRead,
    summary="Update Booking",
    description="Partially update a booking. A status change must follow the booking lifecycle.",
    responses={
        404: {"description": "Booking not found"},
        409: {"description": "Status change not allowed"},
    },
)
async def update_booking(
    booking_id: str, payload: BookingUpdate, session: SessionDep, tenant: TenantDep
) -> BookingRead:
    changes = payload.model_dump(exclude_unset=True)
    await _check_references(session, tenant.organization_id, changes.get("client_id"), changes.get("booking_type_id"))
    bookings = BookingRepository(session, tenant.organization_id)
    await bookings.update_booking(booking_id, changes)
    return await _read(bookings, booking_id)


@router.post(
    "/{booking_id}/cancel",
    response_model=BookingRead,
    summary="Cancel Booking",
    responses={409: {"description": "Booking is already closed"}},
)
async def cancel_booking(
    booking_id: str, session: SessionDep, tenant: TenantDep, payload: Optional[BookingCancel] = None
) -> BookingRead:
    bookings = BookingRepository(session, tenant.organization_id)
    await bookings.transition(booking_id, BookingStatus.CANCELLED, reason=payload.reason if payload else None)
    return await _read(bookings, booking_id)


@router.post("/{booking_id}/confirm", response_model=BookingRead, summary="Confirm Booking")
async def confirm_booking(booking_id: str, session: SessionDep, tenant: TenantDep) -> BookingRead:
    bookings = BookingRepository(session, tenant.organization_id)
    await bookings.transition(booking_id, BookingStatus.CONFIRMED)
    return await _read(bookings, booking_id)


@router.post("/{booking_id}/complete", response_model=BookingRead, summary="Complete Booking")
async def complete_booking(booking_id: str, session: SessionDep, tenant: TenantDep) -> BookingRead:
    bookings = BookingRepository(session, tenant.organization_id)
    await bookings.transition(booking_id, BookingStatus.COMPLETED)
    return await _read(bookings, booking_id)


@router.post("/{booking_id}/no-show", response_model=BookingRead, summary="Mark No-Show")
async def mark_no_show(booking_id: str, session: SessionDep, tenant: TenantDep) -> BookingRead:
    bookings = BookingRepository(session, tenant.organization_id)
    await bookings.transition(booking_id, BookingStatus.NO_SHOW)
    return await _read(bookings, booking_id)


@router.post(
    "/{booking_id}/portal-visibility",
    response_model=BookingRead,
    summary="Toggle Portal Visibility",
    description="Show or hide the booking in the client portal.",
)
async def toggle_portal_visibility(booking_id: str, session: SessionDep, tenant: TenantDep) -> BookingRead:
    bookings = BookingRepository(session, tenant.organization_id)
    await bookings.toggle_portal_visibility(booking_id)
    return await _read(bookings, booking_id)


@router.delete(
    "/{booking_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Booking",
    responses={404: {"description": "Booking not found"}},
)
async def delete_booking(booking_id: str, session: SessionDep, tenant: TenantDep) -> None:
    bookings = BookingRepository(session, tenant.organization_id)
    await bookings.get_or_raise(booking_id)
    await bookings.delete(booking_id)
