"""Unit tests for the booking repositories against an in-memory database."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from serviceos.core.database import utc_now_naive
from serviceos.core.database.entities.bookings import Availability, Booking, BookingStatus, BookingType
from serviceos.core.database.repositories.bookings import (
    AvailabilityRepository,
    BookingRepository,
    BookingTypeRepository,
    check_transition,
)
from serviceos.core.errors import InvalidOperationError, NotFoundError

START = datetime(2024, 5, 1, 10, 0)


async def _booking(session, organization, **fields) -> Booking:
    values = {"title": "Portrait session", "starts_at": START, "ends_at": START + timedelta(hours=1)}
    values.update(fields)
    return await BookingRepository(session, organization.id).create(Booking(organization_id=organization.id, **values))


class TestCheckTransition:
    @pytest.mark.parametrize(
        "current,target",
        [
            (BookingStatus.PENDING, BookingStatus.CONFIRMED),
            (BookingStatus.PENDING, BookingStatus.CANCELLED),
            (BookingStatus.CONFIRMED, BookingStatus.COMPLETED),
            (BookingStatus.CONFIRMED, BookingStatus.NO_SHOW),
            (BookingStatus.CONFIRMED, BookingStatus.CANCELLED),
        ],
    )
    def test_allowed(self, current, target):
        check_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (BookingStatus.PENDING, BookingStatus.COMPLETED),
            (BookingStatus.PENDING, BookingStatus.NO_SHOW),
            (BookingStatus.CANCELLED, BookingStatus.CONFIRMED),
            (BookingStatus.COMPLETED, BookingStatus.CANCELLED),
            (BookingStatus.NO_SHOW, BookingStatus.COMPLETED),
        ],
    )
    def test_rejected(self, current, target):
        with pytest.raises(InvalidOperationError) as exc_info:
            check_transition(current, target)
        assert exc_info.value.details == {"current": current.value, "target": target.value}


class TestBookingRepository:
    async def test_cancel_records_time_and_reason(self, session, organization):
        booking = await _booking(session, organization)

        cancelled = await BookingRepository(session, organization.id).transition(
            booking.id, BookingStatus.CANCELLED, reason="Client is ill"
        )

        assert cancelled.status == BookingStatus.CANCELLED
        assert cancelled.cancelled_at is not None
        assert cancelled.cancellation_reason == "Client is ill"

    async def test_closed_booking_cannot_move(self, session, organization):
        booking = await _booking(session, organization, status=BookingStatus.COMPLETED)

        with pytest.raises(InvalidOperationError):
            await BookingRepository(session, organization.id).transition(booking.id, BookingStatus.CANCELLED)

    async def test_update_booking_validates_status_and_times(self, session, organization):
        bookings = BookingRepository(session, organization.id)
        booking = await _booking(session, organization, status=BookingStatus.PENDING)

        with pytest.raises(InvalidOperationError):
            await bookings.update_booking(booking.id, {"status": BookingStatus.COMPLETED})
        with pytest.raises(InvalidOperationError, match="end after it starts"):
            await bookings.update_booking(booking.id, {"ends_at": START - timedelta(minutes=5)})

        changes = {
            "status": BookingStatus.CONFIRMED,
            "title": "Moved",
            "starts_at": START + timedelta(days=1),
            "ends_at": START + timedelta(days=1, hours=1),
        }
        updated = await bookings.update_booking(booking.id, changes)
        assert updated.status == BookingStatus.CONFIRMED
        assert updated.title == "Moved"

    async def test_update_with_same_status_is_not_a_transition(self, session, organization):
        booking = await _booking(session, organization, status=BookingStatus.COMPLETED)

        updated = await BookingRepository(session, organization.id).update_booking(
            booking.id, {"status": BookingStatus.COMPLETED, "notes": "Paid"}
        )

        assert updated.notes == "Paid"

    async def test_list_detailed_joins_client_and_type(self, session, organization, customer):
        booking_type = await BookingTypeRepository(session, organization.id).create(
            BookingType(organization_id=organization.id, name="Family shoot", duration_minutes=60)
        )
        await _booking(session, organization, client_id=customer.id, booking_type_id=booking_type.id)
        await _booking(session, organization, title="Walk-in", guest_name="Sam")

        rows = await BookingRepository(session, organization.id).list_detailed(client_id=customer.id)

        assert len(rows) == 1
        booking, client, kind = rows[0]
        assert client.name == "Jane Doe"
        assert kind.name == "Family shoot"

    async def test_list_detailed_filters(self, session, organization):
        await _booking(session, organization, title="May", status=BookingStatus.PENDING)
        await _booking(
            session,
            organization,
            title="June",
            starts_at=datetime(2024, 6, 3, 9),
            ends_at=datetime(2024, 6, 3, 10),
            portal_visible=True,
        )
        bookings = BookingRepository(session, organization.id)

        in_june = await bookings.list_detailed(start=datetime(2024, 6, 1), end=datetime(2024, 6, 30, 23, 59, 59))
        pending = await bookings.list_detailed(status=BookingStatus.PENDING)
        visible = await bookings.list_detailed(portal_visible=True)

        assert [row[0].title for row in in_june] == ["June"]
        assert [row[0].title for row in pending] == ["May"]
        assert [row[0].title for row in visible] == ["June"]

    async def test_other_organization_is_invisible(self, session, organization, other_organization):
        booking = await _booking(session, organization)
        other = BookingRepository(session, other_organization.id)

        assert await other.list_detailed() == []
        with pytest.raises(NotFoundError, match="Booking not found"):
            await other.get_detailed(booking.id)
        with pytest.raises(NotFoundError):
            await other.transition(booking.id, BookingStatus.CANCELLED)

    async def test_upcoming_window(self, session, organization):
        now = utc_now_naive()

        async def at(title, days, **fields):
            starts_at = now + timedelta(days=days)
            await _booking(session, organization, title=title, starts_at=starts_at,
                           ends_at=starts_at + timedelta(hours=1), **fields)

        await at("Soon", 1)
        await at("Later", 10)
        await at("Past", -1)
        await at("Called off", 2, status=BookingStatus.CANCELLED)

        rows = await BookingRepository(session, organization.id).upcoming(now=now)

        assert [row[0].title for row in rows] == ["Soon"]

    async def test_toggle_portal_visibility(self, session, organization):
        booking = await _booking(session, organization)
        bookings = BookingRepository(session, organization.id)

        assert (await bookings.toggle_portal_visibility(booking.id)).portal_visible is True
        assert (await bookings.toggle_portal_visibility(booking.id)).portal_visible is False


async def test_booking_types_active_only(session, organization):
    types = BookingTypeRepository(session, organization.id)
    await types.create(BookingType(organization_id=organization.id, name="Consult"))
    await types.create(BookingType(organization_id=organization.id, name="Archived kind", is_active=False))

    assert [t.name for t in await types.list_all()] == ["Archived kind", "Consult"]
    assert [t.name for t in await types.list_all(active_only=True)] == ["Consult"]


async def test_availability_replace_all(session, organization, other_organization):
    availability = AvailabilityRepository(session, organization.id)
    await availability.replace_all([Availability(day_of_week=1, start_time="09:00", end_time="17:00")])
    await AvailabilityRepository(session, other_organization.id).replace_all(
        [Availability(day_of_week=2, start_time="10:00", end_time="12:00")]
    )

    slots = await availability.replace_all(
        [
            Availability(day_of_week=3, start_time="13:00", end_time="17:00"),
            Availability(day_of_week=3, start_time="08:00", end_time="12:00"),
        ]
    )

    assert [(s.day_of_week, s.start_time) for s in slots] == [(3, "08:00"), (3, "13:00")]
    assert all(s.organization_id == organization.id for s in slots)
    assert len(await AvailabilityRepository(session, other_organization.id).list_all()) == 1
