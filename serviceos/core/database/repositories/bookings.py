"""
Booking repositories.

Covers bookings (with their status lifecycle), booking types and the weekly
availability schedule.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from serviceos.core.errors import InvalidOperationError, NotFoundError

from ..base import utc_now_naive
from ..entities.bookings import Availability, Booking, BookingStatus, BookingType
from ..entities.organizations import Client
from .base import TenantRepository

# Booking together with the client and type it references.
BookingRow = Tuple[Booking, Optional[Client], Optional[BookingType]]

ALLOWED_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.NO_SHOW, BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
}

UPCOMING_WINDOW = timedelta(days=7)


def check_transition(current: BookingStatus, target: BookingStatus) -> None:
    """Raise ``InvalidOperationError`` unless ``current -> target`` is allowed."""
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidOperationError(
            f"Cannot change booking status from {current.value} to {target.value}",
            details={"current": current.value, "target": target.value},
        )


class BookingRepository(TenantRepository[Booking]):
    """Repository for bookings of one organization."""

    label = "Booking"

    def __init__(self, session: AsyncSession, organization_id: str) -> None:
        super().__init__(session, Booking, organization_id)

    def _with_details(self):
        return (
            select(Booking, Client, BookingType)
            .outerjoin(Client, Client.id == Booking.client_id)
            .outerjoin(BookingType, BookingType.id == Booking.booking_type_id)
            .where(Booking.organization_id == self.organization_id)
        )

    async def list_detailed(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        status: Optional[BookingStatus] = None,
        statuses: Optional[Iterable[BookingStatus]] = None,
        client_id: Optional[str] = None,
        portal_visible: Optional[bool] = None,
    ) -> List[BookingRow]:
        """Bookings with their client and type, ordered by start time.

        Args:
            start: Only bookings starting at or after this instant
            end: Only bookings starting at or before this instant
            status: Only this status
            statuses: Only one of these statuses
            client_id: Only bookings of this client
            portal_visible: Only bookings with this portal visibility
        """
        stmt = self._with_details()
        if start is not None:
            stmt = stmt.where(Booking.starts_at >= start)
        if end is not None:
            stmt = stmt.where(Booking.starts_at <= end)
        if status is not None:
            stmt = stmt.where(Booking.status == status)
        if statuses is not None:
            stmt = stmt.where(Booking.status.in_(list(statuses)))
        if client_id is not None:
            stmt = stmt.where(Booking.client_id == client_id)
        if portal_visible is not None:
            stmt = stmt.where(Booking.portal_visible == portal_visible)
        result = await self.session.exec(stmt.order_by(Booking.starts_at))
        return list(result.all())

    async def upcoming(self, now: Optional[datetime] = None) -> List[BookingRow]:
        """Pending or confirmed bookings starting within the next seven days."""
        now = now or utc_now_naive()
        return await self.list_detailed(
            start=now,
            end=now + UPCOMING_WINDOW,
            statuses=(BookingStatus.PENDING, BookingStatus.CONFIRMED),
        )

    async def get_detailed(self, booking_id: str) -> BookingRow:
        result = await self.session.exec(self._with_details().where(Booking.id == booking_id))
        row = result.one_or_none()
        if row is None:
            raise NotFoundError("Booking not found")
        return row

    async def transition(
        self, booking_id: str, target: BookingStatus, reason: Optional[str] = None
    ) -> Booking:
        """Move a booking to ``target`` following the status lifecycle.

        Cancelling stamps ``cancelled_at`` and keeps the optional reason.
        """
        booking = await self.get_or_raise(booking_id)
        check_transition(booking.status, target)
        booking.status = target
        if target == BookingStatus.CANCELLED:
            booking.cancelled_at = utc_now_naive()
            booking.cancellation_reason = reason
        return await self.update(booking)

    async def update_booking(self, booking_id: str, changes: Dict[str, Any]) -> Booking:
        """Apply field changes; a changed ``status`` must follow the lifecycle.

        Raises:
            InvalidOperationError: The status move is not allowed or the
                resulting ``ends_at`` is not after ``starts_at``.
        """
        booking = await self.get_or_raise(booking_id)
        target = changes.pop("status", None)
        if target is not None and target != booking.status:
            check_transition(booking.status, target)
            booking.status = target
            if target == BookingStatus.CANCELLED:
                booking.cancelled_at = utc_now_naive()
        starts_at = changes.get("starts_at", booking.starts_at)
        ends_at = changes.get("ends_at", booking.ends_at)
        if ends_at <= starts_at:
            raise InvalidOperationError("Booking must end after it starts")
        return await self.apply_changes(booking, changes)

    async def toggle_portal_visibility(self, booking_id: str) -> Booking:
        booking = await self.get_or_raise(booking_id)
        booking.portal_visible = not booking.portal_visible
        return await self.update(booking)


class BookingTypeRepository(TenantRepository[BookingType]):
    """Repository for bookable appointment kinds."""

    label = "Booking type"

    def __init__(self, session: AsyncSession, organization_id: str) -> None:
        super().__init__(session, BookingType, organization_id)

    async def list_all(self, active_only: bool = False) -> List[BookingType]:
        stmt = self.scoped()
        if active_only:
            stmt = stmt.where(BookingType.is_active == True)  # noqa: E712
        result = await self.session.exec(stmt.order_by(BookingType.name))
        return list(result.all())


class AvailabilityRepository(TenantRepository[Availability]):
    """Repository for the weekly availability schedule."""

    label = "Availability"

    def __init__(self, session: AsyncSession, organization_id: str) -> None:
        super().__init__(session, Availability, organization_id)

    async def list_all(self) -> List[Availability]:
        result = await self.session.exec(
            self.scoped().order_by(Availability.day_of_week, Availability.start_time)
        )
        return list(result.all())

    async def replace_all(self, slots: Iterable[Availability]) -> List[Availability]:
        """Swap the whole schedule for ``slots`` in a single transaction."""
        for existing in await self.list_all():
            await self.session.delete(existing)
        for slot in slots:
            slot.organization_id = self.organization_id
            self.session.add(slot)
        await self.session.commit()
        return await self.list_all()
