"""
Booking entity models.

Bookings are appointments between the organization and a client (or a guest
without a client record). Booking types are the offered appointment kinds and
availability rows describe the weekly opening hours.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field

from ..base import TenantBase


class BookingStatus(str, Enum):
    """Lifecycle state of a booking."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"


class LocationType(str, Enum):
    """Where a booking takes place."""

    ONLINE = "ONLINE"
    AT_PROVIDER = "AT_PROVIDER"
    AT_CLIENT = "AT_CLIENT"
    OTHER = "OTHER"


class BookingType(TenantBase, table=True):
    """Bookable appointment kind.

    Table: booking_types
    """

    __tablename__ = "booking_types"

    name: str
    description: Optional[str] = Field(default=None)
    duration_minutes: int = Field(default=30, gt=0)
    price: Optional[float] = Field(default=None, ge=0)
    currency: str = Field(default="USD", max_length=3)
    color: Optional[str] = Field(default=None)
    requires_confirmation: bool = Field(default=False)
    is_public: bool = Field(default=False)
    buffer_before: int = Field(default=0, ge=0, description="Minutes blocked before the booking")
    buffer_after: int = Field(default=0, ge=0, description="Minutes blocked after the booking")
    is_active: bool = Field(default=True)


class Booking(TenantBase, table=True):
    """Scheduled appointment.

    Table: bookings
    """

    __tablename__ = "bookings"

    client_id: Optional[str] = Field(default=None, foreign_key="clients.id", index=True)
    booking_type_id: Optional[str] = Field(default=None, foreign_key="booking_types.id")
    guest_name: Optional[str] = Field(default=None)
    guest_email: Optional[str] = Field(default=None)
    title: str
    notes: Optional[str] = Field(default=None)
    starts_at: datetime = Field(sa_type=DateTime, index=True)
    ends_at: datetime = Field(sa_type=DateTime)
    timezone: str = Field(default="UTC")
    location_type: LocationType = Field(default=LocationType.ONLINE)
    location: Optional[str] = Field(default=None, description="Address or meeting link")
    status: BookingStatus = Field(default=BookingStatus.CONFIRMED, index=True)
    portal_visible: bool = Field(default=False, description="Shown to the client in the portal")
    cancelled_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    cancellation_reason: Optional[str] = Field(default=None)

    def __repr__(self) -> str:
        return f"Booking(id={self.id}, title={self.title}, status={self.status})"


class Availability(TenantBase, table=True):
    """Weekly opening window; ``day_of_week`` is 0 for Sunday through 6 for Saturday.

    Table: availability
    """

    __tablename__ = "availability"

    day_of_week: int = Field(ge=0, le=6)
    start_time: str = Field(max_length=5, description="HH:MM")
    end_time: str = Field(max_length=5, description="HH:MM")
    is_active: bool = Field(default=True)
