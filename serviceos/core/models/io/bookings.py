"""
Booking I/O models for API requests and responses.

Covers bookings, the calendar month view, booking types, the weekly
availability schedule, booking settings and the clients offered in booking
forms.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from serviceos.core.database.entities.bookings import BookingStatus, LocationType
from serviceos.core.database.repositories.bookings import BookingRow

from .common import HHMM_PATTERN, PartialUpdate, UTCDateTime


class ClientSummary(BaseModel):
    """Client as embedded in other records."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: Optional[str] = None
    company: Optional[str] = None


class ClientRead(ClientSummary):
    phone: Optional[str] = None
    is_archived: bool
    portal_enabled: bool
    created_at: datetime


class ClientCreate(BaseModel):
    """Schema for creating a client via API."""

    name: str = Field(min_length=1, description="Client display name")
    email: Optional[EmailStr] = Field(default=None, description="Contact e-mail; also the portal sign-in address")
    phone: Optional[str] = None
    company: Optional[str] = None
    portal_enabled: bool = True

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: Optional[str]) -> Optional[str]:
        return value.lower() if value else value


class PortalLinkRead(BaseModel):
    """Freshly issued portal session token."""

    model_config = ConfigDict(from_attributes=True)

    client_id: str
    token: str
    expires_at: datetime


class BookingTypeSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    duration_minutes: int
    color: Optional[str] = None


class BookingRead(BaseModel):
    """Schema for reading a booking with its client and booking type."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    notes: Optional[str] = None
    client_id: Optional[str] = None
    booking_type_id: Optional[str] = None
    guest_name: Optional[str] = None
    guest_email: Optional[str] = None
    starts_at: datetime
    ends_at: datetime
    timezone: str
    location_type: LocationType
    location: Optional[str] = None
    status: BookingStatus
    portal_visible: bool
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    client: Optional[ClientSummary] = None
    booking_type: Optional[BookingTypeSummary] = None

    @classmethod
    def from_row(cls, row: BookingRow) -> "BookingRead":
        booking, client, booking_type = row
        data = cls.model_validate(booking).model_dump(exclude={"client", "booking_type"})
        return cls(
            **data,
            client=ClientSummary.model_validate(client) if client else None,
            booking_type=BookingTypeSummary.model_validate(booking_type) if booking_type else None,
        )


class BookingCreate(BaseModel):
    """Schema for creating a booking via API."""

    title: str = Field(min_length=1)
    starts_at: UTCDateTime
    ends_at: UTCDateTime
    client_id: Optional[str] = None
    booking_type_id: Optional[str] = None
    guest_name: Optional[str] = None
    guest_email: Optional[EmailStr] = None
    notes: Optional[str] = None
    timezone: Optional[str] = Field(default=None, description="Defaults to the organization's timezone")
    location_type: LocationType = LocationType.ONLINE
    location: Optional[str] = None
    status: BookingStatus = Field(default=BookingStatus.CONFIRMED, description="PENDING or CONFIRMED")
    portal_visible: bool = False

    @model_validator(mode="after")
    def _check(self) -> "BookingCreate":
        if self.ends_at <= self.starts_at:
            raise ValueError("ends_at must be after starts_at")
        if self.status not in (BookingStatus.PENDING, BookingStatus.CONFIRMED):
            raise ValueError("new bookings must be PENDING or CONFIRMED")
        return self


class BookingUpdate(PartialUpdate):
    """Schema for updating a booking via API; status changes follow the lifecycle."""

    not_nullable = ("title", "starts_at", "ends_at", "timezone", "location_type", "status", "portal_visible")

    title: Optional[str] = Field(default=None, min_length=1)
    starts_at: Optional[UTCDateTime] = None
    ends_at: Optional[UTCDateTime] = None
    client_id: Optional[str] = None
    booking_type_id: Optional[str] = None
    guest_name: Optional[str] = None
    guest_email: Optional[EmailStr] = None
    notes: Optional[str] = None
    timezone: Optional[str] = None
    location_type: Optional[LocationType] = None
    location: Optional[str] = None
    status: Optional[BookingStatus] = None
    portal_visible: Optional[bool] = None


class BookingCancel(BaseModel):
    reason: Optional[str] = Field(default=None, description="Why the booking was cancelled")


class MonthRef(BaseModel):
    year: int
    month: int


class CalendarDay(BaseModel):
    date: date
    bookings: List[BookingRead]


class CalendarMonth(BaseModel):
    """Monday-first month grid; ``None`` cells are the leading blanks."""

    year: int
    month: int
    previous: MonthRef
    next: MonthRef
    cells: List[Optional[CalendarDay]]


class BookingTypeRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    duration_minutes: int
    price: Optional[float] = None
    currency: str
    color: Optional[str] = None
    requires_confirmation: bool
    is_public: bool
    buffer_before: int
    buffer_after: int
    is_active: bool


class BookingTypeCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    duration_minutes: int = Field(default=30, gt=0)
    price: Optional[float] = Field(default=None, ge=0)
    currency: Optional[str] = Field(
        default=None, min_length=3, max_length=3, description="Defaults to the organization's"
    )
    color: Optional[str] = None
    requires_confirmation: bool = False
    is_public: bool = False
    buffer_before: int = Field(default=0, ge=0)
    buffer_after: int = Field(default=0, ge=0)
    is_active: bool = True


class BookingTypeUpdate(PartialUpdate):
    not_nullable = (
        "name",
        "duration_minutes",
        "currency",
        "requires_confirmation",
        "is_public",
        "buffer_before",
        "buffer_after",
        "is_active",
    )

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    price: Optional[float] = Field(default=None, ge=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    color: Optional[str] = None
    requires_confirmation: Optional[bool] = None
    is_public: Optional[bool] = None
    buffer_before: Optional[int] = Field(default=None, ge=0)
    buffer_after: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class AvailabilitySlot(BaseModel):
    """One weekly opening window; ``day_of_week`` 0 is Sunday."""

    model_config = ConfigDict(from_attributes=True)

    day_of_week: int = Field(ge=0, le=6)
    start_time: str = Field(pattern=HHMM_PATTERN)
    end_time: str = Field(pattern=HHMM_PATTERN)
    is_active: bool = True

    @model_validator(mode="after")
    def _check_order(self) -> "AvailabilitySlot":
        # zero-padded HH:MM strings compare in time order
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class AvailabilityRead(AvailabilitySlot):
    id: str


class BookingSettings(BaseModel):
    """Public and portal booking preferences of the organization."""

    model_config = ConfigDict(from_attributes=True)

    public_booking_title: str
    public_booking_durations: List[int]
    public_booking_buffer: int
    public_booking_confirm: bool
    portal_booking_durations: List[int]
    portal_booking_buffer: int
    portal_booking_confirm: bool


class BookingSettingsUpdate(PartialUpdate):
    not_nullable = (
        "public_booking_title",
        "public_booking_durations",
        "public_booking_buffer",
        "public_booking_confirm",
        "portal_booking_durations",
        "portal_booking_buffer",
        "portal_booking_confirm",
    )

    public_booking_title: Optional[str] = Field(default=None, min_length=1)
    public_booking_durations: Optional[List[int]] = Field(default=None, min_length=1)
    public_booking_buffer: Optional[int] = Field(default=None, ge=0)
    public_booking_confirm: Optional[bool] = None
    portal_booking_durations: Optional[List[int]] = Field(default=None, min_length=1)
    portal_booking_buffer: Optional[int] = Field(default=None, ge=0)
    portal_booking_confirm: Optional[bool] = None

    @field_validator("public_booking_durations", "portal_booking_durations")
    @classmethod
    def _positive_sorted(cls, value: Optional[List[int]]) -> Optional[List[int]]:
        if value is None:
            return value
        if any(minutes <= 0 for minutes in value):
            raise ValueError("durations must be positive")
        return sorted(set(value))
