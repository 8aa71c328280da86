"""
Client portal I/O models for API requests and responses.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from .common import UTCDateTime


class MagicLinkRequest(BaseModel):
    email: EmailStr
    site_id: str


class MagicLinkResponse(BaseModel):
    success: bool = True


class VerifyRequest(BaseModel):
    token: str = Field(min_length=1)
    site_id: str


class PortalSessionRead(BaseModel):
    client_id: str
    client_name: str
    organization_id: str
    expires_at: datetime


class PortalBookingCreate(BaseModel):
    """Booking requested by a client from the portal."""

    starts_at: UTCDateTime
    duration_minutes: int = Field(gt=0, description="Must be one of the organization's portal durations")
    title: Optional[str] = None
    notes: Optional[str] = None
