"""Shared field types and bases for I/O schemas."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, ClassVar, Tuple

from pydantic import AfterValidator, BaseModel, model_validator


def to_naive_utc(value: datetime) -> datetime:
    """Convert aware datetimes to naive UTC; naive values are taken as UTC already."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


UTCDateTime = Annotated[datetime, AfterValidator(to_naive_utc)]

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class PartialUpdate(BaseModel):
    """Base for PATCH bodies.

    Every field is optional, but the names in ``not_nullable`` back required
    columns: they may be left out, never sent as ``null``.
    """

    not_nullable: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="before")
    @classmethod
    def _reject_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            nulled = [name for name in cls.not_nullable if name in data and data[name] is None]
            if nulled:
                raise ValueError(f"{', '.join(nulled)} cannot be null")
        return data
