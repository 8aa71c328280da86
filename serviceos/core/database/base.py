"""
Base database models and utilities.

This module provides the foundational database components used across
all entities in the centralized database layer using SQLModel.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import ConfigDict
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def utc_now_naive() -> datetime:
    """Get current UTC datetime as naive datetime.

    Returns:
        Current UTC datetime without timezone info
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return uuid4().hex


class Base(SQLModel):
    """Base class for all SQLModel entities."""

    model_config = ConfigDict(arbitrary_types_allowed=True)


class TimestampedBase(Base):
    """String primary key plus creation and modification timestamps."""

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    created_at: datetime = Field(default_factory=utc_now_naive, sa_type=DateTime, index=True)
    updated_at: datetime = Field(
        default_factory=utc_now_naive, sa_type=DateTime, sa_column_kwargs={"onupdate": utc_now_naive}
    )


class TenantBase(TimestampedBase):
    """Rows owned by one organization."""

    organization_id: str = Field(foreign_key="organizations.id", index=True, description="Owning organization")
