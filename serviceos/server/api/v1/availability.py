"""
API endpoints for the weekly availability schedule.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter

from serviceos.core.database.entities.bookings import Availability
from serviceos.core.database.repositories.bookings import AvailabilityRepository
from serviceos.core.models.io.bookings import AvailabilityRead, AvailabilitySlot
from serviceos.server.services.deps import SessionDep, TenantDep

router = APIRouter(tags=["availability"])


@router.get(
    "",
    response_model=List[AvailabilityRead],
    summary="Get Availability",
    description="Weekly opening windows ordered by weekday (0 is Sunday) and start time.",
)
async def get_availability(session: SessionDep, tenant: TenantDep) -> List[AvailabilityRead]:
    slots = await AvailabilityRepository(session, tenant.organization_id).list_all()
    return [AvailabilityRead.model_validate(slot) for slot in slots]


@router.put(
    "",
    response_model=List[AvailabilityRead],
    summary="Replace Availability",
    description="Replace the whole weekly schedule in one transaction.",
    responses={422: {"description": "A slot does not start before it ends"}},
)
async def replace_availability(
    slots: List[AvailabilitySlot], session: SessionDep, tenant: TenantDep
) -> List[AvailabilityRead]:
    saved = await AvailabilityRepository(session, tenant.organization_id).replace_all(
        Availability(organization_id=tenant.organization_id, **slot.model_dump()) for slot in slots
    )
    return [AvailabilityRead.model_validate(slot) for slot in saved]
