"""
API endpoints for adding media to the file library.

Direct uploads to Cloudinary and imports from the Freepik stock photo
catalogue. New files start in ``ANALYZING`` and a background task records the
AI description.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, File, Form, Query, UploadFile, status

from serviceos.core.database.repositories.organizations import ClientRepository
from serviceos.core.models.io.files import FileRead, FreepikImportRequest
from serviceos.integrations.freepik import License, Orientation, StockSearchResult
from serviceos.server.services.deps import (
    AnalyzerDep,
    FreepikDep,
    SessionDep,
    SessionFactoryDep,
    StorageDep,
    TenantDep,
)
from serviceos.server.services.media import analyze_in_background, import_stock_image, store_upload

router = APIRouter(tags=["media"])


@router.post(
    "/upload",
    response_model=FileRead,
    status_code=status.HTTP_201_CREATED,
    summary="Upload File",
    description="Upload a file (max 50 MB) to the library; AI analysis runs in the background.",
    responses={
        413: {"description": "File exceeds 50MB limit"},
        502: {"description": "Storage upload failed"},
    },
)
async def upload_file(
    session: SessionDep,
    tenant: TenantDep,
    storage: StorageDep,
    analyzer: AnalyzerDep,
    session_factory: SessionFactoryDep,
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    folder: Optional[str] = Form(default=None),
    client_id: Optional[str] = Form(default=None),
) -> FileRead:
    if client_id:
        await ClientRepository(session, tenant.organization_id).get_or_raise(client_id)
    data = await file.read()
    stored = await store_upload(
        session,
        storage,
        tenant.organization_id,
        data=data,
        file_name=file.filename or "upload",
        mime_type=file.content_type,
        folder=folder,
        client_id=client_id,
    )
    background_tasks.add_task(analyze_in_background, session_factory, analyzer, tenant.organization_id, stored.id)
    return FileRead.model_validate(stored)


@router.get(
    "/freepik",
    response_model=StockSearchResult,
    summary="Search Stock Photos",
    responses={502: {"description": "Freepik request failed"}},
)
async def search_stock_photos(
    tenant: TenantDep,
    freepik: FreepikDep,
    query: str = Query(min_length=1),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    orientation: Optional[Orientation] = None,
    license: Optional[License] = None,
) -> StockSearchResult:
    return await freepik.search(query, page=page, limit=limit, orientation=orientation, license=license)


@router.post(
    "/freepik",
    response_model=FileRead,
    status_code=status.HTTP_201_CREATED,
    summary="Import Stock Photo",
    description="Download a Freepik photo, store it in Cloudinary and add it to the library.",
    responses={502: {"description": "Freepik or storage request failed"}},
)
async def import_stock_photo(
    payload: FreepikImportRequest,
    session: SessionDep,
    tenant: TenantDep,
    storage: StorageDep,
    freepik: FreepikDep,
    analyzer: AnalyzerDep,
    session_factory: SessionFactoryDep,
    background_tasks: BackgroundTasks,
) -> FileRead:
    stored = await import_stock_image(
        session,
        storage,
        freepik,
        tenant.organization_id,
        resource_id=payload.resource_id,
        folder=payload.folder,
        name=payload.name,
    )
    background_tasks.add_task(analyze_in_background, session_factory, analyzer, tenant.organization_id, stored.id)
    return FileRead.model_validate(stored)
