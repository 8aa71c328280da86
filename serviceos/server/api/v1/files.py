"""
API endpoints for the file library.

Keyword listing with filters and pagination, LLM-expanded smart search,
metadata edits and deletion (storage object first, then the row).
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Query, status

from serviceos.assistants.files import smart_search
from serviceos.core.database.entities.files import MediaType
from serviceos.core.database.repositories.files import DEFAULT_PAGE_SIZE, FileRepository
from serviceos.core.database.repositories.organizations import ClientRepository
from serviceos.core.models.io.files import (
    FileListResponse,
    FileRead,
    FileUpdate,
    SmartSearchRequest,
    SmartSearchResponse,
)
from serviceos.server.services.deps import AssistantModelDep, SessionDep, StorageDep, TenantDep
from serviceos.server.services.media import delete_stored_file

router = APIRouter(tags=["files"])


@router.get(
    "",
    response_model=FileListResponse,
    summary="List Files",
    description=(
        "List files newest first. Every meaningful word of `search` must match the name, file name, "
        "AI description or a tag; when that finds nothing, files matching any word are returned."
    ),
)
async def list_files(
    session: SessionDep,
    tenant: TenantDep,
    search: Optional[str] = None,
    media_type: Optional[MediaType] = None,
    folder: Optional[str] = None,
    tags: Optional[List[str]] = Query(default=None),
    client_id: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=200),
) -> FileListResponse:
    result = await FileRepository(session, tenant.organization_id).search(
        search=search,
        media_type=media_type,
        folder=folder,
        tags=tags,
        client_id=client_id,
        page=page,
        limit=limit,
    )
    return FileListResponse(
        files=[FileRead.model_validate(file) for file in result.files],
        total=result.total,
        page=result.page,
        total_pages=result.total_pages,
    )


@router.get("/folders", response_model=List[str], summary="List Folders")
async def list_folders(session: SessionDep, tenant: TenantDep) -> List[str]:
    return await FileRepository(session, tenant.organization_id).folders()


@router.get("/tags", response_model=List[str], summary="List Tags")
async def list_tags(session: SessionDep, tenant: TenantDep) -> List[str]:
    return await FileRepository(session, tenant.organization_id).all_tags()


@router.get(
    "/analyzing",
    response_model=List[str],
    summary="Files Being Analyzed",
    description="Ids of files whose AI analysis is still running; clients poll this to refresh.",
)
async def analyzing_files(session: SessionDep, tenant: TenantDep) -> List[str]:
    return await FileRepository(session, tenant.organization_id).analyzing_ids()


@router.get("/count", summary="Count Files")
async def count_files(session: SessionDep, tenant: TenantDep):
    return {"count": await FileRepository(session, tenant.organization_id).count()}


@router.post(
    "/smart-search",
    response_model=SmartSearchResponse,
    summary="Smart Search",
    description=(
        "Expand the query into concept groups with the assistant model and match files on every group; "
        "the last group is dropped when nothing matches."
    ),
    responses={502: {"description": "Assistant request failed"}},
)
async def smart_search_files(
    payload: SmartSearchRequest, session: SessionDep, tenant: TenantDep, model: AssistantModelDep
) -> SmartSearchResponse:
    page, keywords = await smart_search(
        model, FileRepository(session, tenant.organization_id), payload.query, limit=payload.limit
    )
    return SmartSearchResponse(
        files=[FileRead.model_validate(file) for file in page.files], total=page.total, keywords=keywords
    )


@router.get(
    "/{file_id}",
    response_model=FileRead,
    summary="Get File",
    responses={404: {"description": "File not found"}},
)
async def get_file(file_id: str, session: SessionDep, tenant: TenantDep) -> FileRead:
    return FileRead.model_validate(await FileRepository(session, tenant.organization_id).get_or_raise(file_id))


@router.patch(
    "/{file_id}",
    response_model=FileRead,
    summary="Update File",
    description="Rename, move, retag or reassign a file.",
    responses={404: {"description": "File or client not found"}},
)
async def update_file(file_id: str, payload: FileUpdate, session: SessionDep, tenant: TenantDep) -> FileRead:
    files = FileRepository(session, tenant.organization_id)
    file = await files.get_or_raise(file_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("client_id"):
        await ClientRepository(session, tenant.organization_id).get_or_raise(changes["client_id"])
    return FileRead.model_validate(await files.apply_changes(file, changes))


@router.delete(
    "/{file_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete File",
    description="Delete the stored object, then the file record. Storage failures are logged and ignored.",
    responses={404: {"description": "File not found"}},
)
async def delete_file(file_id: str, session: SessionDep, tenant: TenantDep, storage: StorageDep) -> None:
    await delete_stored_file(session, storage, tenant.organization_id, file_id)
