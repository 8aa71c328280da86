"""
API endpoints for the site builder.

Sites with their pages, navigation and theme. Every nested route first checks
that the site belongs to the calling organization.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, status

from serviceos.core.database.entities.sites import NavigationItem
from serviceos.core.database.repositories.sites import PageRepository, SiteRepository
from serviceos.core.errors import NotFoundError
from serviceos.core.logging_config import get_logger
from serviceos.core.models.io.sites import (
    NavigationItemIn,
    NavigationItemRead,
    PageCreate,
    PageRead,
    PageUpdate,
    SiteCreate,
    SiteRead,
    SiteUpdate,
    ThemeRead,
    ThemeUpdate,
)
from serviceos.server.services.deps import AdminDep, SessionDep, TenantDep

logger = get_logger(__name__)

router = APIRouter(tags=["sites"])


@router.get(
    "",
    response_model=List[SiteRead],
    summary="List Sites",
    description="Sites newest first with their page counts.",
)
async def list_sites(session: SessionDep, tenant: TenantDep) -> List[SiteRead]:
    rows = await SiteRepository(session, tenant.organization_id).list_with_page_counts()
    return [SiteRead.model_validate(site).model_copy(update={"page_count": count}) for site, count in rows]


@router.post(
    "",
    response_model=SiteRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Site",
    description="Create a draft site with a default theme and a homepage.",
    responses={409: {"description": "This subdomain is already taken"}},
)
async def create_site(payload: SiteCreate, session: SessionDep, tenant: TenantDep) -> SiteRead:
    site = await SiteRepository(session, tenant.organization_id).create_site(
        payload.name, payload.subdomain, payload.description
    )
    logger.info(f"Created site {site.id} ({site.subdomain}) for organization {tenant.organization_id}")
    return SiteRead.model_validate(site).model_copy(update={"page_count": 1})


@router.get(
    "/{site_id}",
    response_model=SiteRead,
    summary="Get Site",
    responses={404: {"description": "Site not found"}},
)
async def get_site(site_id: str, session: SessionDep, tenant: TenantDep) -> SiteRead:
    return SiteRead.model_validate(await SiteRepository(session, tenant.organization_id).get_or_raise(site_id))


@router.patch(
    "/{site_id}",
    response_model=SiteRead,
    summary="Update Site",
    responses={
        404: {"description": "Site not found"},
        409: {"description": "This subdomain is already taken"},
    },
)
async def update_site(site_id: str, payload: SiteUpdate, session: SessionDep, tenant: TenantDep) -> SiteRead:
    site = await SiteRepository(session, tenant.organization_id).update_site(
        site_id, payload.model_dump(exclude_unset=True)
    )
    return SiteRead.model_validate(site)


@router.delete(
    "/{site_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Site",
    description="Delete a site with its pages, navigation, theme and blog publications. Requires the ADMIN role.",
    responses={
        403: {"description": "Insufficient permissions"},
        404: {"description": "Site not found"},
    },
)
async def delete_site(site_id: str, session: SessionDep, tenant: AdminDep) -> None:
    await SiteRepository(session, tenant.organization_id).delete_site(site_id)
    logger.info(f"Deleted site {site_id} of organization {tenant.organization_id}")


@router.get("/{site_id}/pages", response_model=List[PageRead], summary="List Pages")
async def list_pages(site_id: str, session: SessionDep, tenant: TenantDep) -> List[PageRead]:
    pages = await PageRepository(session, tenant.organization_id).list_pages(site_id)
    return [PageRead.model_validate(page) for page in pages]


@router.post(
    "/{site_id}/pages",
    response_model=PageRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Page",
    responses={409: {"description": "A page with this slug already exists"}},
)
async def create_page(site_id: str, payload: PageCreate, session: SessionDep, tenant: TenantDep) -> PageRead:
    data = payload.model_dump()
    page = await PageRepository(session, tenant.organization_id).create_page(
        site_id, data.pop("title"), data.pop("slug"), **data
    )
    return PageRead.model_validate(page)


@router.get(
    "/{site_id}/pages/{page_id}",
    response_model=PageRead,
    summary="Get Page",
    responses={404: {"description": "Site or page not found"}},
)
async def get_page(site_id: str, page_id: str, session: SessionDep, tenant: TenantDep) -> PageRead:
    return PageRead.model_validate(await PageRepository(session, tenant.organization_id).get_page(site_id, page_id))


@router.patch(
    "/{site_id}/pages/{page_id}",
    response_model=PageRead,
    summary="Update Page",
    responses={409: {"description": "A page with this slug already exists"}},
)
async def update_page(
    site_id: str, page_id: str, payload: PageUpdate, session: SessionDep, tenant: TenantDep
) -> PageRead:
    page = await PageRepository(session, tenant.organization_id).update_page(
        site_id, page_id, payload.model_dump(exclude_unset=True)
    )
    return PageRead.model_validate(page)


@router.delete(
    "/{site_id}/pages/{page_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Page",
    responses={409: {"description": "Cannot delete the homepage"}},
)
async def delete_page(site_id: str, page_id: str, session: SessionDep, tenant: TenantDep) -> None:
    await PageRepository(session, tenant.organization_id).delete_page(site_id, page_id)


@router.get("/{site_id}/navigation", response_model=List[NavigationItemRead], summary="Get Navigation")
async def get_navigation(site_id: str, session: SessionDep, tenant: TenantDep) -> List[NavigationItemRead]:
    items = await SiteRepository(session, tenant.organization_id).navigation(site_id)
    return [NavigationItemRead.model_validate(item) for item in items]


@router.put(
    "/{site_id}/navigation",
    response_model=List[NavigationItemRead],
    summary="Replace Navigation",
    description="Replace every navigation entry; positions follow the order of the request.",
)
async def replace_navigation(
    site_id: str, items: List[NavigationItemIn], session: SessionDep, tenant: TenantDep
) -> List[NavigationItemRead]:
    saved = await SiteRepository(session, tenant.organization_id).replace_navigation(
        site_id, [NavigationItem(site_id=site_id, **item.model_dump()) for item in items]
    )
    return [NavigationItemRead.model_validate(item) for item in saved]


@router.get(
    "/{site_id}/theme",
    response_model=ThemeRead,
    summary="Get Theme",
    responses={404: {"description": "Site or theme not found"}},
)
async def get_theme(site_id: str, session: SessionDep, tenant: TenantDep) -> ThemeRead:
    theme = await SiteRepository(session, tenant.organization_id).theme(site_id)
    if theme is None:
        raise NotFoundError("Theme not found")
    return ThemeRead.model_validate(theme)


@router.put(
    "/{site_id}/theme",
    response_model=ThemeRead,
    summary="Update Theme",
    description="Create or update the site theme.",
)
async def upsert_theme(site_id: str, payload: ThemeUpdate, session: SessionDep, tenant: TenantDep) -> ThemeRead:
    theme = await SiteRepository(session, tenant.organization_id).upsert_theme(
        site_id, payload.model_dump(exclude_unset=True, exclude_none=True)
    )
    return ThemeRead.model_validate(theme)
