"""
Site builder repositories.

Sites are tenant-owned; pages, navigation and theme belong to a site and are
reached through it so ownership is always checked first.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from serviceos.core.errors import ConflictError, InvalidOperationError, NotFoundError
from serviceos.core.text import to_slug

from ..base import utc_now_naive
from ..entities.blog import BlogPostPublication
from ..entities.sites import NavigationItem, Page, Site, SiteStatus, SiteTheme
from .base import TenantRepository


def hero_block(site_name: str) -> Dict[str, Any]:
    """Opening block of a freshly created homepage."""
    return {
        "id": "hero",
        "type": "hero",
        "data": {
            "heading": f"Welcome to {site_name}",
            "subheading": "",
            "buttonText": "Get in touch",
            "buttonLink": "/contact",
        },
    }


class SiteRepository(TenantRepository[Site]):
    """Repository for the organization's sites."""

    label = "Site"

    def __init__(self, session: AsyncSession, organization_id: str) -> None:
        super().__init__(session, Site, organization_id)

    async def list_with_page_counts(self) -> List[tuple[Site, int]]:
        result = await self.session.exec(
            select(Site, func.count(Page.id))
            .outerjoin(Page, Page.site_id == Site.id)
            .where(Site.organization_id == self.organization_id)
            .group_by(Site.id)
            .order_by(Site.created_at.desc())
        )
        return list(result.all())

    async def _subdomain_taken(self, subdomain: str, exclude_id: Optional[str] = None) -> bool:
        # Subdomains are unique across all organizations.
        stmt = select(Site.id).where(Site.subdomain == subdomain)
        if exclude_id is not None:
            stmt = stmt.where(Site.id != exclude_id)
        result = await self.session.exec(stmt)
        return result.first() is not None

    async def create_site(self, name: str, subdomain: str, description: Optional[str] = None) -> Site:
        """Create a draft site with a default theme and a homepage."""
        subdomain = subdomain.strip().lower()
        if await self._subdomain_taken(subdomain):
            raise ConflictError("This subdomain is already taken")

        site = Site(
            organization_id=self.organization_id,
            name=name,
            subdomain=subdomain,
            description=description,
            status=SiteStatus.DRAFT,
        )
        self.session.add(site)
        await self.session.flush()
        self.session.add(SiteTheme(site_id=site.id))
        self.session.add(
            Page(
                site_id=site.id,
                title="Home",
                slug="home",
                is_homepage=True,
                content={"blocks": [hero_block(name)]},
            )
        )
        await self.session.commit()
        await self.session.refresh(site)
        return site

    async def update_site(self, site_id: str, changes: Dict[str, Any]) -> Site:
        site = await self.get_or_raise(site_id)
        if changes.get("subdomain"):
            changes["subdomain"] = changes["subdomain"].strip().lower()
            if await self._subdomain_taken(changes["subdomain"], exclude_id=site.id):
                raise ConflictError("This subdomain is already taken")
        return await self.apply_changes(site, changes)

    async def delete_site(self, site_id: str) -> None:
        """Remove a site with its pages, navigation, theme and blog publications."""
        site = await self.get_or_raise(site_id)
        for model in (Page, NavigationItem, SiteTheme, BlogPostPublication):
            result = await self.session.exec(select(model).where(model.site_id == site.id))
            for row in result.all():
                await self.session.delete(row)
        await self.session.flush()
        await self.session.delete(site)
        await self.session.commit()

    async def get_published(self, site_id: str) -> Optional[Site]:
        """Any organization's published site; used by the unauthenticated portal."""
        result = await self.session.exec(
            select(Site).where(Site.id == site_id, Site.status == SiteStatus.PUBLISHED)
        )
        return result.one_or_none()

    async def theme(self, site_id: str) -> Optional[SiteTheme]:
        await self.get_or_raise(site_id)
        result = await self.session.exec(select(SiteTheme).where(SiteTheme.site_id == site_id))
        return result.one_or_none()

    async def upsert_theme(self, site_id: str, values: Dict[str, Any]) -> SiteTheme:
        theme = await self.theme(site_id) or SiteTheme(site_id=site_id)
        for key, value in values.items():
            setattr(theme, key, value)
        theme.updated_at = utc_now_naive()
        self.session.add(theme)
        await self.session.commit()
        await self.session.refresh(theme)
        return theme

    async def navigation(self, site_id: str) -> List[NavigationItem]:
        await self.get_or_raise(site_id)
        result = await self.session.exec(
            select(NavigationItem).where(NavigationItem.site_id == site_id).order_by(NavigationItem.position)
        )
        return list(result.all())

    async def replace_navigation(self, site_id: str, items: Iterable[NavigationItem]) -> List[NavigationItem]:
        for existing in await self.navigation(site_id):
            await self.session.delete(existing)
        await self.session.flush()
        for position, item in enumerate(items):
            item.site_id = site_id
            item.position = position
            self.session.add(item)
        await self.session.commit()
        return await self.navigation(site_id)


class PageRepository:
    """Pages of one site, reachable only when the site belongs to the organization."""

    def __init__(self, session: AsyncSession, organization_id: str) -> None:
        self.session = session
        self.sites = SiteRepository(session, organization_id)

    async def list_pages(self, site_id: str) -> List[Page]:
        """Homepage first, then alphabetical by title."""
        await self.sites.get_or_raise(site_id)
        result = await self.session.exec(
            select(Page).where(Page.site_id == site_id).order_by(Page.is_homepage.desc(), Page.title)
        )
        return list(result.all())

    async def get_page(self, site_id: str, page_id: str) -> Page:
        await self.sites.get_or_raise(site_id)
        result = await self.session.exec(select(Page).where(Page.site_id == site_id, Page.id == page_id))
        page = result.one_or_none()
        if page is None:
            raise NotFoundError("Page not found")
        return page

    async def _slug_taken(self, site_id: str, slug: str, exclude_id: Optional[str] = None) -> bool:
        stmt = select(Page.id).where(Page.site_id == site_id, Page.slug == slug)
        if exclude_id is not None:
            stmt = stmt.where(Page.id != exclude_id)
        result = await self.session.exec(stmt)
        return result.first() is not None

    async def create_page(self, site_id: str, title: str, slug: str, **fields: Any) -> Page:
        await self.sites.get_or_raise(site_id)
        slug = to_slug(slug)
        if await self._slug_taken(site_id, slug):
            raise ConflictError("A page with this slug already exists")
        page = Page(site_id=site_id, title=title, slug=slug, content={"blocks": []}, **fields)
        self.session.add(page)
        await self.session.commit()
        await self.session.refresh(page)
        return page

    async def update_page(self, site_id: str, page_id: str, changes: Dict[str, Any]) -> Page:
        page = await self.get_page(site_id, page_id)
        if changes.get("slug"):
            changes["slug"] = to_slug(changes["slug"])
            if await self._slug_taken(site_id, changes["slug"], exclude_id=page.id):
                raise ConflictError("A page with this slug already exists")
        for key, value in changes.items():
            setattr(page, key, value)
        page.updated_at = utc_now_naive()
        self.session.add(page)
        await self.session.commit()
        await self.session.refresh(page)
        return page

    async def delete_page(self, site_id: str, page_id: str) -> None:
        page = await self.get_page(site_id, page_id)
        if page.is_homepage:
            raise InvalidOperationError("Cannot delete the homepage")
        await self.session.delete(page)
        await self.session.commit()

    async def update_block(self, site_id: str, page_id: str, block_id: str, data: Dict[str, Any]) -> Page:
        """Merge ``data`` into the ``data`` of one block of the page content."""
        page = await self.get_page(site_id, page_id)
        blocks = [dict(block) for block in (page.content or {}).get("blocks", [])]
        for block in blocks:
            if block.get("id") == block_id:
                block["data"] = {**(block.get("data") or {}), **data}
                break
        else:
            raise NotFoundError("Block not found")
        return await self.update_page(site_id, page_id, {"content": {**page.content, "blocks": blocks}})
