"""Unit tests for the site builder repositories."""

from __future__ import annotations

import pytest
from sqlmodel import select

from serviceos.core.database.entities.sites import NavigationItem, Page, SiteStatus, SiteTheme
from serviceos.core.database.repositories.sites import PageRepository, SiteRepository
from serviceos.core.errors import ConflictError, InvalidOperationError, NotFoundError


@pytest.fixture
def sites(session, organization) -> SiteRepository:
    return SiteRepository(session, organization.id)


@pytest.fixture
def pages(session, organization) -> PageRepository:
    return PageRepository(session, organization.id)


class TestSites:
    async def test_create_site_adds_theme_and_homepage(self, session, sites, pages):
        site = await sites.create_site("Acme", " ACME ", description="Main site")

        home = await pages.list_pages(site.id)
        assert site.subdomain == "acme"
        assert site.status == SiteStatus.DRAFT
        assert [page.slug for page in home] == ["home"]
        assert home[0].is_homepage
        assert home[0].content["blocks"][0]["data"]["heading"] == "Welcome to Acme"
        assert (await sites.theme(site.id)).primary_color == "#2563eb"

    async def test_subdomain_unique_across_organizations(self, session, sites, other_organization):
        await sites.create_site("Acme", "acme")

        with pytest.raises(ConflictError, match="subdomain"):
            await SiteRepository(session, other_organization.id).create_site("Copy", "acme")

    async def test_update_site_subdomain_conflict(self, sites):
        await sites.create_site("Acme", "acme")
        second = await sites.create_site("Promo", "promo")

        with pytest.raises(ConflictError):
            await sites.update_site(second.id, {"subdomain": "ACME"})
        renamed = await sites.update_site(second.id, {"subdomain": "promo", "name": "Promotions"})
        assert renamed.name == "Promotions"

    async def test_page_counts(self, sites, pages):
        site = await sites.create_site("Acme", "acme")
        await pages.create_page(site.id, "About", "about")

        [(listed, count)] = await sites.list_with_page_counts()

        assert listed.id == site.id
        assert count == 2

    async def test_delete_site_removes_children(self, session, sites):
        site = await sites.create_site("Acme", "acme")
        await sites.replace_navigation(site.id, [NavigationItem(label="Home", href="/")])

        await sites.delete_site(site.id)

        for model in (Page, SiteTheme, NavigationItem):
            assert (await session.exec(select(model).where(model.site_id == site.id))).all() == []
        assert await sites.get_by_id(site.id) is None

    async def test_get_published_ignores_organization(self, session, sites):
        site = await sites.create_site("Acme", "acme")
        anonymous = SiteRepository(session, "")

        assert await anonymous.get_published(site.id) is None
        await sites.update_site(site.id, {"status": SiteStatus.PUBLISHED})
        assert (await anonymous.get_published(site.id)).id == site.id

    async def test_navigation_positions_follow_order(self, sites):
        site = await sites.create_site("Acme", "acme")
        await sites.replace_navigation(site.id, [NavigationItem(label="Old", href="/old")])

        items = await sites.replace_navigation(
            site.id, [NavigationItem(label="Home", href="/"), NavigationItem(label="Blog", href="/blog")]
        )

        assert [(item.label, item.position) for item in items] == [("Home", 0), ("Blog", 1)]

    async def test_upsert_theme(self, sites):
        site = await sites.create_site("Acme", "acme")

        theme = await sites.upsert_theme(site.id, {"primary_color": "#000000", "heading_font": "Lora"})

        assert theme.primary_color == "#000000"
        assert theme.heading_font == "Lora"
        assert theme.body_font == "Inter"


class TestPages:
    async def test_slug_unique_per_site(self, sites, pages):
        site = await sites.create_site("Acme", "acme")
        other = await sites.create_site("Promo", "promo")
        await pages.create_page(site.id, "About", "About Us")

        with pytest.raises(ConflictError):
            await pages.create_page(site.id, "About again", "about-us")
        assert (await pages.create_page(other.id, "About", "about-us")).slug == "about-us"

    async def test_homepage_first(self, sites, pages):
        site = await sites.create_site("Acme", "acme")
        await pages.create_page(site.id, "About", "about")
        await pages.create_page(site.id, "Contact", "contact")

        assert [page.title for page in await pages.list_pages(site.id)] == ["Home", "About", "Contact"]

    async def test_homepage_cannot_be_deleted(self, sites, pages):
        site = await sites.create_site("Acme", "acme")
        home = (await pages.list_pages(site.id))[0]

        with pytest.raises(InvalidOperationError):
            await pages.delete_page(site.id, home.id)

    async def test_foreign_site_is_not_found(self, session, sites, other_organization):
        site = await sites.create_site("Acme", "acme")

        with pytest.raises(NotFoundError, match="Site not found"):
            await PageRepository(session, other_organization.id).list_pages(site.id)

    async def test_update_block_merges_data(self, sites, pages):
        site = await sites.create_site("Acme", "acme")
        home = (await pages.list_pages(site.id))[0]

        page = await pages.update_block(site.id, home.id, "hero", {"heading": "Hello", "badge": "New"})

        data = page.content["blocks"][0]["data"]
        assert data["heading"] == "Hello"
        assert data["badge"] == "New"
        assert data["buttonText"] == "Get in touch"

    async def test_update_unknown_block(self, sites, pages):
        site = await sites.create_site("Acme", "acme")
        home = (await pages.list_pages(site.id))[0]

        with pytest.raises(NotFoundError, match="Block not found"):
            await pages.update_block(site.id, home.id, "missing", {"heading": "Hello"})
