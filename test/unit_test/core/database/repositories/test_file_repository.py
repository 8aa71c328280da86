"""Unit tests for the file library repository."""

from __future__ import annotations

import pytest
import pytest_asyncio

from serviceos.core.database.entities.files import AiStatus, File, MediaType
from serviceos.core.database.repositories.files import FileRepository, normalize_tags


def _file(organization, name: str, **fields) -> File:
    values = {
        "organization_id": organization.id,
        "name": name,
        "file_name": f"{name.lower().replace(' ', '-')}.jpg",
        "mime_type": "image/jpeg",
        "url": f"https://res.cloudinary.com/demo/image/upload/{name.lower().replace(' ', '-')}.jpg",
        "media_type": MediaType.IMAGE,
        "ai_status": AiStatus.COMPLETE,
    }
    values.update(fields)
    return File(**values)


@pytest_asyncio.fixture
async def library(session, organization, customer):
    files = FileRepository(session, organization.id)
    beach = await files.create(
        _file(
            organization,
            "Beach sunset",
            ai_description="An elderly man holding a tablet on the beach",
            tags=["beach", "sunset"],
            folder="travel",
        )
    )
    office = await files.create(
        _file(
            organization,
            "Office team",
            ai_description="A young woman typing on a laptop",
            tags=["office"],
            folder="work",
        )
    )
    contract = await files.create(
        _file(
            organization,
            "Contract",
            file_name="contract.pdf",
            mime_type="application/pdf",
            media_type=MediaType.DOCUMENT,
            tags=["legal"],
            client_id=customer.id,
            ai_status=AiStatus.ANALYZING,
        )
    )
    return {"beach": beach, "office": office, "contract": contract}


def _ids(files):
    return {file.id for file in files}


def test_normalize_tags():
    assert normalize_tags([" Beach ", "beach", "", "SUNSET"]) == ["beach", "sunset"]


class TestSearch:
    async def test_every_word_must_match(self, session, organization, library):
        result = await FileRepository(session, organization.id).search("beach tablet")

        assert _ids(result.files) == {library["beach"].id}
        assert result.total == 1

    async def test_falls_back_to_any_word(self, session, organization, library):
        result = await FileRepository(session, organization.id).search("beach laptop")

        assert _ids(result.files) == {library["beach"].id, library["office"].id}

    async def test_single_word_does_not_fall_back(self, session, organization, library):
        result = await FileRepository(session, organization.id).search("sunset", media_type=MediaType.DOCUMENT)

        assert result.total == 0

    async def test_stop_words_only_lists_everything(self, session, organization, library):
        result = await FileRepository(session, organization.id).search("show the images")

        assert result.total == 3

    async def test_matches_tags_and_file_names(self, session, organization, library):
        files = FileRepository(session, organization.id)

        assert _ids((await files.search("legal")).files) == {library["contract"].id}
        assert _ids((await files.search("contract.pdf")).files) == {library["contract"].id}

    async def test_filters(self, session, organization, customer, library):
        files = FileRepository(session, organization.id)

        assert _ids((await files.search(folder="travel")).files) == {library["beach"].id}
        assert _ids((await files.search(tags=["office", "legal"])).files) == {
            library["office"].id,
            library["contract"].id,
        }
        assert _ids((await files.search(client_id=customer.id)).files) == {library["contract"].id}
        assert _ids((await files.search(media_type=MediaType.DOCUMENT)).files) == {library["contract"].id}

    async def test_pagination(self, session, organization, library):
        result = await FileRepository(session, organization.id).search(page=2, limit=2)

        assert len(result.files) == 1
        assert result.total == 3
        assert result.total_pages == 2

    async def test_scoped_to_organization(self, session, other_organization, library):
        assert (await FileRepository(session, other_organization.id).search()).total == 0


async def test_matching_uses_whole_query(session, organization, library):
    files = FileRepository(session, organization.id)

    assert _ids(await files.matching("man holding")) == {library["beach"].id}
    assert await files.matching("beach laptop") == []
    assert _ids(await files.matching("o", media_type=MediaType.DOCUMENT)) == {library["contract"].id}
    assert len(await files.matching("a", limit=1)) == 1


class TestConceptSearch:
    async def test_every_group_must_match(self, session, organization, library):
        groups = [["elderly", "senior"], ["man", "male"], ["tablet", "ipad"]]

        result = await FileRepository(session, organization.id).search_concepts(groups)

        assert _ids(result.files) == {library["beach"].id}

    async def test_synonyms_are_alternatives(self, session, organization, library):
        result = await FileRepository(session, organization.id).search_concepts([["notebook", "laptop"]])

        assert _ids(result.files) == {library["office"].id}

    async def test_drops_last_group_when_nothing_matches(self, session, organization, library):
        groups = [["elderly"], ["man"], ["unicorn"]]

        result = await FileRepository(session, organization.id).search_concepts(groups)

        assert _ids(result.files) == {library["beach"].id}

    async def test_two_groups_are_not_relaxed(self, session, organization, library):
        result = await FileRepository(session, organization.id).search_concepts([["elderly"], ["unicorn"]])

        assert result.total == 0


async def test_listings(session, organization, customer, library):
    files = FileRepository(session, organization.id)

    assert await files.folders() == ["travel", "work"]
    assert await files.all_tags() == ["beach", "legal", "office", "sunset"]
    assert await files.analyzing_ids() == [library["contract"].id]
    assert await files.count() == 3
    assert _ids(await files.for_client(customer.id)) == {library["contract"].id}


@pytest.mark.parametrize(
    "replace,expected",
    [(False, ["office", "team"]), (True, ["team", "office"])],
)
async def test_set_tags(session, organization, library, replace, expected):
    files = FileRepository(session, organization.id)

    updated = await files.set_tags(library["office"], [" Team ", "office"], replace=replace)

    assert updated.tags == expected
