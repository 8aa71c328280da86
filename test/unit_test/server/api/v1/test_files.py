import pytest
import pytest_asyncio
from pydantic_ai.models.function import FunctionModel

from serviceos.core.database.entities.files import AiStatus, File, MediaType
from serviceos.core.database.repositories.files import FileRepository

BASE = "/api/v1/files"


def _file(organization, name, **fields) -> File:
    values = {
        "organization_id": organization.id,
        "name": name,
        "file_name": f"{name.lower().replace(' ', '-')}.jpg",
        "mime_type": "image/jpeg",
        "url": f"https://res.cloudinary.com/demo/image/upload/{name.lower().replace(' ', '-')}.jpg",
        "media_type": MediaType.IMAGE,
        "storage_key": f"servible/{organization.id}/media/general/{name.lower().replace(' ', '-')}",
    }
    values.update(fields)
    return File(**values)


@pytest_asyncio.fixture
async def library(session, organization, customer):
    files = FileRepository(session, organization.id)
    return {
        "beach": await files.create(
            _file(
                organization,
                "Beach sunset",
                folder="travel",
                tags=["beach", "summer"],
                ai_description="An elderly man holding a tablet on the beach",
                ai_status=AiStatus.COMPLETE,
            )
        ),
        "studio": await files.create(
            _file(organization, "Studio portrait", folder="portfolio", tags=["portrait"], ai_status=AiStatus.ANALYZING)
        ),
        "contract": await files.create(
            _file(
                organization,
                "Contract",
                file_name="contract.pdf",
                mime_type="application/pdf",
                media_type=MediaType.DOCUMENT,
                client_id=customer.id,
            )
        ),
    }


def _names(body):
    return sorted(file["name"] for file in body["files"])


class TestListFiles:
    async def test_everything(self, client, library):
        body = (await client.get(BASE)).json()

        assert body["total"] == 3
        assert body["page"] == 1
        assert body["total_pages"] == 1

    async def test_filters(self, client, library, customer):
        images = (await client.get(BASE, params={"media_type": "IMAGE"})).json()
        travel = (await client.get(BASE, params={"folder": "travel"})).json()
        tagged = (await client.get(BASE, params=[("tags", "portrait"), ("tags", "beach")])).json()
        assigned = (await client.get(BASE, params={"client_id": customer.id})).json()

        assert _names(images) == ["Beach sunset", "Studio portrait"]
        assert _names(travel) == ["Beach sunset"]
        assert _names(tagged) == ["Beach sunset", "Studio portrait"]
        assert _names(assigned) == ["Contract"]

    async def test_search_all_words(self, client, library):
        body = (await client.get(BASE, params={"search": "show me the tablet photos"})).json()

        assert _names(body) == ["Beach sunset"]

    async def test_search_falls_back_to_any_word(self, client, library):
        body = (await client.get(BASE, params={"search": "portrait tablet"})).json()

        assert _names(body) == ["Beach sunset", "Studio portrait"]

    async def test_pagination(self, client, library):
        body = (await client.get(BASE, params={"limit": 2, "page": 2})).json()

        assert body["total"] == 3
        assert body["total_pages"] == 2
        assert len(body["files"]) == 1

    async def test_scoped_to_organization(self, client, session, other_organization, library):
        await FileRepository(session, other_organization.id).create(_file(other_organization, "Foreign"))

        assert (await client.get(BASE)).json()["total"] == 3


class TestLibraryFacets:
    async def test_folders_tags_analyzing_count(self, client, library):
        assert await _json(client, "/folders") == ["portfolio", "travel"]
        assert await _json(client, "/tags") == ["beach", "portrait", "summer"]
        assert await _json(client, "/analyzing") == [library["studio"].id]
        assert await _json(client, "/count") == {"count": 3}


async def _json(client, path):
    return (await client.get(f"{BASE}{path}")).json()


class TestSmartSearch:
    async def test_expanded_query(self, client, assistant_model, library):
        assistant_model.fallback = '[["senior","elderly"],["ipad","tablet"]]'

        response = await client.post(f"{BASE}/smart-search", json={"query": "old man with ipad"})

        body = response.json()
        assert [file["id"] for file in body["files"]] == [library["beach"].id]
        assert body["keywords"] == ["senior", "elderly", "ipad", "tablet"]
        assert body["total"] == 1

    async def test_model_failure(self, client, library):
        from serviceos.server.main import app
        from serviceos.server.services.deps import get_assistant_model

        def explode(messages, info):
            raise RuntimeError("overloaded")

        app.dependency_overrides[get_assistant_model] = lambda: FunctionModel(explode)

        response = await client.post(f"{BASE}/smart-search", json={"query": "beach"})

        assert response.status_code == 502

    async def test_empty_query(self, client):
        assert (await client.post(f"{BASE}/smart-search", json={"query": ""})).status_code == 422


class TestSingleFile:
    async def test_get(self, client, library):
        body = (await client.get(f"{BASE}/{library['beach'].id}")).json()

        assert body["ai_status"] == "COMPLETE"
        assert body["storage_provider"] == "CLOUDINARY"

    async def test_update(self, client, library, customer):
        changes = {
            "name": "Headshot",
            "folder": "clients",
            "tags": [" Portrait ", "Headshot", "portrait"],
            "client_id": customer.id,
        }

        response = await client.patch(f"{BASE}/{library['studio'].id}", json=changes)

        body = response.json()
        assert body["name"] == "Headshot"
        assert body["folder"] == "clients"
        assert body["tags"] == ["portrait", "headshot"]
        assert body["client_id"] == customer.id

    @pytest.mark.parametrize("field", ["name", "tags"])
    async def test_update_rejects_null(self, client, library, field):
        response = await client.patch(f"{BASE}/{library['beach'].id}", json={field: None})

        assert response.status_code == 422

    async def test_update_unassigns_client(self, client, library):
        response = await client.patch(f"{BASE}/{library['contract'].id}", json={"client_id": None, "folder": None})

        body = response.json()
        assert body["client_id"] is None
        assert body["folder"] is None

    async def test_update_unknown_client(self, client, library):
        response = await client.patch(f"{BASE}/{library['studio'].id}", json={"client_id": "missing"})

        assert response.status_code == 404
        assert response.json() == {"detail": "Client not found"}

    async def test_delete_removes_stored_object(self, client, storage, library):
        response = await client.delete(f"{BASE}/{library['beach'].id}")

        assert response.status_code == 204
        assert storage.deleted == [library["beach"].storage_key]
        assert (await client.get(f"{BASE}/{library['beach'].id}")).status_code == 404

    async def test_delete_ignores_storage_failure(self, client, storage, library):
        storage.fail_delete = True

        response = await client.delete(f"{BASE}/{library['beach'].id}")

        assert response.status_code == 204
        assert (await client.get(f"{BASE}/count")).json() == {"count": 2}

    async def test_unknown_file(self, client):
        assert (await client.get(f"{BASE}/missing")).status_code == 404
        assert (await client.delete(f"{BASE}/missing")).status_code == 404
