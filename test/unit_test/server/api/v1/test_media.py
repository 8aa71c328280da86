import httpx
import pytest

from serviceos.core.database.entities.files import AiStatus
from serviceos.core.database.repositories.files import FileRepository
from serviceos.core.errors import IntegrationError

BASE = "/api/v1/media"
IMAGE_BYTES = b"\xff\xd8\xff\xe0fake-jpeg"


async def _stored(session_factory, organization, file_id):
    # A fresh session sees what the background analysis committed.
    async with session_factory() as fresh:
        return await FileRepository(fresh, organization.id).get_by_id(file_id)


class TestUpload:
    async def test_upload_then_background_analysis(self, client, storage, analyzer, session_factory, organization):
        response = await client.post(
            f"{BASE}/upload",
            files={"file": ("portrait.jpg", IMAGE_BYTES, "image/jpeg")},
            data={"folder": "portfolio"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["ai_status"] == "ANALYZING"
        assert body["media_type"] == "IMAGE"
        assert body["folder"] == "portfolio"
        assert body["size"] == len(IMAGE_BYTES)
        assert body["source"] == "upload"
        assert storage.uploads[0]["folder"] == f"servible/{organization.id}/media/portfolio"

        stored = await _stored(session_factory, organization, body["id"])
        assert analyzer.calls == ["portrait.jpg"]
        assert stored.ai_status == AiStatus.COMPLETE
        assert stored.ai_description == "A bright studio portrait"
        assert stored.tags == ["portrait", "studio"]

    async def test_failed_analysis_marks_file(self, client, analyzer, session_factory, organization):
        analyzer.error = IntegrationError("vision model down")

        response = await client.post(f"{BASE}/upload", files={"file": ("notes.pdf", b"%PDF-1.4", "application/pdf")})

        stored = await _stored(session_factory, organization, response.json()["id"])
        assert stored.media_type == "DOCUMENT"
        assert stored.ai_status == AiStatus.FAILED

    async def test_assign_to_client(self, client, customer):
        response = await client.post(
            f"{BASE}/upload",
            files={"file": ("contract.pdf", b"%PDF-1.4", "application/pdf")},
            data={"client_id": customer.id},
        )

        assert response.json()["client_id"] == customer.id

    async def test_unknown_client(self, client, storage):
        response = await client.post(
            f"{BASE}/upload",
            files={"file": ("contract.pdf", b"%PDF-1.4", "application/pdf")},
            data={"client_id": "missing"},
        )

        assert response.status_code == 404
        assert storage.uploads == []

    async def test_storage_failure(self, client, storage):
        storage.fail_upload = True

        response = await client.post(f"{BASE}/upload", files={"file": ("a.jpg", IMAGE_BYTES, "image/jpeg")})

        assert response.status_code == 502
        assert (await client.get("/api/v1/files/count")).json() == {"count": 0}

    async def test_file_is_required(self, client):
        assert (await client.post(f"{BASE}/upload", data={"folder": "x"})).status_code == 422


def _search_payload(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "data": [
                {
                    "id": 42,
                    "title": "Smiling family",
                    "url": "https://www.freepik.com/photo/42",
                    "image": {"source": {"url": "https://mock.cdn/thumb-42.jpg"}, "orientation": "portrait"},
                    "author": {"name": "Ana"},
                    "licenses": [{"type": "premium"}],
                }
            ],
            "meta": {"current_page": 1, "last_page": 3, "total": 51},
        },
    )


class TestFreepik:
    async def test_search(self, client, freepik):
        freepik.routes["/v1/resources"] = _search_payload

        response = await client.get(f"{BASE}/freepik", params={"query": "family", "orientation": "portrait"})

        body = response.json()
        assert body["total"] == 51
        assert body["images"][0]["thumbnail_url"] == "https://mock.cdn/thumb-42.jpg"
        assert body["images"][0]["licenses"] == ["premium"]
        sent = freepik.requests[0]
        assert sent.url.params["term"] == "family"
        assert sent.url.params["filters[orientation][portrait]"] == "1"
        assert sent.headers["x-freepik-api-key"] == "fp-test"

    async def test_search_upstream_error(self, client, freepik):
        freepik.routes["/v1/resources"] = lambda request: httpx.Response(429, json={"message": "slow down"})

        response = await client.get(f"{BASE}/freepik", params={"query": "family"})

        assert response.status_code == 502

    async def test_query_required(self, client):
        assert (await client.get(f"{BASE}/freepik")).status_code == 422

    async def test_import(self, client, freepik, storage, analyzer, session_factory, organization):
        freepik.routes["/v1/resources/42/download"] = lambda request: httpx.Response(
            200, json={"data": {"filename": "smiling-family.jpg", "url": "https://mock.cdn/download/42"}}
        )
        freepik.routes["/download/42"] = lambda request: httpx.Response(
            200, content=IMAGE_BYTES, headers={"content-type": "image/jpeg; charset=binary"}
        )

        response = await client.post(f"{BASE}/freepik", json={"resource_id": "42", "name": "Happy Family"})

        assert response.status_code == 201
        body = response.json()
        assert body["folder"] == "stock"
        assert body["tags"] == ["stock", "freepik"]
        assert body["name"] == "Happy Family"
        assert body["file_name"].startswith("happy-family-")
        assert body["file_name"].endswith(".jpg")
        assert body["mime_type"] == "image/jpeg"
        assert body["source"] == "freepik"
        assert storage.uploads[0]["data"] == IMAGE_BYTES
        assert storage.uploads[0]["folder"] == f"servible/{organization.id}/media/stock"

        stored = await _stored(session_factory, organization, body["id"])
        assert stored.ai_status == AiStatus.COMPLETE
        assert stored.tags == ["stock", "freepik", "portrait", "studio"]

    @pytest.mark.parametrize(
        "download",
        [
            lambda request: httpx.Response(200, json={"data": {}}),
            lambda request: httpx.Response(404, json={"message": "no such resource"}),
        ],
    )
    async def test_import_without_download(self, client, freepik, storage, download):
        freepik.routes["/v1/resources/42/download"] = download

        response = await client.post(f"{BASE}/freepik", json={"resource_id": "42"})

        assert response.status_code == 502
        assert storage.uploads == []
