from unittest.mock import patch

import httpx
import pytest
import pytest_asyncio

from serviceos.core.database.entities.files import AiStatus, File, MediaType, StorageProvider
from serviceos.core.database.repositories.files import FileRepository
from serviceos.core.errors import IntegrationError, NotFoundError, PayloadTooLargeError
from serviceos.integrations.freepik import FreepikClient
from serviceos.server.core.config import FreepikConfig
from serviceos.server.services.media import (
    analyze_in_background,
    delete_stored_file,
    import_stock_image,
    store_upload,
)


@pytest_asyncio.fixture
async def pending_file(session, organization) -> File:
    return await FileRepository(session, organization.id).create(
        File(
            organization_id=organization.id,
            name="Studio",
            file_name="studio.jpg",
            mime_type="image/jpeg",
            url="https://res.cloudinary.com/demo/image/upload/studio.jpg",
            media_type=MediaType.IMAGE,
            storage_key="servible/org/media/general/studio",
            tags=["Client Work"],
            ai_status=AiStatus.ANALYZING,
        )
    )


class TestStoreUpload:
    async def test_records_file(self, session, storage, organization, customer):
        file = await store_upload(
            session,
            storage,
            organization.id,
            data=b"hello",
            file_name="notes.txt",
            mime_type="text/plain",
            client_id=customer.id,
        )

        assert file.media_type == MediaType.DOCUMENT
        assert file.storage_provider == StorageProvider.CLOUDINARY
        assert file.storage_key == f"servible/{organization.id}/media/general/asset-1"
        assert file.folder is None
        assert file.client_id == customer.id
        assert file.ai_status == AiStatus.ANALYZING

    async def test_unknown_mime_type(self, session, storage, organization):
        file = await store_upload(session, storage, organization.id, data=b"\x00", file_name="blob", mime_type=None)

        assert file.mime_type == "application/octet-stream"
        assert file.media_type == MediaType.OTHER

    async def test_too_large(self, session, storage, organization):
        with patch("serviceos.server.services.media.MAX_UPLOAD_SIZE", 4):
            with pytest.raises(PayloadTooLargeError, match="50MB"):
                await store_upload(session, storage, organization.id, data=b"12345", file_name="a", mime_type=None)

        assert storage.uploads == []


class TestAnalyzeInBackground:
    async def test_complete(self, session_factory, analyzer, organization, pending_file):
        await analyze_in_background(session_factory, analyzer, organization.id, pending_file.id)

        async with session_factory() as fresh:
            stored = await FileRepository(fresh, organization.id).get_by_id(pending_file.id)
        assert stored.ai_status == AiStatus.COMPLETE
        assert stored.ai_description == "A bright studio portrait"
        assert stored.tags == ["client work", "portrait", "studio"]

    async def test_failed(self, session_factory, analyzer, organization, pending_file):
        analyzer.error = IntegrationError("timeout")

        await analyze_in_background(session_factory, analyzer, organization.id, pending_file.id)

        async with session_factory() as fresh:
            stored = await FileRepository(fresh, organization.id).get_by_id(pending_file.id)
        assert stored.ai_status == AiStatus.FAILED
        assert stored.ai_description is None

    async def test_file_gone(self, session_factory, analyzer, organization):
        await analyze_in_background(session_factory, analyzer, organization.id, "missing")

        assert analyzer.calls == []


class TestImportStockImage:
    @pytest_asyncio.fixture
    async def freepik(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/v1/resources/7/download":
                return httpx.Response(200, json={"data": {"url": "https://mock.cdn/7.png"}})
            return httpx.Response(200, content=b"png-bytes", headers={"content-type": "image/png"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            yield FreepikClient(FreepikConfig(api_key="fp-test", base_url="https://mock.freepik/v1"), client=http)

    async def test_default_name_and_folder(self, session, storage, freepik, organization):
        file = await import_stock_image(session, storage, freepik, organization.id, resource_id="7")

        # no filename from Freepik, so the extension falls back to jpg
        assert file.file_name.startswith("freepik-7-")
        assert file.file_name.endswith(".jpg")
        assert file.name == file.file_name
        assert file.mime_type == "image/png"
        assert file.folder == "stock"
        assert file.tags == ["stock", "freepik"]
        assert file.source == "freepik"

    async def test_custom_folder(self, session, storage, freepik, organization):
        file = await import_stock_image(
            session, storage, freepik, organization.id, resource_id="7", folder="hero", name="Sunny Day!"
        )

        assert file.folder == "hero"
        assert file.file_name.startswith("sunny-day-")
        assert storage.uploads[0]["folder"] == f"servible/{organization.id}/media/hero"


class TestDeleteStoredFile:
    async def test_deletes_object_and_row(self, session, storage, organization, pending_file):
        await delete_stored_file(session, storage, organization.id, pending_file.id)

        assert storage.deleted == ["servible/org/media/general/studio"]
        assert await FileRepository(session, organization.id).get_by_id(pending_file.id) is None

    async def test_storage_failure_still_deletes_row(self, session, storage, organization, pending_file):
        storage.fail_delete = True

        await delete_stored_file(session, storage, organization.id, pending_file.id)

        assert await FileRepository(session, organization.id).get_by_id(pending_file.id) is None

    async def test_unknown_file(self, session, storage, organization):
        with pytest.raises(NotFoundError):
            await delete_stored_file(session, storage, organization.id, "missing")
