from typing import AsyncGenerator, Callable, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from serviceos.core.database import get_session
from serviceos.core.errors import IntegrationError
from serviceos.integrations.file_analyzer import FileAnalysis
from serviceos.integrations.freepik import FreepikClient
from serviceos.integrations.storage import UploadResult
from serviceos.server.core.config import FreepikConfig
from serviceos.server.core.constant import ORGANIZATION_HEADER, USER_HEADER
from serviceos.server.main import app
from serviceos.server.services.deps import (
    get_assistant_model,
    get_file_analyzer,
    get_freepik,
    get_session_factory,
    get_storage,
)

FREEPIK_BASE_URL = "https://mock.freepik/v1"


class FakeStorage:
    """In-memory stand-in for ``MediaStorage``."""

    def __init__(self) -> None:
        self.uploads: List[Dict] = []
        self.deleted: List[str] = []
        self.fail_upload = False
        self.fail_delete = False

    def media_folder(self, organization_id: str, folder: Optional[str] = None) -> str:
        return f"servible/{organization_id}/media/{folder or 'general'}"

    async def upload(self, data: bytes, *, folder: str, mime_type: Optional[str]) -> UploadResult:
        if self.fail_upload:
            raise IntegrationError("Cloudinary upload failed: quota exceeded")
        public_id = f"{folder}/asset-{len(self.uploads) + 1}"
        self.uploads.append({"data": data, "folder": folder, "mime_type": mime_type})
        return UploadResult(
            public_id=public_id,
            secure_url=f"https://res.cloudinary.com/demo/image/upload/{public_id}.jpg",
            bytes=len(data),
            resource_type="image",
            width=800,
            height=600,
        )

    async def delete(self, file) -> None:
        if self.fail_delete:
            raise IntegrationError("Cloudinary destroy failed")
        self.deleted.append(file.storage_key)


class FakeAnalyzer:
    """Answers every analysis with a fixed result, or fails."""

    def __init__(self) -> None:
        self.analysis = FileAnalysis(description="A bright studio portrait", suggested_tags=["portrait", "studio"])
        self.error: Optional[Exception] = None
        self.calls: List[str] = []

    async def analyze(self, *, url: str, mime_type: str, file_name: str) -> FileAnalysis:
        self.calls.append(file_name)
        if self.error:
            raise self.error
        return self.analysis


class FreepikStub:
    """MockTransport handler with per-path canned responses."""

    def __init__(self) -> None:
        self.routes: Dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(request.url.path)
        if handler is None:
            return httpx.Response(404, json={"message": "not found"})
        return handler(request)


@pytest.fixture
def assistant_model(scripted_model):
    """Scripted model behind every assistant request; append responses to ``responses``."""
    return scripted_model()


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def analyzer() -> FakeAnalyzer:
    return FakeAnalyzer()


@pytest.fixture
def freepik() -> FreepikStub:
    return FreepikStub()


@pytest.fixture
def owner_headers(organization, owner) -> Dict[str, str]:
    return {ORGANIZATION_HEADER: organization.id, USER_HEADER: owner.id}


@pytest.fixture
def viewer_headers(organization, viewer) -> Dict[str, str]:
    return {ORGANIZATION_HEADER: organization.id, USER_HEADER: viewer.id}


@pytest_asyncio.fixture(name="client")
async def client_fixture(
    session, session_factory, assistant_model, storage, analyzer, freepik, owner_headers
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client with overridden dependencies, acting as the organization owner."""

    async def get_session_override():
        yield session

    async def get_freepik_override():
        async with httpx.AsyncClient(transport=httpx.MockTransport(freepik)) as http:
            yield FreepikClient(FreepikConfig(api_key="fp-test", base_url=FREEPIK_BASE_URL), client=http)

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_assistant_model] = lambda: assistant_model.model
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_file_analyzer] = lambda: analyzer
    app.dependency_overrides[get_freepik] = get_freepik_override

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://localhost", headers=owner_headers
    ) as client:
        yield client

    app.dependency_overrides.clear()
