"""Test fixtures: temporary storage root, services and FastAPI test client."""

import io
import os
import tempfile

# Keep the module-level app in opencdn.main away from the real storage root
os.environ.setdefault("OPENCDN_STORAGE_PATH", tempfile.mkdtemp(prefix="opencdn-test-"))

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from opencdn.config import Settings
from opencdn.main import create_app
from opencdn.services import init_services, shutdown_services
from opencdn.services.credentials import CredentialStore
from opencdn.services.storage import StorageService

FILES_BASE_URL = "http://cdn.test/files"


class AsyncBytes:
    """Minimal async stream over bytes, shaped like starlette's UploadFile.read."""

    def __init__(self, data: bytes):
        self._buf = io.BytesIO(data)

    async def read(self, size: int = -1) -> bytes:
        return self._buf.read(size)


@pytest.fixture
def storage_root(tmp_path):
    root = tmp_path / "storage"
    root.mkdir()
    return root.resolve()


@pytest.fixture
def test_settings(storage_root):
    return Settings(
        _env_file=None,
        storage_path=str(storage_root),
        public_base_url="http://cdn.test",
        upload_chunk_size=64 * 1024,
    )


@pytest.fixture
def storage(storage_root):
    return StorageService(storage_root, FILES_BASE_URL)


@pytest.fixture
def credentials(test_settings):
    return CredentialStore.from_settings(test_settings)


@pytest.fixture
def api_keys(test_settings):
    """tier -> secret key."""
    return {
        "small": test_settings.small_key,
        "medium": test_settings.medium_key,
        "large": test_settings.large_key,
    }


@pytest.fixture
def stream():
    return AsyncBytes


@pytest.fixture
def services(test_settings):
    init_services(test_settings)
    yield
    shutdown_services()


@pytest_asyncio.fixture
async def client(test_settings, services):
    """Async test client bound to a fresh app over the temporary storage root."""
    app = create_app(test_settings)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
