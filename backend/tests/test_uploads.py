"""Tests for the upload handler: naming modes, quota enforcement, purge."""

import re

import pytest

from opencdn.errors import BadRequest, NotAFolder, PathEscape, PayloadTooLarge
from opencdn.services.credentials import (
    UNLIMITED,
    AdminCredential,
    ApiKeyGrant,
    CredentialStore,
    Quota,
)
from opencdn.services.uploads import UploadHandler

UUID_PREFIX = r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}-"


@pytest.fixture
def tiny_store():
    grants = [
        ApiKeyGrant("small", "k-small", Quota(limit=10), "Tiny (max 10 bytes)"),
        ApiKeyGrant("medium", "k-medium", Quota(limit=100), "Medium (max 100 bytes)"),
        ApiKeyGrant("large", "k-large", UNLIMITED, "Large (unlimited)"),
    ]
    return CredentialStore(grants, AdminCredential("admin", "admin"))


@pytest.fixture
def handler(storage, tiny_store):
    return UploadHandler(storage, tiny_store, chunk_size=4, max_request_bytes=1000)


@pytest.fixture
def small(tiny_store):
    return tiny_store.authorize("k-small")


@pytest.fixture
def large(tiny_store):
    return tiny_store.authorize("k-large")


def _files(root):
    return sorted(p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_file())


class TestNaming:
    @pytest.mark.asyncio
    async def test_default_mode_prefixes_token(self, handler, small, stream, storage_root):
        stored = await handler.store(small, stream(b"hello"), "sample.txt")
        assert re.fullmatch(UUID_PREFIX + r"sample\.txt", stored.filename)
        assert stored.original_name == "sample.txt"
        assert stored.path == stored.filename
        assert stored.size == 5
        assert stored.url == f"http://cdn.test/files/{stored.filename}"
        assert (storage_root / stored.filename).read_bytes() == b"hello"

    @pytest.mark.asyncio
    async def test_default_mode_never_collides(self, handler, small, stream, storage_root):
        first = await handler.store(small, stream(b"one"), "same.txt")
        second = await handler.store(small, stream(b"two"), "same.txt")
        assert first.filename != second.filename
        assert len(_files(storage_root)) == 2

    @pytest.mark.asyncio
    async def test_keep_original_overwrites(self, handler, small, stream, storage_root):
        await handler.store(small, stream(b"one"), "same.txt", keep_original_name=True)
        stored = await handler.store(small, stream(b"two"), "same.txt", keep_original_name=True)
        assert stored.filename == "same.txt"
        assert _files(storage_root) == ["same.txt"]
        assert (storage_root / "same.txt").read_bytes() == b"two"

    @pytest.mark.asyncio
    async def test_client_directories_stripped(self, handler, small, stream, storage_root):
        stored = await handler.store(small, stream(b"x"), "../../evil.txt", keep_original_name=True)
        assert stored.path == "evil.txt"
        assert (storage_root / "evil.txt").exists()

    @pytest.mark.asyncio
    async def test_windows_style_name_stripped(self, handler, small, stream):
        stored = await handler.store(small, stream(b"x"), "C:\\Users\\me\\pic.png", keep_original_name=True)
        assert stored.filename == "pic.png"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", [None, "", "..", "dir/.."])
    async def test_invalid_name(self, handler, small, stream, name):
        with pytest.raises(BadRequest):
            await handler.store(small, stream(b"x"), name)

    @pytest.mark.asyncio
    async def test_missing_stream(self, handler, small):
        with pytest.raises(BadRequest):
            await handler.store(small, None, "a.txt")


class TestDestination:
    @pytest.mark.asyncio
    async def test_folder_created_with_parents(self, handler, small, stream, storage_root):
        stored = await handler.store(small, stream(b"x"), "a.txt", folder="x/y", keep_original_name=True)
        assert stored.path == "x/y/a.txt"
        assert stored.url == "http://cdn.test/files/x/y/a.txt"
        assert (storage_root / "x" / "y" / "a.txt").exists()

    @pytest.mark.asyncio
    async def test_folder_is_a_file(self, handler, small, stream, storage_root):
        (storage_root / "f").write_bytes(b"")
        with pytest.raises(NotAFolder):
            await handler.store(small, stream(b"x"), "a.txt", folder="f")

    @pytest.mark.asyncio
    async def test_folder_below_a_file(self, handler, small, stream, storage_root):
        (storage_root / "f").write_bytes(b"")
        for folder in ("f/sub", "f/a/b"):
            with pytest.raises(NotAFolder) as exc:
                await handler.store(small, stream(b"x"), "a.txt", folder=folder)
            assert exc.value.status_code == 400
        assert (storage_root / "f").is_file()

    @pytest.mark.asyncio
    async def test_folder_escape(self, handler, small, stream, storage_root):
        with pytest.raises(PathEscape):
            await handler.store(small, stream(b"x"), "a.txt", folder="../outside")
        assert not (storage_root.parent / "outside").exists()


class TestQuota:
    @pytest.mark.asyncio
    async def test_exact_quota_accepted(self, handler, small, stream, storage_root):
        stored = await handler.store(small, stream(b"x" * 10), "ok.bin")
        assert stored.size == 10
        assert (storage_root / stored.filename).exists()

    @pytest.mark.asyncio
    async def test_quota_plus_one_rejected_and_purged(self, handler, small, stream, storage_root):
        with pytest.raises(PayloadTooLarge) as exc_info:
            await handler.store(small, stream(b"x" * 11), "big.bin", keep_original_name=True)

        err = exc_info.value
        assert err.status_code == 413
        assert err.context["fileSize"] == 11
        assert err.context["maxSize"] == 10
        assert err.context["apiKeyType"] == "Tiny (max 10 bytes)"
        assert "Medium" in err.context["suggestion"]
        assert _files(storage_root) == []

    @pytest.mark.asyncio
    async def test_rejection_keeps_created_folder(self, handler, small, stream, storage_root):
        with pytest.raises(PayloadTooLarge):
            await handler.store(small, stream(b"x" * 11), "big.bin", folder="inbox")
        assert (storage_root / "inbox").is_dir()
        assert _files(storage_root) == []

    @pytest.mark.asyncio
    async def test_unlimited_grant(self, handler, large, stream):
        stored = await handler.store(large, stream(b"x" * 500), "big.bin")
        assert stored.size == 500

    @pytest.mark.asyncio
    async def test_transport_cap_aborts(self, handler, large, stream, storage_root):
        with pytest.raises(PayloadTooLarge):
            await handler.store(large, stream(b"x" * 1001), "huge.bin")
        assert _files(storage_root) == []
