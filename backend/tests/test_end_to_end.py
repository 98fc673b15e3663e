"""Medium key: upload 10MB, list, size, delete, list again."""

import re

import pytest
from httpx import AsyncClient

from opencdn.utils.storage import BYTES_PER_MB

TEN_MB = 10 * BYTES_PER_MB


@pytest.mark.asyncio
async def test_medium_key_upload_lifecycle(client: AsyncClient, api_keys):
    headers = {"x-api-key": api_keys["medium"]}

    resp = await client.post(
        "/api/file/upload",
        files={"file": ("video.mp4", b"\0" * TEN_MB, "video/mp4")},
        data={"keepOriginalName": "false"},
        headers=headers,
    )
    assert resp.status_code == 200
    uploaded = resp.json()["file"]
    assert uploaded["size"] == TEN_MB
    assert uploaded["sizeMB"] == "10.00"

    resp = await client.get("/api/list", params={"folder": ""}, headers=headers)
    items = resp.json()["items"]
    assert len(items) == 1
    assert items[0]["size"] == TEN_MB
    assert re.fullmatch(r"[0-9a-f-]{36}-video\.mp4", items[0]["name"])

    resp = await client.get("/api/info", headers=headers)
    assert resp.json()["totalSize"] == TEN_MB
    assert resp.json()["totalSizeMB"] == "10.00"

    resp = await client.request(
        "DELETE", "/api/file/delete", json={"filePath": items[0]["path"]}, headers=headers
    )
    assert resp.status_code == 200

    resp = await client.get("/api/list", headers=headers)
    assert resp.json()["items"] == []
