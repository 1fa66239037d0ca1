from __future__ import annotations

import hashlib
import os
from collections.abc import AsyncIterator

os.environ["AUTH_USERNAME"] = "admin"
os.environ["AUTH_PASSWORD"] = "correct-horse"
os.environ["RATE_LIMIT_PER_MINUTE"] = "0"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from imgbed.main import app
from imgbed.services.sessions import create_session
from imgbed.services.storage import StoredObject


PNG_HEADER = b"\x89PNG\r\n\x1a\n"


def png_bytes(size: int) -> bytes:
    if size <= len(PNG_HEADER):
        return PNG_HEADER[:size]
    return PNG_HEADER + b"\x00" * (size - len(PNG_HEADER))


class MemoryKVStore:
    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def put(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        self.data[key] = value
        if ttl_seconds is not None:
            self.ttls[key] = ttl_seconds
        else:
            self.ttls.pop(key, None)

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)
        self.ttls.pop(key, None)

    async def list_keys(self, prefix: str) -> list[str]:
        return sorted(k for k in self.data if k.startswith(prefix))

    async def incr(self, key: str, ttl_seconds: int) -> int:
        count = int(self.data.get(key, "0")) + 1
        self.data[key] = str(count)
        if count == 1:
            self.ttls[key] = ttl_seconds
        return count


class MemoryObjectStore:
    def __init__(self) -> None:
        self.objects: dict[str, StoredObject] = {}

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        etag = '"' + hashlib.md5(data).hexdigest() + '"'
        self.objects[key] = StoredObject(key=key, body=data, content_type=content_type, etag=etag)

    async def get(self, key: str) -> StoredObject | None:
        return self.objects.get(key)

    async def copy(self, source_key: str, target_key: str) -> None:
        source = self.objects.get(source_key)
        if source is None:
            raise FileNotFoundError(source_key)
        self.objects[target_key] = StoredObject(
            key=target_key,
            body=source.body,
            content_type=source.content_type,
            etag=source.etag,
            cache_control=source.cache_control,
        )

    async def delete(self, key: str) -> None:
        self.objects.pop(key, None)


@pytest.fixture
def kv() -> MemoryKVStore:
    return MemoryKVStore()


@pytest.fixture
def object_store() -> MemoryObjectStore:
    return MemoryObjectStore()


@pytest_asyncio.fixture
async def client(kv: MemoryKVStore, object_store: MemoryObjectStore) -> AsyncIterator[AsyncClient]:
    app.state.kv = kv
    app.state.object_store = object_store
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as c:
        yield c


@pytest_asyncio.fixture
async def admin_client(client: AsyncClient, kv: MemoryKVStore) -> AsyncClient:
    session = await create_session(kv, "admin")
    client.cookies.set("sid", session.session_id)
    return client
