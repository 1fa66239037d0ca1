"""Key-value store used for every structured record."""

from __future__ import annotations

import logging
from typing import Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ValidationError
from redis.asyncio import Redis


IMAGE_PREFIX = "image:"
APIKEY_RECORD_PREFIX = "apikey_record:"
APIKEY_PUBLIC_ID_PREFIX = "apikey_public_id:"
SESSION_PREFIX = "session:"
APP_SETTINGS_KEY = "config:appSettings"

ModelT = TypeVar("ModelT", bound=BaseModel)

logger = logging.getLogger(__name__)


@runtime_checkable
class KVStore(Protocol):
    """String-keyed store with prefix listing and per-key expiry."""

    async def get(self, key: str) -> str | None:
        ...

    async def put(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...

    async def list_keys(self, prefix: str) -> list[str]:
        """Return every key starting with ``prefix``."""
        ...

    async def incr(self, key: str, ttl_seconds: int) -> int:
        """Increment a counter, setting its expiry when it is created."""
        ...


class RedisKVStore:
    def __init__(self, client: Redis) -> None:
        self._client = client

    async def get(self, key: str) -> str | None:
        value = await self._client.get(key)
        if value is None:
            return None
        return value if isinstance(value, str) else value.decode("utf-8")

    async def put(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        await self._client.set(key, value, ex=ttl_seconds)

    async def delete(self, key: str) -> None:
        await self._client.delete(key)

    async def list_keys(self, prefix: str) -> list[str]:
        out: list[str] = []
        async for key in self._client.scan_iter(match=f"{prefix}*", count=500):
            out.append(key if isinstance(key, str) else key.decode("utf-8"))
        return sorted(out)

    async def incr(self, key: str, ttl_seconds: int) -> int:
        count = int(await self._client.incr(key))
        if count == 1:
            await self._client.expire(key, ttl_seconds)
        return count


async def get_record(kv: KVStore, key: str, model: type[ModelT]) -> ModelT | None:
    raw = await kv.get(key)
    if raw is None:
        return None
    return model.model_validate_json(raw)


async def put_record(kv: KVStore, key: str, record: BaseModel, ttl_seconds: int | None = None) -> None:
    await kv.put(key, record.model_dump_json(), ttl_seconds=ttl_seconds)


async def scan_records(kv: KVStore, prefix: str, model: type[ModelT]) -> list[tuple[str, ModelT]]:
    """Load and parse every record under ``prefix``; unparseable values are skipped."""
    out: list[tuple[str, ModelT]] = []
    for key in await kv.list_keys(prefix):
        raw = await kv.get(key)
        if raw is None:
            continue
        try:
            out.append((key, model.model_validate_json(raw)))
        except ValidationError:
            logger.warning("Skipping unparseable record %s", key)
    return out
