from __future__ import annotations

import hashlib
import hmac
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException
from pydantic import ValidationError

from imgbed.db.kv import (
    APIKEY_PUBLIC_ID_PREFIX,
    APIKEY_RECORD_PREFIX,
    KVStore,
    get_record,
    put_record,
    scan_records,
)
from imgbed.models.apikey import ApiKeyRecord
from imgbed.models.common import utcnow
from imgbed.services.text import random_token


logger = logging.getLogger(__name__)

KEY_SCHEME = "imgbed"
KEY_KIND = "sk"
UPLOAD_PERMISSION = "upload"


@dataclass(slots=True)
class GeneratedKey:
    api_key: str
    record: ApiKeyRecord


def hash_key(full_key: str) -> str:
    return hashlib.sha256(full_key.encode("utf-8")).hexdigest()


def parse_key(presented: str | None) -> str | None:
    """Return the public part of a well-formed key, or None."""
    parts = str(presented or "").strip().split("_")
    if len(parts) != 4 or parts[0] != KEY_SCHEME or parts[1] != KEY_KIND:
        return None
    if not parts[2] or not parts[3]:
        return None
    return parts[2]


async def generate_key(
    kv: KVStore,
    *,
    user_id: str,
    name: str | None = None,
    permissions: list[str] | None = None,
    expires_in_days: int | None = None,
) -> GeneratedKey:
    key_id = random_token(16)
    public_part = random_token(12)
    secret_part = random_token(32)

    key_prefix = f"{KEY_SCHEME}_{KEY_KIND}_{public_part}"
    full_key = f"{key_prefix}_{secret_part}"

    clean_name = str(name or "").strip() or f"API Key {random_token(5)}"
    if permissions is None:
        permissions = [UPLOAD_PERMISSION]
    clean_permissions = [str(p).strip() for p in permissions if str(p).strip()]
    now = utcnow()

    record = ApiKeyRecord(
        id=key_id,
        name=clean_name,
        user_id=user_id,
        key_prefix=key_prefix,
        hashed_key=hash_key(full_key),
        created_at=now,
        expires_at=(now + timedelta(days=expires_in_days)) if expires_in_days else None,
        permissions=clean_permissions,
        status="active",
    )
    await put_record(kv, APIKEY_RECORD_PREFIX + key_id, record)
    await kv.put(APIKEY_PUBLIC_ID_PREFIX + public_part, key_id)
    logger.info("Generated API key %s for user %s", key_id, user_id)
    return GeneratedKey(api_key=full_key, record=record)


def _as_utc(value: datetime | None) -> datetime | None:
    # Naive timestamps are read as UTC.
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


async def list_active_keys(kv: KVStore, user_id: str) -> list[ApiKeyRecord]:
    rows = await scan_records(kv, APIKEY_RECORD_PREFIX, ApiKeyRecord)
    out = [record for _, record in rows if record.user_id == user_id and record.status == "active"]
    out.sort(key=lambda r: r.created_at, reverse=True)
    return out


async def count_active_keys(kv: KVStore) -> int:
    rows = await scan_records(kv, APIKEY_RECORD_PREFIX, ApiKeyRecord)
    return sum(1 for _, record in rows if record.status == "active")


async def validate_key(kv: KVStore, presented: str | None) -> ApiKeyRecord | None:
    """Resolve a presented upload key to its record, or None when it must be rejected."""
    if not presented:
        return None

    public_part = parse_key(presented)
    if public_part is None:
        logger.warning("Rejected API key with invalid format")
        return None

    record_id = await kv.get(APIKEY_PUBLIC_ID_PREFIX + public_part)
    if not record_id:
        logger.warning("No API key record for public id %s", public_part)
        return None

    try:
        record = await get_record(kv, APIKEY_RECORD_PREFIX + record_id, ApiKeyRecord)
    except ValidationError:
        logger.error("API key record %s is malformed", record_id)
        return None
    if record is None:
        logger.warning("API key index points at missing record %s", record_id)
        return None

    if record.status != "active":
        logger.warning("API key %s is not active (status=%s)", record_id, record.status)
        return None
    expires_at = _as_utc(record.expires_at)
    if expires_at is not None and expires_at <= utcnow():
        logger.warning("API key %s expired at %s", record_id, expires_at.isoformat())
        return None
    if not hmac.compare_digest(record.hashed_key, hash_key(presented.strip())):
        logger.warning("API key %s hash mismatch", record_id)
        return None
    if UPLOAD_PERMISSION not in record.permissions:
        logger.warning("API key %s lacks '%s' permission", record_id, UPLOAD_PERMISSION)
        return None

    record.last_used_at = utcnow()
    await put_record(kv, APIKEY_RECORD_PREFIX + record_id, record)
    return record


async def revoke_key(kv: KVStore, *, key_id: str, user_id: str) -> None:
    key_id = str(key_id or "").strip()
    if not key_id:
        raise HTTPException(status_code=400, detail="Missing key id")

    record = await get_record(kv, APIKEY_RECORD_PREFIX + key_id, ApiKeyRecord)
    if record is None:
        raise HTTPException(status_code=404, detail="API key not found")
    if record.user_id != user_id:
        raise HTTPException(status_code=403, detail="Forbidden")

    await kv.delete(APIKEY_RECORD_PREFIX + key_id)
    if record.public_part:
        await kv.delete(APIKEY_PUBLIC_ID_PREFIX + record.public_part)
    logger.info("Revoked API key %s", key_id)
