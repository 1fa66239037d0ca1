from __future__ import annotations

import logging

from pydantic import ValidationError

from imgbed.core.config import settings
from imgbed.db.kv import SESSION_PREFIX, KVStore, get_record, put_record
from imgbed.models.session import SessionRecord
from imgbed.services.text import random_token


logger = logging.getLogger(__name__)

ADMIN_USER_ID = "admin_user_01"
SECURE_COOKIE_NAME = "__Secure-sid"
COOKIE_NAME = "sid"


def session_cookie_name(scheme: str) -> str:
    return SECURE_COOKIE_NAME if scheme == "https" else COOKIE_NAME


async def create_session(kv: KVStore, username: str, *, user_id: str = ADMIN_USER_ID) -> SessionRecord:
    record = SessionRecord(session_id=random_token(32), user_id=user_id, username=username)
    await put_record(kv, SESSION_PREFIX + record.session_id, record, ttl_seconds=settings.session_ttl_seconds)
    return record


async def get_session(kv: KVStore, session_id: str | None) -> SessionRecord | None:
    if not session_id:
        return None
    try:
        return await get_record(kv, SESSION_PREFIX + session_id, SessionRecord)
    except ValidationError:
        logger.warning("Discarding malformed session record %s", session_id)
        return None


async def delete_session(kv: KVStore, session_id: str) -> None:
    await kv.delete(SESSION_PREFIX + session_id)
