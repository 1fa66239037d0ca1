from __future__ import annotations

import hmac
from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException, Request, status

from imgbed.api.v1.deps import get_kv
from imgbed.core.config import settings
from imgbed.db.kv import KVStore
from imgbed.models.session import SessionRecord
from imgbed.services.apikeys import validate_key


@dataclass(slots=True)
class AuthUser:
    user_id: str
    username: str
    via: str = "session"
    api_key_id: str | None = None


def _session_user(request: Request) -> AuthUser | None:
    session: SessionRecord | None = getattr(request.state, "user", None)
    if session is None:
        return None
    return AuthUser(user_id=session.user_id, username=session.username)


def check_credentials(username: str, password: str) -> bool:
    if not settings.auth_configured:
        raise HTTPException(status_code=500, detail="Authentication credentials not configured")
    user_ok = hmac.compare_digest(username.encode("utf-8"), settings.auth_username.encode("utf-8"))
    password_ok = hmac.compare_digest(password.encode("utf-8"), settings.auth_password.encode("utf-8"))
    return user_ok and password_ok


async def get_current_user(request: Request) -> AuthUser:
    user = _session_user(request)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return user


async def get_uploader(
    request: Request,
    kv: KVStore = Depends(get_kv),
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
) -> AuthUser:
    user = _session_user(request)
    if user is not None:
        return user

    record = await validate_key(kv, x_api_key)
    if record is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return AuthUser(user_id=record.user_id, username=record.name, via="api_key", api_key_id=record.id)
