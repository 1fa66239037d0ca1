from __future__ import annotations

import logging
from collections.abc import Mapping

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from imgbed.api.v1.deps import get_kv
from imgbed.core.config import settings
from imgbed.db.kv import KVStore
from imgbed.schemas.auth import AuthUserOut, LoginOut
from imgbed.services.auth import AuthUser, check_credentials, get_current_user
from imgbed.services.sessions import create_session, delete_session, session_cookie_name

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


async def _read_credentials(request: Request) -> tuple[str, str]:
    content_type = (request.headers.get("content-type") or "").lower()
    try:
        if content_type.startswith("application/json"):
            payload = await request.json()
        else:
            payload = await request.form()
    except Exception as exc:
        raise HTTPException(status_code=400, detail="Invalid request body") from exc

    if not isinstance(payload, Mapping):
        raise HTTPException(status_code=400, detail="Invalid request body")

    username = payload.get("username")
    password = payload.get("password")
    if not isinstance(username, str) or len(username) < 3:
        raise HTTPException(status_code=400, detail="Username must be at least 3 characters long")
    if not isinstance(password, str) or len(password) < 6:
        raise HTTPException(status_code=400, detail="Password must be at least 6 characters long")
    return username, password


@router.post("/login", response_model=LoginOut)
async def login(
    request: Request,
    response: Response,
    kv: KVStore = Depends(get_kv),
) -> LoginOut:
    username, password = await _read_credentials(request)
    if not check_credentials(username, password):
        logger.warning("Failed login attempt for username=%s", username)
        raise HTTPException(status_code=401, detail="Invalid username or password.")

    session = await create_session(kv, username)
    secure = request.url.scheme == "https"
    response.set_cookie(
        session_cookie_name(request.url.scheme),
        session.session_id,
        max_age=settings.session_ttl_seconds,
        path="/",
        httponly=True,
        samesite="lax",
        secure=secure,
    )
    return LoginOut(success=True, redirect_to=settings.admin_path)


@router.api_route("/logout", methods=["GET", "POST"], response_model=LoginOut)
async def logout(
    request: Request,
    response: Response,
    kv: KVStore = Depends(get_kv),
) -> LoginOut:
    cookie_name = session_cookie_name(request.url.scheme)
    session_id = request.cookies.get(cookie_name)
    if session_id:
        try:
            await delete_session(kv, session_id)
        except Exception:
            # The cookie is still cleared so the browser is signed out either way.
            logger.exception("Error deleting session %s", session_id)

    response.delete_cookie(
        cookie_name,
        path="/",
        httponly=True,
        samesite="lax",
        secure=request.url.scheme == "https",
    )
    return LoginOut(success=True, redirect_to=settings.login_path)


@router.get("/me", response_model=AuthUserOut)
async def me(current_user: AuthUser = Depends(get_current_user)) -> AuthUserOut:
    return AuthUserOut(user_id=current_user.user_id, username=current_user.username)
