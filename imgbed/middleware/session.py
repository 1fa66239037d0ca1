from __future__ import annotations

import logging
from typing import Awaitable, Callable

from fastapi import Request
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from imgbed.core.config import settings
from imgbed.services.sessions import get_session, session_cookie_name


logger = logging.getLogger(__name__)


class SessionGateMiddleware(BaseHTTPMiddleware):
    """Attach the signed-in user to ``request.state.user`` and guard admin pages."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable]):
        session_id = request.cookies.get(session_cookie_name(request.url.scheme))
        user = None
        if session_id:
            try:
                user = await get_session(request.app.state.kv, session_id)
            except Exception:
                logger.exception("Error retrieving session from the key-value store")
        request.state.user = user

        path = request.url.path
        protected = any(path.startswith(prefix) for prefix in settings.protected_prefixes)
        if protected and user is None and path != settings.login_path:
            return RedirectResponse(settings.login_path, status_code=302)
        if user is not None and path == settings.login_path:
            return RedirectResponse(settings.admin_path, status_code=302)

        return await call_next(request)
