from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from imgbed.core.config import settings
from imgbed.services.sessions import COOKIE_NAME, SECURE_COOKIE_NAME


logger = logging.getLogger(__name__)


class RedisRateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, limit_per_minute: int | None = None):
        super().__init__(app)
        self.limit_per_minute = settings.rate_limit_per_minute if limit_per_minute is None else limit_per_minute

    @staticmethod
    def _resolve_subject(request: Request) -> str:
        """
        Prefer the presented credential when there is one.
        This keeps API-key uploaders behind one proxy from sharing a bucket.
        """
        api_key = (request.headers.get("x-api-key") or "").strip()
        if api_key:
            # Bucket by the public part only; the secret never reaches Redis.
            return f"key:{'_'.join(api_key.split('_')[:3])}"

        session_id = request.cookies.get(SECURE_COOKIE_NAME) or request.cookies.get(COOKIE_NAME)
        if session_id:
            return f"sid:{session_id}"

        forwarded = (request.headers.get("x-forwarded-for") or "").strip()
        if forwarded:
            return f"ip:{forwarded.split(',')[0].strip()}"

        real_ip = (request.headers.get("x-real-ip") or "").strip()
        if real_ip:
            return f"ip:{real_ip}"

        ip = request.client.host if request.client else "unknown"
        return f"ip:{ip}"

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable]):
        if self.limit_per_minute <= 0:
            return await call_next(request)
        if request.url.path.startswith("/health") or request.url.path.startswith("/metrics"):
            return await call_next(request)

        subject = self._resolve_subject(request)
        minute_bucket = int(time.time() // 60)
        key = f"rl:{subject}:{minute_bucket}"

        try:
            count = await request.app.state.kv.incr(key, 65)
        except Exception:
            # Fail-open when Redis is unavailable.
            logger.warning("Rate limiter unavailable, letting request through", exc_info=True)
            return await call_next(request)

        if count > self.limit_per_minute:
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded"},
                headers={"Retry-After": "60"},
            )
        return await call_next(request)
