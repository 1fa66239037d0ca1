from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from imgbed.api.v1.router import api_router
from imgbed.api.v1.serve import router as serve_router
from imgbed.core.config import settings
from imgbed.core.logging import configure_logging
from imgbed.db.kv import KVStore, RedisKVStore
from imgbed.middleware.rate_limit import RedisRateLimitMiddleware
from imgbed.middleware.session import SessionGateMiddleware
from imgbed.services.storage import ObjectStore, S3ObjectStore


configure_logging()

logger = logging.getLogger(__name__)


async def _unhandled_exception(request: Request, exc: Exception) -> ORJSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return ORJSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(
    *,
    kv: KVStore | None = None,
    object_store: ObjectStore | None = None,
    rate_limit_per_minute: int | None = None,
) -> FastAPI:
    app = FastAPI(title=settings.app_name, default_response_class=ORJSONResponse, version="0.1.0")

    if kv is None:
        from imgbed.db.redis import redis_client

        kv = RedisKVStore(redis_client)
    app.state.kv = kv
    app.state.object_store = object_store or S3ObjectStore(settings)

    # Starlette runs the last-added middleware first: CORS, then rate limit, then the session gate.
    app.add_middleware(SessionGateMiddleware)
    app.add_middleware(RedisRateLimitMiddleware, limit_per_minute=rate_limit_per_minute)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(Exception, _unhandled_exception)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(api_router, prefix=settings.api_prefix)
    Instrumentator().instrument(app).expose(app)

    # Catch-all image route goes last so it never shadows the API.
    app.include_router(serve_router)
    return app


app = create_app()
