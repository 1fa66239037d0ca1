from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response

from imgbed.api.v1.deps import get_kv, get_object_store
from imgbed.db.kv import KVStore
from imgbed.services.app_settings import load_app_settings
from imgbed.services.images import get_image
from imgbed.services.serving import etag_matches, referer_allowed, resolve_image_id
from imgbed.services.storage import ObjectStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["serve"])


@router.get("/{slug:path}", include_in_schema=False)
async def serve_image(
    slug: str,
    request: Request,
    kv: KVStore = Depends(get_kv),
    store: ObjectStore = Depends(get_object_store),
) -> Response:
    app_settings = await load_app_settings(kv)
    image_id = resolve_image_id(slug, app_settings)
    if image_id is None:
        raise HTTPException(status_code=404, detail="Not found")

    record = await get_image(kv, image_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Image metadata not found")

    referer = request.headers.get("referer")
    if not referer_allowed(referer, request.headers.get("host") or request.url.netloc, app_settings):
        logger.warning("Hotlink attempt blocked for %s from referer %s", record.storage_key, referer)
        raise HTTPException(status_code=403, detail="Hotlinking not allowed")

    obj = await store.get(record.storage_key)
    if obj is None:
        logger.error("Stored object %s missing for image %s", record.storage_key, image_id)
        raise HTTPException(status_code=404, detail="Image file not found in storage")

    headers: dict[str, str] = {}
    if obj.etag:
        headers["ETag"] = obj.etag
        if etag_matches(request.headers.get("if-none-match"), obj.etag):
            return Response(status_code=304, headers=headers)
    if obj.cache_control:
        headers["Cache-Control"] = obj.cache_control

    return Response(content=obj.body, media_type=obj.content_type or record.content_type, headers=headers)
