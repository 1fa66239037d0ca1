from __future__ import annotations

import base64
import binascii

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile

from imgbed.api.v1.deps import get_kv, get_object_store, request_origin
from imgbed.db.kv import KVStore
from imgbed.schemas.image import UploadBase64In, UploadOut
from imgbed.services.auth import AuthUser, get_uploader
from imgbed.services.images import UploadItem, upload_images
from imgbed.services.storage import ObjectStore

router = APIRouter(prefix="/upload", tags=["upload"])


@router.post("", response_model=UploadOut)
async def upload_files(
    request: Request,
    files: list[UploadFile] | None = File(default=None),
    upload_directory: str | None = Form(default=None),
    kv: KVStore = Depends(get_kv),
    store: ObjectStore = Depends(get_object_store),
    uploader: AuthUser = Depends(get_uploader),
) -> UploadOut:
    items: list[UploadItem] = []
    for file in files or []:
        items.append(
            UploadItem(
                file_name=str(file.filename or ""),
                content_type=str(file.content_type or "application/octet-stream"),
                data=await file.read(),
            )
        )

    return await upload_images(
        kv,
        store,
        items,
        upload_directory=upload_directory,
        owner_id=uploader.user_id,
        origin=request_origin(request),
    )


@router.post("/base64", response_model=UploadOut)
async def upload_base64(
    payload: UploadBase64In,
    request: Request,
    kv: KVStore = Depends(get_kv),
    store: ObjectStore = Depends(get_object_store),
    uploader: AuthUser = Depends(get_uploader),
) -> UploadOut:
    content_type = str(payload.content_type or "").strip() or "application/octet-stream"
    b64 = str(payload.data_base64 or "").strip()
    if not b64:
        raise HTTPException(status_code=400, detail="Empty data_base64")
    if "," in b64 and b64.startswith("data:"):
        b64 = b64.split(",", 1)[1]

    try:
        data = base64.b64decode(b64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(status_code=400, detail="Invalid base64 payload") from exc

    item = UploadItem(file_name=str(payload.file_name or "").strip(), content_type=content_type, data=data)
    return await upload_images(
        kv,
        store,
        [item],
        upload_directory=payload.upload_directory,
        owner_id=uploader.user_id,
        origin=request_origin(request),
    )


@router.post("/raw", response_model=UploadOut)
async def upload_raw(
    request: Request,
    filename: str | None = Query(default=None),
    directory: str | None = Query(default=None),
    kv: KVStore = Depends(get_kv),
    store: ObjectStore = Depends(get_object_store),
    uploader: AuthUser = Depends(get_uploader),
) -> UploadOut:
    content_type = (request.headers.get("content-type") or "application/octet-stream").split(";", 1)[0].strip()
    item = UploadItem(
        file_name=str(filename or "").strip(),
        content_type=content_type,
        data=await request.body(),
    )
    return await upload_images(
        kv,
        store,
        [item],
        upload_directory=directory,
        owner_id=uploader.user_id,
        origin=request_origin(request),
    )
