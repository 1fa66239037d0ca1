from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request

from imgbed.api.v1.deps import get_kv, get_object_store, request_origin
from imgbed.db.kv import KVStore
from imgbed.schemas.image import (
    DeleteImagesIn,
    DeleteImagesOut,
    DirectoryListingOut,
    MoveImagesIn,
    MoveImagesOut,
)
from imgbed.services.auth import AuthUser, get_current_user
from imgbed.services.images import delete_images, list_directory, move_images
from imgbed.services.storage import ObjectStore

router = APIRouter(prefix="/admin/images", tags=["images"])


@router.get("", response_model=DirectoryListingOut)
async def list_images(
    request: Request,
    path: str = Query(default=""),
    kv: KVStore = Depends(get_kv),
    _current_user: AuthUser = Depends(get_current_user),
) -> DirectoryListingOut:
    return await list_directory(kv, path, origin=request_origin(request))


@router.delete("", response_model=DeleteImagesOut)
async def remove_images(
    payload: DeleteImagesIn,
    kv: KVStore = Depends(get_kv),
    store: ObjectStore = Depends(get_object_store),
    _current_user: AuthUser = Depends(get_current_user),
) -> DeleteImagesOut:
    return await delete_images(kv, store, payload.image_ids)


@router.patch("", response_model=MoveImagesOut)
async def relocate_images(
    payload: MoveImagesIn,
    kv: KVStore = Depends(get_kv),
    store: ObjectStore = Depends(get_object_store),
    _current_user: AuthUser = Depends(get_current_user),
) -> MoveImagesOut:
    return await move_images(kv, store, payload.image_ids, payload.target_directory)
