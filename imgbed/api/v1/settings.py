from __future__ import annotations

from fastapi import APIRouter, Depends

from imgbed.api.v1.deps import get_kv
from imgbed.db.kv import KVStore
from imgbed.models.app_settings import AppSettings
from imgbed.schemas.settings import AppSettingsPatch
from imgbed.services.app_settings import load_app_settings, update_app_settings
from imgbed.services.auth import AuthUser, get_current_user

router = APIRouter(prefix="/admin/settings", tags=["settings"])


@router.get("", response_model=AppSettings)
async def read_settings(
    kv: KVStore = Depends(get_kv),
    _current_user: AuthUser = Depends(get_current_user),
) -> AppSettings:
    return await load_app_settings(kv)


@router.api_route("", methods=["PUT", "POST", "PATCH"], response_model=AppSettings)
async def patch_settings(
    payload: AppSettingsPatch,
    kv: KVStore = Depends(get_kv),
    _current_user: AuthUser = Depends(get_current_user),
) -> AppSettings:
    return await update_app_settings(kv, payload.model_dump(exclude_unset=True))
