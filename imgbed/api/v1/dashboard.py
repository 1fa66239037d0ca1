from __future__ import annotations

from fastapi import APIRouter, Depends

from imgbed.api.v1.deps import get_kv
from imgbed.db.kv import KVStore
from imgbed.schemas.settings import DashboardStatsOut
from imgbed.services.apikeys import count_active_keys
from imgbed.services.auth import AuthUser, get_current_user
from imgbed.services.images import count_images

router = APIRouter(prefix="/admin", tags=["dashboard"])


@router.get("/dashboard-stats", response_model=DashboardStatsOut)
async def dashboard_stats(
    kv: KVStore = Depends(get_kv),
    _current_user: AuthUser = Depends(get_current_user),
) -> DashboardStatsOut:
    return DashboardStatsOut(
        total_image_count=await count_images(kv),
        active_api_key_count=await count_active_keys(kv),
    )
