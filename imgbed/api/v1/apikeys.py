from __future__ import annotations

from fastapi import APIRouter, Depends, status

from imgbed.api.v1.deps import get_kv
from imgbed.db.kv import KVStore
from imgbed.models.apikey import ApiKeyRecord
from imgbed.schemas.apikey import ApiKeyCreate, ApiKeyCreatedOut, ApiKeyOut
from imgbed.schemas.common import MessageResponse
from imgbed.services.apikeys import generate_key, list_active_keys, revoke_key
from imgbed.services.auth import AuthUser, get_current_user

router = APIRouter(prefix="/admin/apikeys", tags=["apikeys"])


def _to_out(record: ApiKeyRecord) -> ApiKeyOut:
    return ApiKeyOut(
        id=record.id,
        name=record.name,
        key_prefix=record.key_prefix,
        created_at=record.created_at,
        last_used_at=record.last_used_at,
        expires_at=record.expires_at,
        permissions=record.permissions,
        status=record.status,
    )


@router.get("", response_model=list[ApiKeyOut])
async def list_keys(
    kv: KVStore = Depends(get_kv),
    current_user: AuthUser = Depends(get_current_user),
) -> list[ApiKeyOut]:
    return [_to_out(r) for r in await list_active_keys(kv, current_user.user_id)]


@router.post("", response_model=ApiKeyCreatedOut, status_code=status.HTTP_201_CREATED)
async def create_key(
    payload: ApiKeyCreate,
    kv: KVStore = Depends(get_kv),
    current_user: AuthUser = Depends(get_current_user),
) -> ApiKeyCreatedOut:
    generated = await generate_key(
        kv,
        user_id=current_user.user_id,
        name=payload.name,
        permissions=payload.permissions,
        expires_in_days=payload.expires_in_days,
    )
    return ApiKeyCreatedOut(
        message="API Key generated successfully. Store it securely, it will not be shown again.",
        api_key=generated.api_key,
        record=_to_out(generated.record),
    )


@router.delete("/{key_id}", response_model=MessageResponse)
async def delete_key(
    key_id: str,
    kv: KVStore = Depends(get_kv),
    current_user: AuthUser = Depends(get_current_user),
) -> MessageResponse:
    await revoke_key(kv, key_id=key_id, user_id=current_user.user_id)
    return MessageResponse(message="API Key deleted successfully")
