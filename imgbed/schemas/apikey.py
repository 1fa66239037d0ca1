from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ApiKeyCreate(BaseModel):
    name: str | None = None
    permissions: list[str] | None = None
    expires_in_days: int | None = Field(default=None, ge=1)


class ApiKeyOut(BaseModel):
    id: str
    name: str
    key_prefix: str
    created_at: datetime
    last_used_at: datetime | None = None
    expires_at: datetime | None = None
    permissions: list[str]
    status: str


class ApiKeyCreatedOut(BaseModel):
    message: str
    api_key: str
    record: ApiKeyOut
