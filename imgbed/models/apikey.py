from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from imgbed.models.common import utcnow


class ApiKeyRecord(BaseModel):
    id: str
    name: str
    user_id: str
    key_prefix: str
    hashed_key: str
    created_at: datetime = Field(default_factory=utcnow)
    last_used_at: datetime | None = None
    expires_at: datetime | None = None
    permissions: list[str] = Field(default_factory=lambda: ["upload"])
    status: Literal["active", "revoked"] = "active"

    @property
    def public_part(self) -> str | None:
        parts = self.key_prefix.split("_")
        if len(parts) == 3 and parts[0] == "imgbed" and parts[1] == "sk":
            return parts[2]
        return None
