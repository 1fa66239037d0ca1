from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from imgbed.models.common import utcnow


class ImageRecord(BaseModel):
    id: str
    storage_key: str
    file_name: str
    content_type: str
    size: int
    uploaded_at: datetime = Field(default_factory=utcnow)
    user_id: str | None = None
    upload_path: str | None = None
