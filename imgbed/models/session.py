from __future__ import annotations

from pydantic import BaseModel


class SessionRecord(BaseModel):
    session_id: str
    user_id: str
    username: str
