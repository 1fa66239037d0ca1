from __future__ import annotations

from pydantic import BaseModel


class AuthUserOut(BaseModel):
    user_id: str
    username: str


class LoginOut(BaseModel):
    success: bool
    redirect_to: str
