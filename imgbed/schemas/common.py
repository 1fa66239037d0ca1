from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


FailureCode = Literal["invalid", "not_found", "error"]


class MessageResponse(BaseModel):
    message: str


class BatchFailure(BaseModel):
    id: str
    reason: str
    code: FailureCode = "error"
