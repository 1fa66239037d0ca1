from __future__ import annotations

from fastapi import Request

from imgbed.db.kv import KVStore
from imgbed.services.storage import ObjectStore


def get_kv(request: Request) -> KVStore:
    return request.app.state.kv


def get_object_store(request: Request) -> ObjectStore:
    return request.app.state.object_store


def request_origin(request: Request) -> str:
    return f"{request.url.scheme}://{request.url.netloc}"
