from fastapi import APIRouter

from imgbed.api.v1.apikeys import router as apikeys_router
from imgbed.api.v1.auth import router as auth_router
from imgbed.api.v1.dashboard import router as dashboard_router
from imgbed.api.v1.images import router as images_router
from imgbed.api.v1.settings import router as settings_router
from imgbed.api.v1.upload import router as upload_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(upload_router)
api_router.include_router(images_router)
api_router.include_router(apikeys_router)
api_router.include_router(settings_router)
api_router.include_router(dashboard_router)
