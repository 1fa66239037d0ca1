from imgbed.models.apikey import ApiKeyRecord
from imgbed.models.app_settings import AppSettings
from imgbed.models.image import ImageRecord
from imgbed.models.session import SessionRecord

__all__ = [
    "ApiKeyRecord",
    "AppSettings",
    "ImageRecord",
    "SessionRecord",
]
