from __future__ import annotations

from pydantic import BaseModel, Field

from imgbed.models.app_settings import CopyFormat


class AppSettingsPatch(BaseModel):
    default_copy_format: CopyFormat | None = None
    custom_image_prefix: str | None = None
    enable_hotlink_protection: bool | None = None
    allowed_domains: list[str] | None = None
    site_domain: str | None = None
    convert_to_webp: bool | None = None
    upload_max_file_size_mb: int | None = Field(default=None, ge=1)
    upload_max_files_per_upload: int | None = Field(default=None, ge=1)


class DashboardStatsOut(BaseModel):
    total_image_count: int
    active_api_key_count: int
