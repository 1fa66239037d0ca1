from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


CopyFormat = Literal["url", "markdown", "html", "bbcode"]

DEFAULT_MAX_FILE_SIZE_MB = 10
DEFAULT_MAX_FILES_PER_UPLOAD = 10
DEFAULT_IMAGE_PREFIX = "img"


class AppSettings(BaseModel):
    default_copy_format: CopyFormat = "markdown"
    custom_image_prefix: str = ""
    enable_hotlink_protection: bool = False
    allowed_domains: list[str] = Field(default_factory=list)
    site_domain: str = ""
    convert_to_webp: bool = False
    upload_max_file_size_mb: int = Field(default=DEFAULT_MAX_FILE_SIZE_MB, ge=1)
    upload_max_files_per_upload: int = Field(default=DEFAULT_MAX_FILES_PER_UPLOAD, ge=1)

    @property
    def image_prefix(self) -> str:
        return self.custom_image_prefix.strip().strip("/") or DEFAULT_IMAGE_PREFIX

    @property
    def max_file_size_bytes(self) -> int:
        return self.upload_max_file_size_mb * 1024 * 1024
