from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from imgbed.schemas.common import BatchFailure


class ImageOut(BaseModel):
    id: str
    storage_key: str
    file_name: str
    content_type: str
    size: int
    uploaded_at: datetime
    user_id: str | None = None
    upload_path: str | None = None
    url: str
    links: dict[str, str] = Field(default_factory=dict)


class UploadFileResult(BaseModel):
    success: bool
    file_name: str
    data: ImageOut | None = None
    message: str | None = None


class UploadOut(BaseModel):
    success: bool
    message: str
    default_copy_format: str
    results: list[UploadFileResult]


class UploadBase64In(BaseModel):
    file_name: str | None = None
    content_type: str
    data_base64: str
    upload_directory: str | None = None


class DirectoryListingOut(BaseModel):
    path: str
    images: list[ImageOut]
    directories: list[str]
    current_directory_total_size: int


class DeleteImagesIn(BaseModel):
    image_ids: list[str]


class MoveImagesIn(BaseModel):
    image_ids: list[str]
    target_directory: str


class DeleteResults(BaseModel):
    deleted: list[str] = Field(default_factory=list)
    failed: list[BatchFailure] = Field(default_factory=list)


class MovedImage(BaseModel):
    id: str
    new_storage_key: str


class MoveResults(BaseModel):
    moved: list[MovedImage] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    failed: list[BatchFailure] = Field(default_factory=list)


class DeleteImagesOut(BaseModel):
    message: str
    results: DeleteResults


class MoveImagesOut(BaseModel):
    message: str
    results: MoveResults
