from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass

from fastapi import HTTPException
from pydantic import ValidationError

from imgbed.db.kv import IMAGE_PREFIX, KVStore, get_record, put_record, scan_records
from imgbed.models.app_settings import AppSettings
from imgbed.models.image import ImageRecord
from imgbed.schemas.common import BatchFailure
from imgbed.schemas.image import (
    DeleteImagesOut,
    DeleteResults,
    DirectoryListingOut,
    ImageOut,
    MovedImage,
    MoveImagesOut,
    MoveResults,
    UploadFileResult,
    UploadOut,
)
from imgbed.services.app_settings import load_app_settings
from imgbed.services.links import all_links
from imgbed.services.storage import ObjectStore
from imgbed.services.text import file_extension, random_token, sanitize_path


logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = (
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/svg+xml",
    "image/bmp",
    "image/avif",
    "image/x-icon",
    "image/tiff",
)


@dataclass(slots=True)
class UploadItem:
    file_name: str
    content_type: str
    data: bytes


def public_base_url(app_settings: AppSettings, origin: str) -> str:
    base = app_settings.site_domain.strip() or origin
    if base and not base.startswith(("http://", "https://")):
        base = "https://" + base
    return base.rstrip("/")


def public_url(record: ImageRecord, app_settings: AppSettings, origin: str) -> str:
    name = posixpath.basename(record.storage_key)
    return f"{public_base_url(app_settings, origin)}/{app_settings.image_prefix}/{name}"


def to_image_out(record: ImageRecord, app_settings: AppSettings, origin: str) -> ImageOut:
    url = public_url(record, app_settings, origin)
    return ImageOut(**record.model_dump(), url=url, links=all_links(url, record.file_name))


def failure_status(codes: list[str]) -> int:
    unique = set(codes)
    if unique == {"invalid"}:
        return 400
    if unique == {"not_found"}:
        return 404
    return 500


def _validation_error(item: UploadItem, app_settings: AppSettings) -> str | None:
    if not item.data:
        return "File is empty or not a valid file."
    if len(item.data) > app_settings.max_file_size_bytes:
        return f"File size exceeds limit of {app_settings.upload_max_file_size_mb}MB."
    if item.content_type not in ALLOWED_MIME_TYPES:
        allowed = ", ".join(ALLOWED_MIME_TYPES)
        return f"Invalid file type: {item.content_type}. Allowed types: {allowed}."
    return None


async def _store_image(
    kv: KVStore,
    store: ObjectStore,
    item: UploadItem,
    *,
    folder: str,
    owner_id: str | None,
) -> ImageRecord:
    image_id = random_token(10)
    name = image_id + file_extension(item.file_name, item.content_type)
    storage_key = f"{folder}/{name}" if folder else name

    await store.put(storage_key, item.data, item.content_type)
    record = ImageRecord(
        id=image_id,
        storage_key=storage_key,
        file_name=item.file_name or name,
        content_type=item.content_type,
        size=len(item.data),
        user_id=owner_id,
        upload_path=folder or None,
    )
    await put_record(kv, IMAGE_PREFIX + image_id, record)
    return record


async def upload_images(
    kv: KVStore,
    store: ObjectStore,
    items: list[UploadItem],
    *,
    upload_directory: str | None,
    owner_id: str | None,
    origin: str,
) -> UploadOut:
    app_settings = await load_app_settings(kv)

    if not items:
        raise HTTPException(status_code=400, detail="No files uploaded")
    limit = app_settings.upload_max_files_per_upload
    if len(items) > limit:
        raise HTTPException(status_code=400, detail=f"Too many files. Maximum {limit} files allowed per upload.")

    folder = sanitize_path(upload_directory)
    results: list[UploadFileResult] = []
    failure_codes: list[str] = []

    for item in items:
        file_name = item.file_name or "unknown_file"
        problem = _validation_error(item, app_settings)
        if problem is not None:
            results.append(UploadFileResult(success=False, file_name=file_name, message=problem))
            failure_codes.append("invalid")
            continue

        try:
            record = await _store_image(kv, store, item, folder=folder, owner_id=owner_id)
        except Exception as exc:
            logger.exception("Failed to upload %s", file_name)
            results.append(UploadFileResult(success=False, file_name=file_name, message=str(exc) or "Unknown error"))
            failure_codes.append("error")
            continue

        results.append(
            UploadFileResult(success=True, file_name=file_name, data=to_image_out(record, app_settings, origin))
        )

    succeeded = len(items) - len(failure_codes)
    if succeeded == 0:
        raise HTTPException(
            status_code=failure_status(failure_codes),
            detail={
                "message": "All files failed to upload.",
                "results": [r.model_dump(mode="json") for r in results],
            },
        )

    all_ok = not failure_codes
    if all_ok:
        message = f"Successfully uploaded {succeeded} files."
    else:
        message = f"Partially completed: {succeeded} of {len(items)} files uploaded."
    return UploadOut(
        success=all_ok,
        message=message,
        default_copy_format=app_settings.default_copy_format,
        results=results,
    )


async def list_directory(kv: KVStore, path: str | None, *, origin: str) -> DirectoryListingOut:
    app_settings = await load_app_settings(kv)
    current = sanitize_path(path)

    images: list[ImageRecord] = []
    directories: set[str] = set()
    for _, record in await scan_records(kv, IMAGE_PREFIX, ImageRecord):
        image_path = sanitize_path(record.upload_path)
        if image_path == current:
            images.append(record)
        elif not current:
            directories.add(image_path.split("/", 1)[0])
        elif image_path.startswith(current + "/"):
            directories.add(image_path[len(current) + 1 :].split("/", 1)[0])

    images.sort(key=lambda r: r.uploaded_at, reverse=True)
    return DirectoryListingOut(
        path=current,
        images=[to_image_out(r, app_settings, origin) for r in images],
        directories=sorted(directories),
        current_directory_total_size=sum(r.size for r in images),
    )


async def _load_image(kv: KVStore, image_id: str) -> ImageRecord | None:
    try:
        return await get_record(kv, IMAGE_PREFIX + image_id, ImageRecord)
    except ValidationError:
        logger.error("Image metadata for %s is malformed", image_id)
        raise


async def delete_images(kv: KVStore, store: ObjectStore, image_ids: list[str]) -> DeleteImagesOut:
    results = DeleteResults()
    if not image_ids:
        return DeleteImagesOut(message="No image IDs provided to delete.", results=results)

    for image_id in image_ids:
        try:
            record = await _load_image(kv, image_id)
            if record is None:
                results.failed.append(BatchFailure(id=image_id, reason="Image metadata not found.", code="not_found"))
                continue
            await store.delete(record.storage_key)
            await kv.delete(IMAGE_PREFIX + image_id)
        except Exception as exc:
            logger.exception("Error deleting image %s", image_id)
            results.failed.append(BatchFailure(id=image_id, reason=str(exc) or "Unknown error during deletion"))
            continue
        results.deleted.append(image_id)

    if results.failed and not results.deleted:
        raise HTTPException(
            status_code=failure_status([f.code for f in results.failed]),
            detail={
                "message": "Failed to delete any of the specified images.",
                "results": results.model_dump(mode="json"),
            },
        )
    return DeleteImagesOut(message="Image deletion process completed.", results=results)


async def move_images(
    kv: KVStore,
    store: ObjectStore,
    image_ids: list[str],
    target_directory: str,
) -> MoveImagesOut:
    results = MoveResults()
    if not image_ids:
        return MoveImagesOut(message="No image IDs provided to move.", results=results)

    target = sanitize_path(target_directory)
    for image_id in image_ids:
        metadata_key = IMAGE_PREFIX + image_id
        try:
            record = await _load_image(kv, image_id)
            if record is None:
                results.failed.append(BatchFailure(id=image_id, reason="Image metadata not found.", code="not_found"))
                continue
            if sanitize_path(record.upload_path) == target:
                results.skipped.append(image_id)
                continue

            old_key = record.storage_key
            name = posixpath.basename(old_key)
            new_key = f"{target}/{name}" if target else name

            try:
                await store.copy(old_key, new_key)
            except FileNotFoundError:
                logger.warning("Object %s for image %s is missing; dropping orphaned metadata", old_key, image_id)
                await kv.delete(metadata_key)
                results.failed.append(
                    BatchFailure(id=image_id, reason=f"Stored object not found at {old_key}.", code="not_found")
                )
                continue

            # Not atomic: a failure past this point leaves the object under both keys.
            record.storage_key = new_key
            record.upload_path = target or None
            await put_record(kv, metadata_key, record)
            await store.delete(old_key)
        except Exception as exc:
            logger.exception("Error moving image %s to '%s'", image_id, target)
            results.failed.append(BatchFailure(id=image_id, reason=str(exc) or "Unknown error during move"))
            continue
        results.moved.append(MovedImage(id=image_id, new_storage_key=new_key))

    if results.failed and not results.moved:
        raise HTTPException(
            status_code=failure_status([f.code for f in results.failed]),
            detail={
                "message": "Failed to move any of the specified images.",
                "results": results.model_dump(mode="json"),
            },
        )
    return MoveImagesOut(message="Image move process completed.", results=results)


async def count_images(kv: KVStore) -> int:
    return len(await kv.list_keys(IMAGE_PREFIX))


async def get_image(kv: KVStore, image_id: str) -> ImageRecord | None:
    return await _load_image(kv, image_id)
