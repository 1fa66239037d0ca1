from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import boto3
from botocore.client import Config
from botocore.exceptions import ClientError

from imgbed.core.config import Settings, settings as default_settings


_MISSING_CODES = {"nosuchkey", "404", "notfound"}


@dataclass(slots=True)
class StoredObject:
    key: str
    body: bytes
    content_type: str
    etag: str | None = None
    cache_control: str | None = None


@runtime_checkable
class ObjectStore(Protocol):
    async def put(self, key: str, data: bytes, content_type: str) -> None:
        ...

    async def get(self, key: str) -> StoredObject | None:
        ...

    async def copy(self, source_key: str, target_key: str) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", "")).lower()


class S3ObjectStore:
    def __init__(self, config: Settings | None = None) -> None:
        self._config = config or default_settings
        self._client = boto3.client(
            "s3",
            endpoint_url=self._config.s3_endpoint_url or None,
            aws_access_key_id=self._config.s3_access_key,
            aws_secret_access_key=self._config.s3_secret_key,
            region_name=self._config.s3_region,
            config=Config(signature_version="s3v4"),
        )
        self._bucket = self._config.s3_bucket
        self._bucket_checked = False

    def ensure_bucket(self) -> None:
        if self._bucket_checked:
            return

        try:
            self._client.head_bucket(Bucket=self._bucket)
            self._bucket_checked = True
            return
        except ClientError as exc:
            if _error_code(exc) not in {"404", "nosuchbucket", "notfound"}:
                raise

        create_args: dict = {"Bucket": self._bucket}
        region = str(self._config.s3_region or "").strip()
        if region and region != "us-east-1":
            create_args["CreateBucketConfiguration"] = {"LocationConstraint": region}
        self._client.create_bucket(**create_args)
        self._bucket_checked = True

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        self.ensure_bucket()
        self._client.put_object(
            Bucket=self._bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
        )

    async def get(self, key: str) -> StoredObject | None:
        self.ensure_bucket()
        try:
            obj = self._client.get_object(Bucket=self._bucket, Key=key)
        except ClientError as exc:
            if _error_code(exc) in _MISSING_CODES:
                return None
            raise

        return StoredObject(
            key=key,
            body=obj["Body"].read(),
            content_type=str(obj.get("ContentType") or "application/octet-stream"),
            etag=obj.get("ETag"),
            cache_control=obj.get("CacheControl"),
        )

    async def copy(self, source_key: str, target_key: str) -> None:
        self.ensure_bucket()
        try:
            self._client.copy_object(
                Bucket=self._bucket,
                Key=target_key,
                CopySource={"Bucket": self._bucket, "Key": source_key},
                MetadataDirective="COPY",
            )
        except ClientError as exc:
            if _error_code(exc) in _MISSING_CODES:
                raise FileNotFoundError(source_key) from exc
            raise

    async def delete(self, key: str) -> None:
        self.ensure_bucket()
        self._client.delete_object(Bucket=self._bucket, Key=key)
