"""
S3-compatible object storage (AWS S3, Cloudflare R2, MinIO) for lecture videos,
assignment attachments, submissions and e-content files
"""
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from lms.config import Settings, get_settings
from lms.errors import StorageError
from lms.utils.object_keys import build_object_key, public_url


@dataclass
class StoredObject:
    url: str
    key: str


class ObjectStorage:
    def __init__(self, settings: Settings):
        self.settings = settings
        self._client = None

    def _get_bucket(self) -> str:
        bucket = self.settings.storage_bucket
        if not bucket:
            raise StorageError("Missing STORAGE_BUCKET")
        return bucket

    @property
    def client(self):
        if self._client is None:
            s = self.settings
            if not s.storage_access_key_id or not s.storage_secret_access_key:
                raise StorageError(
                    "Missing storage config. Required: STORAGE_ACCESS_KEY_ID, STORAGE_SECRET_ACCESS_KEY"
                )
            self._client = boto3.client(
                "s3",
                endpoint_url=s.storage_endpoint,
                aws_access_key_id=s.storage_access_key_id,
                aws_secret_access_key=s.storage_secret_access_key,
                region_name=s.storage_region,
                config=Config(signature_version="s3v4"),
            )
        return self._client

    def upload(
        self,
        data: bytes,
        folder: str,
        filename: str,
        content_type: str = "application/octet-stream",
    ) -> StoredObject:
        bucket = self._get_bucket()
        key = build_object_key(folder, filename)
        url = self.url_for(key)
        try:
            self.client.put_object(Bucket=bucket, Key=key, Body=data, ContentType=content_type)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Upload of {key} failed: {e}")
            raise StorageError(f"Failed to upload {filename}") from e
        logger.info(f"Uploaded {key} ({len(data)} bytes)")
        return StoredObject(url=url, key=key)

    def delete(self, key: str) -> bool:
        """Delete an object; returns False when it does not exist"""
        bucket = self._get_bucket()
        try:
            self.client.head_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in {"404", "NoSuchKey", "NotFound"}:
                return False
            raise StorageError(f"Failed to delete {key}") from e
        try:
            self.client.delete_object(Bucket=bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to delete {key}") from e
        logger.info(f"Deleted {key}")
        return True

    def url_for(self, key: str) -> str:
        s = self.settings
        return public_url(key, s.storage_public_base_url, s.storage_endpoint, s.storage_bucket)


def delete_quietly(storage: ObjectStorage, key: Optional[str]) -> None:
    """Best-effort blob cleanup after a committed row change; failures are only logged"""
    if not key:
        return
    try:
        if not storage.delete(key):
            logger.warning(f"Blob {key} was already gone")
    except Exception as e:
        logger.error(f"Failed to delete blob {key}: {e}")


@lru_cache()
def get_storage() -> ObjectStorage:
    return ObjectStorage(get_settings())
