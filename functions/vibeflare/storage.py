"""
Blob storage abstraction for S3-compatible buckets and in-memory testing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from vibeflare.errors import StorageError

DEFAULT_CONTENT_TYPE = "application/octet-stream"

_MISSING_KEY_CODES = {"NoSuchKey", "404", "NotFound"}


@dataclass(frozen=True)
class StoredAsset:
    body: bytes
    content_type: str = DEFAULT_CONTENT_TYPE


class BlobStore(Protocol):
    """Defines the operations the API needs from object storage."""

    def get(self, key: str) -> Optional[StoredAsset]:
        ...

    def put(self, key: str, body: bytes, content_type: str) -> None:
        ...


@dataclass
class InMemoryBlobStore:
    """Test double for storage interactions."""

    stored_objects: dict[str, StoredAsset] = field(default_factory=dict)

    def get(self, key: str) -> Optional[StoredAsset]:
        return self.stored_objects.get(key)

    def put(self, key: str, body: bytes, content_type: str) -> None:
        self.stored_objects[key] = StoredAsset(
            body=bytes(body), content_type=content_type or DEFAULT_CONTENT_TYPE
        )

    def reset(self) -> None:
        self.stored_objects.clear()


@dataclass
class S3BlobStore:
    """
    S3-compatible storage client (Cloudflare R2, Tencent COS, MinIO, AWS).
    """

    bucket: str
    region: Optional[str] = None
    endpoint: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    addressing_style: str = "auto"

    def __post_init__(self):
        config = Config(
            s3={"addressing_style": self.addressing_style},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )

    def get(self, key: str) -> Optional[StoredAsset]:
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=key)
            body = response["Body"].read()
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in _MISSING_KEY_CODES:
                return None
            raise StorageError(f"Blob read failed for {key!r}: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Blob read failed for {key!r}: {exc}") from exc
        return StoredAsset(
            body=body,
            content_type=response.get("ContentType") or DEFAULT_CONTENT_TYPE,
        )

    def put(self, key: str, body: bytes, content_type: str) -> None:
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType=content_type or DEFAULT_CONTENT_TYPE,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Blob write failed for {key!r}: {exc}") from exc
