"""S3 object storage client for lab and profile images.

Keys look like ``{prefix}-{epoch_millis}-{sanitized original name}``. Stored
references are full bucket URLs; reads go through short-lived presigned URLs.
"""

import re
import time
from functools import lru_cache
from typing import Optional

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    ReadTimeoutError,
)

from labhub.config import Settings, get_settings
from labhub.core.exceptions import (
    DependencyTimeoutError,
    StorageConfigurationError,
    StorageError,
)
from labhub.domain.storage import UploadedFile

logger = structlog.get_logger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def sanitize_filename(name: str) -> str:
    cleaned = _UNSAFE_NAME_CHARS.sub("", name or "")
    return cleaned or "file"


class S3StorageGateway:
    """Thin wrapper over the boto3 S3 client."""

    def __init__(self, client, bucket: str, region: str, max_upload_bytes: int):
        self.client = client
        self.bucket = bucket
        self.region = region
        self.max_upload_bytes = max_upload_bytes

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3StorageGateway":
        required = {
            "AWS_REGION": settings.AWS_REGION,
            "AWS_ACCESS_KEY_ID": settings.AWS_ACCESS_KEY_ID,
            "AWS_SECRET_ACCESS_KEY": settings.AWS_SECRET_ACCESS_KEY,
            "AWS_S3_BUCKET_NAME": settings.AWS_S3_BUCKET_NAME,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise StorageConfigurationError(missing)

        client = boto3.client(
            "s3",
            region_name=settings.AWS_REGION,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            config=Config(
                connect_timeout=settings.STORAGE_TIMEOUT_SECONDS,
                read_timeout=settings.STORAGE_TIMEOUT_SECONDS,
                retries={"max_attempts": 2},
            ),
        )
        return cls(client, settings.AWS_S3_BUCKET_NAME, settings.AWS_REGION, settings.MAX_UPLOAD_BYTES)

    @property
    def url_prefixes(self) -> tuple[str, ...]:
        return (
            f"https://{self.bucket}.s3.amazonaws.com/",
            f"https://{self.bucket}.s3.{self.region}.amazonaws.com/",
        )

    def build_key(self, file: UploadedFile, key_prefix: str) -> str:
        return f"{key_prefix}-{int(time.time() * 1000)}-{sanitize_filename(file.name)}"

    def key_from_url(self, url: Optional[str]) -> Optional[str]:
        if not url:
            return None
        for prefix in self.url_prefixes:
            if url.startswith(prefix):
                return url[len(prefix):]
        # Anything else is already a raw key
        return url

    def upload(self, file: UploadedFile, key_prefix: str) -> str:
        if file.size > self.max_upload_bytes:
            raise StorageError(
                f"File size exceeds the limit of {self.max_upload_bytes // (1024 * 1024)}MB",
                {"file": file.name, "size": file.size},
                status_code=413,
            )

        key = self.build_key(file, key_prefix)
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=file.data,
                ContentType=file.content_type or "application/octet-stream",
            )
        except (ConnectTimeoutError, ReadTimeoutError) as e:
            raise DependencyTimeoutError("object storage") from e
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 upload failed", key=key, error=str(e))
            raise StorageError("Failed to upload file", {"file": file.name}) from e

        logger.info("S3 object uploaded", key=key, size=file.size)
        return f"{self.url_prefixes[0]}{key}"

    def delete(self, url: Optional[str]) -> None:
        key = self.key_from_url(url)
        if not key:
            return
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (ConnectTimeoutError, ReadTimeoutError) as e:
            raise DependencyTimeoutError("object storage") from e
        except (BotoCoreError, ClientError) as e:
            raise StorageError("Failed to delete file", {"key": key}) from e
        logger.info("S3 object deleted", key=key)

    def signed_read_url(self, key: Optional[str], ttl_seconds: int = 3600) -> Optional[str]:
        if not key:
            return None
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=ttl_seconds,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError("Failed to sign read URL", {"key": key}) from e


@lru_cache
def _cached_gateway() -> S3StorageGateway:
    return S3StorageGateway.from_settings(get_settings())


def get_storage_gateway() -> S3StorageGateway:
    """FastAPI dependency: fails fast when storage settings are incomplete."""
    return _cached_gateway()
