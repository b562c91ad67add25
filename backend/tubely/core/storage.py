"""
Tubely S3-Compatible Storage Client

Object storage for processed videos, built on boto3 so the same code talks to
MinIO in development and AWS S3 in production.

Key Features:
- Server-side upload of a staged file with an explicit Content-Type
- Presigned GET URL issuance for short-lived playback links
- Path-style addressing and s3v4 signatures for MinIO compatibility
- boto3/botocore failures translated into ``StoreError`` / ``SigningError``
- Singleton accessor for the FastAPI dependency layer

Both operations are blocking; async callers run them through
``asyncio.to_thread``.
"""

import logging

from typing import Any

import boto3

from boto3.exceptions import S3UploadFailedError
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from tubely.config import Settings, get_settings
from tubely.core.exceptions import SigningError, StoreError


MIN_PRESIGNED_EXPIRATION_SECONDS = 1
MAX_PRESIGNED_EXPIRATION_SECONDS = 604800

logger = logging.getLogger(__name__)

# Dict container allows replacement without a global statement
_singleton_container: dict[str, "StorageClient"] = {}


class StorageClient:
    """
    S3-compatible storage client for MinIO and AWS S3.

    Attributes:
        settings: Application settings containing S3 configuration
        s3_client: boto3 S3 client (injectable for tests)
        bucket_name: Default bucket for processed videos

    Example usage:
        ```python
        storage = get_storage_client()
        storage.put_file(storage.bucket_name, "landscape/abc.mp4", "/tmp/x.mp4", "video/mp4")
        url = storage.presign_get(storage.bucket_name, "landscape/abc.mp4", ttl_seconds=60)
        ```
    """

    def __init__(self, settings: Settings | None = None, s3_client: Any | None = None) -> None:
        self.settings = settings or get_settings()
        self.bucket_name = self.settings.s3_bucket_name

        if s3_client is not None:
            self.s3_client = s3_client
            return

        client_config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path"},  # path-style for MinIO
            retries={"max_attempts": 3, "mode": "standard"},
        )

        # endpoint_url None means AWS S3; set it to reach MinIO
        self.s3_client = boto3.client(
            "s3",
            endpoint_url=self.settings.s3_endpoint_url,
            aws_access_key_id=self.settings.s3_access_key_id,
            aws_secret_access_key=self.settings.s3_secret_access_key,
            region_name=self.settings.s3_region,
            config=client_config,
        )

        logger.info(
            "S3 storage client initialized",
            extra={
                "bucket": self.bucket_name,
                "region": self.settings.s3_region,
                "endpoint": self.settings.s3_endpoint_url or "AWS S3 (default)",
            },
        )

    def put_file(self, bucket: str, key: str, file_path: str, content_type: str) -> None:
        """
        Upload a local file to ``bucket/key`` with the given Content-Type.

        boto3's managed transfer switches to multipart for large files.

        Raises:
            StoreError: If the store rejects the write or the file cannot be read.
        """
        try:
            self.s3_client.upload_file(
                Filename=file_path,
                Bucket=bucket,
                Key=key,
                ExtraArgs={"ContentType": content_type},
            )
        except (ClientError, BotoCoreError, S3UploadFailedError, OSError) as e:
            logger.exception(
                "Failed to upload file to S3",
                extra={"bucket": bucket, "key": key, "file_path": file_path},
            )
            raise StoreError(
                f"Failed to store object {key}", details={"bucket": bucket, "key": key}
            ) from e

        logger.info(
            "Uploaded file to S3",
            extra={"bucket": bucket, "key": key, "content_type": content_type},
        )

    def presign_get(self, bucket: str, key: str, ttl_seconds: int) -> str:
        """
        Generate a presigned GET URL for ``bucket/key`` valid for ``ttl_seconds``.

        Raises:
            ValueError: If ``ttl_seconds`` is outside the range S3 accepts.
            SigningError: If boto3 cannot produce the URL.
        """
        if not MIN_PRESIGNED_EXPIRATION_SECONDS <= ttl_seconds <= MAX_PRESIGNED_EXPIRATION_SECONDS:
            raise ValueError(
                f"ttl_seconds must be between {MIN_PRESIGNED_EXPIRATION_SECONDS} and "
                f"{MAX_PRESIGNED_EXPIRATION_SECONDS} seconds, got {ttl_seconds}"
            )

        try:
            url = self.s3_client.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=ttl_seconds,
            )
        except (ClientError, BotoCoreError) as e:
            logger.exception(
                "Failed to generate presigned download URL",
                extra={"bucket": bucket, "key": key},
            )
            raise SigningError(
                f"Failed to sign object {key}", details={"bucket": bucket, "key": key}
            ) from e

        logger.debug("Generated presigned download URL", extra={"key": key, "ttl": ttl_seconds})
        return url


def get_storage_client(settings: Settings | None = None) -> StorageClient:
    """
    Get the shared StorageClient instance, creating it on first use.

    The boto3 client is thread-safe, so one instance serves every request.
    """
    if "instance" not in _singleton_container:
        _singleton_container["instance"] = StorageClient(settings)
        logger.info("Created new StorageClient singleton instance")

    return _singleton_container["instance"]


__all__ = ["StorageClient", "get_storage_client"]
