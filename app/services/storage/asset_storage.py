"""
Asset storage for certificate files.

Uploads go to an S3-compatible object store (MinIO in development). The
storage only accepts bytes and returns a durable URL; any failure aborts the
certificate write that triggered it.
"""
import asyncio
import uuid
from abc import ABC, abstractmethod
from functools import lru_cache
from pathlib import PurePath
from typing import Optional

import aioboto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import get_settings
from app.core.exceptions import UploadFailedError

logger = structlog.get_logger(__name__)
settings = get_settings()

CERTIFICATES_NAMESPACE = "certificates"


class AssetStorage(ABC):
    """Interface for durable file storage."""

    @abstractmethod
    async def upload(
        self,
        data: bytes,
        filename: str,
        namespace: str = CERTIFICATES_NAMESPACE,
        content_type: Optional[str] = None,
    ) -> str:
        """
        Store bytes and return their public URL.

        Raises:
            UploadFailedError: If the store rejects or does not answer in time
        """


class S3AssetStorage(AssetStorage):
    """S3/MinIO-backed asset storage using aioboto3."""

    def __init__(
        self,
        endpoint: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        bucket_name: Optional[str] = None,
        use_ssl: Optional[bool] = None,
        region_name: Optional[str] = None,
        public_base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.endpoint = endpoint or settings.S3_ENDPOINT
        self.access_key = access_key or settings.S3_ACCESS_KEY
        self.secret_key = secret_key or settings.S3_SECRET_KEY
        self.bucket_name = bucket_name or settings.S3_BUCKET_NAME
        self.use_ssl = use_ssl if use_ssl is not None else settings.S3_USE_SSL
        self.region_name = region_name or settings.S3_REGION
        self.timeout_seconds = timeout_seconds or settings.UPLOAD_TIMEOUT_SECONDS

        scheme = "https" if self.use_ssl else "http"
        self.endpoint_url = f"{scheme}://{self.endpoint}"
        self.public_base_url = (
            public_base_url or settings.S3_PUBLIC_BASE_URL or f"{self.endpoint_url}/{self.bucket_name}"
        ).rstrip("/")
        self.session = aioboto3.Session()

    def _get_client(self):
        """Get S3 client with proper configuration."""
        return self.session.client(
            "s3",
            endpoint_url=self.endpoint_url,
            aws_access_key_id=self.access_key,
            aws_secret_access_key=self.secret_key,
            region_name=self.region_name,
        )

    @staticmethod
    def build_key(filename: str, namespace: str) -> str:
        suffix = PurePath(filename or "").suffix.lower()
        return f"{namespace}/{uuid.uuid4().hex}{suffix}"

    async def upload(
        self,
        data: bytes,
        filename: str,
        namespace: str = CERTIFICATES_NAMESPACE,
        content_type: Optional[str] = None,
    ) -> str:
        key = self.build_key(filename, namespace)
        try:
            await asyncio.wait_for(
                self._put_object(key, data, content_type),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.error("asset_upload_timeout", key=key, timeout=self.timeout_seconds)
            raise UploadFailedError("Asset upload timed out", filename=filename) from e
        except (BotoCoreError, ClientError) as e:
            logger.error("asset_upload_failed", key=key, error=str(e))
            raise UploadFailedError("Asset upload failed", filename=filename) from e

        url = f"{self.public_base_url}/{key}"
        logger.info("asset_uploaded", key=key, size=len(data))
        return url

    async def _put_object(self, key: str, data: bytes, content_type: Optional[str]) -> None:
        async with self._get_client() as client:
            await client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type or "application/octet-stream",
            )


@lru_cache
def get_asset_storage() -> AssetStorage:
    """FastAPI dependency returning the configured asset storage."""
    return S3AssetStorage()
