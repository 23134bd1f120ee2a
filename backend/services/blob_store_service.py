"""
Object storage adapter (S3, or MinIO through a custom endpoint URL)
"""

import asyncio
from typing import Optional, Any

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from core.config import settings
from core.exceptions import NotFoundError, StorageError

logger = structlog.get_logger()

_MISSING_KEY_CODES = {"NoSuchKey", "404", "NotFound"}
_MISSING_BUCKET_CODES = {"NoSuchBucket", "404", "NotFound"}

def _error_code(error: Exception) -> str:
    """S3 error code of a ClientError, empty for transport-level botocore errors"""
    response = getattr(error, "response", None) or {}
    return str(response.get("Error", {}).get("Code", ""))

class BlobStoreService:
    """Get, put, presign and delete objects in the document bucket"""

    def __init__(self, client: Any = None, bucket: Optional[str] = None):
        self._client = client
        self.bucket = bucket or settings.S3_BUCKET_NAME

    @property
    def client(self):
        """S3 client, created on first use"""
        if self._client is None:
            session_kwargs = {
                'region_name': settings.AWS_REGION
            }

            if settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
                session_kwargs.update({
                    'aws_access_key_id': settings.AWS_ACCESS_KEY_ID,
                    'aws_secret_access_key': settings.AWS_SECRET_ACCESS_KEY
                })

            session = boto3.Session(**session_kwargs)
            self._client = session.client('s3', endpoint_url=settings.S3_ENDPOINT_URL)
        return self._client

    @staticmethod
    def build_object_key(
        practitioner_number: Optional[int],
        sequence_number: Optional[int],
        client_number: Optional[str],
        category: Optional[str],
        document_name: str
    ) -> str:
        """
        Build the hierarchical key a document is stored under

        Layout: PREFIX/{practitioner}/{sequence:05d}/{client}/{category}/{name}.
        Unknown practitioner or sequence numbers become "00000"; a missing
        client number is derived from the sequence number.
        """
        practitioner = str(practitioner_number) if practitioner_number else "00000"
        sequence = f"{sequence_number:05d}" if sequence_number else "00000"
        client = client_number or f"MD-{100 + (sequence_number or 1):06d}"
        return "/".join([
            settings.OBJECT_KEY_PREFIX,
            practitioner,
            sequence,
            client,
            category or "sonstiges",
            document_name
        ])

    async def get_object(self, key: str) -> bytes:
        """
        Read an object fully into memory

        Raises:
            NotFoundError: If the key does not exist
            StorageError: On any other storage failure
        """
        def _read() -> bytes:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            body = response["Body"]
            try:
                return body.read()
            finally:
                body.close()

        try:
            return await asyncio.to_thread(_read)
        except (ClientError, BotoCoreError) as e:
            if _error_code(e) in _MISSING_KEY_CODES:
                raise NotFoundError(f"Object not found: {key}", error_code="OBJECT_NOT_FOUND", details={"key": key}) from e
            logger.error("Failed to get object", key=key, error=str(e))
            raise StorageError(f"Failed to get object: {key}", error_code="STORAGE_ERROR", details={"key": key}) from e

    async def put_object(self, key: str, data: bytes, content_type: str) -> str:
        """Store bytes under key and return the ETag"""
        try:
            response = await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to put object", key=key, error=str(e))
            raise StorageError(f"Failed to upload object: {key}", error_code="STORAGE_ERROR", details={"key": key}) from e

        etag = str(response.get("ETag", "")).strip('"')
        logger.info("Object stored", bucket=self.bucket, key=key, size=len(data), etag=etag)
        return etag

    async def presigned_get(self, key: str, ttl_seconds: Optional[int] = None) -> str:
        """Time-limited download URL for key"""
        try:
            return await asyncio.to_thread(
                self.client.generate_presigned_url,
                'get_object',
                Params={'Bucket': self.bucket, 'Key': key},
                ExpiresIn=ttl_seconds or settings.PRESIGNED_URL_TTL_SECONDS
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to presign object", key=key, error=str(e))
            raise StorageError(f"Failed to create download URL: {key}", error_code="STORAGE_ERROR", details={"key": key}) from e

    async def delete_object(self, key: str) -> None:
        try:
            await asyncio.to_thread(self.client.delete_object, Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to delete object", key=key, error=str(e))
            raise StorageError(f"Failed to delete object: {key}", error_code="STORAGE_ERROR", details={"key": key}) from e
        logger.info("Object deleted", bucket=self.bucket, key=key)

    async def bucket_exists(self) -> bool:
        try:
            await asyncio.to_thread(self.client.head_bucket, Bucket=self.bucket)
            return True
        except (ClientError, BotoCoreError) as e:
            if _error_code(e) in _MISSING_BUCKET_CODES:
                return False
            raise StorageError(f"Failed to check bucket: {self.bucket}", error_code="STORAGE_ERROR") from e

    async def make_bucket(self) -> None:
        kwargs = {'Bucket': self.bucket}
        if settings.AWS_REGION and settings.AWS_REGION != "us-east-1":
            kwargs['CreateBucketConfiguration'] = {'LocationConstraint': settings.AWS_REGION}
        try:
            await asyncio.to_thread(self.client.create_bucket, **kwargs)
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to create bucket", bucket=self.bucket, error=str(e))
            raise StorageError(f"Failed to create bucket: {self.bucket}", error_code="STORAGE_ERROR") from e
        logger.info("Bucket created", bucket=self.bucket)

    async def ensure_bucket(self) -> None:
        """Create the bucket if it does not exist yet"""
        if not await self.bucket_exists():
            await self.make_bucket()
