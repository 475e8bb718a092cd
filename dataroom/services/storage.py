import logging
import uuid

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from dataroom.config import settings
from dataroom.errors import StorageUnavailable

logger = logging.getLogger(__name__)

CONTENT_PREFIX = "documents"


class StorageService:
    """Presigned S3/MinIO URLs for document bodies kept outside the database."""

    @staticmethod
    def is_configured() -> bool:
        return bool(
            settings.s3_endpoint_url
            and settings.s3_access_key
            and settings.s3_secret_key
        )

    @staticmethod
    def _client():
        if not StorageService.is_configured():
            logger.warning("Presigned URL requested but S3 settings are missing")
            raise StorageUnavailable(
                "Document storage is not configured",
                details={"missing": StorageService.missing_settings()},
            )
        return boto3.client(
            "s3",
            endpoint_url=settings.s3_endpoint_url,
            aws_access_key_id=settings.s3_access_key,
            aws_secret_access_key=settings.s3_secret_key,
            region_name=settings.s3_region,
            config=Config(signature_version="s3v4"),
        )

    @staticmethod
    def missing_settings() -> list[str]:
        names = {
            "S3_ENDPOINT_URL": settings.s3_endpoint_url,
            "S3_ACCESS_KEY": settings.s3_access_key,
            "S3_SECRET_KEY": settings.s3_secret_key,
        }
        return [name for name, value in names.items() if not value]

    @staticmethod
    def _presign(operation: str, params: dict) -> str:
        client = StorageService._client()
        try:
            return client.generate_presigned_url(
                operation,
                Params={"Bucket": settings.s3_bucket_name, **params},
                ExpiresIn=settings.s3_presigned_url_expiry,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("Failed to presign %s for %s: %s", operation, params["Key"], exc)
            raise StorageUnavailable("Could not sign a storage URL") from exc

    @staticmethod
    def generate_content_key(slug: str, file_name: str) -> str:
        # a fresh segment per upload so replaced content never shares a key
        return f"{CONTENT_PREFIX}/{slug}/{uuid.uuid4().hex[:12]}/{file_name}"

    @staticmethod
    def generate_upload_url(content_ref: str, mime_type: str) -> str:
        return StorageService._presign(
            "put_object", {"Key": content_ref, "ContentType": mime_type}
        )

    @staticmethod
    def generate_download_url(content_ref: str) -> str:
        return StorageService._presign("get_object", {"Key": content_ref})


storage = StorageService()
