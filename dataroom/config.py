import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _resolve_database_url() -> str:
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url

    environment = os.getenv("ENVIRONMENT", "").strip().lower()
    if environment == "development":
        return "postgresql+psycopg://localhost:5434/dataroom"

    raise ValueError(
        "DATABASE_URL is not set. Set DATABASE_URL for non-development "
        "environments or set ENVIRONMENT=development for local defaults."
    )


def _csv_lower(value: str) -> frozenset[str]:
    return frozenset(item.strip().lower() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    database_url: str = _resolve_database_url()
    db_pool_size: int = int(os.getenv("DB_POOL_SIZE", "5"))
    db_max_overflow: int = int(os.getenv("DB_MAX_OVERFLOW", "10"))
    db_pool_timeout: int = int(os.getenv("DB_POOL_TIMEOUT", "30"))
    db_pool_recycle: int = int(os.getenv("DB_POOL_RECYCLE", "1800"))

    # Administrator allow-list (ORed with the stored profile role)
    admin_emails: frozenset[str] = _csv_lower(os.getenv("ADMIN_EMAILS", ""))

    # Identity provider
    identity_user_url: str = os.getenv(
        "IDENTITY_USER_URL", "http://localhost:54321/auth/v1/user"
    )
    identity_api_key: str = os.getenv("IDENTITY_API_KEY", "")
    identity_timeout: float = float(os.getenv("IDENTITY_TIMEOUT", "10"))

    # Invites
    invite_expiry_days: int = int(os.getenv("INVITE_EXPIRY_DAYS", "7"))
    public_base_url: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:3000")

    # Background work and realtime relay
    celery_broker_url: str = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    celery_result_backend: str = os.getenv(
        "CELERY_RESULT_BACKEND", "redis://localhost:6379/1"
    )
    celery_task_always_eager: bool = (
        os.getenv("CELERY_TASK_ALWAYS_EAGER", "").strip().lower() in {"1", "true", "yes"}
    )
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379/2")
    realtime_channel_prefix: str = os.getenv(
        "REALTIME_CHANNEL_PREFIX", "dataroom:access"
    )

    # S3 / MinIO settings
    s3_endpoint_url: str = os.getenv("S3_ENDPOINT_URL", "")
    s3_access_key: str = os.getenv("S3_ACCESS_KEY", "")
    s3_secret_key: str = os.getenv("S3_SECRET_KEY", "")
    s3_bucket_name: str = os.getenv("S3_BUCKET_NAME", "dataroom-documents")
    s3_region: str = os.getenv("S3_REGION", "us-east-1")
    s3_presigned_url_expiry: int = int(os.getenv("S3_PRESIGNED_URL_EXPIRY", "900"))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_json: bool = os.getenv("LOG_JSON", "").strip().lower() in {"1", "true", "yes"}

    # Branding
    brand_name: str = os.getenv("BRAND_NAME", "Data Room")


settings = Settings()
