# src/boxes_api/config/settings.py
import logging
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, ValidationInfo, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing_extensions import Self

VALID_DEPLOYMENT_MODES = ["local-dev", "aws-mock", "aws-prod"]
VALID_NOTIFIER_BACKENDS = ["local", "pusher", "sns"]


class Settings(BaseSettings):
    """
    Single source of truth for all application settings.

    Configuration precedence:
    1. Environment variables (highest priority)
    2. .env file (if exists)
    3. Default values in this class (lowest priority)

    Usage:
        from boxes_api.config.settings import get_settings
        settings = get_settings()
        bucket_name = settings.s3_bucket_name
    """

    # Application Settings
    app_name: str = Field(
        default="boxes-api",
        description="Application name"
    )

    # Deployment Mode
    deployment_mode: str = Field(
        default="local-dev",
        description="Deployment mode: local-dev, aws-mock, or aws-prod"
    )

    # AWS Core Settings
    aws_region: str = Field(
        default="us-east-1",
        alias="AWS_DEFAULT_REGION"
    )

    aws_access_key_id: Optional[str] = Field(
        default=None,
        alias="AWS_ACCESS_KEY_ID"
    )

    aws_secret_access_key: Optional[str] = Field(
        default=None,
        alias="AWS_SECRET_ACCESS_KEY"
    )

    aws_endpoint_url: Optional[str] = Field(
        default=None,
        alias="AWS_ENDPOINT_URL"
    )

    # S3 Configuration
    s3_bucket_name: str = Field(
        default="pvfll-boxes",
        alias="S3_BUCKET_NAME",
        description="S3 bucket holding box files and device heartbeats"
    )

    # Boxes
    box_count: int = Field(
        default=4,
        ge=1,
        description="Number of boxes, numbered from 1"
    )

    max_file_size_bytes: int = Field(
        default=100 * 1024 * 1024,  # 100 MB
        gt=0,
        description="Largest file a presigned upload accepts"
    )

    presigned_url_expiry_seconds: int = Field(
        default=120,  # 2 minutes
        gt=0,
        description="Lifetime of presigned upload and download URLs"
    )

    download_chunk_size: int = Field(
        default=64 * 1024,
        gt=0,
        description="Chunk size used when piping a file to the receiver"
    )

    transfer_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Static timeout applied to the delete and notify calls after a download"
    )

    # Notification Configuration
    notifier_backend: str = Field(
        default="local",
        description="Pub/sub backend: local, pusher, or sns"
    )

    notification_channel: str = Field(
        default="garden",
        description="Channel every box event is published on"
    )

    pusher_app_id: Optional[str] = Field(default=None, alias="PUSHER_APP_ID")
    pusher_key: Optional[str] = Field(default=None, alias="PUSHER_KEY")
    pusher_secret: Optional[str] = Field(default=None, alias="PUSHER_SECRET")
    pusher_cluster: str = Field(default="us2", alias="PUSHER_CLUSTER")

    local_event_history: int = Field(
        default=50,
        gt=0,
        description="How many recent events the local notifier keeps"
    )

    live_keepalive_seconds: float = Field(
        default=15.0,
        gt=0,
        description="Idle interval after which the /api/events stream sends a keepalive"
    )

    sns_topic_arn: Optional[str] = Field(
        default=None,
        alias="SNS_TOPIC_ARN",
        description="Topic used by the sns notifier backend"
    )

    # Device health
    device_health_prefix: str = Field(
        default="device-health/",
        description="Key prefix for device heartbeat objects"
    )

    device_stale_after_seconds: int = Field(
        default=10 * 60,  # 10 minutes
        gt=0,
        description="Heartbeats older than this are reported as stale"
    )

    # HTTP
    cors_allow_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Origins allowed by the CORS middleware"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @field_validator("deployment_mode")
    @classmethod
    def validate_deployment_mode(cls, v: str) -> str:
        """Validate deployment mode is one of the allowed values."""
        if v not in VALID_DEPLOYMENT_MODES:
            raise ValueError(f"Invalid deployment_mode: {v}. Must be one of {VALID_DEPLOYMENT_MODES}")
        return v

    @field_validator("notifier_backend")
    @classmethod
    def validate_notifier_backend(cls, v: str) -> str:
        if v not in VALID_NOTIFIER_BACKENDS:
            raise ValueError(f"Invalid notifier_backend: {v}. Must be one of {VALID_NOTIFIER_BACKENDS}")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @field_validator("aws_endpoint_url")
    @classmethod
    def set_endpoint_url_based_on_mode(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        """Point aws-mock mode at the local moto server unless an endpoint is given."""
        if v is None and info.data.get("deployment_mode") == "aws-mock":
            return "http://localhost:5000"
        return v

    @model_validator(mode="after")
    def check_notifier_credentials(self) -> Self:
        if self.notifier_backend == "pusher":
            missing = [
                name for name in ("pusher_app_id", "pusher_key", "pusher_secret")
                if not getattr(self, name)
            ]
            if missing:
                raise ValueError(f"pusher notifier requires {', '.join(missing)}")
        if self.notifier_backend == "sns" and not self.sns_topic_arn:
            raise ValueError("sns notifier requires sns_topic_arn")
        return self

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one Settings instance per process.
    """
    return Settings()


def configure_logging(settings: Settings) -> None:
    """Apply the configured log level to the root logger."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
