"""Device heartbeats stored as small JSON objects next to the boxes."""
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from pydantic import ValidationError

from boxes_api.config.settings import Settings
from boxes_api.s3.read_objects import fetch_json_object, fetch_s3_objects_under_prefix
from boxes_api.s3.write_objects import put_json_object
from boxes_api.schemas import DeviceHealth, DeviceHeartbeat
from boxes_api.services.boxes import require_bucket
from boxes_api.utils.decorators import log_execution_time

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

logger = logging.getLogger(__name__)


def _as_utc(timestamp: datetime) -> datetime:
    # Devices without a clock zone are assumed to report UTC.
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp


def device_health_key(settings: Settings, device_id: str) -> str:
    return f"{settings.device_health_prefix}{device_id}.json"


def is_stale(timestamp: datetime, stale_after_seconds: int, now: Optional[datetime] = None) -> bool:
    now = now or datetime.now(timezone.utc)
    return (now - _as_utc(timestamp)).total_seconds() > stale_after_seconds


def relative_time(timestamp: datetime, now: Optional[datetime] = None) -> str:
    """Render the age of a timestamp as `12s ago`, `5m ago`, `3h ago` or `2d ago`."""
    now = now or datetime.now(timezone.utc)
    seconds = int((now - _as_utc(timestamp)).total_seconds())
    if seconds < 60:
        return f"{seconds}s ago"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"


def record_heartbeat(
    settings: Settings,
    heartbeat: DeviceHeartbeat,
    s3_client: Optional["S3Client"] = None,
) -> str:
    """Store the latest heartbeat of a device, replacing the previous one."""
    bucket = require_bucket(settings)
    key = device_health_key(settings, heartbeat.device_id)
    put_json_object(
        bucket,
        key,
        heartbeat.model_dump(mode="json", by_alias=True),
        s3_client=s3_client,
    )
    logger.info(f"Device health stored for {heartbeat.device_id}")
    return key


@log_execution_time
def list_device_health(
    settings: Settings,
    s3_client: Optional["S3Client"] = None,
    now: Optional[datetime] = None,
) -> List[DeviceHealth]:
    """Read every stored heartbeat and flag the ones that are too old."""
    bucket = require_bucket(settings)
    now = now or datetime.now(timezone.utc)

    devices = []
    for obj in fetch_s3_objects_under_prefix(bucket, settings.device_health_prefix, s3_client=s3_client):
        data = fetch_json_object(bucket, obj["Key"], s3_client=s3_client)
        try:
            heartbeat = DeviceHeartbeat.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Skipping unreadable heartbeat {obj['Key']}: {e.error_count()} errors")
            continue
        devices.append(
            DeviceHealth(
                **heartbeat.model_dump(),
                stale=is_stale(heartbeat.timestamp, settings.device_stale_after_seconds, now=now),
            )
        )
    return devices
