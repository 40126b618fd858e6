"""Box addressing, status lookup and status rendering."""
import logging
from typing import TYPE_CHECKING, Optional

from boxes_api.config.settings import Settings
from boxes_api.errors import (
    BoxNotFoundError,
    BoxOccupiedError,
    InvalidFileNameError,
    StorageConfigurationError,
)
from boxes_api.s3.presign import generate_presigned_download_url, generate_presigned_upload
from boxes_api.s3.read_objects import fetch_first_file_under_prefix
from boxes_api.schemas import BoxFileStatus, PresignUploadResponse
from boxes_api.utils.decorators import log_execution_time

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

logger = logging.getLogger(__name__)


def box_prefix(box: int) -> str:
    return f"box{box}/"


def box_object_key(box: int, file_name: str) -> str:
    return f"{box_prefix(box)}{file_name}"


def validate_box_number(box: int, box_count: int) -> int:
    """Boxes are numbered 1..box_count."""
    if not 1 <= box <= box_count:
        raise BoxNotFoundError(f"Box {box} does not exist (boxes are 1-{box_count})")
    return box


def validate_file_name(file_name: str) -> str:
    """A file name must address a single object directly inside its box."""
    if not file_name or not file_name.strip():
        raise InvalidFileNameError("File name must not be empty")
    if "/" in file_name or file_name in (".", ".."):
        raise InvalidFileNameError(f"Invalid file name: {file_name!r}")
    return file_name


def require_bucket(settings: Settings) -> str:
    if not settings.s3_bucket_name:
        raise StorageConfigurationError("Storage configuration missing")
    return settings.s3_bucket_name


def get_box_status(
    settings: Settings,
    box: int,
    s3_client: Optional["S3Client"] = None,
) -> BoxFileStatus:
    """
    Report what a box currently holds.

    A box holds at most one file; should more than one object sit under the
    prefix, the first one listed is reported.
    """
    bucket = require_bucket(settings)
    prefix = box_prefix(box)
    file = fetch_first_file_under_prefix(bucket, prefix, s3_client=s3_client)
    if file is None:
        return BoxFileStatus(empty=True)

    return BoxFileStatus(
        empty=False,
        name=file["Key"][len(prefix):],
        size=file["Size"],
    )


def ensure_box_is_empty(
    settings: Settings,
    box: int,
    s3_client: Optional["S3Client"] = None,
) -> None:
    status = get_box_status(settings, box, s3_client=s3_client)
    if not status.empty:
        raise BoxOccupiedError(f"Box {box} already holds {status.name}")


def format_size(size_bytes: int) -> str:
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    return f"{size_bytes / (1024 * 1024):.1f} MB"


def describe_box(box: int, status: Optional[BoxFileStatus], loading: bool = False) -> str:
    """The one-line status shown under each box."""
    if loading or status is None:
        return f"box{box}: loading..."
    if status.empty:
        return f"box{box}: empty"
    return f"file in box{box}: {status.name} ({format_size(status.size)})"


@log_execution_time
def presign_upload(
    settings: Settings,
    box: int,
    file_name: str,
    file_type: str,
    s3_client: Optional["S3Client"] = None,
) -> PresignUploadResponse:
    """
    Let a client upload straight into an empty box.

    :raises BoxOccupiedError: if the box already holds a file.
    """
    validate_file_name(file_name)
    bucket = require_bucket(settings)
    ensure_box_is_empty(settings, box, s3_client=s3_client)

    key = box_object_key(box, file_name)
    presigned = generate_presigned_upload(
        bucket_name=bucket,
        object_key=key,
        content_type=file_type,
        max_size_bytes=settings.max_file_size_bytes,
        expires_in=settings.presigned_url_expiry_seconds,
        s3_client=s3_client,
    )
    logger.info(f"Presigned upload for {key} ({file_type})")
    return PresignUploadResponse(url=presigned["url"], fields=presigned["fields"], key=key)


def presign_download(
    settings: Settings,
    box: int,
    file_name: str,
    s3_client: Optional["S3Client"] = None,
) -> str:
    """A time-limited direct download link. The file stays in the box."""
    validate_file_name(file_name)
    bucket = require_bucket(settings)
    return generate_presigned_download_url(
        bucket_name=bucket,
        object_key=box_object_key(box, file_name),
        expires_in=settings.presigned_url_expiry_seconds,
        s3_client=s3_client,
    )
