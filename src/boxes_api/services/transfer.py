"""
Handing a file to its receiver: stream it, then delete it, then tell everyone.

The object is removed only once the last chunk has been handed to the
server for sending. A receiver that disconnects early leaves the file in
its box. Delete and notify each get one attempt bounded by
``transfer_timeout_seconds``; nothing is recorded if the process dies in
between, and a failed notify is only logged.
"""
import asyncio
import logging
from typing import TYPE_CHECKING, AsyncIterator, Dict, Optional
from urllib.parse import quote

from botocore.exceptions import ClientError
from starlette.concurrency import iterate_in_threadpool

from boxes_api.adapters.notifier import BaseNotifier, BoxEvent
from boxes_api.config.settings import Settings
from boxes_api.errors import FileNotInBoxError
from boxes_api.s3.delete_objects import delete_s3_object
from boxes_api.s3.read_objects import fetch_s3_object, object_exists_in_s3
from boxes_api.schemas import BoxEventType
from boxes_api.services.boxes import box_object_key, require_bucket, validate_file_name
from boxes_api.utils.decorators import async_log_execution_time

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

logger = logging.getLogger(__name__)


def content_disposition(file_name: str) -> str:
    """Attachment header that survives non-ASCII file names (RFC 6266/5987)."""
    quoted = quote(file_name)
    if quoted != file_name:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{file_name}"'


class FileTransfer:
    """One download of one box's file, finished by delete and notify."""

    def __init__(
        self,
        settings: Settings,
        notifier: BaseNotifier,
        box: int,
        file_name: str,
        s3_object: dict,
        s3_client: Optional["S3Client"] = None,
    ):
        self.settings = settings
        self.notifier = notifier
        self.box = box
        self.file_name = file_name
        self.s3_object = s3_object
        self.s3_client = s3_client
        self.bucket = require_bucket(settings)
        self.object_key = box_object_key(box, file_name)
        self.bytes_sent = 0
        self.completed = False
        self.deleted = False
        self.notified = False

    @property
    def media_type(self) -> str:
        return self.s3_object.get("ContentType") or "application/octet-stream"

    @property
    def size(self) -> Optional[int]:
        return self.s3_object.get("ContentLength")

    @property
    def headers(self) -> Dict[str, str]:
        headers = {"Content-Disposition": content_disposition(self.file_name)}
        if self.size is not None:
            headers["Content-Length"] = str(self.size)
        return headers

    async def stream(self) -> AsyncIterator[bytes]:
        """Yield the file, then run delete and notify once every byte is out."""
        body = self.s3_object["Body"]
        try:
            async for chunk in iterate_in_threadpool(body.iter_chunks(self.settings.download_chunk_size)):
                self.bytes_sent += len(chunk)
                yield chunk
            self.completed = True
        finally:
            body.close()
            if not self.completed:
                logger.warning(
                    f"Transfer of {self.object_key} stopped after {self.bytes_sent} bytes; "
                    f"leaving the file in box {self.box}"
                )

        await self.finish()

    @async_log_execution_time
    async def finish(self) -> None:
        timeout = self.settings.transfer_timeout_seconds

        try:
            await asyncio.wait_for(
                asyncio.to_thread(delete_s3_object, self.bucket, self.object_key, s3_client=self.s3_client),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.error(f"Deleting {self.object_key} timed out after {timeout}s; file stays in box {self.box}")
            return
        except Exception as e:
            logger.error(f"Deleting {self.object_key} failed: {str(e)}; file stays in box {self.box}")
            return
        self.deleted = True
        logger.info(f"Deleted {self.object_key} after sending {self.bytes_sent} bytes")

        event = BoxEvent(
            type=BoxEventType.FILE_DELETED,
            box_number=self.box,
            file_name=self.file_name,
            file_size=self.bytes_sent,
        )
        try:
            await asyncio.wait_for(self.notifier.publish(event), timeout=timeout)
        except asyncio.TimeoutError:
            logger.error(f"Publishing file-deleted for box {self.box} timed out after {timeout}s")
            return
        except Exception as e:
            logger.error(f"Publishing file-deleted for box {self.box} failed: {str(e)}")
            return
        self.notified = True


def open_transfer(
    settings: Settings,
    notifier: BaseNotifier,
    box: int,
    file_name: str,
    s3_client: Optional["S3Client"] = None,
) -> FileTransfer:
    """
    Start handing ``file_name`` out of ``box``.

    :raises InvalidFileNameError: if ``file_name`` cannot name a file in a box.
    :raises FileNotInBoxError: if the box does not hold that file.
    """
    validate_file_name(file_name)
    bucket = require_bucket(settings)
    object_key = box_object_key(box, file_name)

    if not object_exists_in_s3(bucket, object_key, s3_client=s3_client):
        raise FileNotInBoxError(f"File '{file_name}' not found in box {box}")

    try:
        s3_object = fetch_s3_object(bucket, object_key, s3_client=s3_client)
    except ClientError as err:
        # Another receiver may have taken it since the existence check.
        if err.response["Error"]["Code"] in ("NoSuchKey", "404"):
            raise FileNotInBoxError(f"File '{file_name}' not found in box {box}") from err
        raise
    logger.info(f"Starting transfer of {object_key} ({s3_object.get('ContentLength')} bytes)")
    return FileTransfer(
        settings=settings,
        notifier=notifier,
        box=box,
        file_name=file_name,
        s3_object=s3_object,
        s3_client=s3_client,
    )
