"""
Synchronous HTTP client for the Boxes API.

Mirrors what the browser does: presign, upload straight to the object store,
announce the upload; and for receiving, stream the file to disk.
"""
import logging
import mimetypes
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Union
from urllib.parse import quote

import requests

from boxes_api.schemas import (
    BoxEventType,
    BoxFileStatus,
    DeviceHeartbeat,
    PresignUploadResponse,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILE_SIZE = 1024 * 1024 * 100  # 100 MB


class BoxesClientError(Exception):
    """A request to the Boxes API or the object store failed."""


class FileTooLargeError(BoxesClientError):
    pass


class BoxEmptyError(BoxesClientError):
    pass


class BoxesClient:
    """Talks to a running Boxes API over HTTP."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 30.0,
        box_count: int = 4,
        max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.box_count = box_count
        self.max_file_size_bytes = max_file_size_bytes
        self.session = session or requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _check(self, response: requests.Response, action: str) -> requests.Response:
        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            detail = response.text
            try:
                detail = response.json().get("detail", detail)
            except ValueError:
                pass
            raise BoxesClientError(f"{action} failed ({response.status_code}): {detail}") from e
        return response

    def status(self, box: int) -> BoxFileStatus:
        response = self.session.get(self._url(f"/api/boxes/{box}/files"), timeout=self.timeout)
        self._check(response, f"Fetching box {box} status")
        return BoxFileStatus.model_validate(response.json())

    def statuses(self) -> Dict[int, BoxFileStatus]:
        return {box: self.status(box) for box in range(1, self.box_count + 1)}

    def offer(self, box: int, path: Union[str, Path], content_type: Optional[str] = None) -> str:
        """
        Put a local file into an empty box.

        :return: the object key the file was stored under.
        :raises FileTooLargeError: before any request when the file exceeds the size limit.
        """
        path = Path(path)
        size = path.stat().st_size
        if size > self.max_file_size_bytes:
            raise FileTooLargeError(
                f"File too big! Max size is {round(self.max_file_size_bytes / (1024 * 1024))}MB."
            )
        content_type = content_type or mimetypes.guess_type(path.name)[0] or "application/octet-stream"

        response = self.session.post(
            self._url(f"/api/boxes/{box}/files"),
            json={"fileName": path.name, "fileType": content_type},
            timeout=self.timeout,
        )
        self._check(response, "Getting presigned POST URL")
        presigned = PresignUploadResponse.model_validate(response.json())

        with open(path, "rb") as file_data:
            upload = self.session.post(
                presigned.url,
                data=presigned.fields,
                files={"file": (path.name, file_data, content_type)},
                timeout=self.timeout,
            )
        if upload.status_code not in (201, 204):
            raise BoxesClientError(f"S3 upload failed: {upload.status_code} {upload.reason}")
        logger.info(f"File uploaded to S3 successfully: {presigned.key}")

        response = self.session.post(
            self._url(f"/api/boxes/{box}/events"),
            json={
                "type": BoxEventType.FILE_UPLOADED.value,
                "fileName": path.name,
                "fileSize": size,
            },
            timeout=self.timeout,
        )
        self._check(response, "Triggering file-uploaded event")
        return presigned.key

    def receive(self, box: int, dest_dir: Union[str, Path] = ".") -> Path:
        """
        Take the file out of a box and write it into ``dest_dir``.

        The server deletes the file once it has sent all of it. An interrupted
        download leaves nothing behind in ``dest_dir``.
        """
        status = self.status(box)
        if status.empty:
            raise BoxEmptyError(f"Box {box} is empty")

        dest = Path(dest_dir) / os.path.basename(status.name)
        response = self.session.get(
            self._url(f"/api/boxes/{box}/files/{quote(status.name)}"),
            stream=True,
            timeout=self.timeout,
        )
        # Written under a temporary name; ``dest`` only appears once complete.
        partial = dest.with_name(dest.name + ".part")
        with response:
            self._check(response, f"Receiving from box {box}")
            try:
                with open(partial, "wb") as out:
                    for chunk in response.iter_content(chunk_size=64 * 1024):
                        out.write(chunk)
            except BaseException:
                partial.unlink(missing_ok=True)
                raise
        partial.replace(dest)
        logger.info(f"Received {status.name} from box {box} into {dest}")
        return dest

    def heartbeat(self, device_id: str, connected: bool = True) -> None:
        heartbeat = DeviceHeartbeat(
            device_id=device_id,
            connected=connected,
            timestamp=datetime.now(timezone.utc),
        )
        response = self.session.post(
            self._url("/api/devices/health"),
            json=heartbeat.model_dump(mode="json", by_alias=True),
            timeout=self.timeout,
        )
        self._check(response, f"Reporting health of {device_id}")
