import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Path, status
from fastapi.responses import StreamingResponse

from boxes_api.adapters.notifier import BaseNotifier, BoxEvent
from boxes_api.config.settings import Settings
from boxes_api.dependencies import get_app_settings, get_box_number, get_notifier, get_s3_client
from boxes_api.errors import (
    BoxOccupiedError,
    FileNotInBoxError,
    InvalidFileNameError,
    StorageConfigurationError,
)
from boxes_api.schemas import (
    BoxEventRequest,
    BoxFileStatus,
    DownloadUrlResponse,
    PresignUploadRequest,
    PresignUploadResponse,
    SuccessResponse,
)
from boxes_api.services.boxes import get_box_status, presign_download, presign_upload
from boxes_api.services.transfer import open_transfer

logger = logging.getLogger(__name__)

router = APIRouter()


def raise_for_box_error(e: Exception, action: str) -> None:
    """Translate a domain error into the matching HTTP error."""
    if isinstance(e, HTTPException):
        raise e
    if isinstance(e, InvalidFileNameError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, FileNotInBoxError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, BoxOccupiedError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, StorageConfigurationError):
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    logger.error(f"{action} failed: {str(e)}")
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}: {str(e)}"
    )


@router.get(
    "/boxes/{box}/files",
    response_model=BoxFileStatus,
    response_model_exclude_none=True,
)
async def get_box_files(
    box: int = Depends(get_box_number),
    settings: Settings = Depends(get_app_settings),
    s3_client: Any = Depends(get_s3_client),
):
    """
    Report what a box holds.

    Returns `{"empty": true}` for an empty box, otherwise the name and size
    of the single file in it.
    """
    try:
        return get_box_status(settings, box, s3_client=s3_client)
    except Exception as e:
        raise_for_box_error(e, "list files")


@router.post("/boxes/{box}/files", response_model=PresignUploadResponse)
async def create_box_upload(
    body: PresignUploadRequest,
    box: int = Depends(get_box_number),
    settings: Settings = Depends(get_app_settings),
    s3_client: Any = Depends(get_s3_client),
):
    """
    Get a presigned POST for putting a file into an empty box.

    The client uploads straight to the object store with the returned form
    fields and then reports the upload through `POST /api/boxes/:box/events`.
    """
    try:
        return presign_upload(settings, box, body.file_name, body.file_type, s3_client=s3_client)
    except Exception as e:
        raise_for_box_error(e, "presign upload")


@router.get("/boxes/{box}/files/{file_name}/url", response_model=DownloadUrlResponse)
async def get_box_file_url(
    file_name: str = Path(..., description="Name of the file in the box"),
    box: int = Depends(get_box_number),
    settings: Settings = Depends(get_app_settings),
    s3_client: Any = Depends(get_s3_client),
):
    """Get a presigned download URL. Unlike the download route, the file stays in the box."""
    try:
        return DownloadUrlResponse(url=presign_download(settings, box, file_name, s3_client=s3_client))
    except Exception as e:
        raise_for_box_error(e, "create download url")


@router.get(
    "/boxes/{box}/files/{file_name}",
    response_class=StreamingResponse,
    responses={status.HTTP_404_NOT_FOUND: {"description": "The box does not hold that file"}},
)
async def receive_box_file(
    file_name: str = Path(..., description="Name of the file in the box"),
    box: int = Depends(get_box_number),
    settings: Settings = Depends(get_app_settings),
    s3_client: Any = Depends(get_s3_client),
    notifier: BaseNotifier = Depends(get_notifier),
):
    """
    Take the file out of the box.

    The file is streamed to the caller. Once the last byte has been handed
    over it is deleted from storage and a `file-deleted` event is published.
    """
    try:
        transfer = await asyncio.to_thread(
            open_transfer, settings, notifier, box, file_name, s3_client
        )
    except Exception as e:
        raise_for_box_error(e, "retrieve file")

    return StreamingResponse(
        transfer.stream(),
        media_type=transfer.media_type,
        headers=transfer.headers,
    )


@router.post("/boxes/{box}/events", response_model=SuccessResponse)
async def trigger_box_event(
    body: BoxEventRequest,
    box: int = Depends(get_box_number),
    settings: Settings = Depends(get_app_settings),
    notifier: BaseNotifier = Depends(get_notifier),
):
    """Tell every connected client that a box changed."""
    event = BoxEvent(
        type=body.type,
        box_number=box,
        file_name=body.file_name,
        file_size=body.file_size,
    )
    try:
        await asyncio.wait_for(notifier.publish(event), timeout=settings.transfer_timeout_seconds)
    except Exception as e:
        logger.error(f"Error triggering box event: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to trigger event"
        )
    return SuccessResponse()
