from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from boxes_api.config.settings import Settings
from boxes_api.dependencies import get_app_settings, get_s3_client
from boxes_api.errors import BoxNotFoundError
from boxes_api.routers.boxes import raise_for_box_error
from boxes_api.schemas import LegacyPresignUploadRequest, PresignUploadResponse
from boxes_api.services.boxes import presign_upload, validate_box_number

router = APIRouter()


@router.post("/files", response_model=PresignUploadResponse, deprecated=True)
async def create_upload(
    body: LegacyPresignUploadRequest,
    settings: Settings = Depends(get_app_settings),
    s3_client: Any = Depends(get_s3_client),
):
    """
    Get a presigned POST with the box number in the request body.

    Kept for older clients; prefer `POST /api/boxes/:box/files`.
    """
    try:
        box = validate_box_number(body.box_number, settings.box_count)
    except BoxNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    try:
        return presign_upload(settings, box, body.file_name, body.file_type, s3_client=s3_client)
    except Exception as e:
        raise_for_box_error(e, "presign upload")
