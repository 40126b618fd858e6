####################################
# --- Request/response schemas --- #
####################################

from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    model_validator,
)
from pydantic.alias_generators import to_camel
from typing_extensions import Self


class CamelModel(BaseModel):
    """Base model whose JSON keys are camelCase, matching the browser client."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BoxFileStatus(CamelModel):
    """Response model for `GET /api/boxes/:box/files`."""
    empty: bool = Field(description="Whether the box holds no file.")
    name: Optional[str] = Field(None, description="Name of the file in the box.")
    size: Optional[int] = Field(None, description="Size of the file in bytes.")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"empty": False, "name": "holiday.jpg", "size": 204800}
        }
    )

    @model_validator(mode="after")
    def check_full_box_has_a_file(self) -> Self:
        if not self.empty and (self.name is None or self.size is None):
            raise ValueError("a full box must report the file name and size")
        return self


class PresignUploadRequest(CamelModel):
    """Request body for `POST /api/boxes/:box/files`."""
    file_name: str = Field(min_length=1, description="Name the file will have in the box.")
    file_type: str = Field(min_length=1, description="MIME type of the file.")

    model_config = ConfigDict(
        json_schema_extra={"example": {"fileName": "holiday.jpg", "fileType": "image/jpeg"}}
    )


class LegacyPresignUploadRequest(PresignUploadRequest):
    """Request body for `POST /api/files`, which carries the box in the body."""
    box_number: int = Field(description="Box to upload into.")


class PresignUploadResponse(BaseModel):
    """A presigned POST: send `fields` plus the file as a multipart form to `url`."""
    url: str
    fields: Dict[str, str]
    key: str = Field(description="Object key the upload will be stored under.")


class DownloadUrlResponse(BaseModel):
    """Response model for `GET /api/boxes/:box/files/:file/url`."""
    url: str


class BoxEventType(str, Enum):
    """Events published on the notification channel."""
    FILE_UPLOADED = "file-uploaded"
    FILE_DELETED = "file-deleted"


class BoxEventRequest(CamelModel):
    """Request body for `POST /api/boxes/:box/events`."""
    type: BoxEventType
    file_name: Optional[str] = None
    file_size: Optional[int] = Field(None, ge=0)


class SuccessResponse(BaseModel):
    success: bool = True


class DeviceHeartbeat(CamelModel):
    """A heartbeat reported by a device, stored as-is in the bucket."""
    device_id: str = Field(
        min_length=1,
        pattern=r"^[A-Za-z0-9._-]+$",
        description="Identifier of the reporting device.",
    )
    connected: StrictBool
    timestamp: datetime

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "deviceId": "pi-garden-01",
                "connected": True,
                "timestamp": "2024-01-01T12:00:00Z",
            }
        }
    )


class DeviceHealth(DeviceHeartbeat):
    """A stored heartbeat plus whether it is too old to be trusted."""
    stale: bool
