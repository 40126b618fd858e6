import logging
from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, status

from boxes_api.config.settings import Settings
from boxes_api.dependencies import get_app_settings, get_s3_client
from boxes_api.errors import StorageConfigurationError
from boxes_api.schemas import DeviceHealth, DeviceHeartbeat, SuccessResponse
from boxes_api.services.devices import list_device_health, record_heartbeat

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/devices/health", response_model=SuccessResponse)
async def report_device_health(
    heartbeat: DeviceHeartbeat,
    settings: Settings = Depends(get_app_settings),
    s3_client: Any = Depends(get_s3_client),
):
    """Receive a heartbeat from a device. The latest heartbeat per device is kept."""
    try:
        record_heartbeat(settings, heartbeat, s3_client=s3_client)
    except StorageConfigurationError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    except Exception as e:
        logger.error(f"Device health POST error: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to store device health: {str(e)}"
        )
    return SuccessResponse()


@router.get("/devices/health", response_model=List[DeviceHealth])
async def get_device_health(
    settings: Settings = Depends(get_app_settings),
    s3_client: Any = Depends(get_s3_client),
):
    """List the last heartbeat of every device, flagging the stale ones."""
    try:
        return list_device_health(settings, s3_client=s3_client)
    except StorageConfigurationError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    except Exception as e:
        logger.error(f"Device health GET error: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to read device health: {str(e)}"
        )
