import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from boxes_api.config.settings import Settings
from boxes_api.dependencies import get_app_settings, get_s3_client
from boxes_api.schemas import BoxFileStatus
from boxes_api.services.boxes import get_box_status
from boxes_api.services.devices import list_device_health
from boxes_api.ui import render_admin, render_garden

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def garden_page(
    settings: Settings = Depends(get_app_settings),
    s3_client: Any = Depends(get_s3_client),
):
    statuses: Dict[int, Optional[BoxFileStatus]] = {}
    for box in range(1, settings.box_count + 1):
        try:
            statuses[box] = get_box_status(settings, box, s3_client=s3_client)
        except Exception as e:
            # Render the rest of the garden; this box shows as loading.
            logger.error(f"Error fetching box {box} status: {str(e)}")
            statuses[box] = None
    use_pusher = settings.notifier_backend == "pusher"
    return HTMLResponse(
        render_garden(
            statuses,
            settings.max_file_size_bytes,
            channel=settings.notification_channel,
            pusher_key=settings.pusher_key if use_pusher else None,
            pusher_cluster=settings.pusher_cluster if use_pusher else None,
        )
    )


@router.get("/admin", response_class=HTMLResponse, include_in_schema=False)
async def admin_page(
    settings: Settings = Depends(get_app_settings),
    s3_client: Any = Depends(get_s3_client),
):
    try:
        devices = list_device_health(settings, s3_client=s3_client)
    except Exception as e:
        logger.error(f"[Admin] Failed to fetch device health: {str(e)}")
        devices = []
    return HTMLResponse(render_admin(devices))
