from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from boxes_api.adapters.notifier import BaseNotifier
from boxes_api.config.settings import Settings
from boxes_api.dependencies import get_app_settings, get_notifier
from boxes_api.services.live import box_event_stream

router = APIRouter()


@router.get("/events", response_class=StreamingResponse)
async def stream_box_events(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    notifier: BaseNotifier = Depends(get_notifier),
):
    """
    Server-Sent Events stream of `file-uploaded` and `file-deleted`.

    Each event's data is the same payload sent on the pub/sub channel,
    `{"boxNumber", "fileName", "fileSize"}`.
    """
    return StreamingResponse(
        box_event_stream(
            notifier,
            keepalive_seconds=settings.live_keepalive_seconds,
            is_disconnected=request.is_disconnected,
        ),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
        },
    )
