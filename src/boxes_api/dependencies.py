"""FastAPI dependencies shared by the routers."""
from typing import Any

from fastapi import Depends, HTTPException, Path, Request, status

from boxes_api.adapters.notifier import BaseNotifier
from boxes_api.config.settings import Settings
from boxes_api.errors import BoxNotFoundError
from boxes_api.services.boxes import validate_box_number


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_s3_client(request: Request) -> Any:
    return request.app.state.s3_client


def get_notifier(request: Request) -> BaseNotifier:
    return request.app.state.notifier


def get_box_number(
    box: int = Path(..., description="Number of the box, starting at 1"),
    settings: Settings = Depends(get_app_settings),
) -> int:
    """Resolve the `{box}` path parameter, rejecting boxes that do not exist."""
    try:
        return validate_box_number(box, settings.box_count)
    except BoxNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
