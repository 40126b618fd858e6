"""Domain exceptions and the FastAPI handlers that turn errors into responses."""
import logging

import pydantic
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class BoxesError(Exception):
    """Base class for errors raised by the Boxes API."""


class BoxNotFoundError(BoxesError):
    """The box number is outside 1..box_count."""


class InvalidFileNameError(BoxesError):
    """The file name cannot be used as a key inside a box."""


class BoxOccupiedError(BoxesError):
    """The box already holds a file."""


class FileNotInBoxError(BoxesError):
    """The requested file is not (or no longer) in the box."""


class StorageConfigurationError(BoxesError):
    """The object store is not configured."""


class NotificationError(BoxesError):
    """Publishing an event to the pub/sub service failed."""


async def handle_broad_exceptions(request: Request, call_next):
    """Handle any exception that goes unhandled by a more specific exception handler."""
    try:
        return await call_next(request)
    except Exception as e:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": str(e) or "Internal server error"},
        )


async def handle_pydantic_validation_errors(request: Request, exc: pydantic.ValidationError) -> JSONResponse:
    """Return 400 with the validation errors raised while building models by hand."""
    errors = exc.errors()
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": [
                {
                    "msg": error["msg"],
                    "input": error.get("input"),
                }
                for error in errors
            ]
        },
    )


async def handle_request_validation_errors(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Missing or malformed request fields are a client error, reported as 400."""
    missing = [
        ".".join(str(part) for part in error["loc"] if part != "body")
        for error in exc.errors()
        if error["type"] == "missing"
    ]
    if missing:
        message = f"Missing required fields: {', '.join(missing)}"
    else:
        message = "; ".join(error["msg"] for error in exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": message},
    )
