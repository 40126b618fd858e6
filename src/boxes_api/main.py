from textwrap import dedent
import logging
from typing import Any, Optional

import pydantic
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute

from boxes_api.adapters.notifier import BaseNotifier, NotifierFactory
from boxes_api.aws_clients import create_aws_client
from boxes_api.config.settings import Settings, configure_logging
from boxes_api.errors import (
    handle_broad_exceptions,
    handle_pydantic_validation_errors,
    handle_request_validation_errors,
)
from boxes_api.routers.boxes import router as boxes_router
from boxes_api.routers.devices import router as devices_router
from boxes_api.routers.events import router as events_router
from boxes_api.routers.files import router as files_router
from boxes_api.routers.health import router as health_router
from boxes_api.routers.pages import router as pages_router

# Set up logging
logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    s3_client: Any = None,
    notifier: Optional[BaseNotifier] = None,
) -> FastAPI:
    """Create a FastAPI application."""
    settings = settings or Settings()

    app = FastAPI(
        title="Boxes API",
        summary="Leave a file in a box, let someone else take it out",
        version="v1",
        description=dedent(
            """\
        Four numbered boxes, each holding at most one file.

        | Step | Route |
        | --- | --- |
        | Check a box | `GET /api/boxes/{box}/files` |
        | Offer a file | `POST /api/boxes/{box}/files`, upload to the returned URL, then `POST /api/boxes/{box}/events` |
        | Receive a file | `GET /api/boxes/{box}/files/{file}` (the file leaves the box) |
        | Watch the boxes | `GET /api/events` (Server-Sent Events) |
        """
        ),
        docs_url="/docs",
        generate_unique_id_function=custom_generate_unique_id,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    app.state.s3_client = s3_client or create_aws_client("s3", settings)
    app.state.notifier = notifier or NotifierFactory.get_notifier(settings)
    logger.info(
        f"Boxes API ready: bucket={settings.s3_bucket_name} boxes={settings.box_count} "
        f"notifier={app.state.notifier.name}"
    )

    app.include_router(boxes_router, prefix="/api", tags=["boxes"])
    app.include_router(files_router, prefix="/api", tags=["files"])
    app.include_router(devices_router, prefix="/api", tags=["devices"])
    app.include_router(events_router, prefix="/api", tags=["events"])
    app.include_router(health_router, tags=["health"])
    app.include_router(pages_router, tags=["pages"])

    app.add_exception_handler(
        exc_class_or_status_code=pydantic.ValidationError,
        handler=handle_pydantic_validation_errors,
    )
    app.add_exception_handler(
        exc_class_or_status_code=RequestValidationError,
        handler=handle_request_validation_errors,
    )
    app.middleware("http")(handle_broad_exceptions)

    return app


def custom_generate_unique_id(route: APIRoute):
    """
    Generate prettier `operationId`s in the OpenAPI schema.

    These become the function names in generated client SDKs.
    """
    return f"{route.tags[0]}-{route.name}"


if __name__ == "__main__":
    import uvicorn

    settings = Settings()
    configure_logging(settings)
    app = create_app(settings)
    uvicorn.run(app, host="0.0.0.0", port=8000)
