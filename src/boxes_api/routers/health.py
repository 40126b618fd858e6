from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """
    Health check endpoint for monitoring API status and component readiness.

    Returns status of API, storage, and notifier components along with deployment mode.
    """
    settings = request.app.state.settings

    health_status = {
        "status": "ok",
        "deployment_mode": settings.deployment_mode,
        "components": {
            "api": "ready",
            "storage": "initializing",
            "notifier": "initializing"
        },
        "ready": False
    }

    # Check the bucket is reachable
    try:
        request.app.state.s3_client.head_bucket(Bucket=settings.s3_bucket_name)
        health_status["components"]["storage"] = "ready"
    except Exception as e:
        health_status["components"]["storage"] = f"error: {str(e)}"
        health_status["status"] = "degraded"

    # Check a notifier was configured
    notifier = getattr(request.app.state, "notifier", None)
    if notifier is not None:
        health_status["components"]["notifier"] = "ready"
        health_status["notifier_backend"] = notifier.name
    else:
        health_status["components"]["notifier"] = "error: not configured"
        health_status["status"] = "degraded"

    # Overall ready status
    health_status["ready"] = all(
        state == "ready" for state in health_status["components"].values()
    )

    return health_status
