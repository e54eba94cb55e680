# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: System endpoints — health, readiness, metrics.
Pure HTTP layer — no business logic.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from gigcalendar.core.dependencies import AppState, get_state
from gigcalendar.core.errors import StorageError

router = APIRouter(tags=["System"])


@router.get("/health")
def health_check(state: AppState = Depends(get_state)):
    """Liveness probe for Docker and orchestration."""
    return {
        "status": "ok",
        "service": state.settings.SERVICE_NAME,
        "version": state.settings.SERVICE_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "storage": state.store.name,
        "live_subscribers": state.broadcaster.subscriber_count(),
    }


@router.get("/health/ready")
def readiness_check(state: AppState = Depends(get_state)):
    """Readiness probe — verifies the storage backend answers."""
    try:
        state.store.ping()
    except StorageError as exc:
        return JSONResponse(
            status_code=503,
            content={
                "status": "unavailable",
                "service": state.settings.SERVICE_NAME,
                "storage": state.store.name,
                "error": exc.public_message,
            },
        )
    return {
        "status": "ready",
        "service": state.settings.SERVICE_NAME,
        "storage": state.store.name,
    }


@router.get("/metrics")
def prometheus_metrics():
    """Expose Prometheus metrics in OpenMetrics format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
