# type: ignore
# pyright: reportGeneralTypeIssues=false
# pyright: reportOptionalMemberAccess=false
"""
GigCalendar Service
===================
Backend for the band gig calendar: admins create gigs and manage members,
members confirm or decline the gigs they are asked to play.

Every successful write is followed by a broadcast of the *entire* affected
collection on the ``/ws`` live-update channel, so every open client converges
on the same state by replacing its local copy:

    client ─► REST ─► CalendarService ─► storage ─► Broadcaster ─► all clients

Port: 3000
"""
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gigcalendar.controllers import (
    auth_controller,
    commitment_controller,
    gig_controller,
    live_controller,
    member_controller,
    system_controller,
)
from gigcalendar.core.config import Settings, settings as default_settings
from gigcalendar.core.dependencies import build_state
from gigcalendar.core.errors import CalendarError
from gigcalendar.core.logging import configure_logging, get_logger
from gigcalendar.middleware import MetricsMiddleware, RequestIDMiddleware
from gigcalendar.repositories import CollectionStore
from gigcalendar.schemas import ErrorResponse

logger = get_logger("gigcalendar")


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[CollectionStore] = None,
) -> FastAPI:
    """Build the FastAPI application with its own storage and broadcaster."""
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)
    state = build_state(settings, store)

    @asynccontextmanager
    async def lifespan(application: FastAPI):
        """Check storage, seed the first admin, dispose on shutdown."""
        state.startup()
        logger.info(
            "GigCalendar starting — storage=%s, version=%s",
            state.store.name, settings.SERVICE_VERSION,
        )
        yield
        logger.info(
            "GigCalendar shutting down — %d live subscribers",
            state.broadcaster.subscriber_count(),
        )
        state.shutdown()

    application = FastAPI(
        title="GigCalendar API",
        description="Gigs, members and commitments with live collection sync.",
        version=settings.SERVICE_VERSION,
        lifespan=lifespan,
        responses={
            400: {"model": ErrorResponse, "description": "Invalid request"},
            500: {"model": ErrorResponse, "description": "Internal server error"},
        },
    )
    application.state.calendar = state

    application.add_middleware(MetricsMiddleware)
    application.add_middleware(RequestIDMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials="*" not in settings.CORS_ORIGINS,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # ── Error handlers ────────────────────────────────────────────────────
    @application.exception_handler(CalendarError)
    async def calendar_error_handler(request: Request, exc: CalendarError):
        req_id = getattr(request.state, "request_id", None)
        if exc.status_code >= 500:
            logger.error(
                "%s: %s", type(exc).__name__, exc.detail, extra={"request_id": req_id}
            )
        else:
            logger.info(
                "%s: %s", type(exc).__name__, exc.detail, extra={"request_id": req_id}
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.public_message, "request_id": req_id},
        )

    @application.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        req_id = getattr(request.state, "request_id", None)
        fields = [".".join(str(p) for p in err["loc"]) for err in exc.errors()]
        logger.info(
            "Request validation failed: %s %s fields=%s",
            request.method, request.url.path, fields, extra={"request_id": req_id},
        )
        return JSONResponse(
            status_code=422,
            content={"error": "Invalid request", "request_id": req_id},
        )

    @application.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        req_id = getattr(request.state, "request_id", None)
        logger.exception("Unhandled exception", extra={"request_id": req_id})
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "request_id": req_id},
        )

    application.include_router(system_controller.router)
    application.include_router(auth_controller.router)
    application.include_router(gig_controller.router)
    application.include_router(member_controller.router)
    application.include_router(commitment_controller.router)
    application.include_router(live_controller.router)
    return application


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        app,
        host=default_settings.SERVICE_HOST,
        port=default_settings.SERVICE_PORT,
        log_level=default_settings.LOG_LEVEL.lower(),
    )
