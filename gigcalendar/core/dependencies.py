# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
FastAPI dependency injection — wire repositories and services.

All process-wide objects live on one ``AppState`` built by the app factory
and stored on ``app.state.calendar``; dependency functions read it from the
incoming request, so two apps in one process never share storage or
subscribers.
"""

from fastapi import Request, WebSocket

from gigcalendar.core.config import Settings
from gigcalendar.core.logging import get_logger
from gigcalendar.repositories import CollectionStore, build_store
from gigcalendar.services.auth_service import AuthService
from gigcalendar.services.broadcaster import Broadcaster
from gigcalendar.services.calendar_service import CalendarService

logger = get_logger(__name__)


class AppState:
    """Process-scoped container for storage, broadcaster and services."""

    def __init__(self, settings: Settings, store: CollectionStore) -> None:
        self.settings = settings
        self.store = store
        self.broadcaster = Broadcaster()
        self.calendar = CalendarService(store=store, broadcaster=self.broadcaster)
        self.auth = AuthService(store)

    def startup(self) -> None:
        """Verify storage and seed the first admin if configured."""
        self.store.ping()
        if self.settings.SEED_DEFAULT_ADMIN:
            self.calendar.seed_admin(
                name=self.settings.SEED_ADMIN_NAME,
                email=self.settings.SEED_ADMIN_EMAIL,
                password=self.settings.SEED_ADMIN_PASSWORD,
            )

    def shutdown(self) -> None:
        self.store.close()


def build_state(settings: Settings, store: CollectionStore | None = None) -> AppState:
    store = store if store is not None else build_store(settings)
    logger.info("Storage backend: %s", store.name)
    return AppState(settings=settings, store=store)


# ── FastAPI dependency functions ──
def get_state(request: Request) -> AppState:
    return request.app.state.calendar


def get_calendar_service(request: Request) -> CalendarService:
    return request.app.state.calendar.calendar


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.calendar.auth


def get_broadcaster(websocket: WebSocket) -> Broadcaster:
    return websocket.app.state.calendar.broadcaster
