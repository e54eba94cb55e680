# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Core configuration — all env-driven, zero hardcode.
Single source of truth for every tunable parameter.
"""

import os


def _bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    """Application settings loaded from environment variables.

    Values are read when the object is built, so tests can construct a
    fresh ``Settings(STORAGE_BACKEND="memory")`` without touching os.environ.
    """

    STORAGE_BACKENDS: tuple[str, ...] = ("memory", "json", "sql")

    def __init__(self, **overrides) -> None:
        self.SERVICE_NAME: str = os.getenv("SERVICE_NAME", "gigcalendar")
        self.SERVICE_VERSION: str = os.getenv("SERVICE_VERSION", "1.0.0")
        self.SERVICE_HOST: str = os.getenv("SERVICE_HOST", "0.0.0.0")
        self.SERVICE_PORT: int = int(os.getenv("SERVICE_PORT", os.getenv("PORT", "3000")))

        # ── Storage ──
        self.STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "json").lower()
        self.DATA_DIR: str = os.getenv(
            "DATA_DIR", os.path.join(os.getcwd(), "data")
        )
        self.DATABASE_URL: str = os.getenv(
            "DATABASE_URL", "sqlite:///./gigcalendar.db"
        )
        self.DB_POOL_RECYCLE: int = int(os.getenv("DB_POOL_RECYCLE", "300"))

        # ── HTTP ──
        self.CORS_ORIGINS: list[str] = [
            o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
        ]
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

        # ── Bootstrap ──
        self.SEED_DEFAULT_ADMIN: bool = _bool(os.getenv("SEED_DEFAULT_ADMIN"), True)
        self.SEED_ADMIN_NAME: str = os.getenv("SEED_ADMIN_NAME", "Band Admin")
        self.SEED_ADMIN_EMAIL: str = os.getenv("SEED_ADMIN_EMAIL", "admin@gigcalendar.local")
        self.SEED_ADMIN_PASSWORD: str = os.getenv("SEED_ADMIN_PASSWORD", "changeme")

        # ── Client store ──
        self.API_URL: str = os.getenv("API_URL", "http://localhost:3000").rstrip("/")
        self.WS_URL: str = os.getenv("WS_URL", "ws://localhost:3000/ws")
        self.CLIENT_TIMEOUT: float = float(os.getenv("CLIENT_TIMEOUT", "5.0"))
        self.RECONNECT_ATTEMPTS: int = int(os.getenv("RECONNECT_ATTEMPTS", "5"))
        self.RECONNECT_DELAY: float = float(os.getenv("RECONNECT_DELAY", "1.0"))

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise AttributeError(f"Unknown setting '{key}'")
            setattr(self, key, value)

        if self.STORAGE_BACKEND not in self.STORAGE_BACKENDS:
            raise ValueError(
                f"STORAGE_BACKEND must be one of {self.STORAGE_BACKENDS}, "
                f"got '{self.STORAGE_BACKEND}'"
            )


settings = Settings()
