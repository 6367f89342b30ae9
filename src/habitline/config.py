"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()

MIN_ACCESS_SECRET_LENGTH = 32


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


def normalize_database_url(url: str) -> str:
    """Rewrite legacy ``postgres://`` URLs into the SQLAlchemy dialect name."""

    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


@dataclass(frozen=True)
class GoogleOAuthSettings:
    """Credentials and redirect targets for the Google sign-in flow."""

    client_id: str
    client_secret: str
    redirect_url: str
    frontend_url: str = "/"

    @property
    def is_complete(self) -> bool:
        return bool(self.client_id and self.client_secret and self.redirect_url)


@dataclass(frozen=True)
class JWTSettings:
    """Signing material and lifetimes for access and refresh tokens."""

    access_secret: str
    refresh_secret: str
    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(days=7)
    algorithm: str = "HS256"

    def check(self) -> None:
        """Raise ``ValueError`` when the secrets are unusable for signing."""

        if len(self.access_secret) < MIN_ACCESS_SECRET_LENGTH:
            raise ValueError(
                f"JWT_ACCESS_SECRET must be at least {MIN_ACCESS_SECRET_LENGTH} characters"
            )
        if not self.refresh_secret:
            raise ValueError("JWT_REFRESH_SECRET must be set")


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "Habitline"
    DB_FILENAME = "habitline.db"
    DEBUG = False
    TESTING = False
    DEFAULT_DEV_MODE = False

    def __init__(self) -> None:
        self.SECRET_KEY = os.getenv("HABITLINE_SECRET_KEY", "replace-me")
        self.DEV_MODE = _env_bool("HABITLINE_DEV_MODE", default=self.DEFAULT_DEV_MODE)
        self.DATA_DIR = self._resolve_data_dir()
        self.DATABASE_URL = normalize_database_url(
            os.getenv("HABITLINE_DATABASE_URL") or os.getenv("DATABASE_URL") or self._build_sqlite_url()
        )
        self.REQUEST_TIMEOUT_SECONDS = _env_int("HABITLINE_REQUEST_TIMEOUT_SECONDS", 10)
        self.LOG_LEVEL = os.getenv("HABITLINE_LOG_LEVEL", "INFO").upper()
        self.GOOGLE_OAUTH = GoogleOAuthSettings(
            client_id=os.getenv("GOOGLE_OAUTH_CLIENT_ID", ""),
            client_secret=os.getenv("GOOGLE_OAUTH_CLIENT_SECRET", ""),
            redirect_url=os.getenv("GOOGLE_OAUTH_REDIRECT_URL", ""),
            frontend_url=os.getenv("FRONTEND_URL", "/"),
        )
        self.JWT = JWTSettings(
            access_secret=os.getenv("JWT_ACCESS_SECRET", ""),
            refresh_secret=os.getenv("JWT_REFRESH_SECRET", ""),
        )
        self._check()

    def _check(self) -> None:
        """Refuse to start a non-dev deployment with placeholder secrets."""

        if self.DEV_MODE:
            return
        if self.SECRET_KEY == "replace-me":
            raise ValueError("HABITLINE_SECRET_KEY must be set in non-dev mode.")
        self.JWT.check()
        if not self.GOOGLE_OAUTH.is_complete:
            raise ValueError("Missing environment variables for Google OAuth")

    def _resolve_data_dir(self) -> Path:
        """Return the directory holding the SQLite file and logs."""

        data_root = os.getenv("HABITLINE_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        return f"sqlite:///{self.DATA_DIR / self.DB_FILENAME}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        if self.DATABASE_URL.startswith("sqlite"):
            return {"connect_args": {"check_same_thread": False}}
        return {
            "pool_size": 5,
            "max_overflow": 10,
            "pool_timeout": 30,
            "pool_recycle": 1800,
            "pool_pre_ping": True,
        }


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    DEFAULT_DEV_MODE = True
    DEV_SECRET = "dev-only-access-secret-change-me-0123456789"

    def __init__(self) -> None:
        super().__init__()
        if not self.JWT.access_secret:
            self.JWT = JWTSettings(
                access_secret=self.DEV_SECRET,
                refresh_secret=self.DEV_SECRET[::-1],
            )


class TestConfig(DevConfig):
    """Configuration used by the test-suite; callers usually override DATABASE_URL."""

    __test__ = False

    TESTING = True
    DEBUG = False
