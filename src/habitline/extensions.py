"""Database and extension wiring for Habitline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from flask import Flask, current_app

from .config import BaseConfig
from .infra.database import SessionFactory, bootstrap_database, deadline_after
from .services.google_oauth import GoogleOAuthClient

EXTENSION_KEY = "habitline"


@dataclass
class AppState:
    """Everything a request needs, built once per app."""

    config: BaseConfig
    engine: Any
    session_factory: SessionFactory
    oauth_client: GoogleOAuthClient


def init_db(
    app: Flask,
    config: BaseConfig,
    *,
    session_factory: Optional[SessionFactory] = None,
    oauth_client: Optional[GoogleOAuthClient] = None,
) -> AppState:
    """Create the engine and session factory and attach them to ``app``.

    Tests pass their own ``session_factory`` (and a fake OAuth client) so the
    app shares the fixture database.
    """

    engine = None
    if session_factory is None:
        engine, session_factory = bootstrap_database(config)
    state = AppState(
        config=config,
        engine=engine,
        session_factory=session_factory,
        oauth_client=oauth_client
        or GoogleOAuthClient(config.GOOGLE_OAUTH, timeout=config.REQUEST_TIMEOUT_SECONDS),
    )
    app.extensions[EXTENSION_KEY] = state
    return state


def get_state() -> AppState:
    """Return the state of the current app."""

    state = current_app.extensions.get(EXTENSION_KEY)
    if state is None:  # pragma: no cover - misconfigured app
        raise RuntimeError("Habitline extensions not initialized")
    return state


def get_session_factory() -> SessionFactory:
    return get_state().session_factory


def request_deadline() -> Optional[float]:
    """Deadline for the current request's transactions."""

    return deadline_after(get_state().config.REQUEST_TIMEOUT_SECONDS)
