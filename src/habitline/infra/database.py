"""Database engine, session factory and the transaction unit of work."""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, Tuple

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine

from ..config import BaseConfig
from ..errors import DeadlineExceededError, PersistenceError
from ..logging_config import get_logger

logger = get_logger("infra.database")

SessionFactory = Callable[[], Session]


def create_db_engine(config: BaseConfig):
    """Create SQLModel engine from configuration."""
    engine = create_engine(config.DATABASE_URL, **config.sqlalchemy_engine_options())
    if config.DATABASE_URL.startswith("sqlite"):
        _enable_sqlite_foreign_keys(engine)
    return engine


def _enable_sqlite_foreign_keys(engine) -> None:
    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, _record) -> None:  # pragma: no cover - driver hook
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def init_database(engine) -> None:
    """Initialize database schema."""
    # Import all models to ensure they're registered
    from .. import models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def create_session_factory(engine) -> SessionFactory:
    """Create a session factory function."""

    def factory() -> Session:
        return Session(engine, expire_on_commit=False)

    return factory


def bootstrap_database(config: BaseConfig | None = None) -> Tuple:
    """Convenience bootstrap for engine + session_factory with schema init.

    Used by the app factory, the CLI and tests so engine options stay
    consistent. Returns (engine, session_factory).
    """

    cfg = config or BaseConfig()
    engine = create_db_engine(cfg)
    init_database(engine)
    return engine, create_session_factory(engine)


def deadline_after(seconds: Optional[float]) -> Optional[float]:
    """Return a monotonic deadline ``seconds`` from now, or ``None`` for no limit."""

    if not seconds or seconds <= 0:
        return None
    return time.monotonic() + seconds


@contextmanager
def transaction(
    session_factory: SessionFactory, *, deadline: Optional[float] = None
) -> Iterator[Session]:
    """Run the enclosed work as one all-or-nothing transaction.

    Commits when the block exits normally and the deadline has not passed.
    Any exception rolls the whole transaction back; SQLAlchemy errors are
    re-raised as ``PersistenceError`` so callers only see the service error kinds.
    """

    with session_factory() as session:
        try:
            yield session
            if deadline is not None and time.monotonic() > deadline:
                raise DeadlineExceededError()
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Transaction failed", exc_info=True)
            raise PersistenceError() from exc
        except Exception:
            session.rollback()
            raise
