"""
Database connection and session management.
"""

import logging
from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, sessionmaker

from authcore.config import get_settings
from authcore.db.models import Base
from authcore.errors import (
    PersistenceError,
    PersistenceTimeoutError,
    UnavailableError,
)

logger = logging.getLogger(__name__)
settings = get_settings()

_TIMEOUT_MARKERS = (
    "statement timeout",
    "canceling statement",
    "timeout expired",
    "timed out",
    "database is locked",
)


def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite leaves foreign keys off unless asked; token cascades need them."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(database_url: str, timeout: float, **kwargs: Any) -> Engine:
    """
    Create an engine whose connections give up after ``timeout`` seconds.

    PostgreSQL gets a connect timeout, a server-side statement timeout and a
    bounded pool checkout. SQLite gets a busy timeout.
    """
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": timeout},
            **kwargs,
        )
        event.listen(engine, "connect", enable_sqlite_foreign_keys)
        return engine

    if database_url.startswith("postgresql"):
        kwargs.setdefault("pool_timeout", timeout)
        kwargs.setdefault("pool_pre_ping", True)
        return create_engine(
            database_url,
            connect_args={
                "connect_timeout": max(1, int(timeout)),
                "options": f"-c statement_timeout={int(timeout * 1000)}",
            },
            **kwargs,
        )

    kwargs.setdefault("pool_timeout", timeout)
    return create_engine(database_url, **kwargs)


engine = create_db_engine(settings.database_url, settings.db_timeout_seconds)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db():
    """Initialize database tables."""
    Base.metadata.create_all(bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Dependency for getting database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """Context manager for database sessions (for use outside FastAPI)."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def _is_timeout(exc: DBAPIError) -> bool:
    message = str(exc.orig if exc.orig is not None else exc).lower()
    return any(marker in message for marker in _TIMEOUT_MARKERS)


@contextmanager
def persistence_errors(db: Session, operation: str) -> Generator[None, None, None]:
    """
    Roll back and translate driver failures into the core's error types.

    Domain errors raised inside the block pass through untouched.
    """
    try:
        yield
    except PoolTimeoutError as exc:
        db.rollback()
        logger.error(f"Timed out waiting for a connection during {operation}")
        raise PersistenceTimeoutError(f"{operation} timed out") from exc
    except (OperationalError, InterfaceError) as exc:
        db.rollback()
        if _is_timeout(exc):
            logger.error(f"Database timeout during {operation}")
            raise PersistenceTimeoutError(f"{operation} timed out") from exc
        logger.error(f"Database unavailable during {operation}: {type(exc.orig).__name__}")
        raise UnavailableError(f"{operation} failed: database unavailable") from exc
    except DBAPIError as exc:
        db.rollback()
        logger.error(f"Database error during {operation}: {type(exc.orig).__name__}")
        raise PersistenceError(f"{operation} failed") from exc
