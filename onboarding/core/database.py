"""Database helpers for the conversation store and the operational store."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .config import settings

LOGGER = logging.getLogger(__name__)

CONVERSATION_STORE = "conversation"
OPERATIONAL_STORE = "operational"

_ENGINES: Dict[str, Engine] = {}
_SESSION_FACTORIES: Dict[str, sessionmaker] = {}


class DatabaseError(RuntimeError):
    """Raised when a database interaction cannot be completed."""


def _database_url(store: str) -> str:
    if store == OPERATIONAL_STORE:
        return settings.OPERATIONAL_DATABASE_URL
    return settings.DATABASE_URL


def _connect_args(url: str) -> Dict[str, Any]:
    backend = make_url(url).get_backend_name()
    timeout = settings.OPERATIONAL_DB_TIMEOUT_SECONDS
    if backend == "postgresql":
        return {
            "connect_timeout": timeout,
            "keepalives": 1,
            "keepalives_idle": 60,
            "keepalives_interval": 30,
            "keepalives_count": 5,
        }
    if backend == "mysql":
        return {
            "connect_timeout": timeout,
            "read_timeout": timeout,
            "write_timeout": timeout,
        }
    return {}


def reset_engines() -> None:
    """Dispose every engine and drop the cached session factories."""

    for engine in _ENGINES.values():
        engine.dispose()
    _ENGINES.clear()
    _SESSION_FACTORIES.clear()


def get_engine(store: str = CONVERSATION_STORE) -> Engine:
    engine = _ENGINES.get(store)
    if engine is None:
        url = _database_url(store)
        LOGGER.info("Connecting %s store to %s", store, make_url(url).render_as_string())
        engine = create_engine(
            url,
            pool_pre_ping=True,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_recycle=settings.DB_POOL_RECYCLE,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            connect_args=_connect_args(url),
        )
        _ENGINES[store] = engine
    return engine


def get_session_factory(store: str = CONVERSATION_STORE) -> sessionmaker:
    factory = _SESSION_FACTORIES.get(store)
    if factory is None:
        factory = sessionmaker(
            bind=get_engine(store),
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
        )
        _SESSION_FACTORIES[store] = factory
    return factory


@contextmanager
def session_scope(factory: sessionmaker) -> Iterator[Session]:
    """Provide a transactional scope around a series of operations."""

    session = factory()
    try:
        yield session
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        LOGGER.exception("Database session error: %s", exc)
        raise DatabaseError(str(exc)) from exc
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def get_session(store: str = CONVERSATION_STORE) -> Iterator[Session]:
    with session_scope(get_session_factory(store)) as session:
        yield session


__all__ = [
    "CONVERSATION_STORE",
    "DatabaseError",
    "OPERATIONAL_STORE",
    "get_engine",
    "get_session",
    "get_session_factory",
    "reset_engines",
    "session_scope",
]
