"""Database engine factory."""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DisconnectionError
from sqlalchemy.pool import StaticPool

from staybook.core.config import settings

logger = logging.getLogger(__name__)


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


def _add_sqlite_events(engine: Engine, busy_timeout_seconds: float) -> None:
    """
    Make SQLite behave like a serializing store for booking writes.

    pysqlite's own transaction handling is switched off so every transaction
    starts with ``BEGIN IMMEDIATE``: the write lock is taken before the
    overlap check reads, and concurrent writers queue on ``busy_timeout``.
    """
    busy_timeout_ms = int(busy_timeout_seconds * 1000)

    @event.listens_for(engine, "connect")  # type: ignore[untyped-decorator]
    def _on_connect(dbapi_connection: Any, _connection_record: Any) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute(f"PRAGMA busy_timeout={busy_timeout_ms}")
        cursor.close()

    @event.listens_for(engine, "begin")  # type: ignore[untyped-decorator]
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def _add_pool_events(engine: Engine, pool_name: str) -> None:
    @event.listens_for(engine, "connect")  # type: ignore[untyped-decorator]
    def _on_connect(_dbapi_connection: Any, _connection_record: Any) -> None:
        logger.info("[%s] Database connection established", pool_name)

    @event.listens_for(engine, "checkout")  # type: ignore[untyped-decorator]
    def _on_checkout(
        dbapi_connection: Any, _connection_record: Any, _connection_proxy: Any
    ) -> None:
        logger.debug("[%s] Connection checked out from pool", pool_name)
        try:
            cursor = dbapi_connection.cursor()
            cursor.execute("SELECT 1")
            cursor.close()
        except Exception as exc:
            raise DisconnectionError("Connection ping failed") from exc

    @event.listens_for(engine, "invalidate")  # type: ignore[untyped-decorator]
    def _on_invalidate(_dbapi_connection: Any, _connection_record: Any, exception: Any) -> None:
        logger.warning(
            "[%s] Connection invalidated",
            pool_name,
            extra={
                "event": "db_connection_invalidated",
                "exception": str(exception) if exception else "unknown",
            },
        )


def create_db_engine(
    db_url: Optional[str] = None,
    *,
    pool_name: str = "api",
    busy_timeout_seconds: Optional[float] = None,
) -> Engine:
    """
    Build an engine for ``db_url`` (defaults to ``settings.database_url``).

    SQLite engines get the serializing hooks above; in-memory SQLite shares a
    single connection so every session sees the same database.
    """
    url = db_url or settings.get_database_url()

    if _is_sqlite(url):
        kwargs: dict[str, Any] = {
            "connect_args": {"check_same_thread": False},
            "future": True,
        }
        if _is_memory_sqlite(url):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, **kwargs)
        _add_sqlite_events(
            engine,
            busy_timeout_seconds
            if busy_timeout_seconds is not None
            else settings.sqlite_busy_timeout_seconds,
        )
        logger.debug("[%s] SQLite engine created", pool_name)
        return engine

    engine = create_engine(
        url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_pre_ping=True,
        pool_use_lifo=True,
        future=True,
        connect_args={
            "connect_timeout": 5,
            "options": f"-c statement_timeout={settings.statement_timeout_ms}",
            "application_name": "staybook",
        },
    )
    _add_pool_events(engine, pool_name)
    return engine
