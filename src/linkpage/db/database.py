"""Database configuration and setup."""

import logging
import time
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.engine import Engine
from typing import Optional

from ..config import get_config

# Child of the database component logger
query_logger = logging.getLogger("linkpage.database.query_performance")


def _is_sqlite_url(url: str) -> bool:
    """Check if database URL is for SQLite."""
    return url.startswith("sqlite:")


def _setup_sqlite_pragma(dbapi_connection, connection_record):
    """Set SQLite pragmas for concurrency and referential integrity."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA busy_timeout=5000")  # 5 second timeout for concurrent access
    cursor.execute("PRAGMA temp_store=MEMORY")
    cursor.close()


def _setup_query_logging(
    engine: Engine, enable_query_logging: bool = False, slow_threshold: float = 0.1
):
    """Time every statement; slow ones are warnings, the rest debug."""
    if not enable_query_logging:
        return

    @event.listens_for(engine, "before_cursor_execute")
    def _start_timer(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("query_start_time", []).append(time.perf_counter())

    @event.listens_for(engine, "after_cursor_execute")
    def _log_duration(conn, cursor, statement, parameters, context, executemany):
        elapsed = time.perf_counter() - conn.info["query_start_time"].pop()
        summary = " ".join(statement.split())
        if elapsed > slow_threshold:
            query_logger.warning(f"Slow query ({elapsed:.3f}s): {summary[:200]}")
        else:
            query_logger.debug(f"Query ({elapsed:.3f}s): {summary[:100]}")


def create_database_engine(
    database_url: Optional[str] = None,
    enable_query_logging: bool = False,
    echo: bool = False,
):
    """Create an engine for 'database_url' (default: the configured URL).

    SQLite connections get foreign keys, WAL and a busy timeout so cascades
    work and concurrent click writers queue instead of failing.
    """
    if database_url is None:
        database_url = get_config().database.url

    if _is_sqlite_url(database_url):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=echo,
        )
        event.listen(engine, "connect", _setup_sqlite_pragma)
    else:
        engine = create_engine(database_url, echo=echo, pool_pre_ping=True)

    _setup_query_logging(engine, enable_query_logging)

    return engine


_config = get_config()
DATABASE_URL = _config.database.url

engine = create_database_engine(
    DATABASE_URL,
    enable_query_logging=_config.database.log_queries,
    echo=_config.database.echo,
)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


def get_db():
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
