"""
Module: inventory_kernel.db.engine
Responsibility: Build the SQLAlchemy engine for PostgreSQL or SQLite, hold
    the process-wide engine and session factory, and provide
    ``session_scope`` for commit-or-rollback blocks.
Architecture position: Kernel > DB.  Imports only db/base.py and, in
    create_tables/drop_tables, the models package so the metadata is
    complete.

Invariants enforced:
    - PostgreSQL sessions run at READ COMMITTED; stock read-validate-write
      sequences take row locks with SELECT ... FOR UPDATE.
    - SQLite transactions start with BEGIN IMMEDIATE, so the writer holds
      the database lock from its first read.  SQLite ignores FOR UPDATE and
      the lock gives the same serialization.
    - SQLite connections enforce foreign keys.

Failure modes:
    - RuntimeError from get_engine/get_session/get_session_factory before
      init_engine_from_url().
    - OperationalError("database is locked") when a SQLite writer waits
      longer than ``busy_timeout`` seconds.
"""

import atexit
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from inventory_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None

_NOT_INITIALIZED = "Engine not initialized. Call init_engine_from_url() first."


def _sqlite_engine(url, echo: bool, busy_timeout: int) -> Engine:
    options: dict[str, Any] = {
        "echo": echo,
        "connect_args": {"check_same_thread": False, "timeout": busy_timeout},
    }
    if url.database in (None, "", ":memory:"):
        # An in-memory database exists per connection; share a single one.
        options["poolclass"] = StaticPool
    engine = create_engine(url, **options)

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Let SQLAlchemy emit BEGIN itself instead of pysqlite's lazy BEGIN.
        dbapi_connection.isolation_level = None
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def build_engine(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
    busy_timeout: int = 30,
) -> Engine:
    """
    Create an engine for ``database_url`` without touching module state.

    The pool arguments apply to PostgreSQL; ``busy_timeout`` (seconds) to
    SQLite.
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        return _sqlite_engine(url, echo, busy_timeout)

    return create_engine(
        url,
        echo=echo,
        poolclass=QueuePool,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=pool_pre_ping,
        pool_timeout=pool_timeout,
        pool_recycle=pool_recycle,
        isolation_level="READ COMMITTED",
    )


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    log_level: int | str = logging.INFO,
    **pool_options: Any,
) -> Engine:
    """
    Build the process-wide engine and session factory.

    Calling it again replaces the previous engine (tests do this).
    ``log_level`` applies only if logging is not configured yet.
    ``pool_options`` are passed through to build_engine.
    """
    global _engine, _SessionFactory

    _engine = build_engine(database_url, echo=echo, **pool_options)
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging(level=log_level)
    logger.info(
        "engine_initialized",
        extra={
            "dialect": _engine.dialect.name,
            "pool_class": type(_engine.pool).__name__,
            "echo": echo,
        },
    )
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    """Factory for callers that open one session per thread."""
    if _SessionFactory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _SessionFactory


def get_session() -> Session:
    return get_session_factory()()


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Session that commits when the block succeeds and rolls back otherwise.

    The session is always closed; exceptions propagate::

        with session_scope() as session:
            StockReconciliationService(session, auto_commit=False).process_purchase(p)
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables(engine: Engine | None = None) -> None:
    from inventory_kernel.db.base import Base
    import inventory_kernel.models  # noqa: F401  (registers all tables)

    Base.metadata.create_all(engine or get_engine())


def drop_tables(engine: Engine | None = None) -> None:
    """Drop every table (tests)."""
    from inventory_kernel.db.base import Base
    import inventory_kernel.models  # noqa: F401

    Base.metadata.drop_all(engine or get_engine())


def reset_engine() -> None:
    """Dispose the process-wide engine and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


@atexit.register
def _dispose_on_exit() -> None:
    if _engine is not None:
        _engine.dispose()
