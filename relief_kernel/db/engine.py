"""
Module: relief_kernel.db.engine
Responsibility: SQLAlchemy engine initialization, session factory management,
    and transactional scope utilities.  Single point of database connection
    configuration for the kernel.
Architecture position: Kernel > DB.  May import from db/.  MUST NOT import from
    services/, selectors/, domain/, or outer layers (create_tables imports
    models so the metadata is complete).

Invariants enforced:
    - SQLite connections run with PRAGMA foreign_keys=ON so ON DELETE CASCADE
      and referential checks behave like a server database.
    - SQLite transactions are begun explicitly, so begin_nested() savepoints
      roll back independently of the enclosing transaction.
    - In-memory SQLite uses a single shared connection (StaticPool), so every
      session sees the same database.
    - ORM immutability listeners are registered whenever an engine is
      initialized.

Failure modes:
    - RuntimeError if get_engine/get_session/get_session_factory is called
      before init_engine_from_url().

Audit relevance:
    session_scope() gives commit-or-rollback semantics to callers that do not
    go through the services' own unit of work.
"""

import atexit
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from relief_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None


def _on_sqlite_connect(dbapi_connection, connection_record):
    # pysqlite's own transaction handling would skip BEGIN before SAVEPOINT;
    # SQLAlchemy emits BEGIN itself through _on_sqlite_begin.
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _on_sqlite_begin(conn):
    conn.exec_driver_sql("BEGIN")


def _is_memory_url(database_url: str) -> bool:
    return database_url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in database_url


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine configured for the kernel without touching module state.

    SQLite gets foreign keys switched on for every pooled connection and
    explicit BEGIN so SAVEPOINTs nest inside the outer transaction; an
    in-memory SQLite URL gets a StaticPool.
    """
    kwargs: dict = {"echo": echo}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if _is_memory_url(database_url):
            kwargs["poolclass"] = StaticPool

    engine = create_engine(database_url, **kwargs)

    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _on_sqlite_connect)
        event.listen(engine, "begin", _on_sqlite_begin)

    return engine


def init_engine_from_url(database_url: str, echo: bool = False) -> Engine:
    """
    Initialize the module-level engine and session factory.

    Preconditions: database_url is any SQLAlchemy URL (SQLite by default).
        A second call replaces the first engine.
    Postconditions: get_engine/get_session use this engine, and ORM
        immutability listeners are registered.

    Returns:
        SQLAlchemy Engine instance.
    """
    global _engine, _SessionFactory
    from relief_kernel.db.immutability import register_immutability_listeners

    if _engine is not None:
        _engine.dispose()

    _engine = build_engine(database_url, echo=echo)
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    register_immutability_listeners()

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={
            "dialect": _engine.dialect.name,
            "in_memory": _is_memory_url(database_url),
            "echo": echo,
        },
    )

    return _engine


def get_engine() -> Engine:
    """
    Get the current engine instance.

    Raises:
        RuntimeError: If engine has not been initialized.
    """
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _engine


def get_session() -> Session:
    """
    Get a new session instance.

    Raises:
        RuntimeError: If engine has not been initialized.
    """
    if _SessionFactory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _SessionFactory()


def get_session_factory() -> sessionmaker[Session]:
    """
    Get the session factory, e.g. for a background worker that needs its
    own session.

    Raises:
        RuntimeError: If engine has not been initialized.
    """
    if _SessionFactory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _SessionFactory


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Provide a transactional scope around a series of operations.

    Postconditions: On normal exit the session is committed and closed.
        On exception it is rolled back and closed, and the exception is
        re-raised.

    Usage:
        with session_scope() as session:
            ReliefOrchestrator(session, auto_commit=False).inventory.restock(...)
    """
    session = get_session()
    logger.debug("transaction_started")
    try:
        yield session
        session.commit()
        logger.debug("transaction_committed")
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables(install_triggers: bool = True) -> None:
    """
    Create all tables and, on SQLite, the immutability triggers.

    Raises:
        RuntimeError: If engine is not initialized.
    """
    from relief_kernel import models  # noqa: F401  (populate metadata)
    from relief_kernel.db.base import Base

    engine = get_engine()
    Base.metadata.create_all(engine)

    if install_triggers:
        from relief_kernel.db.triggers import install_immutability_triggers

        install_immutability_triggers(engine)

    logger.info("tables_created", extra={"table_count": len(Base.metadata.tables)})


def drop_tables() -> None:
    """
    Drop all tables. Use with caution - primarily for testing.
    """
    from relief_kernel.db.base import Base
    from relief_kernel.db.triggers import uninstall_immutability_triggers

    engine = get_engine()
    uninstall_immutability_triggers(engine)
    Base.metadata.drop_all(engine)


def reset_engine() -> None:
    """
    Reset the engine and session factory.

    Useful for test cleanup.
    """
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
        _engine = None

    _SessionFactory = None


def _atexit_dispose():
    if _engine is not None:
        _engine.dispose()


atexit.register(_atexit_dispose)
