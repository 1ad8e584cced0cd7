"""
Module: vault_kernel.db.engine
Responsibility: SQLAlchemy engine initialization, session factory management,
    transactional scope utilities and foreign-key suspension.  This is the
    single point of database connection configuration.
Architecture position: Kernel > DB.  May import from db/base.py.  MUST NOT
    import from services/, selectors/ or outer layers (create_tables imports
    models to register their tables).

Invariants enforced:
    - SQLite is the supported backend.
    - Foreign-key enforcement is switched ON for every new DBAPI connection.
      It is only ever switched off inside ``foreign_keys_suspended()``, which
      restores it on exit whatever happened inside the block.

Failure modes:
    - RuntimeError if get_engine/get_session are called before
      init_engine_from_url().
    - A failure while restoring foreign keys is logged, never raised, so it
      cannot mask the error that ended the block.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from vault_kernel.logging_config import get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys = ON")
    finally:
        cursor.close()


def _is_memory_url(database_url: str) -> bool:
    return database_url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in database_url


def init_engine_from_url(database_url: str, echo: bool = False) -> Engine:
    """
    Initialize the SQLAlchemy engine from a SQLite database URL.

    In-memory databases share one connection (StaticPool) so every session
    sees the same data.  A second call replaces the first engine.

    Args:
        database_url: SQLite URL, e.g. ``sqlite:///vault.db``.
        echo: If True, log all SQL statements.

    Returns:
        SQLAlchemy Engine instance.
    """
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()

    kwargs: dict = {"echo": echo}
    if _is_memory_url(database_url):
        kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}

    _engine = create_engine(database_url, **kwargs)
    event.listen(_engine, "connect", _enable_foreign_keys)

    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    logger.info(
        "engine_initialized",
        extra={"dialect": _engine.dialect.name, "echo": echo},
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


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Provide a transactional scope around a series of operations.

    Commits on normal exit; rolls back and re-raises on exception; always
    closes the session.

    Usage:
        with session_scope() as session:
            PrimaryManagerService(session).refresh_all(logic)
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


@contextmanager
def foreign_keys_suspended(engine: Engine | None = None) -> Generator[Connection, None, None]:
    """
    Yield a dedicated connection with foreign-key enforcement switched off.

    SQLite ignores ``PRAGMA foreign_keys`` inside a transaction, so the
    pragma is issued on a fresh connection before any work and committed.
    Callers run their transactions on the yielded connection.  On exit any
    open transaction is rolled back and enforcement is switched back on
    exactly once, even when the block raised.
    """
    eng = engine or get_engine()
    conn = eng.connect()
    try:
        conn.exec_driver_sql("PRAGMA foreign_keys = OFF")
        conn.commit()
        logger.debug("foreign_keys_suspended")
        yield conn
    finally:
        try:
            if conn.in_transaction():
                conn.rollback()
            conn.exec_driver_sql("PRAGMA foreign_keys = ON")
            conn.commit()
            logger.debug("foreign_keys_restored")
        except SQLAlchemyError:
            logger.error("foreign_keys_restore_failed", exc_info=True)
        finally:
            conn.close()


def create_tables(engine: Engine | None = None) -> None:
    """
    Create all tables defined in the models.

    Idempotent: existing tables are left untouched.
    """
    from vault_kernel.db.base import Base
    import vault_kernel.models  # noqa: F401  (registers tables on Base.metadata)

    Base.metadata.create_all(engine or get_engine())


def drop_tables(engine: Engine | None = None) -> None:
    """Drop all tables. Use with caution - primarily for testing."""
    from vault_kernel.db.base import Base
    import vault_kernel.models  # noqa: F401

    Base.metadata.drop_all(engine or get_engine())


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
