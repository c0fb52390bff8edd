"""
Module: inventory_kernel.db.engine
Responsibility: The store handle.  Owns the SQLAlchemy engine and session
    factory, installs per-connection settings for the embedded store, and
    exposes the transactional scope used by the facade.
Architecture position: Kernel > DB.  May import from db/base.py.  MUST NOT
    import from services/, selectors/, domain/, or outer layers (except
    create_tables, which imports models so Base.metadata is complete).

Invariants enforced:
    - No ambient state: a Store is constructed explicitly and passed to
      whoever needs it.  Two Stores never share an engine.
    - SQLite connections run with ``PRAGMA foreign_keys=ON`` so the
      Invoice -> StockMovement ``ON DELETE CASCADE`` and the Item
      ``ON DELETE RESTRICT`` are enforced by the store itself.
    - SQLite transactions are begun explicitly (pysqlite's implicit BEGIN is
      disabled) so SAVEPOINTs used by the cascade coordinator roll back
      correctly.

Failure modes:
    - RuntimeError if session()/session_scope() is called after dispose().
    - sqlalchemy.exc.OperationalError if the database file is not writable.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from inventory_kernel.logging_config import get_logger

logger = get_logger("db.engine")


def _is_memory_sqlite(database_url: str) -> bool:
    return database_url in ("sqlite://", "sqlite:///:memory:")


def _install_sqlite_listeners(engine: Engine) -> None:
    """Enable FK enforcement and explicit transaction control for SQLite."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Hand transaction control to SQLAlchemy
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


class Store:
    """
    Handle on the embedded relational store.

    Contract:
        Construct once at application start, pass to the facade (or to
        services via ``session()``), call ``dispose()`` at shutdown.  Also
        usable as a context manager.

    Guarantees:
        - ``session_scope()`` commits on normal exit and rolls back on any
          exception, re-raising it.
        - In-memory SQLite stores keep a single shared connection so every
          session sees the same database.
    """

    def __init__(self, database_url: str = "sqlite://", echo: bool = False):
        self.database_url = database_url
        engine_kwargs: dict = {"echo": echo}
        if _is_memory_sqlite(database_url):
            engine_kwargs["poolclass"] = StaticPool
            engine_kwargs["connect_args"] = {"check_same_thread": False}

        self._engine: Engine | None = create_engine(database_url, **engine_kwargs)
        if self._engine.dialect.name == "sqlite":
            _install_sqlite_listeners(self._engine)

        self._session_factory: sessionmaker[Session] | None = sessionmaker(
            bind=self._engine, expire_on_commit=False
        )
        logger.info(
            "store_initialized",
            extra={"dialect": self._engine.dialect.name, "echo": echo},
        )

    @classmethod
    def from_config(cls, config) -> "Store":
        """Build a store from a KernelConfig."""
        return cls(config.database_url, echo=config.echo_sql)

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Store has been disposed.")
        return self._engine

    def session(self) -> Session:
        """Get a new session bound to this store."""
        if self._session_factory is None:
            raise RuntimeError("Store has been disposed.")
        return self._session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope around a series of operations.

        Usage:
            with store.session_scope() as session:
                ContactService(session).create(...)
                # Commits on successful exit, rolls back on exception
        """
        session = self.session()
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

    def create_tables(self) -> None:
        """Create all kernel tables (idempotent)."""
        from inventory_kernel.db.base import Base
        import inventory_kernel.models  # noqa: F401  (registers tables)

        Base.metadata.create_all(self.engine)
        logger.info("tables_created", extra={"tables": sorted(Base.metadata.tables)})

    def drop_tables(self) -> None:
        """Drop all kernel tables. Use with caution - primarily for testing."""
        from inventory_kernel.db.base import Base
        import inventory_kernel.models  # noqa: F401

        Base.metadata.drop_all(self.engine)
        logger.info("tables_dropped")

    def dispose(self) -> None:
        """Release all pooled connections. The store is unusable afterwards."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("store_disposed")

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, *exc) -> None:
        self.dispose()
