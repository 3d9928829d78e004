"""Database manager for the drawing index.

This module contains the DatabaseManager class for handling database
connections, session creation, database initialization and the
single-writer transaction boundary shared by the record store and the
search index.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from ..config import Config
from ..models import Base
from ..exceptions import DatabaseError
from .search_index import SearchIndex

__all__ = ["DatabaseManager"]

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Manages database connections, sessions and write transactions.

    This class handles SQLAlchemy engine creation, database initialization
    (tables plus the full-text index), and provides session scopes. All
    writes go through ``transaction()``, which serialises writers and
    commits or rolls back the whole unit of work.

    Attributes:
        database_url: SQLAlchemy database URL
        _engine: Cached SQLAlchemy engine instance
        _session_factory: Cached sessionmaker factory
        _write_lock: Lock held for the lifetime of each write transaction
    """

    def __init__(self, database_url: str = Config.DATABASE_URL) -> None:
        """Initialize DatabaseManager with database URL.

        Args:
            database_url: SQLAlchemy database URL string (SQLite only)
        """
        self.database_url: str = database_url
        self._engine: Optional[Any] = None
        self._session_factory: Optional[Any] = None
        self._write_lock: threading.RLock = threading.RLock()

    @property
    def is_memory(self) -> bool:
        """Whether the URL points at an in-memory SQLite database."""
        return self.database_url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in self.database_url

    @property
    def engine(self) -> Any:
        """Get or create SQLAlchemy engine with lazy initialization.

        In-memory databases share one connection through a static pool;
        file databases get a connection per session and run in WAL mode so
        readers never block on the writer.

        Returns:
            SQLAlchemy engine instance

        Raises:
            DatabaseError: If engine creation or database initialization fails
        """
        if self._engine is None:
            if not self.database_url.startswith("sqlite"):
                raise DatabaseError(
                    f"Unsupported database URL: {self.database_url}. The search index requires SQLite FTS5"
                )
            try:
                options: dict = {
                    "connect_args": {
                        "check_same_thread": False,
                        "timeout": 20
                    },
                    "echo": False
                }
                if self.is_memory:
                    options["poolclass"] = StaticPool

                engine = create_engine(self.database_url, **options)
                event.listen(engine, "connect", self._configure_connection)

                Base.metadata.create_all(engine)
                with engine.begin() as connection:
                    SearchIndex.create_schema(connection)
                self._engine = engine
            except DatabaseError:
                raise
            except Exception as e:
                raise DatabaseError(f"Database initialization error: {str(e)}")
        return self._engine

    def _configure_connection(self, dbapi_connection: Any, connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA foreign_keys=ON")
            if not self.is_memory:
                cursor.execute("PRAGMA journal_mode=WAL")
        finally:
            cursor.close()

    def create_session(self) -> Session:
        """Create a new database session.

        Each call returns a fresh session instance. Loaded attributes stay
        readable after commit.

        Returns:
            SQLAlchemy Session instance
        """
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        return self._session_factory()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Run a unit of work as one atomic write.

        Only one write transaction runs at a time. Everything executed on
        the yielded session is committed together on normal exit and
        rolled back together on any error.

        Yields:
            Session bound to the open transaction

        Raises:
            DatabaseError: If the database rejects any statement or the commit
        """
        with self._write_lock:
            session: Session = self.create_session()
            try:
                yield session
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                logger.error("Transaction rolled back: %s", e)
                raise DatabaseError(f"Database write error: {str(e)}")
            except BaseException:
                session.rollback()
                raise
            finally:
                session.close()

    @contextmanager
    def read_session(self) -> Iterator[Session]:
        """Open a read-only session scope.

        Readers on a file database run concurrently with the writer. An
        in-memory database shares one connection, so readers wait for the
        writer to finish instead of seeing its open transaction.

        Yields:
            Session for queries; it is closed on exit
        """
        if self.is_memory:
            with self._write_lock:
                session = self.create_session()
                try:
                    yield session
                finally:
                    session.close()
        else:
            session = self.create_session()
            try:
                yield session
            finally:
                session.close()
