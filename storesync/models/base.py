"""
Base database model and the connection pool wrapper

The engine is owned by a Database instance that is created once by the
application and passed to every service, instead of living at module level.
"""
import asyncio
import os
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, TypeVar

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import NullPool

from storesync.utils.logger import log
from storesync.utils.retry import retry_sync

T = TypeVar("T")

# Base class for all models
Base = declarative_base()


def _resolve_url(database_url: str) -> str:
    """Resolve relative SQLite paths to absolute so cwd changes can't break it"""
    if database_url.startswith("sqlite:///") and not database_url.startswith("sqlite:////"):
        rel_path = database_url[len("sqlite:///"):]
        if rel_path and rel_path != ":memory:":
            return "sqlite:///" + os.path.abspath(rel_path)
    return database_url


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Connection pool plus transaction helpers.

    Every unit of work (one page of records, one webhook event, one log
    update) runs in its own transaction through run()/run_async(). Only
    connection-class failures are retried; the whole unit is replayed on a
    fresh connection after its transaction was rolled back.
    """

    def __init__(
        self,
        database_url: str,
        pool_size: int = 10,
        max_overflow: int = 5,
        max_retries: int = 3,
        retry_base_delay: float = 0.1,
    ):
        self.url = _resolve_url(database_url)
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay

        if self.url.startswith("sqlite"):
            self.engine = create_engine(
                self.url,
                connect_args={"check_same_thread": False, "timeout": 60},
                poolclass=NullPool,
            )
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        else:
            self.engine = create_engine(
                self.url,
                pool_pre_ping=True,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_recycle=300,
            )

        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine)

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    def create_all(self):
        """Create any missing tables"""
        # Register every model on Base.metadata
        import storesync.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def dispose(self):
        self.engine.dispose()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Session that commits on success and rolls back on any error"""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def run(self, fn: Callable[..., T], *args, **kwargs) -> T:
        """Run fn(session, *args, **kwargs) in one transaction, retrying dropped connections"""

        def _in_transaction():
            with self.transaction() as session:
                return fn(session, *args, **kwargs)

        _in_transaction.__name__ = getattr(fn, "__name__", "transaction")
        retrying = retry_sync(max_attempts=self.max_retries, base_delay=self.retry_base_delay)
        return retrying(_in_transaction)()

    async def run_async(self, fn: Callable[..., T], *args, **kwargs) -> T:
        """Same as run(), executed in a worker thread so the event loop keeps going"""
        return await asyncio.to_thread(self.run, fn, *args, **kwargs)


_database: Optional[Database] = None


def get_database() -> Database:
    """Application-wide Database built from settings"""
    global _database
    if _database is None:
        from storesync.config import get_settings

        settings = get_settings()
        _database = Database(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            max_retries=settings.db_max_retries,
            retry_base_delay=settings.db_retry_base_delay,
        )
    return _database


def init_db(database: Optional[Database] = None) -> Database:
    """Initialize database tables."""
    database = database or get_database()
    database.create_all()
    log.info(f"Database initialized ({database.dialect_name})")
    return database
