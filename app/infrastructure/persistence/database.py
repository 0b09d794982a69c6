"""Synchronous SQLAlchemy engine and session management.

One Database instance is created at startup from DatabaseSettings and shared
by the SQL repository and the SQL job queue.

Example:
    database = Database.from_settings(settings.database)
    database.create_all()

    with database.session_scope() as session:
        session.add(row)
"""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from infrastructure.configuration import DatabaseSettings
from infrastructure.logging import get_module_logger
from infrastructure.persistence.errors import (
    PersistenceError,
    PersistenceUnavailableError,
)

logger = get_module_logger()


class Base(DeclarativeBase):
    """Declarative base shared by every ORM model."""


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Engine plus session factory.

    Args:
        url: SQLAlchemy URL.
        echo: Log SQL statements.
        pool_pre_ping: Validate pooled connections before use.
    """

    def __init__(self, url: str, echo: bool = False, pool_pre_ping: bool = True):
        self.url = url
        engine_kwargs = {"echo": echo, "future": True}
        if url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in url or url == "sqlite://":
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["pool_pre_ping"] = pool_pre_ping

        try:
            self.engine: Engine = create_engine(url, **engine_kwargs)
        except SQLAlchemyError as e:
            raise PersistenceUnavailableError("Failed to create database engine", e) from e

        if url.startswith("sqlite"):
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        self._sessionmaker = sessionmaker(
            bind=self.engine,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info("database_initialized", dialect=self.engine.dialect.name)

    @classmethod
    def from_settings(cls, settings: DatabaseSettings) -> "Database":
        return cls(
            url=settings.url,
            echo=settings.echo,
            pool_pre_ping=settings.pool_pre_ping,
        )

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def create_all(self) -> None:
        """Create every table registered on Base."""
        Base.metadata.create_all(self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(self.engine)

    def new_session(self) -> Session:
        return self._sessionmaker()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Session committed on success and rolled back on any exception.

        SQLAlchemy errors are re-raised as PersistenceError (or
        PersistenceUnavailableError when the connection itself failed).
        """
        session = self._sessionmaker()
        try:
            yield session
            session.commit()
        except OperationalError as e:
            session.rollback()
            logger.error("database_unavailable", error=str(e))
            raise PersistenceUnavailableError("Database unavailable", e) from e
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("database_operation_failed", error=str(e))
            raise PersistenceError("Database operation failed", e) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ping(self) -> bool:
        """Return True when a trivial query succeeds."""
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning("database_ping_failed", error=str(e))
            return False

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("database_disposed")


