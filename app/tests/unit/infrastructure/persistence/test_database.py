"""Unit tests for Database session management."""

from unittest.mock import patch

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError

from infrastructure.configuration import DatabaseSettings
from infrastructure.persistence import (
    ConcurrentModificationError,
    Database,
    PersistenceError,
    PersistenceUnavailableError,
)


@pytest.fixture
def memory_database():
    database = Database("sqlite://")
    yield database
    database.dispose()


@pytest.mark.unit
class TestDatabase:
    def test_from_settings(self):
        database = Database.from_settings(DatabaseSettings(DATABASE_URL="sqlite://"))

        assert database.dialect == "sqlite"
        database.dispose()

    def test_ping(self, memory_database):
        assert memory_database.ping() is True

    def test_ping_failure_returns_false(self, memory_database):
        with patch.object(
            memory_database.engine, "connect", side_effect=OperationalError("SELECT 1", {}, Exception("down"))
        ):
            assert memory_database.ping() is False

    def test_session_scope_commits(self, memory_database):
        with memory_database.session_scope() as session:
            session.execute(text("CREATE TABLE t (id INTEGER PRIMARY KEY)"))
            session.execute(text("INSERT INTO t (id) VALUES (1)"))

        with memory_database.session_scope() as session:
            assert session.execute(text("SELECT count(*) FROM t")).scalar() == 1

    def test_session_scope_rolls_back_and_reraises_other_errors(self, memory_database):
        with memory_database.session_scope() as session:
            session.execute(text("CREATE TABLE t (id INTEGER PRIMARY KEY)"))

        with pytest.raises(KeyError):
            with memory_database.session_scope() as session:
                session.execute(text("INSERT INTO t (id) VALUES (1)"))
                raise KeyError("boom")

        with memory_database.session_scope() as session:
            assert session.execute(text("SELECT count(*) FROM t")).scalar() == 0

    def test_operational_error_maps_to_unavailable(self, memory_database):
        with pytest.raises(PersistenceUnavailableError):
            with memory_database.session_scope():
                raise OperationalError("SELECT 1", {}, Exception("connection lost"))

    def test_other_sqlalchemy_error_maps_to_persistence_error(self, memory_database):
        with pytest.raises(PersistenceError) as exc_info:
            with memory_database.session_scope():
                raise IntegrityError("INSERT", {}, Exception("duplicate"))

        assert not isinstance(exc_info.value, PersistenceUnavailableError)
        assert exc_info.value.code == "PERSISTENCE_ERROR"


@pytest.mark.unit
def test_error_hierarchy():
    assert issubclass(ConcurrentModificationError, PersistenceError)
    assert issubclass(PersistenceUnavailableError, PersistenceError)
