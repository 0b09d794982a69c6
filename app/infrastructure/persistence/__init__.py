"""Relational persistence: SQLAlchemy engine, declarative base, errors."""

from infrastructure.persistence.database import Base, Database
from infrastructure.persistence.errors import (
    ConcurrentModificationError,
    PersistenceError,
    PersistenceUnavailableError,
)

__all__ = [
    "Base",
    "Database",
    "PersistenceError",
    "PersistenceUnavailableError",
    "ConcurrentModificationError",
]
