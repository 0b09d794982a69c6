"""Persistence layer exceptions."""

from infrastructure.operations.errors import InfrastructureError


class PersistenceError(InfrastructureError):
    """A store operation failed."""

    code = "PERSISTENCE_ERROR"


class PersistenceUnavailableError(PersistenceError):
    """The store cannot be reached at all."""

    code = "PERSISTENCE_UNAVAILABLE"


class ConcurrentModificationError(PersistenceError):
    """A row changed between the read and the write of a transaction."""

    code = "CONCURRENT_MODIFICATION"
