"""Cache abstract base class."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class Cache(ABC):
    """Abstract base class for short-lived value caches.

    Used for aggregate statistics that are expensive to compute and can be
    served slightly stale. Writers that change the underlying data invalidate
    entries by key prefix.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Get a cached value.

        Returns:
            The value or None if missing or expired.
        """
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Cache a value for ``ttl_seconds``."""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove a key. Returns True if it was present."""
        pass

    @abstractmethod
    def invalidate_prefix(self, prefix: str) -> int:
        """Remove every key starting with ``prefix``.

        Returns:
            Number of entries removed.
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Clear all cached entries."""
        pass

    @abstractmethod
    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics (implementation-specific)."""
        pass
