"""Short-lived caches for aggregate statistics."""

from infrastructure.cache.base import Cache
from infrastructure.cache.memory import InMemoryCache

__all__ = ["Cache", "InMemoryCache"]
