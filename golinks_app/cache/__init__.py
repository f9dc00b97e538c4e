"""
Lookup cache for resolved links.

Backends are interchangeable strategies; CacheFactory picks one from the
CACHE_BACKEND setting.
"""

from .factory import CacheBackend, CacheFactory
from .strategies import CacheStrategy, InMemoryCache, NullCache, RedisCache

__all__ = [
    "CacheBackend",
    "CacheFactory",
    "CacheStrategy",
    "InMemoryCache",
    "NullCache",
    "RedisCache",
]
