"""Redis caching layer for API response caching.

This package provides Redis-based caching with:
- Connection pooling and bounded reconnection (RedisCache)
- Cache key generation (CacheKeyBuilder, CacheKeys)
- TTL policies (CacheTTL)
- Cache operations and cache-aside reads (CacheManager)
- Pattern invalidation on writes (CacheInvalidator)
- Graceful fail-open behavior
"""

from serenity.cache.connection import RedisCache, ReconnectPolicy
from serenity.cache.invalidation import INVALIDATION_MAP, CacheInvalidator, patterns_for
from serenity.cache.keys import ANONYMOUS, CacheKeyBuilder, CacheKeys
from serenity.cache.manager import CacheManager, CacheResult
from serenity.cache.ttl import CacheTTL

__all__ = [
    # Connection
    "RedisCache",
    "ReconnectPolicy",
    # Key generation
    "ANONYMOUS",
    "CacheKeyBuilder",
    "CacheKeys",
    # Cache manager
    "CacheManager",
    "CacheResult",
    # Invalidation
    "CacheInvalidator",
    "INVALIDATION_MAP",
    "patterns_for",
    # TTL policies
    "CacheTTL",
]
