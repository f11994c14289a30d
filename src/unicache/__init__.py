"""
unicache — unified caching façade

One async cache interface over several drivers, selected by URL scheme:

- ramcache://       in-memory store with per-key TTL and background sweep
- redis://          Redis (requires the redis client)
- rediscluster://   Redis Cluster (requires the redis client)
- memcache://       Memcached (requires pymemcache)

Usage:
    from unicache import open_cache

    cache = open_cache("ramcache://?cleanupinterval=1m")
    await cache.set_with_ttl("key", "value", ttl=60)
    value = await cache.get("key")  # b"value"
"""

from .backends.ramcache import RamCacheBackend, RamcacheOptions
from .errors import (
    CacheError,
    CacheOperationError,
    ConfigurationError,
    ErrorCode,
    InvalidTTLError,
    KeyNotFoundError,
    NoCacheError,
    PatternMatchingNotSupportedError,
    SerializationError,
    UnicacheError,
    UnsupportedValueTypeError,
)
from .factory import (
    CacheFactory,
    close_all_caches,
    create_cache,
    get_cache,
    list_cache_instances,
    open_cache,
    reset_cache_factory,
)
from .interface import CacheInterface
from .keymod import Key, modify
from .registry import CacheRegistry, default_registry

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Interface
    "CacheInterface",
    # Factory functions
    "CacheFactory",
    "create_cache",
    "get_cache",
    "close_all_caches",
    "list_cache_instances",
    "reset_cache_factory",
    "open_cache",
    # Registry
    "CacheRegistry",
    "default_registry",
    # Drivers
    "RamCacheBackend",
    "RamcacheOptions",
    # Keys
    "Key",
    "modify",
    # Errors
    "ErrorCode",
    "UnicacheError",
    "ConfigurationError",
    "CacheError",
    "NoCacheError",
    "KeyNotFoundError",
    "PatternMatchingNotSupportedError",
    "InvalidTTLError",
    "UnsupportedValueTypeError",
    "SerializationError",
    "CacheOperationError",
]
