"""
unicache — Cache Backends

Exports available cache backend implementations.

Redis and memcache backends are lazy-loaded via registry.py to avoid a hard
dependency on their client libraries.
"""

from .ramcache import RamCacheBackend, RamcacheOptions

__all__ = [
    "RamCacheBackend",
    "RamcacheOptions",
]
