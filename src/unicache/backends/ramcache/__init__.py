"""
unicache — ramcache driver

In-memory cache: Item + Store + background Evictor behind the cache interface.
"""

from .backend import SCHEME, RamCacheBackend
from .eviction import DEFAULT_SWEEP_INTERVAL, Evictor
from .options import RamcacheOptions
from .store import Item, KeyItem, ReadWriteLock, Store

__all__ = [
    "SCHEME",
    "RamCacheBackend",
    "RamcacheOptions",
    "Evictor",
    "DEFAULT_SWEEP_INTERVAL",
    "Item",
    "KeyItem",
    "ReadWriteLock",
    "Store",
]
