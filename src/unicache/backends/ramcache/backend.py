"""
unicache — ramcache Backend

In-memory cache driver with per-key TTL, lazy expiry on read and a
background sweep of expired entries.

Suitable for testing, development and single-process deployments; data is
lost on process exit.

Limitations:
    Pattern matching is not supported: ``count`` and ``delete_keys`` always
    raise PatternMatchingNotSupportedError.

Example:
    cache = RamCacheBackend(RamcacheOptions(cleanup_interval=timedelta(minutes=1)))
    await cache.set_with_ttl("greeting", "hello", ttl=60)
    value = await cache.get("greeting")  # b"hello"
"""

import asyncio
import logging
import threading
from typing import Any
from urllib.parse import SplitResult

from ...errors import KeyNotFoundError, PatternMatchingNotSupportedError
from ...interface import CacheInterface
from ...keymod import KeyModifier, modify
from ...serialization import to_bytes
from ...ttl import TTL, validate_ttl
from ...urls import options_from_url, parse_cache_url
from .eviction import Evictor
from .options import URL_FIELDS, RamcacheOptions
from .store import Item, Store

logger = logging.getLogger(__name__)

SCHEME = "ramcache"


class RamCacheBackend(CacheInterface):
    """
    In-memory cache backend.

    Features:
    - Per-key TTL (0 = never expires)
    - Lazy expiry: expired entries found on read are removed and reported missing
    - Background sweep of expired entries every ``cleanup_interval``
    - Thread-safe store with a readers/writer lock
    """

    scheme = SCHEME

    def __init__(self, options: RamcacheOptions | None = None):
        """
        Initialize the backend and start its background sweep.

        Args:
            options: Driver options (defaults: 5 minute sweep interval)
        """
        self.options = options or RamcacheOptions()

        self._store = Store()
        self._evictor = Evictor(self._store, self.options.cleanup_interval)

        # Stats
        self._stats_lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0
        self._expired = 0

        self._closed = False
        self._evictor.start()

        logger.info(
            "ramcache backend created (cleanup_interval=%ss)",
            self._evictor.interval,
            extra={"backend": SCHEME, "cleanup_interval": self._evictor.interval},
        )

    @classmethod
    def open_url(cls, url: str | SplitResult) -> "RamCacheBackend":
        """
        Create a backend from a ``ramcache://`` URL.

        Raises:
            ConfigurationError: If the query holds invalid options
        """
        parsed = parse_cache_url(url)
        return cls(options_from_url(parsed, RamcacheOptions, URL_FIELDS))

    def _count(self, counter: str) -> None:
        with self._stats_lock:
            setattr(self, counter, getattr(self, counter) + 1)

    def _lookup(self, key: str) -> Item | None:
        """Return the live item for a key, dropping it if it has expired."""
        item = self._store.get(key)
        if item is None:
            return None
        if item.is_expired():
            if self._store.delete_if(key, item):
                self._count("_expired")
                logger.debug(f"Removed expired key from ramcache: {key}")
            return None
        return item

    async def set(self, key: str, value: Any, *modifiers: KeyModifier) -> None:
        """Store value with no expiry."""
        await self.set_with_ttl(key, value, 0, *modifiers)

    async def set_with_ttl(self, key: str, value: Any, ttl: TTL, *modifiers: KeyModifier) -> None:
        """Store value expiring after ttl (0 = no expiry)."""
        seconds = validate_ttl(ttl, scheme=SCHEME)
        payload = to_bytes(value, scheme=SCHEME)

        self._store.set(modify(key, *modifiers), Item.create(payload, seconds))
        self._count("_sets")

    async def exists(self, key: str, *modifiers: KeyModifier) -> bool:
        """Check if key exists and is not expired."""
        return self._lookup(modify(key, *modifiers)) is not None

    async def count(self, pattern: str, *modifiers: KeyModifier) -> int:
        raise PatternMatchingNotSupportedError("count", scheme=SCHEME)

    async def get(self, key: str, *modifiers: KeyModifier) -> bytes:
        """Retrieve value from cache."""
        key = modify(key, *modifiers)
        item = self._lookup(key)
        if item is None:
            self._count("_misses")
            raise KeyNotFoundError(key, scheme=SCHEME)

        self._count("_hits")
        return item.value

    async def delete(self, key: str, *modifiers: KeyModifier) -> None:
        """
        Delete key from cache.

        An entry that has expired but not yet been swept counts as absent.
        """
        key = modify(key, *modifiers)
        if self._lookup(key) is None or not self._store.delete(key):
            raise KeyNotFoundError(key, scheme=SCHEME)
        self._count("_deletes")

    async def delete_keys(self, pattern: str, *modifiers: KeyModifier) -> None:
        raise PatternMatchingNotSupportedError("delete_keys", scheme=SCHEME)

    async def clear(self) -> None:
        """Clear all entries from cache."""
        size = len(self._store)
        self._store.clear()
        logger.info(f"Cleared {size} entries from ramcache")

    async def ping(self) -> None:
        """In-memory store is always reachable."""
        return None

    async def close(self) -> None:
        """
        Stop the background sweep.

        Stored data stays readable and writable; only background cleanup ends.
        """
        if self._closed:
            return
        self._closed = True
        # stop() joins the sweeper thread, which may be mid-sweep
        await asyncio.to_thread(self._evictor.stop)
        logger.debug("ramcache backend closed", extra={"backend": SCHEME})

    async def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        with self._stats_lock:
            total_requests = self._hits + self._misses
            hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0.0

            return {
                "backend": SCHEME,
                "size": len(self._store),
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(hit_rate, 2),
                "sets": self._sets,
                "deletes": self._deletes,
                "expired": self._expired,
                "evictions": self._evictor.evictions,
                "sweeps": self._evictor.sweeps,
                "cleanup_interval": self._evictor.interval,
                "closed": self._closed,
            }
