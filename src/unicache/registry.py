"""
unicache — Driver Registry

Maps URL schemes to driver openers. An opener is any callable taking a
parsed URL (``urllib.parse.SplitResult``) and returning a CacheInterface.

Registries are plain objects; ``default_registry()`` builds a fresh one
holding the built-in drivers:

    ramcache://[?cleanupinterval=5m]
    redis://host:port[/db][?countlimit=10]
    rediscluster://host1:port1,host2:port2[?countlimit=10]
    memcache://host1:port1,host2:port2

Usage:
    registry = default_registry()
    cache = registry.open("ramcache://?cleanupinterval=1m")
"""

import logging
import threading
from collections.abc import Callable
from urllib.parse import SplitResult

from .backends.ramcache import RamCacheBackend
from .errors import ConfigurationError, NoCacheError
from .interface import CacheInterface
from .urls import parse_cache_url

logger = logging.getLogger(__name__)

Opener = Callable[[SplitResult], CacheInterface]


class CacheRegistry:
    """Thread-safe scheme -> opener table."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._openers: dict[str, Opener] = {}

    def register(self, scheme: str, opener: Opener) -> None:
        """
        Register an opener for a URL scheme.

        Raises:
            ConfigurationError: If the scheme is empty or already registered
        """
        scheme = scheme.lower()
        if not scheme:
            raise ConfigurationError("Cannot register a driver for an empty scheme")

        with self._lock:
            if scheme in self._openers:
                raise ConfigurationError(
                    f"Cache driver already registered for scheme '{scheme}'",
                    details={"scheme": scheme},
                )
            self._openers[scheme] = opener
        logger.debug("Registered cache driver for scheme '%s'", scheme)

    def unregister(self, scheme: str) -> bool:
        """Remove a scheme. Returns False if it was not registered."""
        with self._lock:
            return self._openers.pop(scheme.lower(), None) is not None

    def is_registered(self, scheme: str) -> bool:
        with self._lock:
            return scheme.lower() in self._openers

    def schemes(self) -> list[str]:
        """Registered schemes, sorted."""
        with self._lock:
            return sorted(self._openers)

    def open(self, url: str | SplitResult) -> CacheInterface:
        """
        Open a cache for the given URL.

        Raises:
            ConfigurationError: If the URL cannot be parsed or the driver rejects its options
            NoCacheError: If no driver is registered for the URL scheme
        """
        parsed = parse_cache_url(url)
        scheme = parsed.scheme.lower()

        with self._lock:
            opener = self._openers.get(scheme)
        if opener is None:
            raise NoCacheError(scheme)

        logger.debug("Opening cache for scheme '%s'", scheme, extra={"scheme": scheme})
        return opener(parsed)


def _lazy_import_error(backend: str, package: str, error: ImportError) -> ConfigurationError:
    logger.error(
        "%s backend selected but its client library is not installed",
        backend,
        extra={"package": package, "error": str(error)},
    )
    return ConfigurationError(
        f"{backend} backend selected but its client library is unavailable. "
        f"Install with: pip install '{package}' or add to dependencies.",
        details={"package": package, "error": str(error), "backend": backend},
    )


def _open_redis(url: SplitResult) -> CacheInterface:
    # Lazy import to avoid hard dependency when only ramcache is used
    try:
        from .backends.redis import RedisCacheBackend
    except ImportError as e:
        raise _lazy_import_error("redis", "redis>=5.0.0", e) from e
    return RedisCacheBackend.open_url(url)


def _open_rediscluster(url: SplitResult) -> CacheInterface:
    try:
        from .backends.rediscluster import RedisClusterCacheBackend
    except ImportError as e:
        raise _lazy_import_error("rediscluster", "redis>=5.0.0", e) from e
    return RedisClusterCacheBackend.open_url(url)


def _open_memcache(url: SplitResult) -> CacheInterface:
    try:
        from .backends.memcache import MemcacheCacheBackend
    except ImportError as e:
        raise _lazy_import_error("memcache", "pymemcache>=4.0.0", e) from e
    return MemcacheCacheBackend.open_url(url)


def default_registry() -> CacheRegistry:
    """Build a new registry holding the built-in drivers."""
    registry = CacheRegistry()
    registry.register("ramcache", RamCacheBackend.open_url)
    registry.register("redis", _open_redis)
    registry.register("rediscluster", _open_rediscluster)
    registry.register("memcache", _open_memcache)
    return registry
