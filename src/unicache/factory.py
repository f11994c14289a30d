"""
unicache — Cache Factory

Creates cache instances from configuration and keeps them by name.

Key points:
- The driver is selected by the scheme of the configured cache URL
  (CACHE_URL, default ``ramcache://``)
- Drivers are looked up in a CacheRegistry (default: built-in drivers)
- Named instances are created once and reused until closed or reset

Examples:
    from unicache.factory import create_cache, get_cache

    # Uses env-configured URL (ramcache:// by default)
    cache = create_cache()

    # Or explicitly supply a CacheConfig (e.g., for tests)
    from unicache.config import CacheConfig
    cfg = CacheConfig(url="ramcache://?cleanupinterval=30s")
    mem_cache = create_cache(cfg, name="test")

    # One-off cache, not tracked by name
    cache = open_cache("redis://localhost:6379/0")
"""

from __future__ import annotations

import logging
import threading
from urllib.parse import SplitResult

from .config import CacheConfig, get_config
from .errors import ConfigurationError, NoCacheError
from .interface import CacheInterface
from .registry import CacheRegistry, default_registry

logger = logging.getLogger(__name__)


class CacheFactory:
    """Named cache instances opened through a driver registry."""

    def __init__(self, registry: CacheRegistry | None = None):
        self.registry = registry or default_registry()
        self._lock = threading.Lock()
        self._instances: dict[str, CacheInterface] = {}

    def create_cache(
        self,
        config: CacheConfig | None = None,
        name: str = "default",
    ) -> CacheInterface:
        """
        Create a cache instance based on configuration.

        Args:
            config: Cache configuration (uses global config if not provided)
            name: Cache instance name (for multiple cache instances)

        Returns:
            Configured cache instance; the existing one if ``name`` is taken

        Raises:
            ConfigurationError: If the URL or its options are invalid
            NoCacheError: If no driver is registered for the URL scheme
        """
        with self._lock:
            if name in self._instances:
                logger.debug("Returning existing cache instance: %s", name)
                return self._instances[name]

            if config is None:
                config = get_config().cache

            logger.info(
                "Creating cache instance '%s' with scheme: %s",
                name,
                config.scheme,
                extra={"cache_name": name, "scheme": config.scheme},
            )

            try:
                cache = self.registry.open(config.url)
            except (ConfigurationError, NoCacheError):
                # Already descriptive; re-raise as-is
                raise
            except Exception as e:
                logger.error(
                    "Unexpected error creating cache instance '%s': %s",
                    name,
                    e,
                    extra={"cache_name": name, "scheme": config.scheme, "error": str(e)},
                    exc_info=True,
                )
                raise ConfigurationError(
                    f"Failed to create cache instance '{name}': {e}",
                    details={"cache_name": name, "scheme": config.scheme, "error": str(e)},
                ) from e

            self._instances[name] = cache

        logger.info(
            "Cache instance '%s' created successfully",
            name,
            extra={"cache_name": name, "scheme": config.scheme},
        )
        return cache

    def get_cache(self, name: str = "default") -> CacheInterface:
        """
        Get an existing cache instance by name.

        If the instance doesn't exist, it is created from the global configuration.
        """
        with self._lock:
            cache = self._instances.get(name)
        if cache is None:
            logger.debug("Cache instance '%s' not found, creating new instance", name)
            return self.create_cache(name=name)
        return cache

    def list_instances(self) -> list[str]:
        """List all registered cache instance names."""
        with self._lock:
            return list(self._instances)

    async def close_all(self) -> None:
        """
        Close all cache instances and release resources.

        Errors from individual caches are logged; every instance is attempted.
        """
        with self._lock:
            instances = list(self._instances.items())
            self._instances.clear()

        if not instances:
            logger.debug("No cache instances to close")
            return

        logger.info("Closing %d cache instance(s)...", len(instances))

        for name, cache in instances:
            try:
                await cache.close()
                logger.info("Closed cache instance: %s", name)
            except Exception as e:
                logger.error(
                    "Error closing cache instance '%s': %s",
                    name,
                    e,
                    extra={"cache_name": name, "error": str(e)},
                    exc_info=True,
                )

        logger.info("All cache instances closed")

    def reset(self) -> None:
        """
        Drop all instance references without closing them.

        Use close_all() for proper cleanup; this is meant for tests.
        """
        with self._lock:
            count = len(self._instances)
            self._instances.clear()
        logger.debug("Reset cache factory, cleared %d instance reference(s)", count)


_factory: CacheFactory | None = None
_factory_lock = threading.Lock()


def get_factory() -> CacheFactory:
    """Process-wide factory, created on first use."""
    global _factory
    with _factory_lock:
        if _factory is None:
            _factory = CacheFactory()
        return _factory


def create_cache(config: CacheConfig | None = None, name: str = "default") -> CacheInterface:
    """Create (or return) a named cache on the process-wide factory."""
    return get_factory().create_cache(config, name=name)


def get_cache(name: str = "default") -> CacheInterface:
    """Get a named cache on the process-wide factory, creating it if needed."""
    return get_factory().get_cache(name)


async def close_all_caches() -> None:
    """Close every cache held by the process-wide factory."""
    await get_factory().close_all()


def list_cache_instances() -> list[str]:
    return get_factory().list_instances()


def reset_cache_factory() -> None:
    """
    Reset the process-wide factory by clearing all instance references.

    Does NOT call close() on instances; use close_all_caches() for that.
    """
    get_factory().reset()


def open_cache(url: str | SplitResult) -> CacheInterface:
    """Open an unnamed cache for ``url`` with the built-in drivers."""
    return default_registry().open(url)
