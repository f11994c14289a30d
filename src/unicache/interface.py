"""
unicache — Cache Interface

Defines the abstract interface that all cache drivers must implement.
"""

from abc import ABC, abstractmethod
from types import TracebackType
from typing import Any

from .errors import KeyNotFoundError
from .keymod import KeyModifier
from .ttl import TTL


class CacheInterface(ABC):
    """
    Abstract base class for cache drivers.

    All cache implementations must implement this interface to ensure
    consistent behavior across different backends (ramcache, Redis, etc.).

    Every key-taking method accepts ``*modifiers`` (see ``unicache.keymod``)
    applied to the key before it reaches the backend.
    """

    #: URL scheme the driver is registered under
    scheme: str = ""

    @abstractmethod
    async def set(self, key: str, value: Any, *modifiers: KeyModifier) -> None:
        """
        Store a value with no expiry, overwriting any existing entry.

        Args:
            key: Cache key
            value: bytes, str, or an object with a supported serialization capability

        Raises:
            UnsupportedValueTypeError: If the value cannot be serialized
            SerializationError: If the value's serializer fails
        """

    @abstractmethod
    async def set_with_ttl(self, key: str, value: Any, ttl: TTL, *modifiers: KeyModifier) -> None:
        """
        Store a value that expires after ``ttl``.

        Args:
            key: Cache key
            value: Value to store (see ``set``)
            ttl: timedelta or seconds; 0 means no expiry

        Raises:
            InvalidTTLError: If ttl is negative
        """

    @abstractmethod
    async def exists(self, key: str, *modifiers: KeyModifier) -> bool:
        """
        Check if a key exists in the cache.

        Returns:
            True if the key exists and is not expired, False otherwise
        """

    @abstractmethod
    async def count(self, pattern: str, *modifiers: KeyModifier) -> int:
        """
        Count keys matching a glob-style pattern.

        Raises:
            PatternMatchingNotSupportedError: If the driver cannot scan keys
        """

    @abstractmethod
    async def get(self, key: str, *modifiers: KeyModifier) -> bytes:
        """
        Retrieve the stored bytes for a key.

        Raises:
            KeyNotFoundError: If the key is absent or expired
        """

    @abstractmethod
    async def delete(self, key: str, *modifiers: KeyModifier) -> None:
        """
        Delete a key.

        Raises:
            KeyNotFoundError: If the key is absent
        """

    @abstractmethod
    async def delete_keys(self, pattern: str, *modifiers: KeyModifier) -> None:
        """
        Delete every key matching a glob-style pattern.

        Raises:
            PatternMatchingNotSupportedError: If the driver cannot scan keys
        """

    @abstractmethod
    async def clear(self) -> None:
        """Remove all entries from the cache."""

    @abstractmethod
    async def ping(self) -> None:
        """
        Verify that the cache is reachable.

        Raises:
            CacheOperationError: If the backend does not answer
        """

    @abstractmethod
    async def close(self) -> None:
        """
        Close the cache backend and release resources.

        Should be called during graceful shutdown. Calling it twice is a no-op.
        """

    @abstractmethod
    async def get_stats(self) -> dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache statistics (hits, misses, size, etc.)
        """

    async def get_many(self, keys: list[str]) -> dict[str, bytes]:
        """
        Retrieve multiple values from the cache.

        Default implementation calls get() for each key.
        Backends can override for better performance.

        Args:
            keys: List of cache keys

        Returns:
            Dictionary mapping keys to values (missing keys are omitted)
        """
        result = {}
        for key in keys:
            try:
                result[key] = await self.get(key)
            except KeyNotFoundError:
                continue
        return result

    async def set_many(self, items: dict[str, Any], ttl: TTL = 0) -> int:
        """
        Store multiple values in the cache.

        Default implementation calls set_with_ttl() for each item.

        Args:
            items: Dictionary mapping keys to values
            ttl: Time-to-live applied to all items (0 = no expiry)

        Returns:
            Number of items stored
        """
        count = 0
        for key, value in items.items():
            await self.set_with_ttl(key, value, ttl)
            count += 1
        return count

    async def delete_many(self, keys: list[str]) -> int:
        """
        Delete multiple keys from the cache.

        Default implementation calls delete() for each key.

        Args:
            keys: List of cache keys to delete

        Returns:
            Number of keys that existed and were deleted
        """
        count = 0
        for key in keys:
            try:
                await self.delete(key)
            except KeyNotFoundError:
                continue
            count += 1
        return count

    async def __aenter__(self) -> "CacheInterface":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
