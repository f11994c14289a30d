"""
unicache — Redis Backend

Asynchronous Redis cache driver with:
- Raw byte values (values are serialized with unicache.serialization)
- Per-key TTL via PX milliseconds (0 => no expiry)
- Pattern operations (count / delete_keys) via SCAN MATCH

Requires: redis>=5.0 with asyncio support

URL format:
    redis://[[user]:password@]host[:port][/db][?query]

Query keys consumed here: ``countlimit``, ``maxconnections``,
``sockettimeout``, ``socketconnecttimeout`` (snake_case spellings work too).
Any other query key is passed through to the redis client.

Example:
    cache = RedisCacheBackend.open_url("redis://localhost:6379/0?countlimit=100")
    await cache.set_with_ttl("greeting", "hello", ttl=60)
    val = await cache.get("greeting")  # b"hello"
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any
from urllib.parse import SplitResult

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..errors import CacheOperationError, KeyNotFoundError
from ..interface import CacheInterface
from ..keymod import KeyModifier, modify
from ..serialization import to_bytes
from ..ttl import TTL, parse_duration, validate_ttl
from ..urls import options_from_url, parse_cache_url, strip_query_params

logger = logging.getLogger(__name__)

try:
    # redis-py asyncio client (v4.2+)
    from redis.asyncio import Redis
    from redis.exceptions import RedisError
except ImportError as e:  # pragma: no cover
    raise ImportError(
        "Redis async client is required but not installed. "
        "Install with: pip install 'redis>=5.0.0' or add 'redis' to your dependencies."
    ) from e

SCHEME = "redis"

DEFAULT_COUNT_LIMIT = 10

# Keys per DEL call when deleting scanned keys
DELETE_CHUNK_SIZE = 1000

# query key -> RedisOptions field
URL_FIELDS: dict[str, str] = {
    "countlimit": "count_limit",
    "count_limit": "count_limit",
    "maxconnections": "max_connections",
    "max_connections": "max_connections",
    "sockettimeout": "socket_timeout",
    "socket_timeout": "socket_timeout",
    "socketconnecttimeout": "socket_connect_timeout",
    "socket_connect_timeout": "socket_connect_timeout",
}


class RedisOptions(BaseModel):
    """Options shared by the redis and rediscluster drivers."""

    model_config = ConfigDict(frozen=True)

    count_limit: int = Field(
        default=DEFAULT_COUNT_LIMIT,
        description="COUNT hint for SCAN during count / delete_keys",
    )
    max_connections: int | None = Field(default=None, ge=1, description="Connection pool size")
    socket_timeout: timedelta | None = Field(default=None, description="Socket timeout")
    socket_connect_timeout: timedelta | None = Field(default=None, description="Socket connect timeout")

    @field_validator("count_limit")
    @classmethod
    def revise_count_limit(cls, v: int) -> int:
        """Non-positive limits fall back to the default."""
        return v if v > 0 else DEFAULT_COUNT_LIMIT

    @field_validator("socket_timeout", "socket_connect_timeout", mode="before")
    @classmethod
    def parse_timeout(cls, v: Any) -> Any:
        """Accept duration strings and plain seconds."""
        if isinstance(v, str):
            return parse_duration(v)
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return timedelta(seconds=v)
        return v

    def client_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for the redis client constructor."""
        kwargs: dict[str, Any] = {"decode_responses": False}
        if self.max_connections is not None:
            kwargs["max_connections"] = self.max_connections
        if self.socket_timeout is not None:
            kwargs["socket_timeout"] = self.socket_timeout.total_seconds()
        if self.socket_connect_timeout is not None:
            kwargs["socket_connect_timeout"] = self.socket_connect_timeout.total_seconds()
        return kwargs


def _ttl_milliseconds(seconds: float) -> int | None:
    """0 -> no expiry; otherwise at least 1ms."""
    if seconds <= 0:
        return None
    return max(1, round(seconds * 1000))


class RedisCacheBackend(CacheInterface):
    """
    Redis cache backend.

    Notes:
    - Values are stored as raw bytes; get() returns bytes.
    - Failures from the redis client are raised as CacheOperationError
      with the client exception as __cause__.
    - clear() runs FLUSHDB on the selected database.
    """

    scheme = SCHEME

    def __init__(
        self,
        redis_url: str,
        options: RedisOptions | None = None,
        client: Any | None = None,
    ) -> None:
        """
        Initialize Redis cache backend.

        Args:
            redis_url: Connection URL, e.g., redis://localhost:6379/0 or rediss:// for TLS
            options: Driver options
            client: Pre-built async redis client (mainly for tests)
        """
        if not redis_url and client is None:
            raise ValueError("redis_url is required")

        self.redis_url = redis_url
        self.options = options or RedisOptions()
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0
        self._closed = False

        # Lazy connection; connects on first command
        self._client = client if client is not None else self._make_client()

    def _make_client(self) -> Any:
        return Redis.from_url(self.redis_url, **self.options.client_kwargs())

    @classmethod
    def open_url(cls, url: str | SplitResult) -> RedisCacheBackend:
        """
        Create a backend from a ``redis://`` URL.

        Raises:
            ConfigurationError: If the query holds invalid options
        """
        parsed = parse_cache_url(url)
        options = options_from_url(parsed, RedisOptions, URL_FIELDS)
        client_url = strip_query_params(parsed, set(URL_FIELDS)).geturl()
        return cls(client_url, options)

    # ------------ Helpers ------------

    def _failure(self, operation: str, error: Exception, **context: Any) -> CacheOperationError:
        """Log a client failure and build the error to raise."""
        logger.error(
            f"Redis {operation} failed: {error}",
            extra={"operation": operation, "backend": self.scheme, "error": str(error), **context},
            exc_info=True,
        )
        return CacheOperationError(
            f"{operation} failed: {error}",
            details={"operation": operation, **context},
            scheme=self.scheme,
        )

    async def _scan(self, pattern: str) -> list[Any]:
        keys: dict[Any, None] = {}
        # SCAN may return a key more than once
        async for key in self._client.scan_iter(match=pattern, count=self.options.count_limit):
            keys[key] = None
        return list(keys)

    # ------------ Core Interface ------------

    async def set(self, key: str, value: Any, *modifiers: KeyModifier) -> None:
        """Store a value with no expiry."""
        await self.set_with_ttl(key, value, 0, *modifiers)

    async def set_with_ttl(self, key: str, value: Any, ttl: TTL, *modifiers: KeyModifier) -> None:
        """Store a value with a TTL (0 = no expiry)."""
        seconds = validate_ttl(ttl, scheme=self.scheme)
        payload = to_bytes(value, scheme=self.scheme)
        key = modify(key, *modifiers)
        try:
            await self._client.set(key, payload, px=_ttl_milliseconds(seconds))
        except RedisError as e:
            raise self._failure("set", e, key=key) from e
        self._sets += 1

    async def exists(self, key: str, *modifiers: KeyModifier) -> bool:
        """Check if a key exists."""
        key = modify(key, *modifiers)
        try:
            return bool(await self._client.exists(key))
        except RedisError as e:
            raise self._failure("exists", e, key=key) from e

    async def count(self, pattern: str, *modifiers: KeyModifier) -> int:
        """Count keys matching pattern (SCAN MATCH)."""
        pattern = modify(pattern, *modifiers)
        try:
            return len(await self._scan(pattern))
        except RedisError as e:
            raise self._failure("count", e, pattern=pattern) from e

    async def get(self, key: str, *modifiers: KeyModifier) -> bytes:
        """Retrieve a value by key."""
        key = modify(key, *modifiers)
        try:
            data = await self._client.get(key)
        except RedisError as e:
            raise self._failure("get", e, key=key) from e

        if data is None:
            self._misses += 1
            raise KeyNotFoundError(key, scheme=self.scheme)

        self._hits += 1
        return data if isinstance(data, bytes) else str(data).encode("utf-8")

    async def delete(self, key: str, *modifiers: KeyModifier) -> None:
        """Delete a single key."""
        key = modify(key, *modifiers)
        try:
            deleted = await self._client.delete(key)
        except RedisError as e:
            raise self._failure("delete", e, key=key) from e

        if not deleted:
            raise KeyNotFoundError(key, scheme=self.scheme)
        self._deletes += 1

    async def delete_keys(self, pattern: str, *modifiers: KeyModifier) -> None:
        """Delete all keys matching pattern, in batches."""
        pattern = modify(pattern, *modifiers)
        try:
            keys = await self._scan(pattern)
            deleted_total = 0
            for i in range(0, len(keys), DELETE_CHUNK_SIZE):
                deleted_total += int(await self._client.delete(*keys[i : i + DELETE_CHUNK_SIZE]))
        except RedisError as e:
            raise self._failure("delete_keys", e, pattern=pattern) from e

        self._deletes += deleted_total
        logger.debug(f"Deleted {deleted_total} keys matching '{pattern}'")

    async def clear(self) -> None:
        """Remove every key in the selected database."""
        try:
            await self._client.flushdb()
        except RedisError as e:
            raise self._failure("clear", e) from e
        logger.info(f"Flushed {self.scheme} database")

    async def ping(self) -> None:
        try:
            await self._client.ping()
        except RedisError as e:
            raise self._failure("ping", e) from e

    async def close(self) -> None:
        """Close the Redis client and release resources."""
        if self._closed:
            return
        self._closed = True
        try:
            await self._client.aclose()
            logger.info(f"Closed {self.scheme} cache backend")
        except RedisError as e:
            raise self._failure("close", e) from e

    async def get_stats(self) -> dict[str, Any]:
        """Return cache statistics and basic Redis info."""
        total_requests = self._hits + self._misses
        stats: dict[str, Any] = {
            "backend": self.scheme,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round((self._hits / total_requests) * 100, 2) if total_requests else 0.0,
            "sets": self._sets,
            "deletes": self._deletes,
            "count_limit": self.options.count_limit,
            "connected": False,
        }

        if self._closed:
            return stats

        try:
            stats["connected"] = bool(await self._client.ping())
            info = await self._client.info(section="server")
            stats["redis_version"] = info.get("redis_version")
            stats["redis_mode"] = info.get("redis_mode")
        except RedisError as e:
            # If INFO is restricted or fails, keep minimal stats
            logger.warning(f"Failed to get Redis INFO (restricted or unavailable): {e}", extra={"error": str(e)})

        return stats
