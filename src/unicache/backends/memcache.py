"""
unicache — Memcache Backend

Memcached cache driver built on pymemcache's HashClient, which spreads
keys over every listed server. pymemcache is synchronous, so each call
runs in a worker thread via ``asyncio.to_thread``.

Limitations:
- Pattern matching is not part of the memcached protocol; ``count`` and
  ``delete_keys`` raise PatternMatchingNotSupportedError.
- Expiry has whole-second resolution. Positive TTLs are rounded up so a
  short TTL never turns into "no expiry".

URL format:
    memcache://host1:port1,host2:port2[?query]

Query keys: ``connecttimeout``, ``timeout``, ``maxpoolsize`` (snake_case
spellings work too).

Example:
    cache = MemcacheCacheBackend.open_url("memcache://localhost:11211")
    await cache.set_with_ttl("greeting", "hello", ttl=60)
    val = await cache.get("greeting")  # b"hello"
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Callable
from datetime import timedelta
from typing import Any, TypeVar
from urllib.parse import SplitResult

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..errors import CacheOperationError, ConfigurationError, KeyNotFoundError, PatternMatchingNotSupportedError
from ..interface import CacheInterface
from ..keymod import KeyModifier, modify
from ..serialization import to_bytes
from ..ttl import TTL, parse_duration, validate_ttl
from ..urls import options_from_url, parse_cache_url

logger = logging.getLogger(__name__)

try:
    from pymemcache.client.hash import HashClient
    from pymemcache.exceptions import MemcacheError
except ImportError as e:  # pragma: no cover
    raise ImportError(
        "Memcache client is required but not installed. "
        "Install with: pip install 'pymemcache>=4.0.0' or add 'pymemcache' to your dependencies."
    ) from e

SCHEME = "memcache"

DEFAULT_PORT = 11211

# memcached reads larger exptime values as a unix timestamp
MAX_RELATIVE_EXPIRY = 30 * 24 * 3600

# socket failures surface from pymemcache unwrapped
CLIENT_ERRORS = (MemcacheError, OSError)

# query key -> MemcacheOptions field
URL_FIELDS: dict[str, str] = {
    "connecttimeout": "connect_timeout",
    "connect_timeout": "connect_timeout",
    "timeout": "timeout",
    "maxpoolsize": "max_pool_size",
    "max_pool_size": "max_pool_size",
}

T = TypeVar("T")


class MemcacheOptions(BaseModel):
    """Options for the memcache driver."""

    model_config = ConfigDict(frozen=True)

    connect_timeout: timedelta | None = Field(default=None, description="Socket connect timeout")
    timeout: timedelta | None = Field(default=None, description="Socket read/write timeout")
    max_pool_size: int | None = Field(default=None, ge=1, description="Connections per server")

    @field_validator("connect_timeout", "timeout", mode="before")
    @classmethod
    def parse_timeout(cls, v: Any) -> Any:
        """Accept duration strings and plain seconds."""
        if isinstance(v, str):
            return parse_duration(v)
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return timedelta(seconds=v)
        return v

    def client_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for the HashClient constructor."""
        kwargs: dict[str, Any] = {
            # pooled clients are safe to share across worker threads
            "use_pooling": True,
            "default_noreply": False,
            "allow_unicode_keys": True,
        }
        if self.connect_timeout is not None:
            kwargs["connect_timeout"] = self.connect_timeout.total_seconds()
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout.total_seconds()
        if self.max_pool_size is not None:
            kwargs["max_pool_size"] = self.max_pool_size
        return kwargs


def parse_servers(netloc: str) -> list[tuple[str, int]]:
    """
    Split ``host1:port1,host2:port2`` into server addresses.

    Raises:
        ConfigurationError: If no host is given or a port is not a number
    """
    servers: list[tuple[str, int]] = []
    for address in netloc.split(","):
        address = address.strip()
        if not address:
            continue
        host, sep, port = address.rpartition(":")
        if not sep:
            host, port = address, ""
        try:
            servers.append((host, int(port) if port else DEFAULT_PORT))
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid port in memcache address: {address!r}",
                details={"address": address, "scheme": SCHEME},
            ) from e

    if not servers:
        raise ConfigurationError(
            "memcache URL needs at least one host:port",
            details={"netloc": netloc, "scheme": SCHEME},
        )
    return servers


def _expire_seconds(seconds: float) -> int:
    """0 -> no expiry; otherwise whole seconds, at least 1."""
    if seconds <= 0:
        return 0
    expire = max(1, math.ceil(seconds))
    if expire > MAX_RELATIVE_EXPIRY:
        return int(time.time()) + expire
    return expire


class MemcacheCacheBackend(CacheInterface):
    """
    Memcached cache backend.

    Notes:
    - Values are stored as raw bytes; get() returns bytes.
    - Client failures are raised as CacheOperationError with the client
      exception as __cause__.
    - clear() runs flush_all on every server.
    """

    scheme = SCHEME

    def __init__(
        self,
        servers: list[tuple[str, int]],
        options: MemcacheOptions | None = None,
        client: Any | None = None,
    ) -> None:
        """
        Initialize memcache backend.

        Args:
            servers: (host, port) pairs
            options: Driver options
            client: Pre-built pymemcache client (mainly for tests)
        """
        if not servers and client is None:
            raise ValueError("servers is required")

        self.servers = list(servers)
        self.options = options or MemcacheOptions()
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0
        self._closed = False

        # Connections open on first command
        self._client = client if client is not None else self._make_client()

    def _make_client(self) -> Any:
        return HashClient(self.servers, **self.options.client_kwargs())

    @classmethod
    def open_url(cls, url: str | SplitResult) -> MemcacheCacheBackend:
        """
        Create a backend from a ``memcache://`` URL.

        Raises:
            ConfigurationError: If the hosts or query options are invalid
        """
        parsed = parse_cache_url(url)
        servers = parse_servers(parsed.netloc)
        options = options_from_url(parsed, MemcacheOptions, URL_FIELDS)
        return cls(servers, options)

    # ------------ Helpers ------------

    async def _call(self, operation: str, func: Callable[..., T], *args: Any, **context: Any) -> T:
        """Run a blocking client call in a worker thread, wrapping its failures."""
        try:
            return await asyncio.to_thread(func, *args)
        except CLIENT_ERRORS as e:
            logger.error(
                f"Memcache {operation} failed: {e}",
                extra={"operation": operation, "backend": self.scheme, "error": str(e), **context},
                exc_info=True,
            )
            raise CacheOperationError(
                f"{operation} failed: {e}",
                details={"operation": operation, **context},
                scheme=self.scheme,
            ) from e

    # ------------ Core Interface ------------

    async def set(self, key: str, value: Any, *modifiers: KeyModifier) -> None:
        """Store a value with no expiry."""
        await self.set_with_ttl(key, value, 0, *modifiers)

    async def set_with_ttl(self, key: str, value: Any, ttl: TTL, *modifiers: KeyModifier) -> None:
        """Store a value with a TTL (0 = no expiry)."""
        seconds = validate_ttl(ttl, scheme=self.scheme)
        payload = to_bytes(value, scheme=self.scheme)
        key = modify(key, *modifiers)
        stored = await self._call("set", self._client.set, key, payload, _expire_seconds(seconds), key=key)
        if not stored:
            raise CacheOperationError(
                f"set failed: server did not store key {key}",
                details={"operation": "set", "key": key},
                scheme=self.scheme,
            )
        self._sets += 1

    async def exists(self, key: str, *modifiers: KeyModifier) -> bool:
        """Check if a key exists (memcached has no EXISTS, so this is a get)."""
        key = modify(key, *modifiers)
        return await self._call("exists", self._client.get, key, key=key) is not None

    async def count(self, pattern: str, *modifiers: KeyModifier) -> int:
        raise PatternMatchingNotSupportedError("count", scheme=self.scheme)

    async def get(self, key: str, *modifiers: KeyModifier) -> bytes:
        """Retrieve a value by key."""
        key = modify(key, *modifiers)
        data = await self._call("get", self._client.get, key, key=key)

        if data is None:
            self._misses += 1
            raise KeyNotFoundError(key, scheme=self.scheme)

        self._hits += 1
        return data

    async def delete(self, key: str, *modifiers: KeyModifier) -> None:
        """Delete a single key."""
        key = modify(key, *modifiers)
        if not await self._call("delete", self._client.delete, key, key=key):
            raise KeyNotFoundError(key, scheme=self.scheme)
        self._deletes += 1

    async def delete_keys(self, pattern: str, *modifiers: KeyModifier) -> None:
        raise PatternMatchingNotSupportedError("delete_keys", scheme=self.scheme)

    async def clear(self) -> None:
        """Invalidate every item on every server."""
        await self._call("clear", self._client.flush_all)
        logger.info(f"Flushed all {self.scheme} servers")

    async def ping(self) -> None:
        """Ask each server for its version."""
        for node in list(self._client.clients.values()):
            await self._call("ping", node.version)

    async def close(self) -> None:
        """Close every server connection."""
        if self._closed:
            return
        self._closed = True
        await self._call("close", self._client.close)
        logger.info(f"Closed {self.scheme} cache backend")

    async def get_stats(self) -> dict[str, Any]:
        """Return client-side cache statistics."""
        total_requests = self._hits + self._misses
        return {
            "backend": self.scheme,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round((self._hits / total_requests) * 100, 2) if total_requests else 0.0,
            "sets": self._sets,
            "deletes": self._deletes,
            "servers": [f"{host}:{port}" for host, port in self.servers],
            "closed": self._closed,
        }
