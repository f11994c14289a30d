"""
unicache — Memcache Cache Backend Tests

Contract tests run against a mocked pymemcache client; the shared conformance
suite runs against a live memcached when one is reachable (TEST_MEMCACHE_URL).
"""

import math
import time
from collections.abc import AsyncGenerator
from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from conformance import CacheConformance
from pymemcache.exceptions import MemcacheServerError

from unicache import (
    CacheOperationError,
    ConfigurationError,
    InvalidTTLError,
    KeyNotFoundError,
    PatternMatchingNotSupportedError,
    UnsupportedValueTypeError,
)
from unicache.backends import memcache as memcache_module
from unicache.backends.memcache import MemcacheCacheBackend, MemcacheOptions, parse_servers


@pytest.fixture
def client() -> MagicMock:
    mock = MagicMock()
    mock.set.return_value = True
    mock.get.return_value = None
    mock.delete.return_value = True
    node = MagicMock()
    node.version.return_value = b"1.6.21"
    mock.clients = {"localhost:11211": node}
    return mock


class TestMemcacheCacheBackend:
    """Test suite for MemcacheCacheBackend against a mocked client."""

    @pytest.fixture
    def cache(self, client: MagicMock) -> MemcacheCacheBackend:
        return MemcacheCacheBackend([("localhost", 11211)], client=client)

    async def test_set_without_expiry(self, cache: MemcacheCacheBackend, client: MagicMock) -> None:
        await cache.set("k", "v")
        client.set.assert_called_once_with("k", b"v", 0)

    async def test_ttl_rounds_up_to_whole_seconds(self, cache: MemcacheCacheBackend, client: MagicMock) -> None:
        await cache.set_with_ttl("k", b"v", timedelta(milliseconds=200))
        client.set.assert_called_once_with("k", b"v", 1)

        await cache.set_with_ttl("k", b"v", 1.5)
        client.set.assert_called_with("k", b"v", 2)

    async def test_long_ttl_becomes_timestamp(self, cache: MemcacheCacheBackend, client: MagicMock) -> None:
        before = int(time.time())
        await cache.set_with_ttl("k", b"v", timedelta(days=60))

        expire = client.set.call_args.args[2]
        assert before + 60 * 86400 <= expire <= int(time.time()) + 60 * 86400

    @pytest.mark.parametrize("ttl", [-1, math.inf])
    async def test_invalid_ttl_never_reaches_server(
        self, cache: MemcacheCacheBackend, client: MagicMock, ttl: float
    ) -> None:
        with pytest.raises(InvalidTTLError) as exc_info:
            await cache.set_with_ttl("k", b"v", ttl)

        assert exc_info.value.scheme == "memcache"
        client.set.assert_not_called()

    async def test_unsupported_value_never_reaches_server(
        self, cache: MemcacheCacheBackend, client: MagicMock
    ) -> None:
        with pytest.raises(UnsupportedValueTypeError):
            await cache.set("k", 12345)
        client.set.assert_not_called()

    async def test_set_not_stored(self, cache: MemcacheCacheBackend, client: MagicMock) -> None:
        client.set.return_value = False
        with pytest.raises(CacheOperationError):
            await cache.set("k", "v")

    async def test_get(self, cache: MemcacheCacheBackend, client: MagicMock) -> None:
        client.get.return_value = b"v"
        assert await cache.get("k") == b"v"

        client.get.return_value = None
        with pytest.raises(KeyNotFoundError) as exc_info:
            await cache.get("k")
        assert str(exc_info.value) == "unicache/memcache: key not found: k"

    async def test_empty_value_is_a_hit(self, cache: MemcacheCacheBackend, client: MagicMock) -> None:
        client.get.return_value = b""
        assert await cache.get("k") == b""
        assert await cache.exists("k") is True

    async def test_delete(self, cache: MemcacheCacheBackend, client: MagicMock) -> None:
        await cache.delete("k")
        client.delete.assert_called_once_with("k")

        client.delete.return_value = False
        with pytest.raises(KeyNotFoundError):
            await cache.delete("k")

    async def test_exists(self, cache: MemcacheCacheBackend, client: MagicMock) -> None:
        assert await cache.exists("k") is False
        client.get.return_value = b"v"
        assert await cache.exists("k") is True

    async def test_pattern_operations_not_supported(self, cache: MemcacheCacheBackend, client: MagicMock) -> None:
        with pytest.raises(PatternMatchingNotSupportedError) as exc_info:
            await cache.count("*")
        assert exc_info.value.scheme == "memcache"

        with pytest.raises(PatternMatchingNotSupportedError):
            await cache.delete_keys("*")

    async def test_clear_flushes_all(self, cache: MemcacheCacheBackend, client: MagicMock) -> None:
        await cache.clear()
        client.flush_all.assert_called_once_with()

    async def test_ping_asks_every_server(self, cache: MemcacheCacheBackend, client: MagicMock) -> None:
        other = MagicMock()
        client.clients["cache2:11211"] = other

        await cache.ping()

        client.clients["localhost:11211"].version.assert_called_once_with()
        other.version.assert_called_once_with()

    async def test_client_errors_are_wrapped(self, cache: MemcacheCacheBackend, client: MagicMock) -> None:
        client.get.side_effect = MemcacheServerError("out of memory")

        with pytest.raises(CacheOperationError) as exc_info:
            await cache.get("k")

        assert isinstance(exc_info.value.__cause__, MemcacheServerError)
        assert exc_info.value.details["operation"] == "get"

    async def test_socket_errors_are_wrapped(self, cache: MemcacheCacheBackend, client: MagicMock) -> None:
        client.clients["localhost:11211"].version.side_effect = ConnectionRefusedError("refused")

        with pytest.raises(CacheOperationError) as exc_info:
            await cache.ping()

        assert isinstance(exc_info.value.__cause__, ConnectionRefusedError)

    async def test_close_is_idempotent(self, cache: MemcacheCacheBackend, client: MagicMock) -> None:
        await cache.close()
        await cache.close()
        client.close.assert_called_once_with()

    async def test_get_stats(self, cache: MemcacheCacheBackend, client: MagicMock) -> None:
        client.get.return_value = b"v"
        await cache.get("k")

        stats = await cache.get_stats()

        assert stats["backend"] == "memcache"
        assert stats["hits"] == 1
        assert stats["servers"] == ["localhost:11211"]

    async def test_key_modifiers(self, cache: MemcacheCacheBackend, client: MagicMock) -> None:
        client.get.return_value = b"v"
        await cache.get("k", lambda key: "app:" + key)
        client.get.assert_called_once_with("app:k")


class TestMemcacheOptions:
    """Test suite for memcache URL parsing and options."""

    def test_parse_servers(self) -> None:
        assert parse_servers("a:11211,b:11212") == [("a", 11211), ("b", 11212)]
        assert parse_servers("cache") == [("cache", 11211)]

    @pytest.mark.parametrize("netloc", ["", ",", "a:port"])
    def test_parse_invalid(self, netloc: str) -> None:
        with pytest.raises(ConfigurationError):
            parse_servers(netloc)

    def test_open_url(self, monkeypatch: pytest.MonkeyPatch) -> None:
        fake_client = MagicMock()
        monkeypatch.setattr(memcache_module, "HashClient", fake_client)

        cache = MemcacheCacheBackend.open_url("memcache://a:11211,b:11212?ConnectTimeout=500ms&timeout=2&maxpoolsize=4")

        assert cache.servers == [("a", 11211), ("b", 11212)]
        fake_client.assert_called_once_with(
            [("a", 11211), ("b", 11212)],
            use_pooling=True,
            default_noreply=False,
            allow_unicode_keys=True,
            connect_timeout=0.5,
            timeout=2.0,
            max_pool_size=4,
        )

    def test_invalid_option(self) -> None:
        with pytest.raises(ConfigurationError):
            MemcacheCacheBackend.open_url("memcache://localhost:11211?maxpoolsize=0")

    def test_defaults(self) -> None:
        assert MemcacheOptions().client_kwargs() == {
            "use_pooling": True,
            "default_noreply": False,
            "allow_unicode_keys": True,
        }


class TestMemcacheConformance(CacheConformance):
    """Shared driver suite against a live memcached."""

    pattern_matching = False
    # memcached expires in whole seconds on a coarse clock
    short_ttl = timedelta(seconds=2)
    expiry_wait = 3.5

    @pytest.fixture
    async def cache(self, test_memcache_url: str) -> AsyncGenerator[MemcacheCacheBackend, None]:
        cache = MemcacheCacheBackend.open_url(test_memcache_url)
        await cache.clear()
        yield cache
        # conformance tests may close the cache themselves
        cleanup = MemcacheCacheBackend.open_url(test_memcache_url)
        await cleanup.clear()
        await cleanup.close()
        await cache.close()
