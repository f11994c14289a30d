"""
unicache — Test Configuration and Shared Fixtures

Provides pytest configuration and shared fixtures for unit and integration tests.
Redis tests run only when a server answers on TEST_REDIS_URL
(default redis://localhost:6379/15) or TEST_REDIS_CLUSTER_URL; memcache tests
only when one answers on TEST_MEMCACHE_URL.
"""

import os
import socket
from collections.abc import AsyncGenerator
from urllib.parse import urlsplit

import pytest
import pytest_asyncio

from unicache.backends.ramcache import RamCacheBackend

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "DEBUG"

TEST_REDIS_URL = os.environ.get("TEST_REDIS_URL", "redis://localhost:6379/15")
TEST_REDIS_CLUSTER_URL = os.environ.get("TEST_REDIS_CLUSTER_URL", "rediscluster://localhost:7000")
TEST_MEMCACHE_URL = os.environ.get("TEST_MEMCACHE_URL", "memcache://localhost:11211")


def _first_address(url: str, default_port: int = 6379) -> tuple[str, int]:
    netloc = urlsplit(url).netloc.rpartition("@")[2].split(",")[0]
    host, _, port = netloc.partition(":")
    return host or "localhost", int(port) if port else default_port


def is_port_open(host: str, port: int) -> bool:
    """Check if something is listening on host:port."""
    try:
        with socket.create_connection((host, port), timeout=1):
            return True
    except OSError:
        return False


def is_redis_available() -> bool:
    """Check if Redis server is available for testing."""
    return is_port_open(*_first_address(TEST_REDIS_URL))


def is_redis_cluster_available() -> bool:
    """Check if a Redis Cluster node is available for testing."""
    return is_port_open(*_first_address(TEST_REDIS_CLUSTER_URL))


def is_memcache_available() -> bool:
    """Check if a memcached server is available for testing."""
    return is_port_open(*_first_address(TEST_MEMCACHE_URL, default_port=11211))


@pytest.fixture
def test_redis_url() -> str:
    """Get Redis URL for testing (database 15 for isolation). Skips if Redis is down."""
    if not is_redis_available():
        pytest.skip("Redis server not available")
    return TEST_REDIS_URL


@pytest.fixture
def test_redis_cluster_url() -> str:
    """Get Redis Cluster URL for testing. Skips if no node answers."""
    if not is_redis_cluster_available():
        pytest.skip("Redis Cluster not available")
    return TEST_REDIS_CLUSTER_URL


@pytest.fixture
def test_memcache_url() -> str:
    """Get memcache URL for testing. Skips if memcached is down."""
    if not is_memcache_available():
        pytest.skip("Memcached server not available")
    return TEST_MEMCACHE_URL


@pytest_asyncio.fixture
async def ramcache() -> AsyncGenerator[RamCacheBackend, None]:
    """A fresh in-memory cache; closed after the test."""
    cache = RamCacheBackend()
    yield cache
    await cache.close()


@pytest.fixture
def mock_env_ramcache(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for the in-memory cache."""
    monkeypatch.setenv("CACHE_URL", "ramcache://?cleanupinterval=1m")


@pytest.fixture
def mock_env_redis(monkeypatch: pytest.MonkeyPatch, test_redis_url: str) -> None:
    """Set environment variables for the Redis cache."""
    monkeypatch.setenv("CACHE_URL", test_redis_url)


@pytest_asyncio.fixture(autouse=True)
async def reset_cache_state() -> AsyncGenerator[None, None]:
    """Close factory caches and drop loaded config after each test to prevent state leakage."""
    yield
    from unicache.config import loader
    from unicache.factory import close_all_caches, reset_cache_factory

    await close_all_caches()
    reset_cache_factory()
    loader._config_instance = None
