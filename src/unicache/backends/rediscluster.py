"""
unicache — Redis Cluster Backend

Same contract as the redis driver, backed by the cluster-aware
``redis.asyncio.cluster.RedisCluster`` client.

URL format:
    rediscluster://[[user]:password@]host1:port1,host2:port2[?query]

Hosts are the startup nodes; the client discovers the rest of the cluster.
Accepts the same query keys as the redis driver.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import SplitResult, unquote

from ..errors import ConfigurationError
from ..urls import options_from_url, parse_cache_url
from .redis import URL_FIELDS, RedisCacheBackend, RedisOptions

logger = logging.getLogger(__name__)

try:
    from redis.asyncio.cluster import ClusterNode, RedisCluster
    from redis.exceptions import RedisError
except ImportError as e:  # pragma: no cover
    raise ImportError(
        "Redis cluster client is required but not installed. "
        "Install with: pip install 'redis>=5.0.0' or add 'redis' to your dependencies."
    ) from e

SCHEME = "rediscluster"

DEFAULT_PORT = 6379


def parse_startup_nodes(netloc: str) -> tuple[list[tuple[str, int]], str | None, str | None]:
    """
    Split ``[user[:password]@]host1:port1,host2:port2`` into nodes and credentials.

    Raises:
        ConfigurationError: If no host is given or a port is not a number
    """
    username = password = None
    userinfo, sep, hosts = netloc.rpartition("@")
    if sep:
        user, has_password, secret = userinfo.partition(":")
        username = unquote(user) or None
        password = unquote(secret) if has_password else None

    nodes: list[tuple[str, int]] = []
    for address in hosts.split(","):
        address = address.strip()
        if not address:
            continue
        host, has_port, port = address.rpartition(":") if ":" in address else (address, "", "")
        try:
            nodes.append((host, int(port) if has_port else DEFAULT_PORT))
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid port in cluster address: {address!r}",
                details={"address": address, "scheme": SCHEME},
            ) from e

    if not nodes:
        raise ConfigurationError(
            "rediscluster URL needs at least one host:port",
            details={"netloc": netloc, "scheme": SCHEME},
        )
    return nodes, username, password


class RedisClusterCacheBackend(RedisCacheBackend):
    """
    Redis Cluster cache backend.

    clear() flushes every primary node; everything else behaves like
    RedisCacheBackend.
    """

    scheme = SCHEME

    def __init__(
        self,
        startup_nodes: list[tuple[str, int]],
        options: RedisOptions | None = None,
        username: str | None = None,
        password: str | None = None,
        client: Any | None = None,
    ) -> None:
        if not startup_nodes and client is None:
            raise ValueError("startup_nodes is required")

        self.startup_nodes = list(startup_nodes)
        self._username = username
        self._password = password
        address = ",".join(f"{host}:{port}" for host, port in self.startup_nodes)
        super().__init__(f"{SCHEME}://{address}", options=options, client=client)

    def _make_client(self) -> Any:
        return RedisCluster(
            startup_nodes=[ClusterNode(host, port) for host, port in self.startup_nodes],
            username=self._username,
            password=self._password,
            **self.options.client_kwargs(),
        )

    @classmethod
    def open_url(cls, url: str | SplitResult) -> RedisClusterCacheBackend:
        """
        Create a backend from a ``rediscluster://`` URL.

        Raises:
            ConfigurationError: If the hosts or query options are invalid
        """
        parsed = parse_cache_url(url)
        nodes, username, password = parse_startup_nodes(parsed.netloc)
        options = options_from_url(parsed, RedisOptions, URL_FIELDS)
        return cls(nodes, options, username=username, password=password)

    async def clear(self) -> None:
        """Remove every key on every primary node."""
        try:
            await self._client.flushall(target_nodes=RedisCluster.PRIMARIES)
        except RedisError as e:
            raise self._failure("clear", e) from e
        logger.info(f"Flushed all primaries of {self.scheme} cache")
