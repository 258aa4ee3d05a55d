"""
Transport clients used by the cache adapter.

The adapter only needs fetch/store; connection handling, the wire
protocol and server selection belong to the client library.
"""

from typing import Any, Dict, Optional, Protocol, Sequence, runtime_checkable

import redis.asyncio as redis

from .config import CacheConfig
from .logging import get_logger


@runtime_checkable
class CacheTransport(Protocol):
    """Capability the adapter consumes. Both calls raise on transport failure."""

    async def fetch(self, key: str) -> Optional[str]:
        """Return the stored text, or None when the key is absent."""
        ...

    async def store(self, key: str, value: str, ttl_seconds: int) -> bool:
        """Store value and return True when the server acknowledged it."""
        ...

    async def close(self) -> None:
        ...


def _server_url(server: str) -> str:
    if "://" in server:
        return server
    return f"redis://{server}"


class RedisTransport:
    """Redis-backed transport built on redis.asyncio.

    Only the first server address is connected to; spreading keys over
    several servers is left to a proxy in front of them.
    """

    def __init__(self, servers: Sequence[str], options: Optional[Dict[str, Any]] = None):
        if not servers:
            raise ValueError("RedisTransport requires at least one server")

        self.servers = list(servers)
        self.options = dict(options or {})
        self.logger = get_logger("memocache.transport.redis")

        client_options = {"decode_responses": True}
        client_options.update(self.options)
        self._redis: redis.Redis = redis.from_url(_server_url(self.servers[0]), **client_options)

        if len(self.servers) > 1:
            self.logger.warning(
                "Multiple cache servers configured, using the first",
                server=self.servers[0],
                ignored=self.servers[1:],
            )

    @classmethod
    def from_config(cls, config: CacheConfig) -> "RedisTransport":
        return cls(config.servers, config.to_dict()["transport_options"])

    async def fetch(self, key: str) -> Optional[str]:
        value = await self._redis.get(key)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def store(self, key: str, value: str, ttl_seconds: int) -> bool:
        if ttl_seconds is not None and ttl_seconds < 0:
            raise ValueError(f"ttl_seconds must be >= 0, got {ttl_seconds!r}")
        # redis rejects a zero expiry; zero means "no expiry" here
        if ttl_seconds:
            result = await self._redis.set(key, value, ex=ttl_seconds)
        else:
            result = await self._redis.set(key, value)
        return bool(result)

    async def close(self) -> None:
        await self._redis.aclose()
        self.logger.info("Redis transport closed", server=self.servers[0])
