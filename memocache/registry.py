"""
Process-scoped pool of transport clients keyed by configuration.

Adapters are cheap and are typically built once per request; the
connection behind them must not be. Adapters whose configurations are
equal share one transport client for the lifetime of the registry.
"""

import threading
from typing import Any, Callable, Dict, Optional

from .config import CacheConfig
from .events import CacheEvent, EventType, LogSink, NullLogSink
from .logging import get_logger
from .transport import CacheTransport, RedisTransport

TransportFactory = Callable[[CacheConfig], CacheTransport]


class ConnectionRegistry:
    """Map of configuration fingerprint to one shared transport client."""

    def __init__(self, factory: Optional[TransportFactory] = None):
        self.factory: TransportFactory = factory or RedisTransport.from_config
        self.logger = get_logger("memocache.registry")
        self._clients: Dict[str, CacheTransport] = {}
        self._lock = threading.Lock()

    def acquire(self, config: CacheConfig, sink: Optional[LogSink] = None) -> CacheTransport:
        """Return the pooled client for config, creating it on first use."""
        fingerprint = config.fingerprint()
        client = self._clients.get(fingerprint)
        if client is not None:
            return client

        with self._lock:
            client = self._clients.get(fingerprint)
            if client is not None:
                return client

            client = self.factory(config)
            self._clients[fingerprint] = client
            self.logger.info("Created cache transport", servers=config.servers, pool_size=len(self._clients))

        # No request context exists yet; this event is emitted once per configuration.
        event = CacheEvent(type=EventType.INITIALIZED, options=config.to_dict())
        try:
            (sink or NullLogSink()).log(event, None)
        except Exception as e:
            self.logger.error("Log sink failed", event_type=event.type.value, error=str(e))

        return client

    def __len__(self) -> int:
        return len(self._clients)

    def __contains__(self, config: object) -> bool:
        return isinstance(config, CacheConfig) and config.fingerprint() in self._clients

    def get_stats(self) -> Dict[str, Any]:
        """Get pool statistics."""
        return {
            "clients": len(self._clients),
            "fingerprints": list(self._clients.keys()),
        }

    async def close_all(self) -> None:
        """Close every pooled client and empty the registry. Call on shutdown."""
        with self._lock:
            clients = list(self._clients.values())
            self._clients.clear()

        for client in clients:
            try:
                await client.close()
            except Exception as e:
                self.logger.error("Failed to close cache transport", error=str(e))

        self.logger.info("Cache transports closed", count=len(clients))


# Process-wide registry used when an adapter is not given one
default_registry = ConnectionRegistry()


def get_default_registry() -> ConnectionRegistry:
    """Get the process-wide connection registry."""
    return default_registry
