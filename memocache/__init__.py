"""
memocache: memoize computed results in a remote key-value cache.

Building blocks:

- config: adapter configuration via pydantic-settings
- keys: generation-aware key hashing
- registry: process-scoped pool of transport clients
- adapter: get/set facade with a client-side read deadline
- events: event taxonomy and log sinks
- logging: structured logging with trace correlation
- metrics: Prometheus metrics fed from events
- errors: error kinds and exception types
"""

from .adapter import CacheAdapter, CacheResult
from .config import CacheConfig, get_config
from .errors import (
    CacheError,
    CacheErrorKind,
    CacheLayerException,
    ConfigurationError,
    DeserializationError,
    KeyNotFoundError,
    ReadError,
    ReadTimeoutError,
    SerializationError,
    WriteError,
    WriteNotAcknowledgedError,
)
from .events import CacheEvent, CacheTimers, CompositeLogSink, EventType, LogSink, NullLogSink, StructlogSink
from .keys import normalize_key
from .metrics import CacheMetrics, MetricsLogSink
from .registry import ConnectionRegistry, default_registry, get_default_registry
from .serialization import JsonSerializer
from .transport import CacheTransport, RedisTransport

__version__ = "1.0.0"

__all__ = [
    "CacheAdapter",
    "CacheResult",
    "CacheConfig",
    "get_config",
    "CacheError",
    "CacheErrorKind",
    "CacheLayerException",
    "ConfigurationError",
    "DeserializationError",
    "KeyNotFoundError",
    "ReadError",
    "ReadTimeoutError",
    "SerializationError",
    "WriteError",
    "WriteNotAcknowledgedError",
    "CacheEvent",
    "CacheTimers",
    "CompositeLogSink",
    "EventType",
    "LogSink",
    "NullLogSink",
    "StructlogSink",
    "normalize_key",
    "CacheMetrics",
    "MetricsLogSink",
    "ConnectionRegistry",
    "default_registry",
    "get_default_registry",
    "JsonSerializer",
    "CacheTransport",
    "RedisTransport",
]
