"""
Cache events and the sinks that receive them.

Events are purely observational: a sink can never change the outcome of
a cache call, and a sink that raises is logged and ignored.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, runtime_checkable

from .logging import get_logger
from .timers import TimerResult


class EventType(str, Enum):
    """Cache event types."""
    INITIALIZED = "INITIALIZED"

    JSON_PARSING_FAILED = "JSON_PARSING_FAILED"
    JSON_STRINGIFY_FAILED = "JSON_STRINGIFY_FAILED"

    READ_DONE = "READ_DONE"
    READ_ERROR = "READ_ERROR"
    READ_KEY_NOT_FOUND = "READ_KEY_NOT_FOUND"
    READ_START = "READ_START"
    READ_TIMEOUT = "READ_TIMEOUT"

    WRITE_DONE = "WRITE_DONE"
    WRITE_ERROR = "WRITE_ERROR"
    WRITE_FAILED = "WRITE_FAILED"
    WRITE_START = "WRITE_START"


@dataclass(frozen=True)
class CacheTimers:
    """Network and total durations of one call. network is None when no network call was made."""
    network: Optional[TimerResult] = None
    total: Optional[TimerResult] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "network": self.network.to_dict() if self.network else None,
            "total": self.total.to_dict() if self.total else None,
        }


@dataclass(frozen=True)
class CacheEvent:
    """One observation emitted by the adapter or the connection registry."""
    type: EventType
    key: Optional[str] = None
    normalized_key: Optional[str] = None
    timers: Optional[CacheTimers] = None
    data: Any = None
    error: Optional[BaseException] = None
    ttl: Optional[int] = None
    options: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Flatten into log-friendly fields, dropping empty ones."""
        result: Dict[str, Any] = {"type": self.type.value}
        if self.key is not None:
            result["key"] = self.key
        if self.normalized_key is not None:
            result["normalized_key"] = self.normalized_key
        if self.timers is not None:
            result["timers"] = self.timers.to_dict()
        if self.data is not None:
            result["data"] = self.data
        if self.error is not None:
            result["error"] = repr(self.error)
        if self.ttl is not None:
            result["ttl"] = self.ttl
        if self.options:
            result["options"] = self.options
        return result


@runtime_checkable
class LogSink(Protocol):
    """Receiver of cache events. context is request-scoped and may be None."""

    def log(self, event: CacheEvent, context: Optional[Any] = None) -> None:
        ...


class NullLogSink:
    """Sink that discards every event."""

    def log(self, event: CacheEvent, context: Optional[Any] = None) -> None:
        return None


_LEVELS = {
    EventType.INITIALIZED: "info",
    EventType.READ_START: "debug",
    EventType.READ_DONE: "debug",
    EventType.WRITE_START: "debug",
    EventType.WRITE_DONE: "debug",
    EventType.READ_KEY_NOT_FOUND: "debug",
    EventType.READ_TIMEOUT: "warning",
    EventType.JSON_PARSING_FAILED: "warning",
    EventType.JSON_STRINGIFY_FAILED: "warning",
    EventType.WRITE_FAILED: "warning",
    EventType.READ_ERROR: "error",
    EventType.WRITE_ERROR: "error",
}


class StructlogSink:
    """Write cache events as structured log records."""

    def __init__(self, logger_name: str = "memocache.events"):
        self.logger = get_logger(logger_name)

    def log(self, event: CacheEvent, context: Optional[Any] = None) -> None:
        fields = event.to_dict()
        event_type = fields.pop("type")
        logger = self.logger
        if isinstance(context, Mapping):
            logger = logger.bind(**context)
        getattr(logger, _LEVELS[event.type])(event_type, **fields)


class CompositeLogSink:
    """Fan events out to several sinks."""

    def __init__(self, sinks: Iterable[LogSink]):
        self.sinks: List[LogSink] = list(sinks)
        self.logger = get_logger("memocache.events.composite")

    def log(self, event: CacheEvent, context: Optional[Any] = None) -> None:
        for sink in self.sinks:
            try:
                sink.log(event, context)
            except Exception as e:
                self.logger.error(
                    "Log sink failed",
                    sink=type(sink).__name__,
                    event_type=event.type.value,
                    error=str(e),
                )
