"""
Prometheus metrics fed from the cache event stream.
"""

from typing import Any, Dict, Optional

from prometheus_client import Counter, Histogram, CollectorRegistry, REGISTRY

from .events import CacheEvent, EventType


_OPERATIONS = {
    EventType.READ_DONE: "get",
    EventType.READ_ERROR: "get",
    EventType.READ_KEY_NOT_FOUND: "get",
    EventType.READ_TIMEOUT: "get",
    EventType.JSON_PARSING_FAILED: "get",
    EventType.WRITE_DONE: "set",
    EventType.WRITE_ERROR: "set",
    EventType.WRITE_FAILED: "set",
    EventType.JSON_STRINGIFY_FAILED: "set",
}


class CacheMetrics:
    """Counters and duration histograms for cache calls."""

    def __init__(self, registry: Optional[CollectorRegistry] = REGISTRY, namespace: str = "memocache"):
        self.registry = registry
        self.namespace = namespace
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up cache metrics."""
        self._metrics["events_total"] = Counter(
            f"{self.namespace}_events_total",
            "Total cache events",
            ["event_type"],
            registry=self.registry
        )

        self._metrics["network_duration_seconds"] = Histogram(
            f"{self.namespace}_network_duration_seconds",
            "Cache server round-trip duration in seconds",
            ["operation"],
            registry=self.registry
        )

        self._metrics["total_duration_seconds"] = Histogram(
            f"{self.namespace}_total_duration_seconds",
            "Cache call duration in seconds",
            ["operation"],
            registry=self.registry
        )

    def record_event(self, event: CacheEvent):
        """Count the event and, for terminal events, observe its timers."""
        self._metrics["events_total"].labels(event_type=event.type.value).inc()

        operation = _OPERATIONS.get(event.type)
        if operation is None or event.timers is None:
            return

        if event.timers.network is not None:
            self._metrics["network_duration_seconds"].labels(operation=operation).observe(
                event.timers.network.elapsed_ms / 1000.0
            )
        if event.timers.total is not None:
            self._metrics["total_duration_seconds"].labels(operation=operation).observe(
                event.timers.total.elapsed_ms / 1000.0
            )


class MetricsLogSink:
    """Log sink that records every event into CacheMetrics."""

    def __init__(self, metrics: CacheMetrics):
        self.metrics = metrics

    def log(self, event: CacheEvent, context: Optional[Any] = None) -> None:
        self.metrics.record_event(event)
