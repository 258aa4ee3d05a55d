"""
Unit tests for cache metrics.
"""

import inspect

import pytest
from prometheus_client import REGISTRY, CollectorRegistry

from memocache.adapter import CacheAdapter
from memocache.events import CacheEvent, CacheTimers, CompositeLogSink, EventType
from memocache.metrics import CacheMetrics, MetricsLogSink
from memocache.timers import TimerResult


class TestCacheMetrics:
    """Test cases for CacheMetrics."""

    @pytest.fixture
    def prometheus_registry(self):
        """Private Prometheus registry."""
        return CollectorRegistry()

    @pytest.fixture
    def metrics(self, prometheus_registry):
        """Metrics bound to the private registry."""
        return CacheMetrics(registry=prometheus_registry)

    def test_counts_events(self, metrics, prometheus_registry):
        """Test each event increments its counter."""
        metrics.record_event(CacheEvent(type=EventType.READ_START))
        metrics.record_event(CacheEvent(type=EventType.READ_START))

        assert prometheus_registry.get_sample_value(
            "memocache_events_total", {"event_type": "READ_START"}
        ) == 2.0

    def test_observes_terminal_timers(self, metrics, prometheus_registry):
        """Test terminal events feed the duration histograms."""
        timers = CacheTimers(
            network=TimerResult(name="n", started_at=0.0, elapsed_ms=20.0),
            total=TimerResult(name="t", started_at=0.0, elapsed_ms=25.0),
        )

        metrics.record_event(CacheEvent(type=EventType.READ_DONE, timers=timers))

        assert prometheus_registry.get_sample_value(
            "memocache_network_duration_seconds_count", {"operation": "get"}
        ) == 1.0
        assert prometheus_registry.get_sample_value(
            "memocache_total_duration_seconds_sum", {"operation": "get"}
        ) == pytest.approx(0.025)

    def test_missing_network_timer_skipped(self, metrics, prometheus_registry):
        """Test a failed serialization only records total duration."""
        timers = CacheTimers(network=None, total=TimerResult(name="t", started_at=0.0, elapsed_ms=1.0))

        metrics.record_event(CacheEvent(type=EventType.JSON_STRINGIFY_FAILED, timers=timers))

        assert prometheus_registry.get_sample_value(
            "memocache_network_duration_seconds_count", {"operation": "set"}
        ) is None
        assert prometheus_registry.get_sample_value(
            "memocache_total_duration_seconds_count", {"operation": "set"}
        ) == 1.0

    @pytest.mark.asyncio
    async def test_adapter_feeds_metrics(self, metrics, prometheus_registry, config, registry, sink):
        """Test metrics collected end to end through a composite sink."""
        adapter = CacheAdapter(config, CompositeLogSink([sink, MetricsLogSink(metrics)]), registry=registry)

        await adapter.set("k", {"a": 1}, 30)
        await adapter.get("k")
        await adapter.get("missing")

        assert prometheus_registry.get_sample_value(
            "memocache_events_total", {"event_type": "INITIALIZED"}
        ) == 1.0
        assert prometheus_registry.get_sample_value(
            "memocache_events_total", {"event_type": "WRITE_DONE"}
        ) == 1.0
        assert prometheus_registry.get_sample_value(
            "memocache_events_total", {"event_type": "READ_KEY_NOT_FOUND"}
        ) == 1.0
        assert len(sink.events) == 7

    def test_defaults_to_process_registry(self):
        """Test metrics register on the prometheus default registry unless told otherwise."""
        default = inspect.signature(CacheMetrics).parameters["registry"].default

        assert default is REGISTRY

    def test_separate_registries_coexist(self):
        """Test instances on distinct registries or namespaces do not collide."""
        first_registry = CollectorRegistry()
        second_registry = CollectorRegistry()

        first = CacheMetrics(registry=first_registry)
        CacheMetrics(registry=second_registry)
        CacheMetrics(registry=first_registry, namespace="sessions")

        first.record_event(CacheEvent(type=EventType.WRITE_DONE))

        assert first_registry.get_sample_value(
            "memocache_events_total", {"event_type": "WRITE_DONE"}
        ) == 1.0
        assert second_registry.get_sample_value(
            "memocache_events_total", {"event_type": "WRITE_DONE"}
        ) is None
        assert first_registry.get_sample_value(
            "sessions_events_total", {"event_type": "WRITE_DONE"}
        ) is None

    def test_same_namespace_on_one_registry_rejected(self):
        """Test a second instance with the same namespace on one registry is refused."""
        prometheus_registry = CollectorRegistry()
        CacheMetrics(registry=prometheus_registry)

        with pytest.raises(ValueError):
            CacheMetrics(registry=prometheus_registry)
