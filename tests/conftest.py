"""
Shared fixtures for memocache tests.
"""

import asyncio
import os
from typing import Any, Dict, List, Optional

import pytest

from memocache.config import CacheConfig
from memocache.events import CacheEvent, EventType
from memocache.registry import ConnectionRegistry


class FakeTransport:
    """In-memory transport with controllable latency and failures."""

    def __init__(self, config: Optional[CacheConfig] = None):
        self.config = config
        self.data: Dict[str, str] = {}
        self.fetch_delay = 0.0
        self.fetch_error: Optional[Exception] = None
        self.store_error: Optional[Exception] = None
        self.acknowledge = True
        self.fetch_calls: List[str] = []
        self.store_calls: List[tuple] = []
        self.fetch_completed = 0
        self.closed = False

    async def fetch(self, key: str) -> Optional[str]:
        self.fetch_calls.append(key)
        if self.fetch_delay:
            await asyncio.sleep(self.fetch_delay)
        self.fetch_completed += 1
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.data.get(key)

    async def store(self, key: str, value: str, ttl_seconds: int) -> bool:
        self.store_calls.append((key, value, ttl_seconds))
        if self.store_error is not None:
            raise self.store_error
        if self.acknowledge:
            self.data[key] = value
        return self.acknowledge

    async def close(self) -> None:
        self.closed = True


class RecordingSink:
    """Log sink that keeps every event it receives."""

    def __init__(self):
        self.events: List[CacheEvent] = []
        self.contexts: List[Any] = []

    def log(self, event: CacheEvent, context: Optional[Any] = None) -> None:
        self.events.append(event)
        self.contexts.append(context)

    def types(self) -> List[EventType]:
        return [event.type for event in self.events]

    def last(self, event_type: EventType) -> CacheEvent:
        matching = [event for event in self.events if event.type == event_type]
        assert matching, f"no {event_type.value} event recorded"
        return matching[-1]


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep MEMOCACHE_* variables from the host out of the tests."""
    for name in list(os.environ):
        if name.upper().startswith("MEMOCACHE_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def registry():
    """Registry whose transports are in-memory fakes."""
    return ConnectionRegistry(factory=FakeTransport)


@pytest.fixture
def sink():
    """Recording log sink."""
    return RecordingSink()


@pytest.fixture
def config():
    """Default test configuration."""
    return CacheConfig(servers=["h:11211"], generation=1, read_timeout=100)
