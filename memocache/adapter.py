"""
Cache adapter: memoize computed values in a remote key-value cache.

Reads race the transport against a client-side deadline and settle
exactly once. Writes wait for the transport's own completion. Neither
operation raises for expected failures; both return a CacheResult and
report the outcome to the log sink.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Set, Union

from .config import CacheConfig, get_config
from .errors import (
    CacheError,
    CacheErrorKind,
    ConfigurationError,
    DeserializationError,
    KeyNotFoundError,
    ReadError,
    ReadTimeoutError,
    SerializationError,
    WriteError,
    WriteNotAcknowledgedError,
)
from .events import CacheEvent, CacheTimers, EventType, LogSink, NullLogSink
from .keys import normalize_key
from .logging import get_logger
from .registry import ConnectionRegistry, get_default_registry
from .serialization import JsonSerializer
from .timers import Timer, TimerResult

# Tasks the event loop only holds weakly: in-flight reads that lost the
# deadline race and fire-and-forget writes.
_background_tasks: Set["asyncio.Task[Any]"] = set()


def _track(task: "asyncio.Task[Any]") -> None:
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)


def _check_ttl(ttl: Optional[int]) -> None:
    if ttl is None:
        return
    if isinstance(ttl, bool) or not isinstance(ttl, int) or ttl < 0:
        raise ValueError(f"ttl must be a non-negative integer, got {ttl!r}")


@dataclass(frozen=True)
class CacheResult:
    """Outcome of a cache call: a value, or the error that prevented one."""
    ok: bool
    value: Any = None
    error: Optional[CacheError] = None

    @classmethod
    def success(cls, value: Any = None) -> "CacheResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: CacheError) -> "CacheResult":
        return cls(ok=False, error=error)

    @property
    def kind(self) -> Optional[CacheErrorKind]:
        return self.error.kind if self.error is not None else None

    def unwrap(self) -> Any:
        """Return the value or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value


class _Settlement:
    """Single-settlement guard shared by the deadline and the transport callback."""

    def __init__(self, future: "asyncio.Future[CacheResult]"):
        self._future = future
        self._settled = False

    def claim(self) -> bool:
        """Return True exactly once; every later call returns False."""
        if self._settled or self._future.done():
            self._settled = True
            return False
        self._settled = True
        return True


class CacheAdapter:
    """Read and write JSON values in a pooled remote cache.

    Construct one per request if convenient: adapters with equal
    configuration share one transport client through the registry.
    """

    def __init__(
        self,
        config: Union[CacheConfig, Mapping[str, Any]],
        sink: Optional[LogSink] = None,
        *,
        registry: Optional[ConnectionRegistry] = None,
        serializer: Optional[JsonSerializer] = None,
    ):
        if isinstance(config, CacheConfig):
            self.config = config
        elif isinstance(config, Mapping):
            self.config = get_config(**config)
        else:
            raise ConfigurationError(
                "Cache configuration must be a CacheConfig or a mapping",
                details={"type": type(config).__name__},
            )

        self.sink: LogSink = sink if sink is not None else NullLogSink()
        self.registry = registry if registry is not None else get_default_registry()
        self.serializer = serializer if serializer is not None else JsonSerializer()
        self.logger = get_logger("memocache.adapter")

        self._client = self.registry.acquire(self.config, self.sink)

    def normalize_key(self, key: str) -> str:
        """Hash key together with the configured generation."""
        return normalize_key(key, self.config.generation)

    async def get(self, key: str, context: Optional[Any] = None) -> CacheResult:
        """Read and decode the value stored under key.

        Resolves with READ_TIMEOUT once read_timeout milliseconds pass
        without an answer. The transport call is not cancelled; its late
        result is discarded.
        """
        normalized_key = self.normalize_key(key)
        self._log(CacheEvent(type=EventType.READ_START, key=key, normalized_key=normalized_key), context)

        network_timer = Timer.start("memocache.get.network")
        total_timer = Timer.start("memocache.get.total")

        loop = asyncio.get_running_loop()
        outcome: "asyncio.Future[CacheResult]" = loop.create_future()
        settlement = _Settlement(outcome)

        def on_timeout() -> None:
            if not settlement.claim():
                return

            timers = CacheTimers(network=network_timer.stop(), total=total_timer.stop())
            self._log(CacheEvent(
                type=EventType.READ_TIMEOUT,
                key=key,
                normalized_key=normalized_key,
                timers=timers,
            ), context)
            outcome.set_result(CacheResult.failure(
                ReadTimeoutError(details={"timeout_ms": self.config.read_timeout})
            ))

        deadline = loop.call_later(self.config.read_timeout / 1000.0, on_timeout)

        async def fetch() -> Optional[str]:
            return await self._client.fetch(normalized_key)

        task = loop.create_task(fetch())
        _track(task)

        def on_fetched(done: "asyncio.Task[Optional[str]]") -> None:
            error: Optional[BaseException] = None
            data: Optional[str] = None
            if done.cancelled():
                error = asyncio.CancelledError()
            else:
                # consumed even when discarded so the loop never reports it as unretrieved
                error = done.exception()
                if error is None:
                    data = done.result()

            if not settlement.claim():
                self.logger.debug("Discarded late cache read", normalized_key=normalized_key)
                return

            deadline.cancel()
            network = network_timer.stop()
            outcome.set_result(
                self._read_outcome(key, normalized_key, data, error, network, total_timer, context)
            )

        task.add_done_callback(on_fetched)

        return await outcome

    def _read_outcome(
        self,
        key: str,
        normalized_key: str,
        data: Optional[str],
        error: Optional[BaseException],
        network: TimerResult,
        total_timer: Timer,
        context: Optional[Any],
    ) -> CacheResult:
        if error is not None:
            self._log(CacheEvent(
                type=EventType.READ_ERROR,
                key=key,
                normalized_key=normalized_key,
                error=error,
                timers=CacheTimers(network=network, total=total_timer.stop()),
            ), context)
            return CacheResult.failure(ReadError(str(error) or None, cause=error))

        if not data:
            self._log(CacheEvent(
                type=EventType.READ_KEY_NOT_FOUND,
                key=key,
                normalized_key=normalized_key,
                timers=CacheTimers(network=network, total=total_timer.stop()),
            ), context)
            return CacheResult.failure(KeyNotFoundError(details={"key": key}))

        try:
            value = self.serializer.loads(data)
        except Exception as e:
            self._log(CacheEvent(
                type=EventType.JSON_PARSING_FAILED,
                key=key,
                normalized_key=normalized_key,
                data=data,
                error=e,
                timers=CacheTimers(network=network, total=total_timer.stop()),
            ), context)
            return CacheResult.failure(DeserializationError(details={"key": key}, cause=e))

        self._log(CacheEvent(
            type=EventType.READ_DONE,
            key=key,
            normalized_key=normalized_key,
            data=data,
            timers=CacheTimers(network=network, total=total_timer.stop()),
        ), context)
        return CacheResult.success(value)

    async def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[int] = None,
        context: Optional[Any] = None,
    ) -> CacheResult:
        """Encode value and store it under key for ttl seconds.

        None means there is nothing to cache: the call returns at once
        without touching the network or emitting events. There is no
        write deadline; the call completes when the transport does.
        A ttl of 0 stores without expiry; a negative ttl raises ValueError.
        """
        _check_ttl(ttl)
        if value is None:
            return CacheResult.success()

        if ttl is None:
            ttl = self.config.default_key_ttl

        total_timer = Timer.start("memocache.set.total")
        normalized_key = self.normalize_key(key)
        self._log(CacheEvent(type=EventType.WRITE_START, key=key, normalized_key=normalized_key, ttl=ttl), context)

        try:
            payload = self.serializer.dumps(value)
        except Exception as e:
            self._log(CacheEvent(
                type=EventType.JSON_STRINGIFY_FAILED,
                key=key,
                normalized_key=normalized_key,
                data=value,
                error=e,
                timers=CacheTimers(network=None, total=total_timer.stop()),
            ), context)
            return CacheResult.failure(SerializationError(details={"key": key}, cause=e))

        network_timer = Timer.start("memocache.set.network")
        try:
            done = await self._client.store(normalized_key, payload, ttl)
        except Exception as e:
            timers = CacheTimers(network=network_timer.stop(), total=total_timer.stop())
            self._log(CacheEvent(
                type=EventType.WRITE_ERROR,
                key=key,
                normalized_key=normalized_key,
                error=e,
                ttl=ttl,
                timers=timers,
            ), context)
            return CacheResult.failure(WriteError(str(e) or None, cause=e))

        timers = CacheTimers(network=network_timer.stop(), total=total_timer.stop())
        if not done:
            self._log(CacheEvent(
                type=EventType.WRITE_FAILED,
                key=key,
                normalized_key=normalized_key,
                ttl=ttl,
                timers=timers,
            ), context)
            return CacheResult.failure(WriteNotAcknowledgedError(details={"key": key}))

        self._log(CacheEvent(
            type=EventType.WRITE_DONE,
            key=key,
            normalized_key=normalized_key,
            data=payload,
            ttl=ttl,
            timers=timers,
        ), context)
        return CacheResult.success()

    def set_in_background(
        self,
        key: str,
        value: Any,
        ttl: Optional[int] = None,
        context: Optional[Any] = None,
    ) -> "Optional[asyncio.Task[CacheResult]]":
        """Schedule set() without waiting for it. Outcomes still reach the sink."""
        _check_ttl(ttl)
        if value is None:
            return None

        task = asyncio.get_running_loop().create_task(self.set(key, value, ttl=ttl, context=context))
        _track(task)
        return task

    def _log(self, event: CacheEvent, context: Optional[Any] = None) -> None:
        try:
            self.sink.log(event, context)
        except Exception as e:
            self.logger.error("Log sink failed", event_type=event.type.value, error=str(e))
