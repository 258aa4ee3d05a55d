"""
Stopwatch helpers for event timings.
"""

import time
from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class TimerResult:
    """Elapsed time of a stopped timer."""
    name: str
    started_at: float
    elapsed_ms: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "started_at": self.started_at,
            "elapsed_ms": self.elapsed_ms,
        }


class Timer:
    """Started stopwatch. Call stop() to read the elapsed time."""

    def __init__(self, name: str):
        self.name = name
        self.started_at = time.time()
        self._start = time.perf_counter()

    @classmethod
    def start(cls, name: str) -> "Timer":
        return cls(name)

    def stop(self) -> TimerResult:
        elapsed_ms = (time.perf_counter() - self._start) * 1000.0
        return TimerResult(name=self.name, started_at=self.started_at, elapsed_ms=elapsed_ms)
