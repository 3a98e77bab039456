"""In-process metrics for the Smart ToDo service."""

from dataclasses import dataclass
from threading import Lock
from typing import Any


@dataclass
class Counter:
    value: int = 0


@dataclass
class Timing:
    count: int = 0
    total_ms: float = 0.0
    max_ms: float = 0.0

    def record(self, value: float) -> None:
        self.count += 1
        self.total_ms += value
        self.max_ms = max(self.max_ms, value)

    def snapshot(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "total_ms": round(self.total_ms, 3),
            "max_ms": round(self.max_ms, 3),
            "avg_ms": round(self.total_ms / self.count, 3) if self.count else 0.0,
        }


class MetricsRegistry:
    """Thread-safe counters and timings keyed by dotted name."""

    def __init__(self) -> None:
        self._lock = Lock()
        self.counters: dict[str, Counter] = {}
        self.timings: dict[str, Timing] = {}

    def inc_counter(self, name: str, amount: int = 1) -> None:
        with self._lock:
            self.counters.setdefault(name, Counter()).value += amount

    def observe(self, name: str, value: float) -> None:
        with self._lock:
            self.timings.setdefault(name, Timing()).record(value)

    def counter(self, name: str) -> int:
        with self._lock:
            counter = self.counters.get(name)
            return counter.value if counter else 0

    def reset(self) -> None:
        with self._lock:
            self.counters.clear()
            self.timings.clear()

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "counters": {name: c.value for name, c in sorted(self.counters.items())},
                "timings": {name: t.snapshot() for name, t in sorted(self.timings.items())},
            }


metrics = MetricsRegistry()
