"""In-memory telemetry backend for testing and development.

Records the counters and timings composed chains emit, with structured
debug logging, so tests can inspect them without external dependencies.
"""

from __future__ import annotations

import threading
from collections import Counter, defaultdict
from dataclasses import dataclass, field

from loguru import logger


@dataclass
class InMemoryTelemetry:
    """In-memory counter and timing sink."""

    counters: Counter[str] = field(default_factory=Counter)
    timings: dict[str, list[float]] = field(default_factory=lambda: defaultdict(list))
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def incr(self, name: str, value: int = 1, labels: tuple[tuple[str, str], ...] = ()) -> None:
        """Increase a named counter."""
        key = self._make_key(name, labels)
        with self._lock:
            self.counters[key] += int(value)
        logger.debug("telemetry {} += {}", key, value)

    def timing(self, name: str, value: float, labels: tuple[tuple[str, str], ...] = ()) -> None:
        """Record timing in seconds."""
        key = self._make_key(name, labels)
        with self._lock:
            self.timings[key].append(float(value))

    def _make_key(self, name: str, labels: tuple[tuple[str, str], ...] | None) -> str:
        """Create a unique key for a metric with labels."""
        if not labels:
            return name
        label_str = ",".join(f"{k}={v}" for k, v in labels)
        return f"{name}{{{label_str}}}"

    # ── Test helpers ─────────────────────────────────────────────────────

    def get_counter(self, name: str, labels: tuple[tuple[str, str], ...] = ()) -> int:
        """Get counter value for testing."""
        return int(self.counters[self._make_key(name, labels)])

    def get_timing_values(self, name: str, labels: tuple[tuple[str, str], ...] = ()) -> list[float]:
        """Get timing values for testing."""
        return list(self.timings[self._make_key(name, labels)])

    def reset(self) -> None:
        """Clear all metrics."""
        with self._lock:
            self.counters.clear()
            self.timings.clear()
