"""
Metrics sink interface for scrape runs.

Sources and the scraper service emit into an injected sink instead of
process-wide globals, so exporters stay outside the pipeline and tests can
assert on emitted counters.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections import Counter, defaultdict
from dataclasses import dataclass, field


class MetricsSink(ABC):
    """
    Receiver for run, item, error and duration signals.
    """

    @abstractmethod
    def record_run(self, source: str, status: str) -> None:
        """Count one finished run with status `success` or `error`."""

    @abstractmethod
    def record_items(self, source: str, count: int) -> None:
        """Count records extracted by a source."""

    @abstractmethod
    def record_error(self, source: str, kind: str, count: int = 1) -> None:
        """Count errors of one kind (see ScrapeError.kind)."""

    @abstractmethod
    def observe_duration(self, source: str, seconds: float) -> None:
        """Observe the wall-clock duration of one run."""


class NullMetrics(MetricsSink):
    """Sink that drops everything."""

    def record_run(self, source: str, status: str) -> None:
        return None

    def record_items(self, source: str, count: int) -> None:
        return None

    def record_error(self, source: str, kind: str, count: int = 1) -> None:
        return None

    def observe_duration(self, source: str, seconds: float) -> None:
        return None


@dataclass(frozen=True)
class MetricsSnapshot:
    runs: dict[tuple[str, str], int] = field(default_factory=dict)
    items: dict[str, int] = field(default_factory=dict)
    errors: dict[tuple[str, str], int] = field(default_factory=dict)
    durations: dict[str, list[float]] = field(default_factory=dict)


class InMemoryMetrics(MetricsSink):
    """
    Thread-safe in-process sink; several sources may report concurrently.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._runs: Counter[tuple[str, str]] = Counter()
        self._items: Counter[str] = Counter()
        self._errors: Counter[tuple[str, str]] = Counter()
        self._durations: defaultdict[str, list[float]] = defaultdict(list)

    def record_run(self, source: str, status: str) -> None:
        with self._lock:
            self._runs[(source, status)] += 1

    def record_items(self, source: str, count: int) -> None:
        with self._lock:
            self._items[source] += count

    def record_error(self, source: str, kind: str, count: int = 1) -> None:
        if count <= 0:
            return
        with self._lock:
            self._errors[(source, kind)] += count

    def observe_duration(self, source: str, seconds: float) -> None:
        with self._lock:
            self._durations[source].append(seconds)

    def runs(self, source: str, status: str) -> int:
        with self._lock:
            return self._runs[(source, status)]

    def items(self, source: str) -> int:
        with self._lock:
            return self._items[source]

    def errors(self, source: str, kind: str) -> int:
        with self._lock:
            return self._errors[(source, kind)]

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            return MetricsSnapshot(
                runs=dict(self._runs),
                items=dict(self._items),
                errors=dict(self._errors),
                durations={key: list(values) for key, values in self._durations.items()},
            )
