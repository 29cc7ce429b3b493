"""Typed metric store with gauge and counter semantics.

A store owns families ("memory", "cpu"), each family owns metrics ("rss",
"user"). Gauges report the last saved value. Counters keep the previous raw
sample and report the delta between the last two samples, passed through the
metric's aggregator.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

# (delta, elapsed) -> value
Aggregator = Callable[[int, int], int | float]
# value -> human-readable string
Display = Callable[[int | float], str]


class MetricKind(Enum):
    """How successive samples of a metric are interpreted."""

    GAUGE = "gauge"
    COUNTER = "counter"


class MetricNotDeclared(KeyError):
    """Raised when reading or writing a metric that was never declared."""

    def __init__(self, family: str, name: str) -> None:
        super().__init__(f"{family}.{name}")
        self.family = family
        self.name = name

    def __str__(self) -> str:
        return f"Metric not declared: {self.family}.{self.name}"


class MetricConflict(ValueError):
    """Raised when a metric is re-declared with different parameters."""


# ─────────────────────────────────────────────────────────────────────────────
# Transforms
# ─────────────────────────────────────────────────────────────────────────────


def tick_percentage(delta: int, elapsed: int) -> int:
    """Share of the sampling window, in percent, spent in these ticks."""
    if elapsed <= 0:
        return 0
    return round(100 * delta / elapsed)


def display_in_mb(value: int | float) -> str:
    """Format a byte count as megabytes."""
    return f"{value / (1024 * 1024):.1f}m"


def display_percent(value: int | float) -> str:
    return f"{value}%"


def display_raw(value: int | float) -> str:
    return str(value)


# ─────────────────────────────────────────────────────────────────────────────
# Store
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class Metric:
    """A single declared metric and its sampling state."""

    kind: MetricKind
    aggregator: Aggregator | None
    display: Display
    raw: int = 0
    previous_raw: int | None = None  # Counter baseline, None until first save
    delta: int = 0
    sampled_at: float | None = None  # time.monotonic() of the last save; aggregators ignore it
    seeded: int | float | None = None  # Value pinned by fill()

    def same_declaration(
        self, kind: MetricKind, aggregator: Aggregator | None, display: Display
    ) -> bool:
        return self.kind is kind and self.aggregator is aggregator and self.display is display


@dataclass
class Family:
    """Named group of metrics, in declaration order."""

    name: str
    metrics: dict[str, Metric] = field(default_factory=dict)


class MetricStore:
    """Registry of declared metrics and their current values.

    Not thread-safe: callers sampling and reading the same store from several
    tasks must serialize access themselves.

    Args:
        cycle_ticks: Length of one sampling cycle in kernel ticks. Passed to
            counter aggregators as ``elapsed``. The window is fixed: it is not
            measured from ``Metric.sampled_at``, so a delta that spans more
            than one cycle (a skipped or late sample) can read above 100%.
    """

    def __init__(self, cycle_ticks: int = 1500) -> None:
        if cycle_ticks <= 0:
            raise ValueError(f"cycle_ticks must be > 0, got {cycle_ticks}")
        self.cycle_ticks = cycle_ticks
        self._families: dict[str, Family] = {}

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        family, name = key
        fam = self._families.get(family)
        return fam is not None and name in fam.metrics

    # ── declaration ─────────────────────────────────────────────────────────

    def declare_gauge(
        self,
        family: str,
        name: str,
        aggregator: Aggregator | None = None,
        display: Display = display_raw,
    ) -> None:
        """Declare an absolute-value metric."""
        self._declare(family, name, MetricKind.GAUGE, aggregator, display)

    def declare_counter(
        self,
        family: str,
        name: str,
        aggregator: Aggregator,
        display: Display = display_raw,
    ) -> None:
        """Declare a rate metric. Counters require an aggregator."""
        if aggregator is None:
            raise ValueError(f"Counter {family}.{name} requires an aggregator")
        self._declare(family, name, MetricKind.COUNTER, aggregator, display)

    def _declare(
        self,
        family: str,
        name: str,
        kind: MetricKind,
        aggregator: Aggregator | None,
        display: Display,
    ) -> None:
        fam = self._families.setdefault(family, Family(name=family))
        existing = fam.metrics.get(name)
        if existing is not None:
            if existing.same_declaration(kind, aggregator, display):
                return
            raise MetricConflict(
                f"{family}.{name} already declared as {existing.kind.value} "
                f"with different parameters"
            )
        fam.metrics[name] = Metric(kind=kind, aggregator=aggregator, display=display)

    # ── sampling ────────────────────────────────────────────────────────────

    def _lookup(self, family: str, name: str) -> Metric:
        fam = self._families.get(family)
        if fam is None or name not in fam.metrics:
            raise MetricNotDeclared(family, name)
        return fam.metrics[name]

    def save(self, family: str, name: str, raw: int) -> None:
        """Record a new raw sample."""
        metric = self._lookup(family, name)
        metric.seeded = None
        metric.sampled_at = time.monotonic()
        metric.raw = raw
        if metric.kind is MetricKind.GAUGE:
            return

        if metric.previous_raw is None or raw < metric.previous_raw:
            # No baseline yet, or the counter went backwards (pid reuse)
            metric.delta = 0
        else:
            metric.delta = raw - metric.previous_raw
        metric.previous_raw = raw

    def get(self, family: str, name: str) -> int | float:
        """Return the current value: raw for gauges, aggregated delta for counters."""
        metric = self._lookup(family, name)
        if metric.seeded is not None:
            return metric.seeded
        if metric.kind is MetricKind.GAUGE:
            if metric.aggregator is not None:
                return metric.aggregator(metric.raw, self.cycle_ticks)
            return metric.raw
        assert metric.aggregator is not None
        return metric.aggregator(metric.delta, self.cycle_ticks)

    def display(self, family: str, name: str) -> str:
        """Return the current value formatted for humans."""
        metric = self._lookup(family, name)
        return metric.display(self.get(family, name))

    def fill(self, *values: int | float) -> None:
        """Pin values onto metrics in declaration order, bypassing deltas.

        Intended for test fixtures. The next save() on a metric unpins it.
        """
        ordered = [m for fam in self._families.values() for m in fam.metrics.values()]
        if len(values) > len(ordered):
            raise ValueError(f"fill() got {len(values)} values for {len(ordered)} metrics")
        for metric, value in zip(ordered, values):
            metric.seeded = value

    # ── introspection ───────────────────────────────────────────────────────

    def families(self) -> list[str]:
        return list(self._families)

    def metrics(self, family: str) -> list[str]:
        fam = self._families.get(family)
        if fam is None:
            raise KeyError(family)
        return list(fam.metrics)

    def snapshot(self) -> dict[str, dict[str, int | float]]:
        """Return every metric's current value, keyed by family then name."""
        return {
            fam.name: {name: self.get(fam.name, name) for name in fam.metrics}
            for fam in self._families.values()
        }
