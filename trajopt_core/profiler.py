"""Wall-clock timers and a lightweight scoped profiler.

Timers report durations in a chosen unit given as a short string:
``"s"``, ``"cs"``, ``"ms"``, ``"us"`` or ``"ns"``.
"""

from __future__ import annotations

import math
import time
from contextlib import contextmanager
from typing import Iterator

_NANOSECONDS_PER_UNIT = {
    "s": 1_000_000_000,
    "cs": 10_000_000,
    "ms": 1_000_000,
    "us": 1_000,
    "ns": 1,
}

_DISABLED_MESSAGE = (
    "Profiling turned off.\n"
    "Enable profiling by setting the profiler's `enabled` attribute."
)


def _ns_per_unit(unit: str) -> int:
    try:
        return _NANOSECONDS_PER_UNIT[unit]
    except KeyError:
        known = ", ".join(_NANOSECONDS_PER_UNIT)
        raise ValueError(f"Unknown time unit {unit!r}; expected one of {known}") from None


class Timer:
    """Reports the time elapsed since the last call to start()."""

    def __init__(self) -> None:
        self._start_ns: int | None = None

    def start(self) -> None:
        """Start (or restart) the timer."""
        self._start_ns = time.perf_counter_ns()

    def _started_at(self) -> int:
        if self._start_ns is None:
            raise RuntimeError("Timer has not been started")
        return self._start_ns

    def elapsed(self, unit: str = "s") -> float:
        """Time since the last start(), in the given unit."""
        scale = _ns_per_unit(unit)
        return (time.perf_counter_ns() - self._started_at()) / scale


class LapTimer(Timer):
    """A timer that records laps and accumulates their total duration."""

    def __init__(self) -> None:
        super().__init__()
        self._total_ns = 0
        self._lap_count = 0

    def lap(self, unit: str = "s") -> float:
        """Close the current lap and start the next; return the lap's length."""
        scale = _ns_per_unit(unit)
        now = time.perf_counter_ns()
        delta = now - self._started_at()
        self._start_ns = now
        self._total_ns += delta
        self._lap_count += 1
        return delta / scale

    def average(self, unit: str = "s") -> float:
        """Average lap duration; NaN when no lap has been recorded."""
        scale = _ns_per_unit(unit)
        if self._lap_count == 0:
            return math.nan
        return (self._total_ns / scale) / self._lap_count

    def total(self, unit: str = "s") -> float:
        """Total duration over all recorded laps."""
        return self._total_ns / _ns_per_unit(unit)

    def laps(self) -> int:
        """Number of recorded laps."""
        return self._lap_count


class Profiler:
    """A set of labelled lap timers with nested self-time accounting.

    When ``enabled`` is false, ``instrument`` does nothing and the table of
    averages reports that profiling is off.
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._timers: list[LapTimer] = []
        self._labels: list[str] = []
        self._self_times: list[float] = []
        self._stack: list[int] = []
        self._by_label: dict[str, int] = {}

    def _timer(self, index: int) -> LapTimer:
        if not 0 <= index < len(self._timers):
            raise IndexError(f"Timer index {index} out of range")
        return self._timers[index]

    def add_timer(self, label: str) -> int:
        """Register a new timer displayed with ``label``; return its index."""
        index = len(self._timers)
        self._timers.append(LapTimer())
        self._labels.append(label)
        self._self_times.append(0.0)
        self._by_label.setdefault(label, index)
        return index

    def start(self, index: int) -> None:
        self._timer(index).start()

    def stop(self, index: int) -> None:
        self._timer(index).lap("ns")

    def lap(self, index: int) -> float:
        """Lap the timer, returning the lap duration in nanoseconds."""
        return self._timer(index).lap("ns")

    def lap_seconds(self, index: int) -> float:
        """Lap the timer, returning the lap duration in seconds."""
        return self._timer(index).lap("s")

    def push_timer(self, index: int) -> int:
        self._timer(index)
        self._stack.append(index)
        return index

    def pop_timer(self) -> None:
        if not self._stack:
            raise IndexError("pop from an empty timer stack")
        self._stack.pop()

    def update_stack(self, dt: float) -> None:
        """Credit ``dt`` to the innermost timer and debit it from its parent."""
        if not self._stack:
            raise IndexError("no timer on the stack")
        self._self_times[self._stack[-1]] += dt
        if len(self._stack) > 1:
            self._self_times[self._stack[-2]] -= dt

    def average_seconds(self, index: int) -> float:
        return self._timer(index).average("s")

    def self_time(self, index: int) -> float:
        self._timer(index)
        return self._self_times[index]

    def timer_count(self) -> int:
        return len(self._timers)

    def table_of_averages(self) -> str:
        """Render per-timer averages, sample counts, totals and self times."""
        if not self.enabled:
            return _DISABLED_MESSAGE
        lines = [
            "All registered profiles average times:",
            f"{'Time/sample (s)':>15}{'Samples':>10}{'Total Time (s)':>17}"
            f"{'Self (s)':>11} {'Label':>10}",
        ]
        for timer, label, own in zip(self._timers, self._labels, self._self_times):
            lines.append(
                f"{timer.average('s'):>15.7g}{timer.laps():>10}"
                f"{timer.total('s'):>17.7g}{own:>15.7g}  {label}"
            )
        lines.append(f"Self Total: {sum(self._self_times)}")
        return "\n".join(lines)

    @contextmanager
    def instrument(self, label: str) -> Iterator[None]:
        """Time the enclosed block under ``label``; usable as a decorator."""
        if not self.enabled:
            yield
            return
        index = self._by_label.get(label)
        if index is None:
            index = self.add_timer(label)
        self.push_timer(index)
        self.start(index)
        try:
            yield
        finally:
            dt = self.lap_seconds(index)
            self.update_stack(dt)
            self.pop_timer()


_DEFAULT_PROFILER: Profiler | None = None


def default_profiler() -> Profiler:
    """The process-wide profiler, created disabled on first use."""
    global _DEFAULT_PROFILER
    if _DEFAULT_PROFILER is None:
        _DEFAULT_PROFILER = Profiler(enabled=False)
    return _DEFAULT_PROFILER


def instrument(label: str):
    """Time a block or function with the process-wide profiler."""
    return default_profiler().instrument(label)


def table_of_averages() -> str:
    """The table of averages of the process-wide profiler."""
    return default_profiler().table_of_averages()