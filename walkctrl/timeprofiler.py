"""Lightweight CPU-time profiler for periodic control loops."""

from __future__ import annotations

import time


class Timer:
    """Measures CPU time between a start and a stop mark and accumulates it."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end = 0.0
        self._accumulated_ms = 0.0

    def start(self) -> None:
        """Mark the beginning of the measured section."""
        self._start = time.process_time()

    def stop(self) -> None:
        """Mark the end of the measured section."""
        self._end = time.process_time()

    def accumulate(self) -> None:
        """Add the last measured duration, in milliseconds, to the running sum."""
        self._accumulated_ms += (self._end - self._start) * 1000.0

    def reset(self) -> None:
        """Clear the accumulated duration."""
        self._accumulated_ms = 0.0

    @property
    def average_duration(self) -> float:
        """Accumulated duration in milliseconds since the last reset."""
        return self._accumulated_ms


class TimeProfiler:
    """A set of named timers whose averages are reported every ``period`` cycles."""

    def __init__(self, period: int) -> None:
        self.period = period
        self._counter = 0
        self._timers: dict[str, Timer] = {}

    def add_timer(self, key: str) -> None:
        """Register a new timer; a key may be registered only once."""
        if key in self._timers:
            raise ValueError(f"timer {key!r} already exists")
        self._timers[key] = Timer()

    def _timer(self, key: str) -> Timer:
        try:
            return self._timers[key]
        except KeyError:
            raise KeyError(f"unable to find the timer {key!r}") from None

    def start(self, key: str) -> None:
        """Mark the beginning of the section measured by timer ``key``."""
        self._timer(key).start()

    def stop(self, key: str) -> None:
        """Mark the end of the section measured by timer ``key``."""
        self._timer(key).stop()

    def profiling(self) -> str | None:
        """Account for one cycle; every ``period`` cycles print and return the report."""
        self._counter += 1
        report_due = self._counter == self.period
        parts = []
        for key in sorted(self._timers):
            timer = self._timers[key]
            timer.accumulate()
            if report_due:
                parts.append(f"{key}: {timer.average_duration / self._counter:f} ms ")
                timer.reset()
        if not report_due:
            return None
        self._counter = 0
        report = "".join(parts)
        print(report)
        return report