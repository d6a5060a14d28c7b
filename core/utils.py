"""
Frame-rate and latency bookkeeping for the Performance panel.
"""

from __future__ import annotations

import time
from collections import deque
from typing import Callable, Deque


class RollingAverage:
    """Mean of the last N samples."""

    def __init__(self, maxlen: int = 30) -> None:
        self._values: Deque[float] = deque(maxlen=maxlen)

    def add(self, value: float) -> None:
        self._values.append(value)

    @property
    def average(self) -> float:
        return sum(self._values) / len(self._values) if self._values else 0.0

    def clear(self) -> None:
        self._values.clear()


class TickStats:
    """
    Per-tick timing: frame rate from the spacing between published frames, and
    processing latency (grab -> publish) with a rolling average.
    """

    def __init__(self, rolling_size: int = 30, clock: Callable[[], float] = time.perf_counter) -> None:
        self._clock = clock
        self._last_publish: float | None = None
        self._intervals = RollingAverage(rolling_size)
        self._latency = RollingAverage(rolling_size)
        self._started: float | None = None

    def begin(self) -> float:
        """Mark the start of a tick; returns the timestamp."""
        self._started = self._clock()
        return self._started

    def end(self) -> tuple[float, float, float]:
        """Mark a published frame. Returns (fps, latency_ms, rolling_latency_ms)."""
        now = self._clock()
        latency_ms = (now - self._started) * 1000.0 if self._started is not None else 0.0
        self._latency.add(latency_ms)
        if self._last_publish is not None:
            self._intervals.add(now - self._last_publish)
        self._last_publish = now
        mean_interval = self._intervals.average
        fps = 1.0 / mean_interval if mean_interval > 0 else 0.0
        return fps, latency_ms, self._latency.average

    def reset(self) -> None:
        self._last_publish = None
        self._started = None
        self._intervals.clear()
        self._latency.clear()
