"""
Single-flight periodic scheduler: one background thread runs a job at a fixed
rate. A job that overruns its period delays the next one; jobs never overlap.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

logger = logging.getLogger(__name__)


class SingleFlightScheduler:
    def __init__(
        self,
        job: Callable[[], None],
        period_s: float,
        name: str = "pipeline-tick",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if period_s <= 0:
            raise ValueError("period_s must be positive")
        self._job = job
        self._period_s = period_s
        self._name = name
        self._clock = clock
        self._cancelled = threading.Event()
        self._thread: threading.Thread | None = None
        self._runs = 0

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("Scheduler already started")
        self._thread = threading.Thread(target=self._run_loop, name=self._name, daemon=True)
        self._thread.start()

    def _run_loop(self) -> None:
        next_deadline = self._clock()
        while not self._cancelled.is_set():
            try:
                self._job()
            except Exception:
                # The job owns its error handling; anything escaping ends the schedule
                logger.exception("Scheduled job %s failed; cancelling", self._name)
                self._cancelled.set()
                break
            self._runs += 1
            # Fixed rate: deadlines advance by one period; an overrun runs the next job at once
            next_deadline = max(next_deadline + self._period_s, self._clock())
            delay = next_deadline - self._clock()
            if delay > 0 and self._cancelled.wait(delay):
                break

    def cancel(self) -> None:
        """Stop scheduling further runs. Does not wait; a running job finishes."""
        self._cancelled.set()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the worker to exit. Returns True if it did within timeout."""
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def in_worker_thread(self) -> bool:
        return self._thread is not None and self._thread is threading.current_thread()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def runs(self) -> int:
        return self._runs
