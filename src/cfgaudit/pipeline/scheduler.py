"""Periodic execution of the audit run.

``fixed_delay`` waits the full interval after each run finishes.
``fixed_rate`` keeps start-to-start spacing; a run that overruns its slot is
followed immediately by a single catch-up run, never by a burst of missed
ticks.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from cfgaudit.observability import get_logger

log = get_logger("scheduler")


class Scheduler:
    """Run a job now and then every *interval* seconds until stopped."""

    def __init__(
        self,
        interval: float,
        mode: str = "fixed_delay",
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        if mode not in ("fixed_delay", "fixed_rate"):
            raise ValueError(f"unknown schedule mode: {mode}")
        self.interval = interval
        self.mode = mode
        self._clock = clock
        self._stop = threading.Event()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        """Request shutdown; an in-progress run is allowed to finish."""
        self._stop.set()

    def _next_delay(self, next_start: float) -> tuple[float, float]:
        now = self._clock()
        if self.mode == "fixed_delay":
            return self.interval, now + self.interval
        next_start += self.interval
        if next_start < now:
            missed = int((now - next_start) // self.interval) + 1
            log.warning("schedule.overrun", missed_ticks=missed)
            next_start = now
        return next_start - now, next_start

    def run(self, job: Callable[[], object], *, max_runs: Optional[int] = None) -> int:
        """Block running *job* on schedule. Returns the number of runs."""
        runs = 0
        next_start = self._clock()
        log.info("schedule.start", interval_seconds=self.interval, mode=self.mode)

        while not self._stop.is_set():
            try:
                job()
            except Exception:
                log.exception("schedule.run_failed")
            runs += 1
            if max_runs is not None and runs >= max_runs:
                break
            delay, next_start = self._next_delay(next_start)
            if self._stop.wait(max(delay, 0.0)):
                break

        log.info("schedule.stopped", runs=runs)
        return runs
