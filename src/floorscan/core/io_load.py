"""Disk I/O load probes used as feedback for the throughput controller."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

import psutil

__all__ = ["DiskQueueSampler", "StaticSignal"]

logger = logging.getLogger(__name__)


class DiskQueueSampler:
    """Estimate the average number of in-flight disk requests.

    Uses psutil's cumulative ``read_time`` and ``write_time`` counters (the
    milliseconds every completed request spent in flight). By Little's law
    the growth of their sum divided by elapsed wall-clock milliseconds is the
    mean queue depth over the interval.

    The first call only primes the counters and returns None, as does any
    call where psutil cannot provide counters.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock: Callable[[], float] = clock
        self._last_busy_ms: float | None = None
        self._last_time: float | None = None

    def __call__(self) -> float | None:
        try:
            counters = psutil.disk_io_counters(perdisk=False)
        except (OSError, RuntimeError, NotImplementedError) as exc:
            logger.debug("Disk I/O counters unavailable", extra={"error": str(exc)})
            return None
        if counters is None:
            return None

        busy_ms = float(counters.read_time + counters.write_time)
        now = self._clock()
        last_busy, last_time = self._last_busy_ms, self._last_time
        self._last_busy_ms, self._last_time = busy_ms, now

        if last_busy is None or last_time is None:
            return None
        elapsed_ms = (now - last_time) * 1000.0
        if elapsed_ms <= 0 or busy_ms < last_busy:
            # Counter reset or clock anomaly
            return None
        return (busy_ms - last_busy) / elapsed_ms


class StaticSignal:
    """Signal returning a fixed reading."""

    def __init__(self, value: float | None) -> None:
        self.value: float | None = value

    def __call__(self) -> float | None:
        return self.value
