"""Adaptive worker-count controller driven by observed I/O load.

A bang-bang controller with a hysteresis band: above ``queue_high`` the
worker count drops by one, below ``queue_low`` it grows by one, and in
between it is left alone. The count always stays within
``[min_threads, max_threads]``.
"""

from __future__ import annotations

import logging

from floorscan.types.models import ControllerState
from floorscan.types.protocols import IOLoadSignal

__all__ = ["ThroughputController", "adjust"]

logger = logging.getLogger(__name__)


def adjust(
    current_threads: int,
    observed_queue_length: float | None,
    min_threads: int,
    max_threads: int,
    queue_high_threshold: float,
    queue_low_threshold: float,
) -> int:
    """Return the worker count for the next batch.

    Args:
        current_threads: Worker count used for the previous batch
        observed_queue_length: Sampled queue depth, or None when unavailable
        min_threads: Lower bound for the worker count
        max_threads: Upper bound for the worker count
        queue_high_threshold: Queue depth above which workers are removed
        queue_low_threshold: Queue depth below which workers are added

    Returns:
        New worker count within ``[min_threads, max_threads]``

    Examples:
        >>> adjust(8, 3.0, 1, 16, 2.0, 1.0)
        7
        >>> adjust(8, 0.5, 1, 16, 2.0, 1.0)
        9
        >>> adjust(8, 1.5, 1, 16, 2.0, 1.0)
        8
    """
    current = max(min_threads, min(current_threads, max_threads))
    if observed_queue_length is None:
        return current
    if observed_queue_length > queue_high_threshold:
        return max(min_threads, current - 1)
    if observed_queue_length < queue_low_threshold:
        return min(max_threads, current + 1)
    return current


class ThroughputController:
    """Owns the worker-count state of a single scan."""

    def __init__(
        self,
        *,
        min_threads: int,
        max_threads: int,
        queue_high: float,
        queue_low: float,
        initial_threads: int | None = None,
    ) -> None:
        if min_threads < 1:
            msg = "min_threads must be at least 1"
            raise ValueError(msg)
        if max_threads < min_threads:
            msg = "max_threads must be greater than or equal to min_threads"
            raise ValueError(msg)
        if queue_low > queue_high:
            msg = "queue_low must not exceed queue_high"
            raise ValueError(msg)

        self.min_threads: int = min_threads
        self.max_threads: int = max_threads
        self.queue_high: float = queue_high
        self.queue_low: float = queue_low
        start = initial_threads if initial_threads is not None else max_threads
        self.state: ControllerState = ControllerState(
            current_threads=max(min_threads, min(start, max_threads)),
        )

    @property
    def current_threads(self) -> int:
        return self.state.current_threads

    def next_worker_count(self, signal: IOLoadSignal) -> int:
        """Sample ``signal`` once and update the worker count.

        A signal that raises or returns None is treated as a neutral reading.
        """
        try:
            reading = signal()
        except Exception as exc:
            logger.debug("I/O load signal unavailable", extra={"error": str(exc)})
            reading = None

        previous = self.state.current_threads
        updated = adjust(
            previous,
            reading,
            self.min_threads,
            self.max_threads,
            self.queue_high,
            self.queue_low,
        )
        self.state.current_threads = updated
        self.state.history.append(updated)

        if updated != previous:
            logger.debug(
                "Worker count adjusted",
                extra={"previous": previous, "current": updated, "queue_length": reading},
            )
        return updated
