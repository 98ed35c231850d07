"""Scan orchestrator: discovery, batched size resolution, and result shaping.

Batches are processed strictly one after another. Before each batch the
worker count is decided (by the throughput controller in adaptive mode),
every target of the batch is resolved concurrently on a scan-scoped thread
pool bounded by that count, and the batch is fully joined before the next
decision is made. Controller state is therefore only touched between
batches, from the event loop thread.
"""

from __future__ import annotations

import asyncio
import contextvars
import logging
import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from uuid import uuid4

from floorscan.core.config import ConcurrencyMode, ConcurrencySettings, ScanSettings, SortOrder
from floorscan.core.discovery import discover_targets, partition, resolve_base_path
from floorscan.core.io_load import DiskQueueSampler
from floorscan.core.size_resolver import FailureLog, SizeResolver
from floorscan.core.throughput import ThroughputController
from floorscan.core.units import MEGABYTE, UnitSelection, convert
from floorscan.types import (
    AccessFailure,
    DisplayEntry,
    IOLoadSignal,
    ScanListener,
    ScanTarget,
    SizedEntry,
)
from floorscan.utils.formatting import format_elapsed, format_size
from floorscan.utils.logging import reset_scan_id, set_scan_id

__all__ = ["LoggingListener", "ScanOrchestrator", "ScanResult", "passes_min_size", "scan", "shape_results"]

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ScanResult:
    """Outcome of a scan handed to export and display collaborators."""

    base_path: Path
    entries: tuple[DisplayEntry, ...]
    failures: tuple[AccessFailure, ...]
    candidates: int
    resolved: int
    batches: int
    worker_history: tuple[int, ...]
    elapsed_seconds: float
    stopped: bool = False

    @property
    def is_empty(self) -> bool:
        """True when no entry survived discovery and filtering."""
        return not self.entries

    @property
    def failure_count(self) -> int:
        return len(self.failures)


class LoggingListener:
    """Default listener reporting scan progress through logging."""

    def on_discovery_complete(self, candidates: int) -> None:
        logger.info("Discovery complete", extra={"candidates": candidates})

    def on_batch_start(self, index: int, total: int, size: int, workers: int) -> None:
        logger.info(
            "Batch %d/%d started",
            index + 1,
            total,
            extra={"targets": size, "workers": workers},
        )

    def on_entry_resolved(self, entry: SizedEntry) -> None:
        logger.debug("Resolved %s", entry.path, extra={"size": format_size(entry.size_bytes)})

    def on_batch_complete(self, index: int, total: int, resolved: int) -> None:
        logger.info("Batch %d/%d complete", index + 1, total, extra={"resolved": resolved})


def passes_min_size(size_bytes: int, min_size_mb: float | Decimal) -> bool:
    """Inclusive minimum-size test, always denominated in MB."""
    return Decimal(size_bytes) >= Decimal(str(min_size_mb)) * MEGABYTE


def shape_results(
    sized: Sequence[SizedEntry],
    *,
    min_size_mb: float,
    unit: UnitSelection,
    sort: SortOrder = SortOrder.NONE,
) -> tuple[DisplayEntry, ...]:
    """Filter, convert, and optionally sort resolved entries.

    Args:
        sized: Resolved entries in discovery order
        min_size_mb: Inclusive lower bound in MB, independent of ``unit``
        unit: Display unit applied to every surviving entry
        sort: Ordering by size; NONE keeps discovery order

    Returns:
        Display entries ready for export
    """
    entries: list[DisplayEntry] = []
    for item in sized:
        if not passes_min_size(item.size_bytes, min_size_mb):
            continue
        conversion = convert(item.size_bytes, unit)
        entries.append(
            DisplayEntry(
                path=item.path,
                size=conversion.value,
                unit=conversion.symbol,
                size_bytes=item.size_bytes,
            )
        )

    if sort is not SortOrder.NONE:
        entries.sort(key=lambda e: e.size_bytes, reverse=sort is SortOrder.DESCENDING)
    return tuple(entries)


class ScanOrchestrator:
    """Drive a single scan from base path to display entries."""

    def __init__(
        self,
        *,
        scan: ScanSettings | None = None,
        concurrency: ConcurrencySettings | None = None,
        io_signal: IOLoadSignal | None = None,
        listener: ScanListener | None = None,
    ) -> None:
        self.scan_settings: ScanSettings = scan or ScanSettings()
        self.concurrency: ConcurrencySettings = concurrency or ConcurrencySettings()
        self.io_signal: IOLoadSignal = io_signal or DiskQueueSampler()
        self.listener: ScanListener = listener or LoggingListener()
        # Resolved once per orchestrator, not per entry
        self._unit: UnitSelection = self.scan_settings.unit_selection()
        self._stop_requested: bool = False

    def request_stop(self) -> None:
        """Stop dispatching further batches; the running batch completes."""
        if not self._stop_requested:
            logger.info("Stop requested, finishing current batch")
        self._stop_requested = True

    async def run(self, base_path: Path | str) -> ScanResult:
        """Scan ``base_path`` and return the shaped results.

        Raises:
            InvalidInputError: If the base path does not exist or is not a directory
        """
        token = set_scan_id(uuid4().hex[:8])
        try:
            return await self._run(base_path)
        finally:
            reset_scan_id(token)

    async def _run(self, base_path: Path | str) -> ScanResult:
        started = time.perf_counter()
        settings = self.scan_settings
        base = resolve_base_path(base_path)
        failures = FailureLog()
        resolver = SizeResolver(failures, mode=settings.size_mode)

        logger.info(
            "Scan starting",
            extra={
                "base_path": str(base),
                "floor": settings.floor,
                "depth_mode": settings.depth_mode.value,
                "mode": self.concurrency.mode.value,
            },
        )

        targets = await asyncio.to_thread(
            discover_targets,
            base,
            settings.floor,
            item_type=settings.item_type,
            shallow=settings.shallow,
            depth_mode=settings.depth_mode,
            failures=failures,
        )
        self.listener.on_discovery_complete(len(targets))

        if not targets:
            logger.info("No entries matched the floor and item type", extra={"base_path": str(base)})
            return ScanResult(
                base_path=base,
                entries=(),
                failures=failures.snapshot(),
                candidates=0,
                resolved=0,
                batches=0,
                worker_history=(),
                elapsed_seconds=time.perf_counter() - started,
            )

        batches = partition(targets, self.concurrency.effective_batch_size())
        sized, history, stopped = await self._resolve_batches(batches, resolver)

        entries = shape_results(
            sized,
            min_size_mb=settings.min_size_mb,
            unit=self._unit,
            sort=settings.sort,
        )
        result = ScanResult(
            base_path=base,
            entries=entries,
            failures=failures.snapshot(),
            candidates=len(targets),
            resolved=len(sized),
            batches=len(history),
            worker_history=tuple(history),
            elapsed_seconds=time.perf_counter() - started,
            stopped=stopped,
        )

        if result.failure_count:
            logger.warning(
                "Skipped %d inaccessible item(s)",
                result.failure_count,
                extra={"base_path": str(base)},
            )
        logger.info(
            "Scan complete",
            extra={
                "entries": len(entries),
                "resolved": result.resolved,
                "elapsed": format_elapsed(result.elapsed_seconds),
            },
        )
        return result

    async def _resolve_batches(
        self,
        batches: Sequence[Sequence[ScanTarget]],
        resolver: SizeResolver,
    ) -> tuple[list[SizedEntry], list[int], bool]:
        controller = self._make_controller()
        fixed_workers = self.concurrency.pool_size()
        sized: list[SizedEntry] = []
        history: list[int] = []
        stopped = False

        with ThreadPoolExecutor(
            max_workers=self.concurrency.pool_size(),
            thread_name_prefix="floorscan",
        ) as executor:
            for index, batch in enumerate(batches):
                if self._stop_requested:
                    stopped = True
                    break

                if controller is not None:
                    workers = controller.next_worker_count(self.io_signal)
                else:
                    workers = fixed_workers
                history.append(workers)

                self.listener.on_batch_start(index, len(batches), len(batch), workers)
                sized.extend(await self._run_batch(batch, workers, resolver, executor))
                self.listener.on_batch_complete(index, len(batches), len(sized))

        return sized, history, stopped

    def _make_controller(self) -> ThroughputController | None:
        if self.concurrency.mode is not ConcurrencyMode.ADAPTIVE:
            return None
        return ThroughputController(
            min_threads=self.concurrency.min_threads,
            max_threads=self.concurrency.max_threads,
            queue_high=self.concurrency.queue_high,
            queue_low=self.concurrency.queue_low,
        )

    async def _run_batch(
        self,
        batch: Sequence[ScanTarget],
        workers: int,
        resolver: SizeResolver,
        executor: ThreadPoolExecutor,
    ) -> list[SizedEntry]:
        """Resolve one batch with at most ``workers`` concurrent resolutions.

        Results keep the batch's discovery order even though workers finish
        in any order. Returns only after every worker has finished.
        """
        loop = asyncio.get_running_loop()
        semaphore = asyncio.Semaphore(workers)

        async def resolve_one(target: ScanTarget) -> SizedEntry:
            async with semaphore:
                context = contextvars.copy_context()
                entry = await loop.run_in_executor(executor, context.run, resolver.resolve, target)
            self.listener.on_entry_resolved(entry)
            return entry

        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(resolve_one(target)) for target in batch]
        return [task.result() for task in tasks]


def scan(
    base_path: Path | str,
    *,
    scan_settings: ScanSettings | None = None,
    concurrency: ConcurrencySettings | None = None,
    io_signal: IOLoadSignal | None = None,
    listener: ScanListener | None = None,
) -> ScanResult:
    """Run a scan to completion from synchronous code.

    Example:
        >>> result = scan("/srv/data", scan_settings=ScanSettings(floor=1, unit="GB"))
        >>> for entry in result.entries:
        ...     print(entry.size, entry.unit, entry.path)
    """
    orchestrator = ScanOrchestrator(
        scan=scan_settings,
        concurrency=concurrency,
        io_signal=io_signal,
        listener=listener,
    )
    return asyncio.run(orchestrator.run(base_path))
