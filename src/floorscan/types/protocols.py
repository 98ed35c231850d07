"""Protocol definitions for scan collaborators.

These structural interfaces let the orchestrator talk to I/O-load probes
and progress listeners without depending on implementations.
"""

from typing import Protocol, runtime_checkable

from floorscan.types.models import SizedEntry


@runtime_checkable
class IOLoadSignal(Protocol):
    """Callable returning a disk-queue-depth-like scalar.

    Implementations return ``None`` when the measurement is unavailable
    instead of raising.
    """

    def __call__(self) -> float | None: ...


class ScanListener(Protocol):
    """Receiver of progress notifications emitted by the orchestrator."""

    def on_discovery_complete(self, candidates: int) -> None:
        """Called once discovery has produced the candidate list.

        Args:
            candidates: Number of entries that matched the depth filter
        """
        ...

    def on_batch_start(self, index: int, total: int, size: int, workers: int) -> None:
        """Called before a batch is dispatched.

        Args:
            index: Zero-based batch index
            total: Total number of batches
            size: Number of targets in this batch
            workers: Worker count chosen for this batch
        """
        ...

    def on_entry_resolved(self, entry: SizedEntry) -> None:
        """Called from the orchestrator for each resolved entry."""
        ...

    def on_batch_complete(self, index: int, total: int, resolved: int) -> None:
        """Called after every worker of a batch has finished.

        Args:
            index: Zero-based batch index
            total: Total number of batches
            resolved: Cumulative number of resolved targets
        """
        ...
