"""Data models for floorscan.

This module defines immutable dataclasses passed between the discovery,
size resolution, and display stages of a scan.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import StrEnum
from pathlib import Path


class EntryKind(StrEnum):
    """Filesystem entry kind of a scan target."""

    FILE = "file"
    DIRECTORY = "directory"


@dataclass(slots=True, frozen=True)
class ScanTarget:
    """Candidate entry selected during discovery.

    Created once per matching entry and discarded after its size is resolved.
    """

    path: Path
    kind: EntryKind
    depth: int

    @property
    def absolute_path(self) -> str:
        return str(self.path)


@dataclass(slots=True, frozen=True)
class SizedEntry:
    """Resolved size of a single scan target in bytes."""

    path: str
    size_bytes: int

    def __post_init__(self) -> None:
        if self.size_bytes < 0:
            msg = f"size_bytes must be non-negative, got: {self.size_bytes}"
            raise ValueError(msg)


@dataclass(slots=True, frozen=True)
class DisplayEntry:
    """Externally visible result record.

    ``size`` is the exact integer byte count when ``unit`` is ``"B"`` and a
    two-place Decimal otherwise.
    """

    path: str
    size: Decimal | int
    unit: str
    size_bytes: int


@dataclass(slots=True, frozen=True)
class AccessFailure:
    """Filesystem entry that could not be read during a scan."""

    path: str
    error_kind: str
    message: str

    @classmethod
    def from_exception(cls, path: Path | str, exc: BaseException) -> "AccessFailure":
        return cls(path=str(path), error_kind=type(exc).__name__, message=str(exc))


@dataclass(slots=True)
class ControllerState:
    """Worker-count state owned by one throughput controller for one scan.

    Mutated only at batch boundaries by the orchestrator.
    """

    current_threads: int
    history: list[int] = field(default_factory=list)
