"""Recursive size computation for scan targets.

Directory sizes are always computed with an unrestricted traversal, no
matter how deep (or shallow) discovery was. Errors on individual entries
are recorded in a :class:`FailureLog` and contribute zero bytes; they never
abort the computation of a target or affect sibling targets.

Symbolic links are neither followed nor counted.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Iterator
from enum import StrEnum
from pathlib import Path

from floorscan.types.models import AccessFailure, EntryKind, ScanTarget, SizedEntry

__all__ = ["FailureLog", "SizeMode", "SizeResolver"]

logger = logging.getLogger(__name__)

# st_blocks is always expressed in 512-byte units
_BLOCK_SIZE = 512


class SizeMode(StrEnum):
    """Size calculation modes."""

    APPARENT = "apparent"  # File content size
    DISK_USAGE = "disk-usage"  # Allocated filesystem blocks


class FailureLog:
    """Append-only, thread-safe accumulator of access failures."""

    def __init__(self) -> None:
        self._lock: threading.Lock = threading.Lock()
        self._failures: list[AccessFailure] = []

    def record(self, path: Path | str, exc: OSError) -> None:
        failure = AccessFailure.from_exception(path, exc)
        logger.debug(
            "Access failure, skipping",
            extra={"path": failure.path, "error_kind": failure.error_kind},
        )
        with self._lock:
            self._failures.append(failure)

    def snapshot(self) -> tuple[AccessFailure, ...]:
        with self._lock:
            return tuple(self._failures)

    def __len__(self) -> int:
        with self._lock:
            return len(self._failures)


class SizeResolver:
    """Compute the total byte size of files and directories."""

    def __init__(
        self,
        failures: FailureLog | None = None,
        mode: SizeMode = SizeMode.APPARENT,
    ) -> None:
        """Initialize the size resolver.

        Args:
            failures: Accumulator shared by all workers of a scan
            mode: Size calculation mode (apparent size vs disk usage)
        """
        self.failures: FailureLog = failures or FailureLog()
        self.mode: SizeMode = mode

    def resolve(self, target: ScanTarget) -> SizedEntry:
        """Compute the size of a scan target.

        Files report their own size; directories report the sum of every
        file contained at any depth below them.

        Args:
            target: Entry produced by discovery

        Returns:
            SizedEntry with a non-negative byte count
        """
        if target.kind is EntryKind.FILE:
            size = self._file_size(target.path)
        else:
            size = self.directory_size(target.path)
        return SizedEntry(path=target.absolute_path, size_bytes=size)

    def directory_size(self, path: Path) -> int:
        total = 0
        for entry in self._iter_files(path):
            try:
                total += self._size_from_stat(entry.stat(follow_symlinks=False))
            except OSError as exc:
                self.failures.record(entry.path, exc)
        return total

    def _file_size(self, path: Path) -> int:
        try:
            return self._size_from_stat(path.stat(follow_symlinks=False))
        except OSError as exc:
            self.failures.record(path, exc)
            return 0

    def _size_from_stat(self, stat: os.stat_result) -> int:
        if self.mode is SizeMode.APPARENT:
            return stat.st_size
        return stat.st_blocks * _BLOCK_SIZE

    def _iter_files(self, root: Path) -> Iterator[os.DirEntry[str]]:
        """Yield regular-file entries below ``root`` without following links."""
        pending: list[Path | str] = [root]
        while pending:
            current = pending.pop()
            try:
                with os.scandir(current) as entries:
                    for entry in entries:
                        try:
                            if entry.is_dir(follow_symlinks=False):
                                pending.append(entry.path)
                            elif entry.is_file(follow_symlinks=False):
                                yield entry
                        except OSError as exc:
                            self.failures.record(entry.path, exc)
            except OSError as exc:
                self.failures.record(current, exc)
