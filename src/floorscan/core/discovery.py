"""Candidate discovery and batch partitioning."""

from __future__ import annotations

import logging
import os
from collections import deque
from collections.abc import Iterator, Sequence
from pathlib import Path

from floorscan.core.depth_filter import DepthMode, ItemType, depth_of, effective_floor, matches
from floorscan.core.errors import InvalidInputError
from floorscan.core.size_resolver import FailureLog
from floorscan.types.models import EntryKind, ScanTarget

__all__ = ["discover_targets", "partition", "resolve_base_path"]

logger = logging.getLogger(__name__)


def resolve_base_path(base_path: Path | str) -> Path:
    """Return the absolute canonical form of an existing directory.

    Raises:
        InvalidInputError: If the path does not exist or is not a directory
    """
    path = Path(base_path).expanduser()
    try:
        resolved = path.resolve(strict=True)
    except (OSError, RuntimeError) as e:
        msg = f"Base path does not exist or cannot be resolved: {path}"
        raise InvalidInputError(msg, {"base_path": str(path)}) from e
    if not resolved.is_dir():
        msg = f"Base path is not a directory: {resolved}"
        raise InvalidInputError(msg, {"base_path": str(resolved)})
    return resolved


def _entry_kind(entry: os.DirEntry[str]) -> EntryKind | None:
    if entry.is_dir(follow_symlinks=False):
        return EntryKind.DIRECTORY
    if entry.is_file(follow_symlinks=False):
        return EntryKind.FILE
    return None


def discover_targets(
    base_path: Path,
    floor: int,
    *,
    item_type: ItemType = ItemType.DIRECTORY,
    shallow: bool = False,
    depth_mode: DepthMode = DepthMode.AT_MOST,
    failures: FailureLog | None = None,
) -> list[ScanTarget]:
    """Enumerate entries under ``base_path`` that pass the depth filter.

    Traversal is breadth-first with sorted siblings so the discovery order
    is deterministic for an unchanged tree. Descent stops at the floor since
    nothing deeper can match.

    Args:
        base_path: Absolute canonical base directory
        floor: Target depth in path segments
        item_type: Entry kinds to select
        shallow: Restrict discovery to immediate children
        depth_mode: Floor comparison semantics
        failures: Accumulator for unlistable directories

    Returns:
        Matching scan targets in discovery order
    """
    limit = effective_floor(floor, shallow)
    if shallow and floor > 1:
        logger.warning(
            "Shallow scan only inspects immediate children; floor treated as 1",
            extra={"floor": floor},
        )

    targets = list(
        _walk(
            base_path,
            limit,
            item_type=item_type,
            shallow=shallow,
            depth_mode=depth_mode,
            failures=failures,
        )
    )
    logger.debug(
        "Discovery complete",
        extra={"base_path": str(base_path), "floor": limit, "candidates": len(targets)},
    )
    return targets


def _walk(
    base_path: Path,
    limit: int,
    *,
    item_type: ItemType,
    shallow: bool,
    depth_mode: DepthMode,
    failures: FailureLog | None,
) -> Iterator[ScanTarget]:
    queue: deque[Path] = deque([base_path])
    while queue:
        current = queue.popleft()
        try:
            with os.scandir(current) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as exc:
            if failures is not None:
                failures.record(current, exc)
            continue

        for entry in entries:
            try:
                kind = _entry_kind(entry)
            except OSError as exc:
                if failures is not None:
                    failures.record(entry.path, exc)
                continue
            if kind is None:
                continue

            path = Path(entry.path)
            depth = depth_of(base_path, path)
            if matches(
                depth,
                limit,
                kind=kind,
                item_type=item_type,
                shallow=shallow,
                mode=depth_mode,
            ):
                yield ScanTarget(path=path, kind=kind, depth=depth)

            if kind is EntryKind.DIRECTORY and not shallow and depth < limit:
                queue.append(path)


def partition[T](items: Sequence[T], batch_size: int) -> list[Sequence[T]]:
    """Split ``items`` into consecutive batches of at most ``batch_size``."""
    if batch_size < 1:
        msg = f"batch_size must be at least 1, got: {batch_size}"
        raise InvalidInputError(msg, {"batch_size": batch_size})
    return [items[i : i + batch_size] for i in range(0, len(items), batch_size)]
