"""Depth predicate deciding which discovered entries are scan targets."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

from floorscan.core.errors import InvalidInputError
from floorscan.types.models import EntryKind

__all__ = ["DepthMode", "ItemType", "depth_of", "effective_floor", "matches"]


class ItemType(StrEnum):
    """Entry kinds a scan selects."""

    DIRECTORY = "directory"
    FILE = "file"
    BOTH = "both"

    def accepts(self, kind: EntryKind) -> bool:
        if self is ItemType.BOTH:
            return True
        return self.value == kind.value


class DepthMode(StrEnum):
    """How the floor is compared against an entry's depth.

    AT_MOST selects every entry with ``1 <= depth <= floor``; EXACT selects
    only ``depth == floor``.
    """

    AT_MOST = "at-most"
    EXACT = "exact"


def depth_of(base_path: Path, candidate_path: Path) -> int:
    """Count the path segments of ``candidate_path`` beyond ``base_path``.

    Raises:
        InvalidInputError: If the candidate does not lie under the base path
    """
    try:
        return len(candidate_path.relative_to(base_path).parts)
    except ValueError as e:
        msg = f"{candidate_path} is not located under {base_path}"
        raise InvalidInputError(msg, {"base_path": str(base_path), "candidate": str(candidate_path)}) from e


def effective_floor(floor: int, shallow: bool) -> int:
    if floor < 1:
        msg = f"floor must be a positive integer, got: {floor}"
        raise InvalidInputError(msg, {"floor": floor})
    return 1 if shallow else floor


def matches(
    depth: int,
    floor: int,
    *,
    kind: EntryKind,
    item_type: ItemType = ItemType.DIRECTORY,
    shallow: bool = False,
    mode: DepthMode = DepthMode.AT_MOST,
) -> bool:
    """Return True if an entry at ``depth`` of ``kind`` is a scan target."""
    if depth < 1 or not item_type.accepts(kind):
        return False
    limit = effective_floor(floor, shallow)
    if mode is DepthMode.EXACT:
        return depth == limit
    return depth <= limit
