"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import contextlib
import os
from collections.abc import Callable, Iterator, Mapping
from pathlib import Path

import pytest


TreeBuilder = Callable[[Path, Mapping[str, int]], Path]


def write_sized_file(path: Path, size: int) -> None:
    """Create a (sparse) file whose apparent size is ``size`` bytes."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as f:
        _ = f.truncate(size)


@pytest.fixture
def make_tree() -> TreeBuilder:
    """Build a tree from a mapping of relative file paths to sizes.

    Keys ending in "/" create empty directories.
    """

    def build(root: Path, layout: Mapping[str, int]) -> Path:
        for relative, size in layout.items():
            if relative.endswith("/"):
                (root / relative).mkdir(parents=True, exist_ok=True)
            else:
                write_sized_file(root / relative, size)
        return root

    return build


class _UnreadableEntry:
    """DirEntry stand-in whose stat() fails with a permission error."""

    def __init__(self, entry: os.DirEntry[str]) -> None:
        self._entry: os.DirEntry[str] = entry
        self.name: str = entry.name
        self.path: str = entry.path

    def is_dir(self, *, follow_symlinks: bool = True) -> bool:
        return self._entry.is_dir(follow_symlinks=follow_symlinks)

    def is_file(self, *, follow_symlinks: bool = True) -> bool:
        return self._entry.is_file(follow_symlinks=follow_symlinks)

    def is_symlink(self) -> bool:
        return self._entry.is_symlink()

    def stat(self, *, follow_symlinks: bool = True) -> os.stat_result:
        raise PermissionError(13, "Permission denied", self.path)


@pytest.fixture
def deny_access(monkeypatch: pytest.MonkeyPatch) -> Callable[..., None]:
    """Simulate unreadable files and unlistable directories.

    Permission bits are not enforced for root, so access failures are
    injected at the os.scandir level instead.
    """
    real_scandir = os.scandir

    def configure(*, unreadable: set[str] | None = None, unlistable: set[str] | None = None) -> None:
        unreadable_names = unreadable or set()
        unlistable_names = unlistable or set()

        @contextlib.contextmanager
        def fake_scandir(path: str | Path) -> Iterator[list[object]]:
            if Path(path).name in unlistable_names:
                raise PermissionError(13, "Permission denied", str(path))
            with real_scandir(path) as it:
                yield [_UnreadableEntry(e) if e.name in unreadable_names else e for e in it]

        monkeypatch.setattr(os, "scandir", fake_scandir)

    return configure
