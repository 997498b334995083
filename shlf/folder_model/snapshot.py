"""Ordered, size-bounded snapshots of the watched directory."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from .types import Item, ThumbnailKey


@dataclass(frozen=True)
class Snapshot:
    """Newest-first items, at most ``max_items`` long."""

    items: tuple[Item, ...] = ()

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def __getitem__(self, index: int) -> Item:
        return self.items[index]

    @property
    def identities(self) -> tuple[Path, ...]:
        return tuple(item.path for item in self.items)

    def cache_keys(self) -> set[ThumbnailKey]:
        return {item.cache_key for item in self.items}

    def find(self, path: Path) -> Item | None:
        for item in self.items:
            if item.path == path:
                return item
        return None


EMPTY_SNAPSHOT = Snapshot()


def build_snapshot(items: Iterable[Item], max_items: int) -> Snapshot:
    """Sort by modification time descending and keep the newest ``max_items``.

    ``sorted`` is stable, so equal mtimes keep their enumeration order.
    """
    if max_items <= 0:
        raise ValueError("max_items must be >= 1")
    ordered = sorted(items, key=lambda item: item.mtime_ns, reverse=True)
    return Snapshot(items=tuple(ordered[:max_items]))


@dataclass(frozen=True)
class SnapshotDiff:
    """Thumbnail keys that entered and left the view in one refresh."""

    added: frozenset[ThumbnailKey]
    dropped: frozenset[ThumbnailKey]

    @property
    def changed(self) -> bool:
        return bool(self.added or self.dropped)


def diff_snapshots(previous: Snapshot, current: Snapshot) -> SnapshotDiff:
    """Set difference of cache keys between two snapshots."""
    previous_keys = previous.cache_keys()
    current_keys = current.cache_keys()
    return SnapshotDiff(
        added=frozenset(current_keys - previous_keys),
        dropped=frozenset(previous_keys - current_keys),
    )


__all__ = [
    "EMPTY_SNAPSHOT",
    "Snapshot",
    "SnapshotDiff",
    "build_snapshot",
    "diff_snapshots",
]
