"""Domain model for the watched directory.

This package contains non-UI primitives:
- the immutable ``Item`` datatype and display helpers
- filesystem enumeration of one directory
- snapshot building (sort, truncate) and snapshot diffing
"""

from __future__ import annotations

from .types import Item, ThumbnailKey, format_size
from .fs import item_from_path, list_directory
from .snapshot import EMPTY_SNAPSHOT, Snapshot, SnapshotDiff, build_snapshot, diff_snapshots

__all__ = [
    "Item",
    "ThumbnailKey",
    "format_size",
    "item_from_path",
    "list_directory",
    "EMPTY_SNAPSHOT",
    "Snapshot",
    "SnapshotDiff",
    "build_snapshot",
    "diff_snapshots",
]
