"""Live, bounded, newest-first view of one directory.

``ViewStore`` owns the current ``Snapshot`` and the thumbnail cache. All of
its methods must run on one owner thread; background work (watch events,
preview generation) hands results back through the coordinator.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from .config import ShlfConfig
from .errors import DirectoryUnavailable, OperationFailed, ValidationError
from .file_ops import FileOperations
from .folder_model import (
    EMPTY_SNAPSHOT,
    Item,
    Snapshot,
    ThumbnailKey,
    build_snapshot,
    diff_snapshots,
    list_directory,
)
from .thumbnails import ThumbnailCache

SNAPSHOT_CHANGED = "snapshot"
THUMBNAIL_READY = "thumbnail"


@dataclass(frozen=True)
class ViewChange:
    """Notification sent to listeners after the view changed."""

    kind: str
    key: ThumbnailKey | None = None


ViewListener = Callable[[ViewChange], None]
DirectoryLister = Callable[[Path, bool], list[Item]]


def validated_name(new_name: str) -> str:
    """Return the trimmed name or raise ``ValidationError``.

    The result must be a single non-empty path component.
    """
    trimmed = new_name.strip()
    if not trimmed:
        raise ValidationError("name is empty")
    if trimmed in (".", "..") or os.sep in trimmed or (os.altsep and os.altsep in trimmed):
        raise ValidationError(f"not a plain file name: {trimmed!r}")
    return trimmed


class ViewStore:
    def __init__(
        self,
        config: ShlfConfig,
        *,
        file_ops: FileOperations | None = None,
        thumbnails: ThumbnailCache | None = None,
        lister: DirectoryLister = list_directory,
    ) -> None:
        self._config = config
        self._file_ops = file_ops or FileOperations()
        self._thumbnails = thumbnails
        self._lister = lister
        self._snapshot: Snapshot = EMPTY_SNAPSHOT
        self._listeners: list[ViewListener] = []

    @property
    def config(self) -> ShlfConfig:
        return self._config

    @property
    def folder(self) -> Path:
        return self._config.resolved_folder

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def count(self) -> int:
        return len(self._snapshot)

    @property
    def thumbnails(self) -> ThumbnailCache | None:
        return self._thumbnails

    def thumbnail_for(self, item: Item) -> bytes | None:
        if self._thumbnails is None:
            return None
        return self._thumbnails.get(item)

    def add_listener(self, listener: ViewListener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that unregisters it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _notify(self, change: ViewChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                logger.exception("View listener failed for {}", change)

    def refresh(self) -> Snapshot:
        """Re-enumerate the folder and replace the snapshot in one assignment.

        An unavailable directory yields an empty snapshot. Thumbnails are
        requested for keys that entered the view and evicted for keys that
        left it; this never waits for preview generation.
        """
        previous = self._snapshot
        try:
            items = self._lister(self.folder, self._config.show_hidden_files)
        except DirectoryUnavailable as exc:
            logger.info("Folder unavailable, showing empty view: {}", exc)
            current = EMPTY_SNAPSHOT
        else:
            current = build_snapshot(items, self._config.max_items)

        self._snapshot = current
        diff = diff_snapshots(previous, current)
        if self._thumbnails is not None:
            self._thumbnails.evict(diff.dropped)
            for item in current:
                if item.cache_key in diff.added:
                    self._thumbnails.request(item)

        if current != previous:
            self._notify(ViewChange(kind=SNAPSHOT_CHANGED))
        return current

    def apply_thumbnail_results(self) -> list[ThumbnailKey]:
        """Move finished previews into the cache and notify for each one."""
        if self._thumbnails is None:
            return []
        resolved = self._thumbnails.drain_results()
        for key in resolved:
            self._notify(ViewChange(kind=THUMBNAIL_READY, key=key))
        return resolved

    def delete(self, item: Item) -> bool:
        """Trash ``item``; refresh on success, leave the snapshot alone on failure."""
        try:
            self._trash(item.path)
        except OperationFailed as exc:
            logger.warning("Delete failed: {}", exc)
            return False
        self.refresh()
        return True

    def rename(self, item: Item, new_name: str) -> bool:
        """Rename ``item`` within its directory.

        Blank names fail without touching the filesystem; renaming to the
        current name succeeds without a filesystem call. Collisions surface
        as a failed move.
        """
        try:
            name = validated_name(new_name)
        except ValidationError as exc:
            logger.debug("Rename of {} rejected: {}", item.path, exc)
            return False

        destination = item.path.parent / name
        if destination == item.path:
            return True

        try:
            self._move(item.path, destination)
        except OperationFailed as exc:
            logger.warning("Rename failed: {}", exc)
            return False
        self.refresh()
        return True

    def copy_reference(self, item: Item) -> bool:
        """Place the item's path on the clipboard; no view state changes."""
        try:
            self._file_ops.copy_to_clipboard(os.fspath(item.path))
        except Exception as exc:
            logger.warning("Could not copy {} to clipboard: {}", item.path, exc)
            return False
        return True

    def _trash(self, path: Path) -> None:
        try:
            self._file_ops.trash(path)
        except Exception as exc:
            raise OperationFailed("trash", path, exc) from exc

    def _move(self, source: Path, destination: Path) -> None:
        try:
            self._file_ops.move(source, destination)
        except Exception as exc:
            raise OperationFailed("move", source, exc) from exc

    def close(self) -> None:
        """Release thumbnail workers and drop listeners."""
        self._listeners.clear()
        if self._thumbnails is not None:
            self._thumbnails.shutdown()


__all__ = [
    "SNAPSHOT_CHANGED",
    "THUMBNAIL_READY",
    "DirectoryLister",
    "ViewChange",
    "ViewListener",
    "ViewStore",
    "validated_name",
]
