"""OS-level change notifications for one directory.

Built on a watchdog observer watching non-recursively. The watcher only says
"recheck now"; consumers always re-enumerate the whole directory.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from pathlib import Path

from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .errors import WatchUnavailable

RELEVANT_EVENT_TYPES = frozenset({"created", "deleted", "moved", "modified"})
STOP_JOIN_TIMEOUT_SECONDS = 2.0


class _DirectoryEventHandler(FileSystemEventHandler):
    def __init__(self, on_event: Callable[[], None]) -> None:
        super().__init__()
        self._on_event = on_event

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type not in RELEVANT_EVENT_TYPES:
            return
        self._on_event()


class ChangeWatcher:
    """Signal ``on_change`` when the directory's direct contents change.

    Events that arrive while a signal is outstanding are folded into it; the
    consumer calls ``acknowledge()`` right before it re-enumerates so later
    events signal again. ``on_change`` runs on the observer thread.
    """

    def __init__(
        self,
        directory: Path,
        on_change: Callable[[], None],
        *,
        observer_factory: Callable[[], Observer] = Observer,
    ) -> None:
        self._directory = directory
        self._on_change: Callable[[], None] | None = on_change
        self._observer_factory = observer_factory
        self._observer: Observer | None = None
        self._lock = threading.Lock()
        self._outstanding = False
        self._generation = 0

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def is_watching(self) -> bool:
        observer = self._observer
        return observer is not None and observer.is_alive()

    def _handle_event(self, generation: int) -> None:
        # Called under the lock so stop() cannot return while a signal is in flight.
        with self._lock:
            if generation != self._generation or self._observer is None or self._outstanding:
                return
            self._outstanding = True
            if self._on_change is not None:
                self._on_change()

    def acknowledge(self) -> None:
        """Mark the outstanding signal consumed."""
        with self._lock:
            self._outstanding = False

    def _open_subscription(self, generation: int) -> Observer:
        directory = self._directory.expanduser()
        if not directory.is_dir():
            raise WatchUnavailable(f"not a directory: {directory}")
        observer = self._observer_factory()
        try:
            handler = _DirectoryEventHandler(lambda: self._handle_event(generation))
            observer.schedule(handler, str(directory), recursive=False)
            observer.start()
        except Exception as exc:
            observer.stop()
            raise WatchUnavailable(f"cannot watch {directory}: {exc}") from exc
        return observer

    def start(self) -> bool:
        """Begin watching, replacing any current subscription.

        Returns ``False`` (and stays idle) when the watch cannot be opened;
        the view then only updates on manual refresh.
        """
        self.stop()
        with self._lock:
            generation = self._generation
        try:
            observer = self._open_subscription(generation)
        except WatchUnavailable as exc:
            logger.warning("Auto-refresh disabled: {}", exc)
            return False
        with self._lock:
            self._observer = observer
        logger.debug("Watching {}", self._directory)
        return True

    def stop(self) -> None:
        """Release the OS watch. Safe to call repeatedly.

        No ``on_change`` call is made once this returns.
        """
        with self._lock:
            observer = self._observer
            self._observer = None
            self._outstanding = False
            self._generation += 1
        if observer is None:
            return
        observer.stop()
        if observer.is_alive():
            observer.join(timeout=STOP_JOIN_TIMEOUT_SECONDS)
        logger.debug("Stopped watching {}", self._directory)

    def close(self) -> None:
        """Stop watching and drop the callback so no late event reaches the owner."""
        self.stop()
        with self._lock:
            self._on_change = None

    def __enter__(self) -> "ChangeWatcher":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


__all__ = [
    "ChangeWatcher",
    "RELEVANT_EVENT_TYPES",
]
