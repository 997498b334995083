"""Wire watch signals to debounced view refreshes on one owner thread."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from pathlib import Path

from loguru import logger

from .store import ViewStore
from .watcher import ChangeWatcher

DEFAULT_DEBOUNCE_SECONDS = 0.25
DEFAULT_IDLE_WAIT_SECONDS = 1.0

WatcherFactory = Callable[[Path, Callable[[], None]], ChangeWatcher]


class Coordinator:
    """Own the watcher lifecycle and serialize refreshes onto the caller's thread.

    ``signal`` may be called from any thread; it only records that a refresh
    is due and wakes the owner. ``pump`` (or ``run``) performs the refresh
    once the debounce delay has passed and applies finished thumbnails.
    Signals arriving while a refresh is already scheduled are absorbed.
    """

    def __init__(
        self,
        store: ViewStore,
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        watcher_factory: WatcherFactory = ChangeWatcher,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._debounce_seconds = max(0.0, debounce_seconds)
        self._watcher_factory = watcher_factory
        self._monotonic = monotonic
        self._lock = threading.Lock()
        self._wake = threading.Event()
        self._stop_requested = threading.Event()
        self._refresh_due: float | None = None
        self._watcher: ChangeWatcher | None = None
        if store.thumbnails is not None:
            store.thumbnails.set_notify_ready(self._wake.set)

    @property
    def store(self) -> ViewStore:
        return self._store

    @property
    def is_watching(self) -> bool:
        return self._watcher is not None and self._watcher.is_watching

    @property
    def refresh_pending(self) -> bool:
        with self._lock:
            return self._refresh_due is not None

    def start(self) -> None:
        """(Re)start watching the store's folder and load the first snapshot."""
        self.stop()
        self._stop_requested.clear()
        watcher = self._watcher_factory(self._store.folder, self.signal)
        watcher.start()
        self._watcher = watcher
        self._store.refresh()

    def stop(self) -> None:
        """Release the watcher; idempotent."""
        watcher = self._watcher
        self._watcher = None
        if watcher is not None:
            watcher.close()
        with self._lock:
            self._refresh_due = None

    def close(self) -> None:
        """Stop watching, end any ``run`` loop, and release the store."""
        self.request_stop()
        self.stop()
        if self._store.thumbnails is not None:
            self._store.thumbnails.set_notify_ready(None)
        self._store.close()

    def signal(self) -> None:
        """Record that the directory changed. Thread-safe."""
        with self._lock:
            if self._refresh_due is None:
                self._refresh_due = self._monotonic() + self._debounce_seconds
        self._wake.set()

    def refresh_now(self) -> None:
        """Manual refresh that also absorbs any scheduled one."""
        if self._watcher is not None:
            self._watcher.acknowledge()
        with self._lock:
            self._refresh_due = None
        self._store.refresh()

    def seconds_until_due(self) -> float | None:
        with self._lock:
            due = self._refresh_due
        if due is None:
            return None
        return max(0.0, due - self._monotonic())

    def pump(self) -> bool:
        """Run a due refresh and apply finished thumbnails; return whether it refreshed."""
        refreshed = False
        due = self.seconds_until_due()
        if due is not None and due <= 0.0:
            # Acknowledge before taking the slot so events during enumeration signal again.
            if self._watcher is not None:
                self._watcher.acknowledge()
            with self._lock:
                self._refresh_due = None
            self._store.refresh()
            refreshed = True
        self._store.apply_thumbnail_results()
        return refreshed

    def request_stop(self) -> None:
        self._stop_requested.set()
        self._wake.set()

    def run(self, idle_wait_seconds: float = DEFAULT_IDLE_WAIT_SECONDS) -> None:
        """Block pumping until ``request_stop`` is called."""
        logger.debug("Coordinator loop started for {}", self._store.folder)
        while not self._stop_requested.is_set():
            due = self.seconds_until_due()
            timeout = idle_wait_seconds if due is None else min(due, idle_wait_seconds)
            self._wake.wait(timeout)
            self._wake.clear()
            if self._stop_requested.is_set():
                break
            self.pump()
        logger.debug("Coordinator loop stopped for {}", self._store.folder)

    def __enter__(self) -> "Coordinator":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


__all__ = [
    "Coordinator",
    "DEFAULT_DEBOUNCE_SECONDS",
    "WatcherFactory",
]
