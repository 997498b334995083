"""Background thumbnail generation with an owner-thread result handoff."""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from queue import Empty, Queue

from loguru import logger

from .folder_model import Item, ThumbnailKey
from .preview import DEFAULT_THUMBNAIL_SIZE

PreviewGenerator = Callable[[Path, tuple[int, int]], bytes]


@dataclass(frozen=True)
class ThumbnailResult:
    """Completed preview job; ``image`` is ``None`` when generation failed."""

    key: ThumbnailKey
    image: bytes | None


class ThumbnailCache:
    """Cache of preview bytes keyed by ``(path, mtime_ns)``.

    ``request``, ``evict``, ``drain_results`` and reads belong to the owner
    thread. Worker threads only push onto the result queue and call
    ``notify_ready`` so the owner knows to drain.
    """

    def __init__(
        self,
        generate_preview: PreviewGenerator,
        *,
        target_size: tuple[int, int] = DEFAULT_THUMBNAIL_SIZE,
        max_workers: int = 2,
        notify_ready: Callable[[], None] | None = None,
    ) -> None:
        self._generate_preview = generate_preview
        self._target_size = target_size
        self._notify_ready = notify_ready
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="shlf-thumbnail")
        self._entries: dict[ThumbnailKey, bytes] = {}
        self._pending: dict[ThumbnailKey, Future | None] = {}
        self._superseded: dict[Path, ThumbnailKey] = {}
        self._deferred: dict[Path, ThumbnailKey] = {}
        self._results: Queue[ThumbnailResult] = Queue()
        self._closed = False

    def set_notify_ready(self, notify_ready: Callable[[], None] | None) -> None:
        self._notify_ready = notify_ready

    def _worker(self, key: ThumbnailKey) -> None:
        path, _mtime_ns = key
        try:
            image = self._generate_preview(path, self._target_size)
        except Exception as exc:
            logger.debug("No thumbnail for {}: {}", path, exc)
            image = None
        self._results.put(ThumbnailResult(key=key, image=image))
        notify_ready = self._notify_ready
        if notify_ready is not None:
            notify_ready()

    def request(self, item: Item) -> bool:
        """Start generating a thumbnail for ``item`` unless one exists or is in flight.

        While an evicted job for the same path is still running the request is
        held as pending and submitted once that job's result is drained.
        """
        key = item.cache_key
        if self._closed or key in self._entries or key in self._pending:
            return False
        if key[0] in self._superseded:
            self._pending[key] = None
            self._deferred[key[0]] = key
            return True
        self._pending[key] = self._executor.submit(self._worker, key)
        return True

    def evict(self, keys) -> None:
        """Drop cached images and forget in-flight requests for ``keys``."""
        for key in keys:
            self._entries.pop(key, None)
            if self._deferred.get(key[0]) == key:
                del self._deferred[key[0]]
            future = self._pending.pop(key, None)
            if future is not None and not future.cancel():
                # Already running; it will still report, so track it until then.
                self._superseded[key[0]] = key

    def _release_deferred(self, path: Path) -> None:
        key = self._deferred.pop(path, None)
        if key is None or self._closed:
            return
        self._pending[key] = self._executor.submit(self._worker, key)

    def drain_results(self) -> list[ThumbnailKey]:
        """Apply finished jobs and return the keys that gained a thumbnail.

        Results for evicted keys are discarded, as are failures.
        """
        resolved: list[ThumbnailKey] = []
        while True:
            try:
                result = self._results.get_nowait()
            except Empty:
                break
            path = result.key[0]
            accepted = self._pending.get(result.key) is not None
            if self._superseded.get(path) == result.key:
                del self._superseded[path]
                self._release_deferred(path)
            if not accepted:
                continue
            del self._pending[result.key]
            if result.image is None:
                continue
            self._entries[result.key] = result.image
            resolved.append(result.key)
        return resolved

    def get(self, item: Item) -> bytes | None:
        return self._entries.get(item.cache_key)

    def is_pending(self, item: Item) -> bool:
        return item.cache_key in self._pending

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> set[ThumbnailKey]:
        return set(self._entries) | set(self._pending)

    def shutdown(self) -> None:
        """Cancel queued work and release worker threads; safe to call twice."""
        if self._closed:
            return
        self._closed = True
        for future in self._pending.values():
            if future is not None:
                future.cancel()
        self._pending.clear()
        self._deferred.clear()
        self._superseded.clear()
        self._executor.shutdown(wait=False, cancel_futures=True)


__all__ = [
    "PreviewGenerator",
    "ThumbnailCache",
    "ThumbnailResult",
]
