"""Tests for background thumbnail generation and cache eviction."""

from __future__ import annotations

import tempfile
import threading
import time
import unittest
from pathlib import Path

from shlf.config import ShlfConfig
from shlf.folder_model import Item
from shlf.store import THUMBNAIL_READY, ViewChange, ViewStore
from shlf.thumbnails import ThumbnailCache
from tests.helpers import make_files, wait_until, write_file


def _item(name: str, mtime_ns: int = 1) -> Item:
    return Item(path=Path("/watched") / name, name=name, file_size=0, mtime_ns=mtime_ns)


def _drain_until(cache: ThumbnailCache, expected_count: int, timeout_seconds: float = 2.0) -> list:
    deadline = time.monotonic() + timeout_seconds
    out: list = []
    while time.monotonic() < deadline:
        out.extend(cache.drain_results())
        if len(out) >= expected_count:
            break
        time.sleep(0.01)
    return out


class ThumbnailCacheTests(unittest.TestCase):
    def test_request_generates_in_background_and_caches_result(self) -> None:
        calls: list[tuple[Path, tuple[int, int]]] = []

        def generate(path: Path, size: tuple[int, int]) -> bytes:
            calls.append((path, size))
            return b"png:" + path.name.encode()

        cache = ThumbnailCache(generate, target_size=(64, 64))
        self.addCleanup(cache.shutdown)
        item = _item("a.png")

        self.assertTrue(cache.request(item))
        resolved = _drain_until(cache, expected_count=1)

        self.assertListEqual(resolved, [item.cache_key])
        self.assertEqual(cache.get(item), b"png:a.png")
        self.assertListEqual(calls, [(item.path, (64, 64))])
        self.assertFalse(cache.request(item))

    def test_pending_request_is_not_reissued(self) -> None:
        started = threading.Event()
        release = threading.Event()
        calls: list[Path] = []

        def generate(path: Path, _size: tuple[int, int]) -> bytes:
            calls.append(path)
            started.set()
            release.wait(timeout=2.0)
            return b"img"

        cache = ThumbnailCache(generate)
        self.addCleanup(cache.shutdown)
        item = _item("slow.png")

        self.assertTrue(cache.request(item))
        self.assertTrue(started.wait(timeout=2.0))
        self.assertFalse(cache.request(item))
        self.assertTrue(cache.is_pending(item))
        release.set()

        _drain_until(cache, expected_count=1)
        self.assertListEqual(calls, [item.path])

    def test_failed_generation_stores_nothing(self) -> None:
        def generate(_path: Path, _size: tuple[int, int]) -> bytes:
            raise OSError("cannot identify image file")

        done = threading.Event()
        cache = ThumbnailCache(generate, notify_ready=done.set)
        self.addCleanup(cache.shutdown)
        item = _item("broken.png")

        cache.request(item)
        self.assertTrue(done.wait(timeout=2.0))

        self.assertListEqual(cache.drain_results(), [])
        self.assertIsNone(cache.get(item))
        self.assertFalse(cache.is_pending(item))

    def test_result_for_evicted_key_is_discarded(self) -> None:
        started = threading.Event()
        release = threading.Event()
        done = threading.Event()

        def generate(_path: Path, _size: tuple[int, int]) -> bytes:
            started.set()
            release.wait(timeout=2.0)
            return b"late"

        cache = ThumbnailCache(generate, notify_ready=done.set)
        self.addCleanup(cache.shutdown)
        item = _item("leaving.png")

        cache.request(item)
        self.assertTrue(started.wait(timeout=2.0))
        cache.evict([item.cache_key])
        release.set()
        self.assertTrue(done.wait(timeout=2.0))

        self.assertListEqual(cache.drain_results(), [])
        self.assertIsNone(cache.get(item))

    def test_rewritten_file_waits_for_running_job_at_same_path(self) -> None:
        first_started = threading.Event()
        release_first = threading.Event()
        lock = threading.Lock()
        running: list[int] = []
        overlaps: list[int] = []
        calls: list[Path] = []

        def generate(path: Path, _size: tuple[int, int]) -> bytes:
            with lock:
                calls.append(path)
                running.append(1)
                overlaps.append(len(running))
            if len(calls) == 1:
                first_started.set()
                release_first.wait(timeout=2.0)
            with lock:
                running.pop()
            return b"img"

        cache = ThumbnailCache(generate)
        self.addCleanup(cache.shutdown)
        old = _item("edited.png", mtime_ns=1)
        new = _item("edited.png", mtime_ns=2)

        cache.request(old)
        self.assertTrue(first_started.wait(timeout=2.0))
        cache.evict([old.cache_key])

        self.assertTrue(cache.request(new))
        self.assertTrue(cache.is_pending(new))
        self.assertFalse(cache.request(new))
        self.assertEqual(len(calls), 1)

        release_first.set()
        resolved: list = []
        self.assertTrue(wait_until(lambda: resolved.extend(cache.drain_results()) or new.cache_key in resolved))

        self.assertListEqual(calls, [old.path, new.path])
        self.assertListEqual(overlaps, [1, 1])
        self.assertIsNone(cache.get(old))
        self.assertEqual(cache.get(new), b"img")

    def test_held_request_evicted_before_release_is_never_submitted(self) -> None:
        started = threading.Event()
        release = threading.Event()
        done = threading.Event()
        calls: list[Path] = []

        def generate(path: Path, _size: tuple[int, int]) -> bytes:
            calls.append(path)
            started.set()
            release.wait(timeout=2.0)
            return b"img"

        cache = ThumbnailCache(generate, notify_ready=done.set)
        self.addCleanup(cache.shutdown)
        old = _item("flaky.png", mtime_ns=1)
        new = _item("flaky.png", mtime_ns=2)

        cache.request(old)
        self.assertTrue(started.wait(timeout=2.0))
        cache.evict([old.cache_key])
        cache.request(new)
        cache.evict([new.cache_key])
        release.set()
        self.assertTrue(done.wait(timeout=2.0))

        self.assertListEqual(cache.drain_results(), [])
        self.assertFalse(cache.is_pending(new))
        self.assertEqual(len(calls), 1)

    def test_new_mtime_at_same_path_does_not_see_old_image(self) -> None:
        cache = ThumbnailCache(lambda _path, _size: b"old")
        self.addCleanup(cache.shutdown)
        old = _item("reused.png", mtime_ns=1)
        new = _item("reused.png", mtime_ns=2)

        cache.request(old)
        _drain_until(cache, expected_count=1)

        self.assertEqual(cache.get(old), b"old")
        self.assertIsNone(cache.get(new))

    def test_requests_after_shutdown_are_ignored(self) -> None:
        cache = ThumbnailCache(lambda _path, _size: b"x")
        cache.shutdown()
        cache.shutdown()

        self.assertFalse(cache.request(_item("a.png")))


class StoreThumbnailTests(unittest.TestCase):
    def test_refresh_requests_new_items_and_evicts_dropped_ones(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            make_files(root, 2)
            cache = ThumbnailCache(lambda path, _size: path.name.encode())
            store = ViewStore(ShlfConfig(watched_folder=str(root), max_items=2), thumbnails=cache)
            self.addCleanup(store.close)
            changes: list[ViewChange] = []
            store.add_listener(changes.append)
            resolved: list = []

            store.refresh()
            self.assertTrue(
                wait_until(lambda: resolved.extend(store.apply_thumbnail_results()) or len(resolved) == 2)
            )

            self.assertEqual(len(cache), 2)
            for item in store.snapshot:
                self.assertEqual(store.thumbnail_for(item), item.name.encode())
            thumbnail_changes = [change for change in changes if change.kind == THUMBNAIL_READY]
            self.assertEqual(len(thumbnail_changes), 2)

            dropped = store.snapshot[-1]
            write_file(root, "newest.txt")
            store.refresh()

            self.assertIsNone(store.thumbnail_for(dropped))
            self.assertNotIn(dropped.cache_key, cache.keys())


if __name__ == "__main__":
    unittest.main()
