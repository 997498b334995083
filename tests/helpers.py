"""Shared fixtures for building folders with controlled modification times."""

from __future__ import annotations

import os
import time
from collections.abc import Callable
from pathlib import Path


def write_file(directory: Path, name: str, content: str = "", age_seconds: float = 0.0) -> Path:
    """Create ``name`` under ``directory`` with its mtime ``age_seconds`` in the past."""
    path = directory / name
    path.write_text(content, encoding="utf-8")
    stamp = time.time() - age_seconds
    os.utime(path, (stamp, stamp))
    return path


def make_files(directory: Path, count: int) -> list[Path]:
    """Create ``file0.txt`` .. ``file{count-1}.txt``; higher index is newer."""
    return [
        write_file(directory, f"file{i}.txt", f"content {i}", age_seconds=float(count - i) * 10)
        for i in range(count)
    ]


def wait_until(predicate: Callable[[], bool], timeout_seconds: float = 3.0, interval: float = 0.02) -> bool:
    deadline = time.monotonic() + timeout_seconds
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


class FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


__all__ = ["FakeClock", "make_files", "wait_until", "write_file"]
