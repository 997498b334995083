"""Domain datatypes for items observed in the watched directory."""

from __future__ import annotations

import mimetypes
import time
from dataclasses import dataclass
from pathlib import Path

ThumbnailKey = tuple[Path, int]

_AGE_UNITS: tuple[tuple[str, int], ...] = (
    ("y", 365 * 24 * 3600),
    ("w", 7 * 24 * 3600),
    ("d", 24 * 3600),
    ("h", 3600),
    ("m", 60),
)
_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


@dataclass(frozen=True)
class Item:
    """One entry in the view. ``path`` is the identity and dedup key.

    Immediate subfolders are items too, with ``is_directory`` set and a size
    of zero; they are never descended into.

    A file changed on disk shows up as a new ``Item`` at the same path rather
    than a mutated one.
    """

    path: Path
    name: str
    file_size: int
    mtime_ns: int
    is_directory: bool = False

    @property
    def cache_key(self) -> ThumbnailKey:
        """Thumbnail cache key; mtime keeps a reused path from hitting a stale preview."""
        return (self.path, self.mtime_ns)

    @property
    def is_video(self) -> bool:
        if self.is_directory:
            return False
        mime_type, _encoding = mimetypes.guess_type(self.name, strict=False)
        return mime_type is not None and mime_type.startswith("video/")

    @property
    def mtime(self) -> float:
        return self.mtime_ns / 1_000_000_000

    def relative_date(self, now: float | None = None) -> str:
        """Return an abbreviated age such as ``5m ago`` relative to ``now``."""
        reference = time.time() if now is None else now
        elapsed = int(reference - self.mtime)
        if elapsed < 60:
            return "just now" if elapsed >= 0 else "in the future"
        for suffix, seconds in _AGE_UNITS:
            if elapsed >= seconds:
                return f"{elapsed // seconds}{suffix} ago"
        return "just now"


def format_size(num_bytes: int) -> str:
    """Format a byte count using binary units with one decimal above bytes."""
    value = float(max(0, num_bytes))
    for unit in _SIZE_UNITS:
        if value < 1024 or unit == _SIZE_UNITS[-1]:
            if unit == "B":
                return f"{int(value)} B"
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{int(num_bytes)} B"


__all__ = [
    "Item",
    "ThumbnailKey",
    "format_size",
]
