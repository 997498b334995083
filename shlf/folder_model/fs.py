"""Filesystem enumeration for the watched directory."""

from __future__ import annotations

import os
import stat
from pathlib import Path

from loguru import logger

from ..errors import DirectoryUnavailable
from .types import Item


def _resolve(path: Path) -> Path:
    try:
        return path.resolve()
    except (OSError, RuntimeError):
        return path


def _item_from_stat(path: Path, name: str, st: os.stat_result) -> Item | None:
    is_directory = stat.S_ISDIR(st.st_mode)
    if not is_directory and not stat.S_ISREG(st.st_mode):
        return None
    return Item(
        path=path,
        name=name,
        file_size=0 if is_directory else max(0, int(st.st_size)),
        mtime_ns=int(st.st_mtime_ns),
        is_directory=is_directory,
    )


def item_from_path(path: Path) -> Item | None:
    """Build an ``Item`` for ``path`` or return ``None`` when stat fails."""
    try:
        st = path.stat()
    except OSError:
        return None
    return _item_from_stat(_resolve(path.parent) / path.name, path.name, st)


def list_directory(directory: Path, include_hidden: bool) -> list[Item]:
    """List files and folders directly inside ``directory`` in enumeration order.

    Dotfiles are skipped unless ``include_hidden``. Subfolders are listed but
    never descended into. Sockets, fifos and entries whose metadata cannot be
    read are dropped silently. Raises ``DirectoryUnavailable`` when the
    directory itself cannot be scanned.
    """
    resolved_directory = _resolve(directory)
    items: list[Item] = []
    try:
        with os.scandir(resolved_directory) as entries:
            for child in entries:
                name = child.name
                if not include_hidden and name.startswith("."):
                    continue
                try:
                    # Follow symlinks so a link shows the target's size/mtime.
                    st = child.stat()
                except OSError:
                    continue
                item = _item_from_stat(resolved_directory / name, name, st)
                if item is not None:
                    items.append(item)
    except FileNotFoundError as exc:
        raise DirectoryUnavailable(resolved_directory, "does not exist") from exc
    except NotADirectoryError as exc:
        raise DirectoryUnavailable(resolved_directory, "is not a directory") from exc
    except OSError as exc:
        raise DirectoryUnavailable(resolved_directory, exc.strerror or str(exc)) from exc

    logger.debug("Listed {} item(s) in {}", len(items), resolved_directory)
    return items


__all__ = [
    "item_from_path",
    "list_directory",
]
