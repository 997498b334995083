"""OS-level operations the view delegates to: trash, move, clipboard."""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path


def trash_path(path: Path) -> None:
    """Move ``path`` to the platform trash/recycle bin."""
    from send2trash import send2trash

    send2trash(os.fspath(path))


def move_path(source: Path, destination: Path) -> None:
    """Rename ``source`` to ``destination`` without overwriting.

    Raises ``FileExistsError`` when a different file already occupies the
    destination. A case-only rename on a case-insensitive filesystem resolves
    to the same file and is allowed through.
    """
    if os.path.lexists(destination):
        try:
            same_file = os.path.samefile(source, destination)
        except OSError:
            same_file = False
        if not same_file:
            raise FileExistsError(f"destination already exists: {destination}")
    os.rename(source, destination)


def copy_path_to_clipboard(text: str) -> None:
    import pyperclip

    pyperclip.copy(text)


@dataclass(frozen=True)
class FileOperations:
    """Injected filesystem side effects; each raises on failure."""

    trash: Callable[[Path], None] = trash_path
    move: Callable[[Path, Path], None] = move_path
    copy_to_clipboard: Callable[[str], None] = copy_path_to_clipboard


__all__ = [
    "FileOperations",
    "copy_path_to_clipboard",
    "move_path",
    "trash_path",
]
