"""Command-line front door for shlf.

Resolves configuration, builds the view for the watched folder, and either
prints it once, applies one mutation, or keeps printing it as it changes.
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

from loguru import logger

from .config import ShlfConfig, load_config
from .coordinator import Coordinator
from .file_ops import FileOperations
from .folder_model import Item, Snapshot, format_size, item_from_path
from .preview import generate_preview
from .store import SNAPSHOT_CHANGED, ViewChange, ViewStore
from .thumbnails import ThumbnailCache


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def render_snapshot(snapshot: Snapshot, now: float | None = None) -> str:
    """Render one row per item: name, size, age, and a folder or video marker."""
    if not snapshot.items:
        return "(empty)\n"
    reference = time.time() if now is None else now
    name_width = max(len(item.name) for item in snapshot)
    out: list[str] = []
    for item in snapshot:
        row = f"{item.name:<{name_width}}  {format_size(item.file_size):>10}  {item.relative_date(reference):>12}"
        if item.is_directory:
            row += "  [folder]"
        elif item.is_video:
            row += "  [video]"
        out.append(row.rstrip() + "\n")
    return "".join(out)


def _find_item(store: ViewStore, name: str) -> Item | None:
    """Look up a direct child of the watched folder by name."""
    if name in ("", ".", ".."):
        return None
    try:
        folder = store.folder.resolve()
    except OSError:
        folder = store.folder
    candidate = folder / name
    if candidate.parent != folder or candidate.name != name:
        return None
    return store.snapshot.find(candidate) or item_from_path(candidate)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Show the most recently modified files in a folder, newest first."
    )
    parser.add_argument("path", nargs="?", default=None, help="Folder to show. Defaults to the configured folder.")
    parser.add_argument("--max-items", type=_positive_int, default=None, help="Maximum number of files to show.")
    parser.add_argument(
        "--show-hidden",
        action="store_true",
        default=None,
        help="Include dotfiles.",
    )
    parser.add_argument("--watch", action="store_true", help="Keep running and reprint when the folder changes.")
    parser.add_argument("--delete", metavar="NAME", help="Move NAME to the trash.")
    parser.add_argument("--rename", nargs=2, metavar=("NAME", "NEW_NAME"), help="Rename NAME to NEW_NAME.")
    parser.add_argument("--copy", metavar="NAME", help="Copy the full path of NAME to the clipboard.")
    parser.add_argument("--verbose", action="store_true", help="Log debug output to stderr.")
    return parser


def resolve_config(path: str | None, max_items: int | None, show_hidden: bool | None) -> ShlfConfig:
    """Persisted config with command-line overrides applied."""
    return load_config().with_overrides(
        watched_folder=path,
        show_hidden_files=show_hidden,
        max_items=max_items,
    )


def _run_mutation(store: ViewStore, args: argparse.Namespace) -> int:
    if args.delete is not None:
        name = args.delete
    elif args.copy is not None:
        name = args.copy
    else:
        name = args.rename[0]
    item = _find_item(store, name)
    if item is None:
        sys.stderr.write(f"Not found: {name}\n")
        return 1
    if args.delete is not None:
        ok = store.delete(item)
    elif args.copy is not None:
        ok = store.copy_reference(item)
    else:
        ok = store.rename(item, args.rename[1])
    if not ok:
        sys.stderr.write(f"Operation failed: {name}\n")
        return 1
    sys.stdout.write(render_snapshot(store.snapshot))
    return 0


def _watch(store: ViewStore) -> int:
    coordinator = Coordinator(store)

    def on_change(change: ViewChange) -> None:
        if change.kind == SNAPSHOT_CHANGED:
            sys.stdout.write("\n" + render_snapshot(store.snapshot))
            sys.stdout.flush()

    store.add_listener(on_change)
    with coordinator:
        if not coordinator.is_watching:
            sys.stderr.write("Watching unavailable; showing a single listing.\n")
            return 0
        try:
            coordinator.run()
        except KeyboardInterrupt:
            pass
    return 0


def main(argv: list[str] | None = None) -> int:
    """Parse CLI arguments and show the folder view.

    Returns the process exit status; mutations that report failure yield 1.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    mutation_count = sum(1 for value in (args.delete, args.rename, args.copy) if value is not None)
    if mutation_count > 1:
        parser.error("--delete, --rename and --copy are mutually exclusive")
    if mutation_count and args.watch:
        parser.error("cannot combine --watch with a file operation")

    config = resolve_config(args.path, args.max_items, args.show_hidden)
    if args.path is not None and not config.resolved_folder.is_dir():
        raise SystemExit(f"Folder not found: {config.resolved_folder}")

    if args.watch:
        thumbnails = ThumbnailCache(generate_preview)
        store = ViewStore(config, file_ops=FileOperations(), thumbnails=thumbnails)
        return _watch(store)

    store = ViewStore(config)
    try:
        store.refresh()
        if mutation_count:
            return _run_mutation(store, args)
        sys.stdout.write(render_snapshot(store.snapshot))
        return 0
    finally:
        store.close()


if __name__ == "__main__":
    raise SystemExit(main())
