"""Public package surface for shlf.

Exports ``main`` for programmatic CLI invocation.
The live directory view lives in ``shlf.store`` and ``shlf.coordinator``.
"""

from __future__ import annotations


def main(*args, **kwargs):
    """Lazily import CLI entrypoint to keep package imports lightweight."""
    from .cli import main as _main

    return _main(*args, **kwargs)

__all__ = ["main"]
