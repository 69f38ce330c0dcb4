"""Destination cleaning for Markheim.

Before a build the destination directory is emptied, except for the paths
listed in ``keep_files`` (globs relative to the destination). A kept
directory is preserved with everything inside it, and a directory is only
removed when nothing beneath it is kept.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from .errors import CleanError
from .utils import matches_any

logger = logging.getLogger(__name__)


def _clean_directory(
    directory: Path, destination: Path, keep: list[str], removed: list[Path]
) -> bool:
    """Remove unkept entries of ``directory``; return True if any were kept."""
    kept = False
    for entry in sorted(directory.iterdir()):
        relative = PurePosixPath(entry.relative_to(destination).as_posix())
        if matches_any(relative, keep):
            kept = True
            continue
        try:
            if entry.is_dir() and not entry.is_symlink():
                if _clean_directory(entry, destination, keep, removed):
                    kept = True
                    continue
                entry.rmdir()
            else:
                entry.unlink()
        except OSError as exc:
            raise CleanError(entry, exc) from exc
        removed.append(entry)
    return kept


def clean_destination(
    destination: Path, keep_files: Iterable[str] = (), protected: Iterable[Path] = ()
) -> list[Path]:
    """Delete everything under ``destination`` except kept paths.

    The destination directory itself is left in place.

    Args:
        destination: Output directory.
        keep_files: Glob patterns, relative to ``destination``, to preserve.
        protected: Directories that must survive, such as the source tree.
            Cleaning is refused when ``destination`` is one of them or
            contains one.

    Returns:
        The removed paths.

    Raises:
        CleanError: If a path cannot be deleted, or ``destination`` holds a
            protected directory.
    """
    removed: list[Path] = []
    if not destination.is_dir():
        return removed
    target = destination.resolve()
    for path in protected:
        path = path.resolve()
        if path == target or target in path.parents:
            raise CleanError(
                destination, ValueError(f"destination contains {path}; refusing to clean")
            )
    keep = [str(pattern) for pattern in keep_files]
    _clean_directory(destination, destination, keep, removed)
    logger.info("Cleaned %d paths from %s", len(removed), destination)
    return removed
