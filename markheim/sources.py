"""Source file discovery for Markheim.

Walks the source directory and decides which files belong to the site:

- files with a dot-prefixed path component are skipped unless an
  ``include`` pattern matches them;
- ``exclude`` patterns win over ``include``;
- the user config file and the plugins, layouts, includes, sass, posts, data
  and destination directories are always left out.

Patterns are globs matched against paths relative to the source directory;
a pattern matching a directory applies to everything beneath it.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from .config import SiteConfig
from .errors import BuildError
from .utils import as_list, matches_any


def _is_within(path: Path, directories: Iterable[Path]) -> bool:
    return any(path == directory or directory in path.parents for directory in directories)


def _is_hidden(relative: PurePosixPath) -> bool:
    return any(part.startswith(".") for part in relative.parts)


def collect_sources(config: SiteConfig) -> list[Path]:
    """List the files to build, in sorted order.

    Args:
        config: Resolved configuration.

    Returns:
        Absolute paths of the source files.

    Raises:
        BuildError: If the source directory does not exist.
    """
    paths = config.paths
    if not paths.source.is_dir():
        raise BuildError(paths.source, "Source directory not found")
    include = [str(pattern) for pattern in as_list(config.get("include"))]
    exclude = [str(pattern) for pattern in as_list(config.get("exclude"))]
    forced = paths.always_excluded()

    files: list[Path] = []
    for path in sorted(paths.source.rglob("*")):
        if path.is_dir() or _is_within(path, forced):
            continue
        relative = PurePosixPath(path.relative_to(paths.source).as_posix())
        if _is_hidden(relative) and not matches_any(relative, include):
            continue
        if matches_any(relative, exclude):
            continue
        files.append(path)
    return files
