"""Utility functions for Markheim.

This module contains the small helpers shared by the configuration cascade,
the variable partitioner and the build: deep merging, freezing values into
read-only structures, slug and date handling for filenames, and glob matching
for include/exclude lists.

Key functions:
    deep_merge: Recursively merge two values, the later one winning.
    as_list: Coerce a value into a list.
    freeze: Convert nested containers into read-only equivalents.
    thaw: Convert read-only containers back into plain dicts and lists.
    slugify: Convert filenames to URL slugs.
    titleize: Convert filenames to human-readable titles.
    split_dated_name: Split a YYYY-MM-DD-slug filename stem.
    matches_any: Test a relative path against glob patterns.
"""

from __future__ import annotations

import fnmatch
import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from pathlib import PurePosixPath
from types import MappingProxyType
from typing import Any

DATED_NAME_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})-(.+)$")


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def deep_merge(base: Any, override: Any, concat_sequences: bool = False) -> Any:
    """Merge ``override`` into ``base`` and return a new value.

    Mappings are merged key by key, recursively. Any other pair of values is
    resolved in favour of ``override``, so sequences replace each other
    unless ``concat_sequences`` is set, in which case items of ``override``
    not already present are appended to ``base``.

    Neither argument is modified; the result never shares containers with
    the inputs.

    Args:
        base: Earlier value.
        override: Later value.
        concat_sequences: Append sequences instead of replacing them.

    Returns:
        The merged value, built from plain dicts and lists.

    Examples:
        >>> deep_merge({"a": {"x": 1}}, {"a": {"y": 2}})
        {'a': {'x': 1, 'y': 2}}

        >>> deep_merge({"a": 1}, {"a": 2})
        {'a': 2}
    """
    if isinstance(base, Mapping) and isinstance(override, Mapping):
        merged = {key: thaw(value) for key, value in base.items()}
        for key, value in override.items():
            if key in merged:
                merged[key] = deep_merge(merged[key], value, concat_sequences)
            else:
                merged[key] = thaw(value)
        return merged
    if concat_sequences and _is_sequence(base) and _is_sequence(override):
        combined = thaw(base)
        for item in override:
            if item not in combined:
                combined.append(thaw(item))
        return combined
    return thaw(override)


def as_list(value: Any) -> list[Any]:
    """Coerce a value into a list.

    ``None`` becomes an empty list, sequences are copied, anything else is
    wrapped in a single-element list.
    """
    if value is None:
        return []
    if _is_sequence(value):
        return thaw(value)
    return [thaw(value)]


def freeze(value: Any) -> Any:
    """Return a read-only copy of ``value``.

    Mappings become ``MappingProxyType`` views over private dicts and lists
    become tuples. Scalars are returned unchanged.
    """
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if _is_sequence(value):
        return tuple(freeze(item) for item in value)
    return value


def thaw(value: Any) -> Any:
    """Return a mutable deep copy of ``value`` built from dicts and lists."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if _is_sequence(value):
        return [thaw(item) for item in value]
    return value


def slugify(name: str) -> str:
    """Convert a filename stem to a slug, dropping any date prefix.

    Args:
        name: Filename stem.

    Returns:
        URL-friendly slug.

    Examples:
        >>> slugify("2024-01-15-Hello World")
        'hello-world'
    """
    match = DATED_NAME_RE.match(name)
    cleaned = match.group(4) if match else name
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", cleaned)
    cleaned = cleaned.strip("-").lower()
    return cleaned or "index"


def titleize(name: str) -> str:
    """Convert a filename or slug to a human-readable title.

    Removes date prefixes (YYYY-MM-DD), replaces hyphens and underscores
    with spaces, and capitalizes each word.

    Examples:
        >>> titleize("2024-01-15-hello-world.md")
        'Hello World'
    """
    base = PurePosixPath(name).stem if "." in name else name
    match = DATED_NAME_RE.match(base)
    if match:
        base = match.group(4)
    words = re.split(r"[\s\-_]+", base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def split_dated_name(stem: str) -> tuple[datetime | None, str]:
    """Split a ``YYYY-MM-DD-slug`` stem into its date and remainder.

    Args:
        stem: Filename stem (without extension).

    Returns:
        Tuple of (datetime or None, remainder). When the stem has no valid
        date prefix the whole stem is returned as the remainder.
    """
    match = DATED_NAME_RE.match(stem)
    if not match:
        return None, stem
    year, month, day, rest = match.groups()
    try:
        return datetime(int(year), int(month), int(day)), rest
    except ValueError:
        return None, stem


def coerce_datetime(value: Any) -> datetime | None:
    """Interpret a front-matter date value as a naive datetime.

    Accepts ``datetime``, ``date`` and ISO 8601 strings. Timezone-aware
    values are converted to UTC before the timezone is dropped so that
    mixed values stay comparable.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is not None:
        offset = parsed.utcoffset()
        parsed = parsed.replace(tzinfo=None)
        if offset is not None:
            parsed = parsed - offset
    return parsed


def matches_any(relative: PurePosixPath, patterns: Iterable[str]) -> bool:
    """Check whether a path or any of its ancestors matches a glob pattern.

    Patterns are matched with ``fnmatch`` against POSIX-style relative paths,
    so ``"node_modules"`` excludes everything beneath that directory.

    Args:
        relative: Path relative to the tree being walked.
        patterns: Glob patterns.

    Returns:
        True if any pattern matches the path or one of its parents.
    """
    candidates = [relative.as_posix()]
    candidates.extend(parent.as_posix() for parent in relative.parents if parent.parts)
    for pattern in patterns:
        cleaned = str(pattern).strip().strip("/")
        if cleaned.startswith("./"):
            cleaned = cleaned[2:]
        if not cleaned:
            continue
        if any(fnmatch.fnmatchcase(candidate, cleaned) for candidate in candidates):
            return True
    return False
