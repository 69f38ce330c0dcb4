"""Front matter classification for Markheim.

Every front matter key of a file ends up in exactly one place:

- merged away: the second name of a ``front_matter.merge`` pair is folded
  into the first;
- internals: names listed in ``front_matter.internals``. These drive the
  build (layout selection, publishing) and are never shown to templates.
  A name missing from the front matter falls back to the config value;
- page: names listed in ``front_matter.page`` plus every key nobody claimed.

The stages run in a fixed order over a private working copy: merge,
internals, page, residual. Later stages only see what earlier ones left,
so a name listed as both internal and page is consumed as internal.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .utils import as_list, deep_merge, thaw

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Partition:
    """Front matter of one file split into its namespaces.

    Attributes:
        internals: Build-time values, never exposed to templates.
        page: Template-visible page variables, custom keys included.
        custom: The residual keys that were merged into ``page``.
    """

    internals: dict[str, Any]
    page: dict[str, Any]
    custom: dict[str, Any]


def _names(rules: Mapping[str, Any], key: str) -> list[Any]:
    return as_list(rules.get(key))


def merge_pairs(front_matter: dict[str, Any], pairs: list[Any]) -> dict[str, Any]:
    """Fold the second name of each pair into the first.

    Both values are coerced to lists and concatenated under the first name,
    skipping duplicates. The second name is removed. Pairs where neither
    name is present leave the front matter unchanged.
    """
    for pair in pairs:
        target, source = pair
        if target not in front_matter and source not in front_matter:
            continue
        combined = deep_merge(
            as_list(front_matter.get(target)),
            as_list(front_matter.pop(source, None)),
            concat_sequences=True,
        )
        front_matter[target] = combined
    return front_matter


def extract_internals(
    front_matter: dict[str, Any], names: list[str], config: Mapping[str, Any]
) -> dict[str, Any]:
    """Remove internal names from the front matter, falling back to config."""
    internals: dict[str, Any] = {}
    for name in names:
        value = front_matter.pop(name, None)
        internals[name] = value if value is not None else thaw(config.get(name))
    return internals


def extract_page(front_matter: dict[str, Any], names: list[str]) -> dict[str, Any]:
    """Remove declared page names from the front matter."""
    return {name: front_matter.pop(name, None) for name in names}


def partition_variables(
    front_matter: Mapping[str, Any], config: Mapping[str, Any]
) -> Partition:
    """Split a file's front matter into internals and page variables.

    Args:
        front_matter: Raw front matter. Not modified.
        config: Resolved site configuration. Not modified.

    Returns:
        The Partition for the file.
    """
    rules = config.get("front_matter") or {}
    working = thaw(front_matter)

    working = merge_pairs(working, _names(rules, "merge"))
    internals = extract_internals(working, _names(rules, "internals"), config)
    declared = extract_page(working, _names(rules, "page"))
    custom = dict(working)
    page = deep_merge(declared, custom)

    logger.debug("  => internals %s, page %s", internals, page)
    return Partition(internals=internals, page=page, custom=custom)
