"""Render context assembly for Markheim.

Each file is rendered with a Globals object: the site configuration, the
page variables, the file content and a (currently unused) paginator. The
file's internals travel alongside for the renderer but are not part of the
template-visible locals.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .config import SiteConfig
from .frontmatter import SourceFile
from .utils import coerce_datetime
from .variables import Partition


@dataclass
class Globals:
    """Render context for one file.

    Attributes:
        site: Resolved configuration, with ``posts`` sorted newest first.
        page: Page variables.
        content: File body as text.
        paginator: Reserved for pagination; always None.
        internals: Build-time values keyed by generator name. Read by the
            renderer only.
        source: The file being rendered.
    """

    site: SiteConfig
    page: dict[str, Any]
    content: str | None = None
    paginator: Any = None
    internals: dict[str, dict[str, Any]] = field(default_factory=dict)
    source: SourceFile | None = None

    @property
    def file_internals(self) -> dict[str, Any]:
        """Internals of the file for the site's generator."""
        return self.internals.get(self.site.generator, {})

    def locals(self) -> dict[str, Any]:
        """Return the variables templates can see.

        ``post`` is a copy of ``page`` so that post layouts written for
        Jekyll keep working.
        """
        return {
            "site": self.site,
            "page": self.page,
            "content": self.content,
            "paginator": self.paginator,
            "post": copy.deepcopy(self.page),
        }


def _post_sort_key(post: Any) -> tuple[int, datetime]:
    value = post.get("date") if isinstance(post, Mapping) else None
    parsed = coerce_datetime(value)
    if parsed is None:
        return (0, datetime.min)
    return (1, parsed)


def sort_posts(posts: Iterable[Any]) -> tuple[Any, ...]:
    """Sort posts newest first by their ``date``.

    The sort is stable. Posts without a usable date count as the earliest,
    so they end up last in their original relative order.
    """
    return tuple(sorted(posts, key=_post_sort_key, reverse=True))


def build_globals(
    source: SourceFile, partition: Partition, config: SiteConfig
) -> Globals:
    """Assemble the render context for a file.

    Args:
        source: File being built; its body becomes ``content``.
        partition: The file's partitioned front matter.
        config: Resolved configuration. Not modified; when it carries posts
            a sorted copy is exposed as ``site``.

    Returns:
        Globals for the file.
    """
    site = config
    posts = config.get("posts")
    if posts is not None:
        ordered = sort_posts(posts)
        if any(a is not b for a, b in zip(ordered, posts)):
            site = config.replace(posts=ordered)
    return Globals(
        site=site,
        page=partition.page,
        content=source.body,
        paginator=None,
        internals={config.generator: dict(partition.internals)},
        source=source,
    )
