"""Posts collection for Markheim.

Posts live in ``_posts`` as ``YYYY-MM-DD-slug.ext`` files with front matter.
They are loaded before any file is rendered so that every template can list
them through ``site.posts``, and each post is also rendered to the URL its
permalink style gives it.

Key items:
- Post: A loaded post and where it is written.
- load_posts: Read and partition every post.
- build_permalink: Expand a permalink style or pattern.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Any

from .config import SiteConfig
from .frontmatter import SourceFile, read_source
from .protocols import ContentConverter
from .utils import as_list, coerce_datetime, slugify, split_dated_name, titleize
from .variables import Partition, partition_variables

logger = logging.getLogger(__name__)

PERMALINK_STYLES = {
    "date": "/:categories/:year/:month/:day/:title:output_ext",
    "pretty": "/:categories/:year/:month/:day/:title/",
    "ordinal": "/:categories/:year/:y_day/:title:output_ext",
    "none": "/:categories/:title:output_ext",
}

PLACEHOLDER_RE = re.compile(r":([a-z_]+)")
FIRST_PARAGRAPH_RE = re.compile(r"<p>.*?</p>", re.DOTALL)


def build_permalink(
    pattern: str,
    date: datetime,
    title: str,
    categories: Iterable[Any] = (),
    output_ext: str = ".html",
) -> str:
    """Expand a permalink style name or pattern into a URL.

    Args:
        pattern: A style name (``date``, ``pretty``, ``ordinal``, ``none``)
            or a pattern such as ``/:year/:month/:title.html``.
        date: Post date.
        title: Post slug.
        categories: Post categories, joined with ``/``.
        output_ext: Extension substituted for ``:output_ext``.

    Returns:
        URL path starting with ``/``. Unknown placeholders are kept as is.

    Examples:
        >>> build_permalink("date", datetime(2020, 1, 2), "hello", ["news"])
        '/news/2020/01/02/hello.html'
    """
    template = PERMALINK_STYLES.get(pattern, pattern)
    values = {
        "year": f"{date.year:04d}",
        "month": f"{date.month:02d}",
        "day": f"{date.day:02d}",
        "i_month": str(date.month),
        "i_day": str(date.day),
        "short_year": f"{date.year % 100:02d}",
        "y_day": f"{date.timetuple().tm_yday:03d}",
        "title": title,
        "categories": "/".join(slugify(str(c)) for c in categories if str(c).strip()),
        "output_ext": output_ext,
    }
    url = PLACEHOLDER_RE.sub(lambda m: values.get(m.group(1), m.group(0)), template)
    url = re.sub(r"/{2,}", "/", f"/{url}")
    return url


def output_for_url(url: str) -> PurePosixPath:
    """Return the destination-relative file for a URL."""
    relative = url.lstrip("/")
    if not relative or url.endswith("/"):
        relative = f"{relative}index.html"
    return PurePosixPath(relative)


@dataclass(frozen=True)
class Post:
    """A post ready to be listed and rendered.

    Attributes:
        source: The post file, body already converted.
        partition: Partitioned front matter; ``page`` includes ``url``,
            ``date``, ``title``, ``slug``, ``id``, ``excerpt`` and ``content``.
        output: Destination-relative output path.
    """

    source: SourceFile
    partition: Partition
    output: PurePosixPath

    @property
    def page(self) -> dict[str, Any]:
        return self.partition.page


def _post_id(url: str) -> str:
    if url.endswith("/"):
        return url.rstrip("/") or "/"
    return str(PurePosixPath(url).with_suffix(""))


def _excerpt(content: str) -> str:
    match = FIRST_PARAGRAPH_RE.search(content)
    return match.group(0) if match else content.strip().split("\n\n")[0]


def _load_post(
    path: Path, config: SiteConfig, converter: ContentConverter | None
) -> Post | None:
    posts_dir = config.paths.posts
    source = read_source(path, posts_dir)
    if not source.has_front_matter:
        logger.debug("Skipping post without front matter: %s", path)
        return None
    name_date, rest = split_dated_name(path.stem)
    if name_date is None:
        logger.warning("Invalid post name (expected YYYY-MM-DD-title): %s", path)
        return None

    output_ext = path.suffix
    if converter is not None and converter.matches(source.relative):
        source = replace(source, body=converter.convert(source.body))
        output_ext = converter.output_path(source.relative).suffix

    partition = partition_variables(source.front_matter, config)
    if partition.internals.get("published") is False:
        logger.debug("Skipping unpublished post: %s", path)
        return None

    page = dict(partition.page)
    slug = slugify(rest)
    date = coerce_datetime(page.get("date")) or name_date
    pattern = page.get("permalink") or config.get("permalink") or "date"
    url = build_permalink(
        str(pattern), date, slug, as_list(page.get("categories")), output_ext
    )
    page.update(
        date=date,
        title=page.get("title") or titleize(rest),
        slug=slug,
        url=url,
        id=_post_id(url),
        content=source.body,
        excerpt=page.get("excerpt") or _excerpt(source.body),
        path=str(PurePosixPath("_posts") / source.relative),
    )
    partition = Partition(
        internals=partition.internals, page=page, custom=partition.custom
    )
    return Post(source=source, partition=partition, output=output_for_url(url))


def load_posts(
    config: SiteConfig, converter: ContentConverter | None = None
) -> list[Post]:
    """Load every post under the posts directory.

    Args:
        config: Resolved configuration.
        converter: Converter applied to matching post bodies.

    Returns:
        Posts in filename order. Unpublished posts and files without front
        matter or without a dated name are left out.
    """
    posts_dir = config.paths.posts
    if not posts_dir.is_dir():
        return []
    posts: list[Post] = []
    for path in sorted(posts_dir.rglob("*")):
        if path.is_dir() or path.name.startswith("."):
            continue
        post = _load_post(path, config, converter)
        if post is not None:
            posts.append(post)
    logger.info("Loaded %d posts", len(posts))
    return posts
