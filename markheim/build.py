"""Site building functionality for Markheim.

This module drives a build: it resolves the configuration, cleans the
destination, loads data files and posts, then runs every source file through
the pipeline (partition, globals, render) and writes the output.

Files without front matter are copied unchanged. A file whose render fails
is left out of the output and reported in the BuildResult; the remaining
files are still built.

Key functions:
- build_site: Resolve the configuration for a project and build it.
- generate: Build from an already resolved configuration.
- load_data: Load site data from YAML files in the data directory.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path, PurePosixPath
from typing import Any

import yaml

from .clean import clean_destination
from .config import SiteConfig, resolve_config
from .context import build_globals, sort_posts
from .converters import MarkdownConverter
from .engines import EngineRegistry
from .errors import ConfigLoadError, RenderError
from .frontmatter import SourceFile, read_source
from .posts import Post, load_posts
from .sources import collect_sources
from .templates import TemplateRenderer
from .utils import as_list, freeze
from .variables import Partition, partition_variables

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        destination: Directory the site was built into.
        written: Rendered files, relative to ``destination``.
        copied: Files copied without processing.
        skipped: Unpublished files that were not written.
        failures: Render errors; the matching files were not written.
        conflicts: Sources left out because an earlier file already
            produces the same output path.
    """

    destination: Path
    written: list[PurePosixPath] = field(default_factory=list)
    copied: list[PurePosixPath] = field(default_factory=list)
    skipped: list[PurePosixPath] = field(default_factory=list)
    failures: list[RenderError] = field(default_factory=list)
    conflicts: list[Path] = field(default_factory=list)


@dataclass
class _Job:
    source: SourceFile
    partition: Partition
    output: PurePosixPath


def load_data(data_dir: Path) -> dict[str, Any]:
    """Load site data from YAML files in the data directory.

    Each ``<name>.yml`` or ``<name>.yaml`` file becomes ``site.data.<name>``.

    Args:
        data_dir: The ``_data`` directory.

    Returns:
        Dictionary of data keyed by file stem.

    Raises:
        ConfigLoadError: If a data file is not valid YAML.
    """
    data: dict[str, Any] = {}
    if not data_dir.is_dir():
        return data
    for path in sorted(data_dir.iterdir()):
        if path.suffix.lower() not in (".yml", ".yaml") or not path.is_file():
            continue
        try:
            with open(path, encoding="utf-8") as f:
                data[path.stem] = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigLoadError(path, f"Invalid YAML: {exc}", exc) from exc
    return data


def _published(job: _Job) -> bool:
    return job.partition.internals.get("published") is not False


def _write(destination: Path, relative: PurePosixPath, payload: bytes) -> None:
    target = destination / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(payload)


def _page_job(
    source: SourceFile, config: SiteConfig, converter: MarkdownConverter
) -> _Job:
    logger.debug("front matter found in %s => %s", source.relative, source.front_matter)
    output = source.relative
    if converter.matches(source.relative):
        source = replace(source, body=converter.convert(source.body))
        output = converter.output_path(source.relative)
    partition = partition_variables(source.front_matter, config)
    page = dict(partition.page)
    page.setdefault("url", f"/{output.as_posix()}")
    page.setdefault("path", source.relative.as_posix())
    partition = Partition(
        internals=partition.internals, page=page, custom=partition.custom
    )
    return _Job(source, partition, output)


def _site_config(
    config: SiteConfig, posts: list[Post], data: dict[str, Any]
) -> SiteConfig:
    """Attach posts and data files to the configuration seen by templates."""
    changes: dict[str, Any] = {
        "posts": sort_posts(freeze(post.page) for post in posts)
    }
    if data:
        changes["data"] = data
    return config.replace(**changes)


async def generate(
    config: SiteConfig, engine_registry: EngineRegistry | None = None
) -> BuildResult:
    """Build the site described by ``config`` without cleaning first.

    Args:
        config: Resolved configuration.
        engine_registry: Registry to look the template engine up in.

    Returns:
        BuildResult describing what was written.
    """
    destination = config.paths.destination
    result = BuildResult(destination=destination)
    converter = MarkdownConverter.from_config(config)

    # Posts must be complete before any render reads site.posts.
    posts = load_posts(config, converter)
    site = _site_config(config, posts, load_data(config.paths.data))
    renderer = TemplateRenderer(site, registry=engine_registry)

    # An output path belongs to the first file that claims it: posts, then
    # sources in sorted order. Unpublished files claim nothing.
    owners: dict[PurePosixPath, Path] = {}

    def claim(output: PurePosixPath, path: Path) -> bool:
        owner = owners.setdefault(output, path)
        if owner != path:
            logger.warning("Skipping %s: %s is already built from %s", path, output, owner)
            result.conflicts.append(path)
            return False
        return True

    jobs: list[_Job] = []
    for post in posts:
        job = _Job(post.source, post.partition, post.output)
        if not _published(job) or claim(job.output, job.source.path):
            jobs.append(job)
    for path in collect_sources(site):
        source = read_source(path, config.paths.source)
        if not source.has_front_matter:
            if claim(source.relative, source.path):
                _write(destination, source.relative, source.raw)
                result.copied.append(source.relative)
            continue
        job = _page_job(source, site, converter)
        if not _published(job) or claim(job.output, path):
            jobs.append(job)

    semaphore = asyncio.Semaphore(max(1, int(config.get("concurrency") or 1)))

    async def run(job: _Job) -> None:
        if not _published(job):
            result.skipped.append(job.output)
            return
        globals_ = build_globals(job.source, job.partition, site)
        async with semaphore:
            try:
                payload = await renderer.render(globals_)
            except RenderError as exc:
                logger.error("Failed to render %s: %s", job.source.relative, exc.message)
                result.failures.append(exc)
                return
        _write(destination, job.output, payload)
        result.written.append(job.output)

    await asyncio.gather(*(run(job) for job in jobs))

    result.written.sort()
    result.copied.sort()
    result.skipped.sort()
    result.conflicts.sort()
    result.failures.sort(key=lambda exc: str(exc.source_path))
    logger.info(
        "Built %d files, copied %d, %d failed",
        len(result.written),
        len(result.copied),
        len(result.failures),
    )
    return result


def build_config(
    config: SiteConfig,
    clean_output: bool = True,
    engine_registry: EngineRegistry | None = None,
) -> BuildResult:
    """Clean the destination (unless disabled) and build from ``config``."""
    if clean_output:
        clean_destination(
            config.paths.destination,
            [str(p) for p in as_list(config.get("keep_files"))],
            protected=(config.paths.root, config.paths.source),
        )
    return asyncio.run(generate(config, engine_registry))


def build_site(
    project_root: Path | None = None,
    clean_output: bool = True,
    engine_registry: EngineRegistry | None = None,
) -> BuildResult:
    """Build the entire static site.

    Args:
        project_root: Directory to build from; defaults to the working
            directory.
        clean_output: Whether to clean the destination before building.
        engine_registry: Registry to look the template engine up in.

    Returns:
        BuildResult describing what was written.

    Raises:
        ConfigLoadError: If the configuration cannot be resolved.
        CleanError: If the destination cannot be cleaned.
    """
    config = resolve_config(project_root)
    return build_config(config, clean_output, engine_registry)
