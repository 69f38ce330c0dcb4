"""Command-line interface for Markheim.

This module defines the CLI commands using Click framework.

Commands:
- build: Clean the destination and build the site into it.
- clean: Empty the destination, keeping ``keep_files``.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from . import __version__
from .errors import BuildError
from .utils import as_list

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _configure_logging(verbose: bool) -> None:
    """Send Markheim's log records to stderr."""
    logging.basicConfig(format=LOG_FORMAT, datefmt="%H:%M:%S")
    logging.getLogger("markheim").setLevel(logging.DEBUG if verbose else logging.INFO)


def _report_failure(exc: BuildError, project_root: Path) -> None:
    """Display a user-friendly error for a BuildError."""
    try:
        rel_path = exc.source_path.relative_to(project_root)
    except ValueError:
        rel_path = exc.source_path
    click.echo(click.style(f"  File: {rel_path}", fg="yellow"), err=True)
    click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)


def _load_config(project_root: Path, verbose: bool):
    from .config import resolve_config

    _configure_logging(verbose)
    config = resolve_config(project_root)
    if config.get("verbose") and not verbose:
        _configure_logging(True)
    return config


@click.group()
@click.version_option(version=__version__, prog_name="markheim")
def cli():
    """Markheim static site build pipeline."""


@cli.command()
@click.option("--verbose", "-v", is_flag=True, help="Log front matter and render details")
@click.option("--no-clean", is_flag=True, help="Keep existing files in the destination")
def build(verbose: bool, no_clean: bool):
    """Build the site into the destination directory."""
    project_root = Path.cwd()
    from .build import build_config

    try:
        config = _load_config(project_root, verbose)
        result = build_config(config, clean_output=not no_clean)
    except BuildError as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        _report_failure(exc, project_root)
        raise SystemExit(1) from None

    click.echo(
        f"Built {len(result.written)} files and copied {len(result.copied)} "
        f"into {result.destination}"
    )
    if result.failures:
        click.echo(
            click.style(f"{len(result.failures)} files failed to render:", fg="red", bold=True),
            err=True,
        )
        for failure in result.failures:
            _report_failure(failure, project_root)
        raise SystemExit(1)


@cli.command()
@click.option("--verbose", "-v", is_flag=True, help="Log removed paths")
def clean(verbose: bool):
    """Remove generated files, keeping keep_files."""
    project_root = Path.cwd()
    from .clean import clean_destination

    try:
        config = _load_config(project_root, verbose)
        removed = clean_destination(
            config.paths.destination,
            [str(p) for p in as_list(config.get("keep_files"))],
            protected=(config.paths.root, config.paths.source),
        )
    except BuildError as exc:
        click.echo(click.style("Clean failed:", fg="red", bold=True), err=True)
        _report_failure(exc, project_root)
        raise SystemExit(1) from None
    click.echo(f"Removed {len(removed)} paths from {config.paths.destination}")


def main():
    """Entry point for the CLI application."""
    cli()
