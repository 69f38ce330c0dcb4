"""Template rendering for Markheim.

The renderer turns a file's Globals into output bytes. A file whose
internals name a layout is rendered through ``<layouts>/<layout><ext>``
with the file content available as ``content``; any other file has its
content rendered directly as a template.

Engine calls are synchronous and run in a worker thread, so several files
can be rendered concurrently from one event loop.

Key class:
- TemplateRenderer: Selects the engine and renders Globals.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from .config import SiteConfig
from .context import Globals
from .engines import EngineRegistry, UnknownEngineError, default_engine_registry
from .errors import ConfigLoadError, RenderError, format_error_message
from .protocols import RenderParams, TemplateEngine

logger = logging.getLogger(__name__)

__all__ = ["RenderError", "TemplateRenderer"]


class TemplateRenderer:
    """Renders files through the configured template engine.

    Attributes:
        config: Resolved site configuration.
        language: Engine name from ``template.language``.
        filters: Filter set name; ``template.filters`` or the generator name.
        layout_ext: Suffix appended to layout names.
        engine: The engine instance, shared by every file of the build.
    """

    def __init__(
        self,
        config: SiteConfig,
        registry: EngineRegistry | None = None,
        engine: TemplateEngine | None = None,
    ):
        """Initialize the renderer.

        Args:
            config: Resolved site configuration.
            registry: Engine registry; defaults to the built-in one.
            engine: Ready-made engine, bypassing the registry.

        Raises:
            ConfigLoadError: If ``template.language`` names no known engine.
        """
        template = config.section("template")
        self.config = config
        self.language = str(template.get("language") or "jinja2")
        self.filters = template.get("filters") or config.generator
        self.layout_ext = str(template.get("layout_ext") or ".html")
        if engine is None:
            try:
                engine = (registry or default_engine_registry).create(
                    self.language,
                    layouts_dir=config.paths.layouts,
                    filters=self.filters,
                )
            except UnknownEngineError as exc:
                raise ConfigLoadError(config.paths.config_file, str(exc), exc) from exc
        self.engine = engine
        logger.debug("Template engine set to: %s", self.language)
        logger.debug("Filters set to: %s", self.filters)

    def layout_path(self, layout: str) -> Path:
        """Return the template file for a layout name."""
        return self.config.paths.layouts / f"{layout}{self.layout_ext}"

    @staticmethod
    def select_layout(globals_: Globals) -> str | None:
        """Return the file's layout name, or None for a direct render."""
        layout = globals_.file_internals.get("layout")
        if isinstance(layout, str) and layout.strip():
            return layout.strip()
        return None

    async def render(self, globals_: Globals) -> bytes:
        """Render a file.

        Args:
            globals_: The file's render context.

        Returns:
            Rendered output encoded as UTF-8.

        Raises:
            RenderError: If the engine fails, including when the layout
                template does not exist.
        """
        params = RenderParams(
            locals=globals_.locals(), include_dir=self.config.paths.includes
        )
        layout = self.select_layout(globals_)
        try:
            if layout is not None:
                html = await asyncio.to_thread(
                    self.engine.render_file, self.layout_path(layout), params
                )
            else:
                html = await asyncio.to_thread(
                    self.engine.render, globals_.content or "", params
                )
        except Exception as exc:
            source_path = (
                globals_.source.path
                if globals_.source is not None
                else self.config.paths.source
            )
            raise RenderError(source_path, format_error_message(exc), exc) from exc
        return html.encode("utf-8")
