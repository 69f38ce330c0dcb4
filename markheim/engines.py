"""Template engine adapters for Markheim.

Engines are looked up by the ``template.language`` setting in an
EngineRegistry. New engines can be registered without modifying the
renderer; they only need to implement the TemplateEngine protocol.

Key classes:
- Jinja2Engine: TemplateEngine implementation backed by Jinja2.
- EngineRegistry: Maps language names to engine factories.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, Template, TemplateNotFound

from .filters import get_filter_set
from .protocols import RenderParams, TemplateEngine

EngineFactory = Callable[..., TemplateEngine]


class UnknownEngineError(LookupError):
    """No engine is registered under the requested language name."""


class Jinja2Engine:
    """Jinja2 adapter.

    Autoescaping is disabled: layouts receive already-rendered HTML in
    ``content`` and output it as is, as Liquid layouts do.

    Attributes:
        layouts_dir: Directory templates are loaded from by name, so layouts
            can extend each other.
        filters: Name of the installed filter set.
    """

    def __init__(self, layouts_dir: Path | None = None, filters: str | None = None):
        self.layouts_dir = layouts_dir
        self.filters = filters
        self._filter_functions = get_filter_set(filters)
        self._environments: dict[Path | None, Environment] = {}
        self._lock = threading.Lock()

    def _environment(self, include_dir: Path | None) -> Environment:
        """Return the environment searching ``include_dir``, creating it once."""
        with self._lock:
            env = self._environments.get(include_dir)
            if env is None:
                search_path = [
                    str(directory)
                    for directory in (self.layouts_dir, include_dir)
                    if directory is not None
                ]
                env = Environment(
                    loader=FileSystemLoader(search_path),
                    autoescape=False,
                    keep_trailing_newline=True,
                )
                env.filters.update(self._filter_functions)
                self._environments[include_dir] = env
            return env

    def _load(self, env: Environment, path: Path) -> Template:
        if self.layouts_dir is not None:
            try:
                name = path.relative_to(self.layouts_dir).as_posix()
            except ValueError:
                name = None
            if name is not None:
                return env.get_template(name)
        if not path.is_file():
            raise TemplateNotFound(str(path))
        return env.from_string(path.read_text(encoding="utf-8"))

    def render_file(self, path: Path, params: RenderParams) -> str:
        env = self._environment(params.include_dir)
        return self._load(env, path).render(params.locals)

    def render(self, content: str, params: RenderParams) -> str:
        env = self._environment(params.include_dir)
        return env.from_string(content).render(params.locals)


class EngineRegistry:
    """Registry of template engines by language name.

    Follows the Open/Closed Principle: engines are added with ``register``.
    """

    def __init__(self):
        self._factories: dict[str, EngineFactory] = {}
        self.register("jinja2", Jinja2Engine)
        self.register("jinja", Jinja2Engine)

    def register(self, name: str, factory: EngineFactory) -> None:
        """Register an engine factory.

        Args:
            name: Language name as used in ``template.language``.
            factory: Callable accepting ``layouts_dir`` and ``filters``
                keyword arguments and returning a TemplateEngine.
        """
        self._factories[name.lower()] = factory

    def names(self) -> list[str]:
        return sorted(self._factories)

    def create(
        self, name: str, layouts_dir: Path | None = None, filters: str | None = None
    ) -> TemplateEngine:
        """Instantiate the engine registered under ``name``.

        Raises:
            UnknownEngineError: If no engine has that name.
        """
        factory = self._factories.get(str(name).lower())
        if factory is None:
            raise UnknownEngineError(
                f"Unknown template language '{name}' (available: {', '.join(self.names())})"
            )
        return factory(layouts_dir=layouts_dir, filters=filters)


# Default engine registry instance
default_engine_registry = EngineRegistry()
