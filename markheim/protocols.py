"""Protocol definitions for Markheim.

This module defines the interfaces used at the seams of the build so that
template engines and content converters can be swapped or added without
touching the pipeline.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class RenderParams:
    """Parameters handed to a template engine.

    Attributes:
        locals: Variables visible to the template.
        include_dir: Directory searched by include statements.
    """

    locals: dict[str, Any] = field(default_factory=dict)
    include_dir: Path | None = None


@runtime_checkable
class TemplateEngine(Protocol):
    """Protocol for template engine adapters.

    Both methods are synchronous; the renderer runs them off the event loop.
    """

    @abstractmethod
    def render_file(self, path: Path, params: RenderParams) -> str:
        """Render the template stored at ``path``.

        Args:
            path: Template file, typically a layout.
            params: Locals and include directory.

        Returns:
            Rendered text.
        """
        ...

    @abstractmethod
    def render(self, content: str, params: RenderParams) -> str:
        """Render a template given as a string.

        Args:
            content: Template source.
            params: Locals and include directory.

        Returns:
            Rendered text.
        """
        ...


@runtime_checkable
class ContentConverter(Protocol):
    """Protocol for converting source bodies (e.g. Markdown) before rendering."""

    @abstractmethod
    def matches(self, relative: PurePosixPath) -> bool:
        """Check if this converter handles the given source path."""
        ...

    @abstractmethod
    def convert(self, text: str) -> str:
        """Convert a body to HTML."""
        ...

    @abstractmethod
    def output_path(self, relative: PurePosixPath) -> PurePosixPath:
        """Return the destination path for a converted file."""
        ...
