"""Error types raised during a Markheim build.

All errors carry the path they relate to so the CLI can point the user at
the offending file.

Key classes:
- BuildError: Base class with file context.
- ConfigLoadError: A configuration layer is missing or malformed; fatal.
- RenderError: A template engine failed for one file; the file is dropped.
- CleanError: The destination could not be cleaned; fatal.
"""

from __future__ import annotations

from pathlib import Path


class BuildError(Exception):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


class ConfigLoadError(BuildError):
    """A configuration layer could not be read or parsed."""


class RenderError(BuildError):
    """The template engine failed to render a file."""


class CleanError(BuildError):
    """A path under the destination could not be deleted."""

    def __init__(self, source_path: Path, original_error: Exception):
        super().__init__(
            source_path, f"Unable to delete: {original_error}", original_error
        )


def format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message.

    Args:
        exc: The exception to format.

    Returns:
        A human-readable error message.
    """
    error_type = type(exc).__name__
    error_msg = str(exc)

    # Handle common Jinja2/template errors
    if error_type == "TemplateSyntaxError":
        lineno = getattr(exc, "lineno", None)
        message = getattr(exc, "message", None) or error_msg
        return f"Template syntax error on line {lineno}: {message}"
    if error_type == "TemplateNotFound":
        return f"Template not found: {error_msg}"
    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if error_type == "TypeError":
        return f"Type error: {error_msg}"

    return f"{error_type}: {error_msg}"
