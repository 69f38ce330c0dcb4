"""Markheim static site build pipeline.

Markheim reads a tree of Markdown and HTML files with YAML front matter,
resolves a cascading configuration (system defaults, generator defaults,
the generator's own defaults, then the user's config file), sorts each
file's front matter into build internals and page variables, and renders
the result through a pluggable template engine into a destination tree.

The main entry point is the CLI module, which provides commands for
building a site and cleaning its destination.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
