"""Markdown conversion for Markheim.

Files whose extension is listed in the ``markdown_ext`` setting have their
body converted to HTML before the front matter is partitioned, and are
written with an ``.html`` suffix. Fenced code with a language is
highlighted with Pygments when the lexer is known.

Template tags (``{{ ... }}`` and ``{% ... %}``) in a converted body are
rendered afterwards, so they are swapped for plain placeholders during
conversion and restored verbatim; otherwise Markdown would entity-encode
their quotes.

Key classes:
- MarkdownConverter: ContentConverter implementation backed by mistune.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from pathlib import PurePosixPath
from typing import Any

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

MARKDOWN_PLUGINS = ["strikethrough", "footnotes", "table", "url"]

TEMPLATE_TAG_RE = re.compile(r"\{\{.*?\}\}|\{%.*?%\}", re.DOTALL)


def _generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text.

    Args:
        text: The heading text.

    Returns:
        URL-friendly slug suitable for anchor links.
    """
    slug = re.sub(r"<[^>]+>", "", text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-")


class _HighlightRenderer(mistune.HTMLRenderer):
    """HTML renderer adding heading anchors and Pygments highlighting."""

    def __init__(self):
        super().__init__(escape=False)
        self._heading_id_counts: dict[str, int] = {}

    def heading(self, text: str, level: int, **attrs) -> str:
        """Render a heading with a unique auto-generated ID.

        Args:
            text: Heading text content.
            level: Heading level (1-6).
            **attrs: Additional attributes.

        Returns:
            HTML heading tag with id attribute.
        """
        base_id = _generate_heading_id(text)
        if base_id in self._heading_id_counts:
            self._heading_id_counts[base_id] += 1
            heading_id = f"{base_id}-{self._heading_id_counts[base_id]}"
        else:
            self._heading_id_counts[base_id] = 0
            heading_id = base_id
        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a code block, highlighted when the language is known.

        Args:
            code: The code content.
            info: Language identifier (e.g., 'python', 'javascript').

        Returns:
            HTML string with the code block.
        """
        lang = info.split()[0] if info and info.strip() else None
        if lang:
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                formatter = HtmlFormatter(nowrap=False, cssclass="highlight")
                return highlight(code, lexer, formatter)
        escaped = code.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
        lang_class = f' class="language-{lang}"' if lang else ""
        return f"<pre><code{lang_class}>{escaped}</code></pre>\n"


def markdown_to_html(text: str) -> str:
    """Convert Markdown text to HTML."""
    markdown = mistune.create_markdown(
        renderer=_HighlightRenderer(), plugins=MARKDOWN_PLUGINS
    )
    return markdown(text)


def _protect_template_tags(text: str) -> tuple[str, dict[str, str]]:
    """Replace template tags with alphanumeric placeholders.

    Returns:
        Tuple of (text with placeholders, placeholder to tag mapping).
    """
    tags: dict[str, str] = {}

    def stash(match: re.Match[str]) -> str:
        token = f"zzmarkheimtag{len(tags)}zz"
        tags[token] = match.group(0)
        return token

    return TEMPLATE_TAG_RE.sub(stash, text), tags


def _restore_template_tags(html: str, tags: Mapping[str, str]) -> str:
    for token, tag in tags.items():
        html = html.replace(token, tag)
    return html


def _parse_extensions(setting: Any) -> set[str]:
    if isinstance(setting, str):
        names: Iterable[Any] = setting.split(",")
    elif isinstance(setting, Iterable):
        names = setting
    else:
        names = []
    return {f".{str(name).strip().lstrip('.').lower()}" for name in names if str(name).strip()}


class MarkdownConverter:
    """Converts Markdown sources to HTML.

    Attributes:
        extensions: Lower-case suffixes (with dot) treated as Markdown.
    """

    output_suffix = ".html"

    def __init__(self, extensions: Iterable[str] | str):
        self.extensions = _parse_extensions(extensions)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> MarkdownConverter:
        return cls(config.get("markdown_ext") or "md")

    def matches(self, relative: PurePosixPath) -> bool:
        return relative.suffix.lower() in self.extensions

    def convert(self, text: str) -> str:
        protected, tags = _protect_template_tags(text)
        return _restore_template_tags(markdown_to_html(protected), tags)

    def output_path(self, relative: PurePosixPath) -> PurePosixPath:
        return relative.with_suffix(self.output_suffix)
