"""Front matter extraction for Markheim.

A source file takes part in the build pipeline when it starts with a YAML
front matter block delimited by ``---`` lines; anything else is copied to
the destination untouched.

Key items:
- extract_frontmatter: Split raw text into (front matter, body).
- SourceFile: A file read from the source tree.
- read_source: Read a file and extract its front matter.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

import yaml

FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)", re.DOTALL | re.MULTILINE
)


def extract_frontmatter(text: str) -> tuple[dict[str, Any], str] | None:
    """Extract YAML front matter from content.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (front matter dict, remaining content), or None when the
        text has no front matter block. A block that does not parse to a
        mapping counts as no front matter.
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return None
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError:
        return None
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return None
    return data, text[match.end() :]


@dataclass
class SourceFile:
    """A file from the source tree.

    Attributes:
        path: Absolute path to the file.
        relative: Path relative to the source directory; also the output
            path unless a converter or permalink changes it.
        raw: File contents as bytes.
        front_matter: Parsed front matter (empty when absent).
        body: Text following the front matter block.
        has_front_matter: Whether the file goes through the pipeline.
    """

    path: Path
    relative: PurePosixPath
    raw: bytes
    front_matter: dict[str, Any] = field(default_factory=dict)
    body: str = ""
    has_front_matter: bool = False


def read_source(path: Path, source_dir: Path) -> SourceFile:
    """Read a source file and split its front matter from its body.

    Files that are not valid UTF-8 are treated as having no front matter.

    Args:
        path: File to read.
        source_dir: Directory ``relative`` is computed against.

    Returns:
        The populated SourceFile.
    """
    raw = path.read_bytes()
    try:
        relative = PurePosixPath(path.relative_to(source_dir).as_posix())
    except ValueError:
        relative = PurePosixPath(path.name)
    source = SourceFile(path=path, relative=relative, raw=raw)
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        return source
    extracted = extract_frontmatter(text)
    if extracted is None:
        source.body = text
        return source
    source.front_matter, source.body = extracted
    source.has_front_matter = True
    return source
