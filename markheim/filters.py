"""Template filter sets for Markheim.

A filter set is chosen with ``template.filters`` and defaults to the
generator name, so Jekyll sites get Jekyll-style filters under their usual
names. Filters are installed on each engine environment when it is created.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Iterable, Mapping
from datetime import date, datetime
from typing import Any
from urllib.parse import quote, quote_plus

from jinja2 import pass_context
from markupsafe import Markup, escape

from .converters import markdown_to_html
from .utils import coerce_datetime, thaw

logger = logging.getLogger(__name__)


def _as_datetime(value: Any) -> datetime | None:
    if isinstance(value, (datetime, date, str)):
        return coerce_datetime(value)
    return None


def date_to_string(value: Any) -> str:
    parsed = _as_datetime(value)
    return parsed.strftime("%d %b %Y") if parsed else str(value or "")


def date_to_long_string(value: Any) -> str:
    parsed = _as_datetime(value)
    return parsed.strftime("%d %B %Y") if parsed else str(value or "")


def date_to_xmlschema(value: Any) -> str:
    parsed = _as_datetime(value)
    return parsed.isoformat() if parsed else str(value or "")


def xml_escape(value: Any) -> str:
    return str(escape("" if value is None else str(value)))


def cgi_escape(value: Any) -> str:
    return quote_plus(str(value or ""))


def uri_escape(value: Any) -> str:
    return quote(str(value or ""), safe="/:?#[]@!$&'()*+,;=%")


def number_of_words(value: Any) -> int:
    return len(str(value or "").split())


def markdownify(value: Any) -> Markup:
    return Markup(markdown_to_html(str(value or "")))


def slugify(value: Any) -> str:
    slug = re.sub(r"[^a-zA-Z0-9]+", "-", str(value or ""))
    return slug.strip("-").lower()


def jsonify(value: Any) -> str:
    return json.dumps(thaw(value), default=str)


def where(items: Iterable[Any], key: str, value: Any) -> list[Any]:
    """Keep the mappings whose ``key`` equals ``value``, or contains it."""
    matched = []
    for item in items or []:
        if not isinstance(item, Mapping):
            continue
        field = item.get(key)
        if field == value or (isinstance(field, (list, tuple)) and value in field):
            matched.append(item)
    return matched


def sort_by(items: Iterable[Any], key: str, reverse: bool = False) -> list[Any]:
    """Sort mappings by ``key``; items missing the key always go last."""
    items = list(items or [])
    present = [i for i in items if isinstance(i, Mapping) and i.get(key) is not None]
    missing = [i for i in items if not (isinstance(i, Mapping) and i.get(key) is not None)]
    return sorted(present, key=lambda i: i[key], reverse=reverse) + missing


def _site_setting(context: Any, name: str) -> str:
    site = context.get("site")
    if isinstance(site, Mapping):
        return str(site.get(name) or "")
    return ""


def _join_url(*parts: str) -> str:
    joined = "/".join(part.strip("/") for part in parts if part.strip("/"))
    return f"/{joined}"


@pass_context
def relative_url(context: Any, value: Any) -> str:
    path = str(value or "")
    url = _join_url(_site_setting(context, "baseurl"), path)
    return url + "/" if path.endswith("/") and url != "/" else url


@pass_context
def absolute_url(context: Any, value: Any) -> str:
    site_url = _site_setting(context, "url").rstrip("/")
    return site_url + relative_url(context, value)


def jekyll_filters() -> dict[str, Callable[..., Any]]:
    return {
        "date_to_string": date_to_string,
        "date_to_long_string": date_to_long_string,
        "date_to_xmlschema": date_to_xmlschema,
        "xml_escape": xml_escape,
        "cgi_escape": cgi_escape,
        "uri_escape": uri_escape,
        "number_of_words": number_of_words,
        "markdownify": markdownify,
        "slugify": slugify,
        "jsonify": jsonify,
        "where": where,
        "sort_by": sort_by,
        "relative_url": relative_url,
        "absolute_url": absolute_url,
    }


FILTER_SETS: dict[str, Callable[[], dict[str, Callable[..., Any]]]] = {
    "jekyll": jekyll_filters,
}


def get_filter_set(name: str | None) -> dict[str, Callable[..., Any]]:
    """Return the filters registered under ``name``.

    Unknown names log a warning and yield no filters.
    """
    if not name:
        return {}
    factory = FILTER_SETS.get(name)
    if factory is None:
        logger.warning("Unknown filter set '%s'; no extra filters installed.", name)
        return {}
    return factory()
