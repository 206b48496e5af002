"""Filters available to ``{{ value | filter: arg }}`` expressions.

Every filter is a pure function ``(value, *args) -> value``. Filters tolerate
missing data: a ``None`` input yields an empty or ``None`` result rather than
an exception, because optional metadata is routine in content front matter.

Example
-------
>>> from scholar_pages.templating.filters import FILTERS
>>> FILTERS["truncatewords"]("one two three four", 2)
'one two...'
"""

from __future__ import annotations

import collections.abc as cabc
import datetime as dt
import typing as typ
from html import escape

from ..collection import parse_date
from ..errors import InvalidDate
from ..markdown_renderer import render_markdown
from ..text import WHITESPACE_PATTERN, slugify, strip_html

FilterFunction: typ.TypeAlias = cabc.Callable[..., typ.Any]

FILTERS: dict[str, FilterFunction] = {}


def register(name: str) -> cabc.Callable[[FilterFunction], FilterFunction]:
    """Add the decorated function to :data:`FILTERS` under ``name``."""

    def _decorator(function: FilterFunction) -> FilterFunction:
        FILTERS[name] = function
        return function

    return _decorator


def _text(value: object) -> str:
    """Return the string form used by text filters; ``None`` becomes ``""``."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _as_int(value: object, fallback: int) -> int:
    try:
        return int(typ.cast("typ.SupportsInt", value))
    except (TypeError, ValueError):
        return fallback


def _as_datetime(value: object) -> dt.datetime | None:
    if isinstance(value, dt.datetime):
        return value
    try:
        return parse_date(value)
    except InvalidDate:
        return None


def _as_list(value: object) -> list[typ.Any]:
    match value:
        case None:
            return []
        case str():
            return [value]
        case cabc.Mapping():
            return [value]
        case cabc.Iterable():
            return list(value)
        case _:
            return [value]


@register("date")
def date(value: object, fmt: object = "%Y-%m-%d") -> object:
    """Format a datetime (or parsable date string) with ``strftime``."""
    moment = _as_datetime(value)
    if moment is None:
        return value
    return moment.strftime(_text(fmt))


@register("date_to_xmlschema")
def date_to_xmlschema(value: object) -> object:
    moment = _as_datetime(value)
    return moment.isoformat() if moment else value


@register("date_to_string")
def date_to_string(value: object) -> object:
    moment = _as_datetime(value)
    return moment.strftime("%d %b %Y") if moment else value


@register("truncate")
def truncate(value: object, length: object = 50, ellipsis: object = "...") -> str:
    """Shorten text to ``length`` characters including the ellipsis."""
    text = _text(value)
    limit = _as_int(length, 50)
    marker = _text(ellipsis)
    if len(text) <= limit:
        return text
    return text[: max(limit - len(marker), 0)] + marker


@register("truncatewords")
def truncatewords(value: object, words: object = 15, ellipsis: object = "...") -> str:
    """Keep the first ``words`` words, appending ``ellipsis`` when cut."""
    parts = _text(value).split()
    count = max(_as_int(words, 15), 1)
    if len(parts) <= count:
        return " ".join(parts)
    return " ".join(parts[:count]) + _text(ellipsis)


@register("strip_html")
def strip_html_filter(value: object) -> str:
    return strip_html(_text(value))


@register("strip_newlines")
def strip_newlines(value: object) -> str:
    return _text(value).replace("\r", "").replace("\n", "")


@register("strip")
def strip(value: object) -> str:
    return _text(value).strip()


@register("normalize_whitespace")
def normalize_whitespace(value: object) -> str:
    return WHITESPACE_PATTERN.sub(" ", _text(value))


@register("escape")
def escape_filter(value: object) -> str:
    return escape(_text(value), quote=True)


@register("xml_escape")
def xml_escape(value: object) -> str:
    return escape(_text(value), quote=True)


@register("upcase")
def upcase(value: object) -> str:
    return _text(value).upper()


@register("downcase")
def downcase(value: object) -> str:
    return _text(value).lower()


@register("capitalize")
def capitalize(value: object) -> str:
    return _text(value).capitalize()


@register("append")
def append(value: object, suffix: object = "") -> str:
    return _text(value) + _text(suffix)


@register("prepend")
def prepend(value: object, prefix: object = "") -> str:
    return _text(prefix) + _text(value)


@register("replace")
def replace(value: object, old: object = "", new: object = "") -> str:
    target = _text(old)
    if not target:
        return _text(value)
    return _text(value).replace(target, _text(new))


@register("remove")
def remove(value: object, fragment: object = "") -> str:
    return replace(value, fragment, "")


@register("split")
def split(value: object, separator: object = " ") -> list[str]:
    text = _text(value)
    if not text:
        return []
    sep = _text(separator)
    return text.split(sep) if sep else list(text)


@register("join")
def join(value: object, separator: object = " ") -> str:
    return _text(separator).join(_text(item) for item in _as_list(value))


@register("size")
def size(value: object) -> int:
    if value is None:
        return 0
    if isinstance(value, cabc.Sized):
        return len(value)
    return 0


@register("first")
def first(value: object) -> object:
    if isinstance(value, str):
        return value[:1] or None
    items = _as_list(value)
    return items[0] if items else None


@register("last")
def last(value: object) -> object:
    if isinstance(value, str):
        return value[-1:] or None
    items = _as_list(value)
    return items[-1] if items else None


@register("reverse")
def reverse(value: object) -> list[typ.Any]:
    return list(reversed(_as_list(value)))


@register("sort")
def sort(value: object, key: object = None) -> list[typ.Any]:
    """Sort a sequence, optionally by a mapping ``key``; ``None`` values sort last."""
    items = _as_list(value)
    field = _text(key) if key is not None else None

    def _sort_key(item: object) -> tuple[int, str]:
        target = item.get(field) if field and isinstance(item, cabc.Mapping) else item
        if target is None:
            return (1, "")
        return (0, _text(target).lower())

    return sorted(items, key=_sort_key)


@register("where")
def where(value: object, key: object = None, expected: object = None) -> list[typ.Any]:
    """Keep mappings whose ``key`` equals ``expected`` or, for lists, contains it."""
    field = _text(key)
    kept: list[typ.Any] = []
    for item in _as_list(value):
        if not isinstance(item, cabc.Mapping):
            continue
        actual = item.get(field)
        if actual == expected or (
            isinstance(actual, list | tuple) and expected in actual
        ):
            kept.append(item)
    return kept


@register("default")
def default(value: object, fallback: object = "") -> object:
    """Return ``fallback`` when ``value`` is nil, false, or empty."""
    if value is None or value is False:
        return fallback
    if isinstance(value, cabc.Sized) and len(value) == 0:
        return fallback
    return value


@register("slugify")
def slugify_filter(value: object) -> str:
    return slugify(_text(value))


@register("markdownify")
def markdownify(value: object) -> str:
    return render_markdown(_text(value))


@register("number_of_words")
def number_of_words(value: object) -> int:
    return len(_text(value).split())


__all__ = ["FILTERS", "FilterFunction", "register"]
