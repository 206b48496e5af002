"""Group parsed content units into date-ordered collections.

The :class:`CollectionManager` assigns each unit a kind, validates its
``date``, computes the excerpt and tag list that templates consume, and
returns one :class:`~scholar_pages.models.Collection` per kind. Units whose
metadata cannot be coerced are excluded and reported rather than dropped.

Example
-------
>>> from scholar_pages.collection import CollectionManager
>>> from scholar_pages.models import ContentUnit
>>> units = [
...     ContentUnit("posts/a.md", {"date": "2020-01-01"}, "First"),
...     ContentUnit("posts/b.md", {"date": "2021-01-01"}, "Second"),
... ]
>>> result = CollectionManager().build(units)
>>> [doc.source for doc in result.collections["posts"]]
['posts/b.md', 'posts/a.md']
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import logging
import re
import typing as typ
from pathlib import PurePosixPath

from ._constants import DEFAULT_EXCERPT_LENGTH, DEFAULT_KIND
from .errors import ContentError, InvalidDate, MalformedMetadata
from .models import Collection, Document
from .text import slugify, strip_markup, truncate_words

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .models import ContentUnit

logger = logging.getLogger(__name__)

FILENAME_DATE_PATTERN = re.compile(r"^(?P<date>\d{4}-\d{2}-\d{2})-(?P<rest>.+)$")
OFFSET_PATTERN = re.compile(r"\s*([+-]\d{2}):?(\d{2})$")


@dc.dataclass(slots=True)
class CollectionSet:
    """Collections keyed by kind plus the errors met while building them."""

    collections: dict[str, Collection] = dc.field(default_factory=dict)
    errors: list[ContentError] = dc.field(default_factory=list)

    @property
    def documents(self) -> list[Document]:
        """Return every document across collections, ordered by source."""
        docs = [doc for coll in self.collections.values() for doc in coll]
        return sorted(docs, key=lambda doc: doc.source)


class CollectionManager:
    """Build ordered collections with derived excerpt and tag fields."""

    def __init__(self, excerpt_length: int = DEFAULT_EXCERPT_LENGTH) -> None:
        if excerpt_length <= 0:
            msg = f"excerpt_length must be positive, got {excerpt_length}"
            raise ValueError(msg)
        self.excerpt_length = excerpt_length

    def build(self, units: cabc.Iterable[ContentUnit]) -> CollectionSet:
        """Group ``units`` by kind and order each group by date.

        Parameters
        ----------
        units : Iterable[ContentUnit]
            Parsed units in source order. Equal dates keep this order, so
            callers pass units sorted by source identifier.

        Returns
        -------
        CollectionSet
            Collections keyed by kind (dated documents newest first, undated
            ones after them in source order) and the per-unit errors
            (:class:`InvalidDate`, :class:`MalformedMetadata`) for units that
            were excluded.
        """
        result = CollectionSet()
        grouped: dict[str, list[Document]] = {}
        for unit in units:
            try:
                document = self.document(unit)
            except ContentError as exc:
                logger.debug("excluding %s: %s", unit.source, exc)
                result.errors.append(exc)
                continue
            grouped.setdefault(document.kind, []).append(document)

        for kind in sorted(grouped):
            result.collections[kind] = Collection(kind, _date_ordered(grouped[kind]))
        return result

    def document(self, unit: ContentUnit) -> Document:
        """Derive the :class:`Document` record for a single unit.

        Raises
        ------
        InvalidDate
            If ``date`` is present but unparsable.
        MalformedMetadata
            If ``tags`` cannot be coerced to a sequence of strings.
        """
        stem = PurePosixPath(unit.source).stem
        filename_match = FILENAME_DATE_PATTERN.match(stem)
        if "date" in unit.metadata:
            date = parse_date(unit.metadata["date"], source=unit.source)
        elif filename_match:
            date = parse_date(filename_match.group("date"), source=unit.source)
        else:
            date = None

        explicit_slug = unit.metadata.get("slug")
        if isinstance(explicit_slug, str) and explicit_slug.strip():
            slug = slugify(explicit_slug)
        else:
            slug = slugify(filename_match.group("rest") if filename_match else stem)

        return Document(
            unit=unit,
            kind=resolve_kind(unit),
            date=date,
            excerpt=self.excerpt(unit.body),
            tags=coerce_tags(unit.metadata.get("tags"), source=unit.source),
            slug=slug or "index",
        )

    def excerpt(self, body: str) -> str:
        """Return the markup-stripped body truncated at a word boundary."""
        return truncate_words(strip_markup(body), self.excerpt_length)


def _date_ordered(documents: list[Document]) -> tuple[Document, ...]:
    """Sort newest first; ``sorted`` is stable so ties keep source order."""
    dated = [doc for doc in documents if doc.date is not None]
    undated = [doc for doc in documents if doc.date is None]
    dated.sort(key=lambda doc: typ.cast("dt.datetime", doc.date), reverse=True)
    return tuple(dated + undated)


def resolve_kind(unit: ContentUnit) -> str:
    """Return the declared ``kind`` or the unit's top-level directory name."""
    declared = unit.metadata.get("kind")
    if isinstance(declared, str) and declared.strip():
        return declared.strip()
    parts = PurePosixPath(unit.source).parts
    if len(parts) > 1:
        return parts[0].lstrip("_") or DEFAULT_KIND
    return DEFAULT_KIND


def parse_date(value: object, *, source: str | None = None) -> dt.datetime:
    """Parse a front matter date into a timezone-aware UTC datetime.

    Accepts ``YYYY-MM-DD`` optionally followed by a time (space or ``T``
    separated) and a ``Z``, ``+HH:MM`` or ``+HHMM`` offset. Naive values are
    treated as UTC.

    Raises
    ------
    InvalidDate
        If ``value`` is not a string in one of the accepted shapes.
    """
    match value:
        case dt.datetime():
            parsed = value
        case dt.date():
            parsed = dt.datetime(value.year, value.month, value.day)
        case str() as text if text.strip():
            parsed = _parse_date_text(text.strip(), source)
        case _:
            raise InvalidDate(value, source=source)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=dt.UTC)
    return parsed.astimezone(dt.UTC)


def _parse_date_text(text: str, source: str | None) -> dt.datetime:
    sanitized = text
    if sanitized.endswith(("Z", "z")):
        sanitized = sanitized[:-1] + "+00:00"
    sanitized = OFFSET_PATTERN.sub(r"\1:\2", sanitized)
    if not re.match(r"^\d{4}-\d{2}-\d{2}", sanitized):
        raise InvalidDate(text, source=source)
    try:
        return dt.datetime.fromisoformat(sanitized)
    except ValueError as exc:
        raise InvalidDate(text, source=source) from exc


def coerce_tags(value: object, *, source: str | None = None) -> tuple[str, ...]:
    """Coerce a ``tags`` metadata value into an ordered tuple of strings.

    Raises
    ------
    MalformedMetadata
        If ``value`` is a boolean or a mapping.
    """
    match value:
        case None:
            return ()
        case bool() | dict():
            msg = f"tags must be a list or string, got {type(value).__name__}"
            raise MalformedMetadata(msg, source=source)
        case str():
            separator = "," if "," in value else None
            parts = (part.strip() for part in value.split(separator))
            return tuple(part for part in parts if part)
        case int() | float():
            return (str(value),)
        case list() | tuple():
            return tuple(str(item).strip() for item in value if str(item).strip())
        case _:
            msg = f"tags must be a list or string, got {type(value).__name__}"
            raise MalformedMetadata(msg, source=source)


__all__ = [
    "CollectionManager",
    "CollectionSet",
    "coerce_tags",
    "parse_date",
    "resolve_kind",
]
