"""Compute output URLs and file paths for documents.

Each document's permalink is its explicit ``permalink`` metadata or the
pattern configured for its kind. Placeholders are substituted from the
document's date, slug, title, kind, and source path:

=================  ===========================================================
``:year``          four-digit year of ``date`` (empty when undated)
``:month``         zero-padded month
``:day``           zero-padded day
``:slug``          the document slug (``slug`` metadata or file name)
``:title``         slugified ``title`` metadata, falling back to the slug
``:kind``          the collection kind
``:path``          source path without extension, trailing ``index`` dropped
``:output_ext``    ``.html``
=================  ===========================================================

Example
-------
>>> from scholar_pages.permalink import normalize_url, url_to_path
>>> normalize_url("/blog//2021/../notes")
'/blog/2021/notes/'
>>> url_to_path("/blog/2021/notes/")
'blog/2021/notes/index.html'
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import logging
import re
import typing as typ
from pathlib import PurePosixPath

from ._constants import DEFAULT_PERMALINK
from .errors import PermalinkCollision
from .text import slugify

if typ.TYPE_CHECKING:
    from .models import Document

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(
    r":(output_ext|year|month|day|slug|title|kind|path)(?![A-Za-z_])"
)
INDEX_FILENAME = "index.html"
OUTPUT_EXTENSION = ".html"


@dc.dataclass(frozen=True, slots=True)
class OutputPath:
    """Where a document is published.

    Attributes
    ----------
    url : str
        Site-absolute URL, beginning with ``/``.
    path : str
        POSIX file path relative to the output directory.
    """

    url: str
    path: str


class PermalinkRouter:
    """Resolve documents to unique :class:`OutputPath` values."""

    def __init__(
        self,
        patterns: cabc.Mapping[str, str] | None = None,
        default_pattern: str = DEFAULT_PERMALINK,
    ) -> None:
        """Initialize the router.

        Parameters
        ----------
        patterns : Mapping[str, str], optional
            Permalink pattern per collection kind.
        default_pattern : str, optional
            Pattern for kinds without an entry in ``patterns``.
        """
        self.patterns = dict(patterns or {})
        self.default_pattern = default_pattern

    def pattern_for(self, document: Document) -> str:
        """Return the explicit ``permalink`` or the pattern for the kind.

        Numeric values (``permalink: 2021``) are used as text. Lists,
        mappings and booleans cannot name a path; they are logged and the
        kind's pattern applies.
        """
        explicit = document.metadata.get("permalink")
        match explicit:
            case bool() | list() | dict():
                logger.warning(
                    "ignoring permalink %r in %s", explicit, document.source
                )
            case int() | float() | str() if str(explicit).strip():
                return str(explicit).strip()
        return self.patterns.get(document.kind, self.default_pattern)

    def resolve(self, document: Document) -> OutputPath:
        """Substitute placeholders and normalize the resulting URL."""
        values = _placeholder_values(document)
        expanded = PLACEHOLDER_PATTERN.sub(
            lambda match: values[match.group(1)], self.pattern_for(document)
        )
        url = normalize_url(expanded)
        return OutputPath(url=url, path=url_to_path(url))

    def plan(
        self,
        documents: cabc.Iterable[Document],
        *,
        reserved: cabc.Mapping[str, str] | None = None,
    ) -> tuple[dict[str, OutputPath], list[PermalinkCollision]]:
        """Resolve every document and collect collisions instead of raising.

        Parameters
        ----------
        documents : Iterable[Document]
            Documents to route.
        reserved : Mapping[str, str], optional
            Output paths already claimed (for example by static files),
            mapped to the source that claims them.

        Returns
        -------
        tuple[dict[str, OutputPath], list[PermalinkCollision]]
            Output paths keyed by document source, and one collision per
            output path claimed more than once.
        """
        routes: dict[str, OutputPath] = {}
        claims: dict[str, list[str]] = {
            path: [source] for path, source in (reserved or {}).items()
        }
        for document in documents:
            output = self.resolve(document)
            logger.debug("routed %s -> %s", document.source, output.url)
            routes[document.source] = output
            claims.setdefault(output.path, []).append(document.source)

        collisions = [
            PermalinkCollision(path, sorted(sources))
            for path, sources in sorted(claims.items())
            if len(sources) > 1
        ]
        return routes, collisions

    def route(
        self,
        documents: cabc.Iterable[Document],
        *,
        reserved: cabc.Mapping[str, str] | None = None,
    ) -> dict[str, OutputPath]:
        """Return output paths keyed by source.

        Raises
        ------
        PermalinkCollision
            If two documents (or a document and a reserved path) resolve to
            the same output path. Colliding documents are never renamed.
        """
        routes, collisions = self.plan(documents, reserved=reserved)
        if collisions:
            raise collisions[0]
        return routes


def _placeholder_values(document: Document) -> dict[str, str]:
    date = document.date
    title = document.metadata.get("title")
    title_slug = slugify(title) if isinstance(title, str) else ""
    source_path = PurePosixPath(document.source).with_suffix("")
    parts = list(source_path.parts)
    if parts and parts[-1] == "index":
        parts.pop()
    return {
        "year": f"{date.year:04d}" if date else "",
        "month": f"{date.month:02d}" if date else "",
        "day": f"{date.day:02d}" if date else "",
        "slug": document.slug,
        "title": title_slug or document.slug,
        "kind": document.kind,
        "path": "/".join(parts),
        "output_ext": OUTPUT_EXTENSION,
    }


def normalize_url(url: str) -> str:
    """Return ``url`` with a leading slash and no empty, ``.`` or ``..`` segments.

    URLs whose last segment has no file extension are treated as directories
    and end with ``/``.
    """
    segments = [part for part in url.split("/") if part not in {"", ".", ".."}]
    if not segments:
        return "/"
    joined = "/" + "/".join(segments)
    if url.endswith("/") or not PurePosixPath(segments[-1]).suffix:
        return joined + "/"
    return joined


def url_to_path(url: str) -> str:
    """Map a normalized URL to a file path relative to the output directory."""
    if url.endswith("/"):
        return url.lstrip("/") + INDEX_FILENAME
    return url.lstrip("/")


__all__ = [
    "OutputPath",
    "PermalinkRouter",
    "normalize_url",
    "url_to_path",
]
