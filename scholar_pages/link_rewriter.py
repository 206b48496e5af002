"""Rewrite markdown links between content sources to their published URLs.

Authors link to other sources by file path, for example
``[notes](../_posts/2021-01-01-notes.md)``, so links work in an editor or on
a forge; the published site needs the permalink instead.
"""

from __future__ import annotations

import posixpath
import typing as typ
from urllib.parse import urlsplit

from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from xml.etree.ElementTree import Element

    from markdown import Markdown
else:  # pragma: no cover - type-checking fallback
    Markdown = typ.Any
    Element = typ.Any


class SourceLinkExtension(Extension):
    """Rewrite relative links to content sources into site URLs.

    Insert this extension into a ``markdown.Markdown`` instance to turn
    ``href`` values such as ``./other.md`` or ``../_posts/x.md#part`` into the
    URL the router assigned to that source. Links to anything that is not a
    routed source are left untouched.
    """

    def __init__(self, urls: cabc.Mapping[str, str], source: str) -> None:
        self.urls = urls
        self.base_dir = posixpath.dirname(source)

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the source-link treeprocessor on the Markdown instance."""
        processor = SourceLinkTreeprocessor(md, self.urls, self.base_dir)
        md.treeprocessors.register(processor, "scholar_source_links", 15)


class SourceLinkTreeprocessor(Treeprocessor):
    """Replace relative source links in the parsed markdown tree."""

    def __init__(
        self, md: Markdown, urls: cabc.Mapping[str, str], base_dir: str
    ) -> None:
        super().__init__(md)
        self.urls = urls
        self.base_dir = base_dir

    def run(self, root: Element) -> Element:
        """Rewrite matching anchors in place and return ``root``."""
        for element in root.iter("a"):
            rewritten = self._rewrite(element.get("href"))
            if rewritten:
                element.set("href", rewritten)
        return root

    def _rewrite(self, target: str | None) -> str | None:
        """Return the site URL for ``target`` or ``None`` to keep it."""
        if not target or target.startswith(("#", "//", "/")) or "://" in target:
            return None
        parsed = urlsplit(target)
        if parsed.scheme or parsed.netloc or not parsed.path:
            return None

        joined = posixpath.normpath(posixpath.join(self.base_dir, parsed.path))
        url = self.urls.get(joined)
        if url is None:
            return None
        if parsed.query:
            url = f"{url}?{parsed.query}"
        if parsed.fragment:
            url = f"{url}#{parsed.fragment}"
        return url


__all__ = ["SourceLinkExtension", "SourceLinkTreeprocessor"]
