r"""Text helpers shared by the collection manager, router, and filters.

>>> slugify("Notes on Sparse Coding!")
'notes-on-sparse-coding'
>>> strip_markup("## A *bold* [link](https://example.org)")
'A bold link'
>>> truncate_words("alpha beta gamma", 12)
'alpha beta'
"""

from __future__ import annotations

import re
import unicodedata

TEMPLATE_DIRECTIVE_PATTERN = re.compile(r"\{%.*?%\}|\{\{.*?\}\}", re.DOTALL)
HTML_COMMENT_PATTERN = re.compile(r"<!--.*?-->", re.DOTALL)
HTML_TAG_PATTERN = re.compile(r"<[^>]+>")
FENCE_LINE_PATTERN = re.compile(r"^\s*(```|~~~).*$", re.MULTILINE)
IMAGE_PATTERN = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
LINK_PATTERN = re.compile(r"\[([^\]]*)\]\([^)]*\)")
REFERENCE_LINK_PATTERN = re.compile(r"\[([^\]]*)\]\[[^\]]*\]")
LINE_MARKER_PATTERN = re.compile(
    r"^\s{0,3}(?:#{1,6}\s*|>\s?|[-*+]\s+|\d+\.\s+)", re.MULTILINE
)
EMPHASIS_PATTERN = re.compile(r"\*\*|\*|~~|`|(?<!\w)_{1,2}|_{1,2}(?!\w)")
WHITESPACE_PATTERN = re.compile(r"\s+")


def slugify(value: str) -> str:
    """Convert ``value`` into a lowercase, ASCII, hyphen-separated slug."""
    normalized = (
        unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    )
    return re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-")


def strip_html(value: str) -> str:
    """Remove HTML comments and tags from ``value``."""
    return HTML_TAG_PATTERN.sub("", HTML_COMMENT_PATTERN.sub("", value))


def strip_markup(value: str) -> str:
    """Reduce markdown/HTML source to its plain, whitespace-collapsed text.

    Template directives are dropped, images are reduced to their alt text and
    links to their label before tags and inline markers are removed.
    """
    text = TEMPLATE_DIRECTIVE_PATTERN.sub(" ", value)
    text = strip_html(text)
    text = FENCE_LINE_PATTERN.sub(" ", text)
    text = IMAGE_PATTERN.sub(r"\1", text)
    text = LINK_PATTERN.sub(r"\1", text)
    text = REFERENCE_LINK_PATTERN.sub(r"\1", text)
    text = LINE_MARKER_PATTERN.sub("", text)
    text = EMPHASIS_PATTERN.sub("", text)
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def truncate_words(value: str, limit: int) -> str:
    """Return the longest whitespace-delimited prefix of ``value`` within ``limit``.

    The result never ends mid-word; when the first word alone exceeds
    ``limit`` the result is empty.
    """
    text = WHITESPACE_PATTERN.sub(" ", value).strip()
    if len(text) <= limit:
        return text
    if limit <= 0:
        return ""
    if text[limit] == " ":
        return text[:limit].rstrip()
    head = text[:limit]
    cut = head.rfind(" ")
    if cut <= 0:
        return ""
    return head[:cut].rstrip()


__all__ = ["slugify", "strip_html", "strip_markup", "truncate_words"]
