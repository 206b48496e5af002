"""Common literal values used across scholar_pages.

These constants keep delimiters, default patterns, and file extensions
centralized so the parser, router, builder, and tests import the same values
without drifting. Intended for internal use within the scholar_pages package.

Examples
--------
>>> from scholar_pages import _constants
>>> _constants.FRONT_MATTER_DELIMITER
'---'
>>> _constants.DEFAULT_PERMALINKS["posts"]
'/:year/:month/:day/:slug/'
"""

FRONT_MATTER_DELIMITER = "---"
FRONT_MATTER_CLOSERS = frozenset({"---", "..."})

DEFAULT_KIND = "pages"
DEFAULT_EXCERPT_LENGTH = 200
DEFAULT_PERMALINK = "/:path/"
DEFAULT_PERMALINKS: dict[str, str] = {
    "posts": "/:year/:month/:day/:slug/",
    "pages": "/:path/",
}
DEFAULT_LAYOUTS: dict[str, str] = {
    "posts": "post",
    "pages": "page",
}

MARKDOWN_EXTENSIONS = frozenset({".md", ".markdown"})
CONTENT_EXTENSIONS = MARKDOWN_EXTENSIONS | {".html", ".htm"}
LAYOUT_SUFFIX = ".html"
NO_LAYOUT = frozenset({"none", "null", "false", ""})
