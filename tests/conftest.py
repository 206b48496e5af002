"""Shared fixtures for scholar_pages tests.

``write_site`` lays out a small academic site (a home page, an about page,
two dated posts, chained layouts, and one static stylesheet) under pytest's
``tmp_path`` and returns the path of its ``site.yaml``. Tests add or replace
individual sources through the returned helper before building.
"""

from __future__ import annotations

import typing as typ

import pytest

if typ.TYPE_CHECKING:
    from pathlib import Path

SITE_YAML = """
site:
  title: Jane Doe
  base_url: https://example.org
build:
  content_dir: content
  layouts_dir: layouts
  output_dir: _site
  excerpt_length: 40
""".strip()

SOURCES: dict[str, str] = {
    "index.html": (
        "---\ntitle: Home\n---\n"
        "<ul>{% for post in posts %}"
        '<li><a class="post" href="{{ post.url }}">{{ post.title }}</a></li>'
        "{% endfor %}</ul>\n"
    ),
    "about.md": (
        "---\ntitle: About\n---\n"
        "I study sparse coding. See [my notes](_posts/2021-01-02-notes.md#intro).\n"
    ),
    "_posts/2021-01-02-notes.md": (
        "---\ntitle: Notes\ntags: [ml, neuro]\n---\n"
        "Tagged: {% for t in tags %}{{ t }},{% endfor %}\n"
    ),
    "_posts/2020-06-01-older.md": "---\ntitle: Older\n---\nAn older post.\n",
    "css/site.css": "body { margin: 0; }\n",
}

LAYOUTS: dict[str, str] = {
    "base.html": (
        "<html><head><title>{{ page.title }} | {{ site.title }}</title></head>"
        "<body>{{ content }}</body></html>"
    ),
    "page.html": "---\nlayout: base\n---\n<article>{{ content }}</article>",
    "post.html": (
        '---\nlayout: base\n---\n<article class="post">{{ content }}</article>'
    ),
}


class SiteWriter:
    """Write sample site files below a root directory."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.config_path = root / "site.yaml"
        self.output_dir = root / "_site"

    def source(self, relative: str, text: str) -> None:
        """Write a content source (or static file) relative to ``content/``."""
        self._write(self.root / "content" / relative, text)

    def layout(self, relative: str, text: str) -> None:
        """Write a layout template relative to ``layouts/``."""
        self._write(self.root / "layouts" / relative, text)

    @staticmethod
    def _write(path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")


@pytest.fixture
def write_site(tmp_path: Path) -> SiteWriter:
    """Return a :class:`SiteWriter` pre-populated with the sample site."""
    writer = SiteWriter(tmp_path)
    writer.config_path.write_text(SITE_YAML + "\n", encoding="utf-8")
    for relative, text in SOURCES.items():
        writer.source(relative, text)
    for relative, text in LAYOUTS.items():
        writer.layout(relative, text)
    return writer
