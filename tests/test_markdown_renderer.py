"""Tests for markdown conversion, code highlighting, and link rewriting."""

from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from scholar_pages.link_rewriter import SourceLinkExtension
from scholar_pages.markdown_renderer import HtmlContentRenderer

URLS = {
    "_posts/2021-01-02-notes.md": "/2021/01/02/notes/",
    "about.md": "/about/",
}


def _links(html: str) -> list[str]:
    soup = BeautifulSoup(html, "html.parser")
    return [anchor["href"] for anchor in soup.find_all("a")]


def test_fenced_code_is_highlighted_with_language() -> None:
    """Fenced blocks render as codehilite divs annotated with their language."""
    html = HtmlContentRenderer().convert("```python\nprint('hi')\n```\n")
    soup = BeautifulSoup(html, "html.parser")
    block = soup.select_one("div.codehilite")
    assert block is not None, f"expected a highlighted block in {html!r}"
    assert block["data-language"] == "python"


def test_indented_and_labelled_fences_are_normalized() -> None:
    """Indented fences and ``lang,extra`` labels still highlight."""
    text = "Intro\n\n  ```rust,no_run\n  fn main() {}\n  ```\n"
    html = HtmlContentRenderer().convert(text)
    soup = BeautifulSoup(html, "html.parser")
    block = soup.select_one("div.codehilite")
    assert block is not None, f"expected a highlighted block in {html!r}"
    assert block["data-language"] == "rust"


def test_each_block_keeps_its_own_language() -> None:
    """Languages follow fence order; unlabelled fences are marked ``text``."""
    text = "```python\nx = 1\n```\n\n~~~\nplain\n~~~\n\n``` yaml\na: 1\n```\n"
    soup = BeautifulSoup(HtmlContentRenderer().convert(text), "html.parser")
    languages = [block["data-language"] for block in soup.select("div.codehilite")]
    assert languages == ["python", "text", "yaml"], f"unexpected labels {languages}"


def test_blank_markdown_renders_empty() -> None:
    """Whitespace-only input produces no HTML."""
    assert HtmlContentRenderer().convert("  \n") == ""


def test_stylesheet_targets_codehilite() -> None:
    """The stylesheet scopes its rules to ``.codehilite``."""
    assert ".codehilite" in HtmlContentRenderer("monokai").stylesheet


@pytest.mark.parametrize(
    ("source", "target", "expected"),
    [
        ("about.md", "_posts/2021-01-02-notes.md", "/2021/01/02/notes/"),
        ("_posts/x.md", "2021-01-02-notes.md#part", "/2021/01/02/notes/#part"),
        ("_posts/x.md", "../about.md?v=1", "/about/?v=1"),
        ("_posts/x.md", "./2021-01-02-notes.md", "/2021/01/02/notes/"),
        ("about.md", "missing.md", "missing.md"),
        ("about.md", "https://example.org/about.md", "https://example.org/about.md"),
        ("about.md", "/about.md", "/about.md"),
        ("about.md", "#section", "#section"),
    ],
)
def test_source_links_rewrite_to_urls(source: str, target: str, expected: str) -> None:
    """Relative links to routed sources become their site URLs."""
    extension = SourceLinkExtension(URLS, source)
    html = HtmlContentRenderer().convert(
        f"See [there]({target}).", extensions=[extension]
    )
    assert _links(html) == [expected], f"{target!r} from {source!r} gave {html!r}"
