"""Unit tests for permalink expansion, normalization, and collision checks."""

from __future__ import annotations

import logging

import pytest

from scholar_pages._constants import DEFAULT_PERMALINKS
from scholar_pages.collection import CollectionManager
from scholar_pages.errors import PermalinkCollision
from scholar_pages.models import ContentUnit, Document
from scholar_pages.permalink import (
    OutputPath,
    PermalinkRouter,
    normalize_url,
    url_to_path,
)


def _document(source: str, **metadata: object) -> Document:
    return CollectionManager().document(ContentUnit(source, metadata, ""))


@pytest.fixture
def router() -> PermalinkRouter:
    """Return a router using the default per-kind patterns."""
    return PermalinkRouter(DEFAULT_PERMALINKS)


@pytest.mark.parametrize(
    ("source", "metadata", "url", "path"),
    [
        (
            "_posts/2021-05-06-hello.md",
            {},
            "/2021/05/06/hello/",
            "2021/05/06/hello/index.html",
        ),
        ("about.md", {}, "/about/", "about/index.html"),
        ("index.html", {}, "/", "index.html"),
        ("research/index.md", {"kind": "pages"}, "/research/", "research/index.html"),
        ("cv.md", {"permalink": "/cv.html"}, "/cv.html", "cv.html"),
        ("_posts/draft.md", {}, "/draft/", "draft/index.html"),
        (
            "talks/2020-01-02-x.md",
            {"permalink": "/talks/:title/", "title": "Hello, World"},
            "/talks/hello-world/",
            "talks/hello-world/index.html",
        ),
        (
            "notes/a.md",
            {"permalink": ":kind/:slug:output_ext"},
            "/notes/a.html",
            "notes/a.html",
        ),
    ],
)
def test_resolve(
    router: PermalinkRouter,
    source: str,
    metadata: dict[str, object],
    url: str,
    path: str,
) -> None:
    """Placeholders expand and normalize into a URL and an output file path."""
    resolved = router.resolve(_document(source, **metadata))
    assert resolved == OutputPath(url=url, path=path), (
        f"{source} resolved to {resolved!r}"
    )


def test_unknown_kind_uses_default_pattern() -> None:
    """Kinds without a configured pattern fall back to the default."""
    router = PermalinkRouter({"posts": "/blog/:slug/"}, default_pattern="/x/:path/")
    assert router.resolve(_document("talks/keynote.md")).url == "/x/talks/keynote/"
    assert router.resolve(_document("_posts/a.md")).url == "/blog/a/"


def test_numeric_permalink_is_used_as_text(router: PermalinkRouter) -> None:
    """A bare number such as ``permalink: 2021`` still names the path."""
    output = router.resolve(_document("archive.md", permalink=2021))
    assert output == OutputPath("/2021/", "2021/index.html"), output


def test_unusable_permalink_falls_back_with_warning(
    router: PermalinkRouter, caplog: pytest.LogCaptureFixture
) -> None:
    """List or boolean permalinks are logged and the kind pattern applies."""
    with caplog.at_level(logging.WARNING, logger="scholar_pages.permalink"):
        output = router.resolve(_document("about.md", permalink=["a", "b"]))
    assert output.url == "/about/", output
    assert "ignoring permalink ['a', 'b'] in about.md" in caplog.text


def test_shared_permalink_is_a_collision(router: PermalinkRouter) -> None:
    """Two documents with the same permalink raise, listing both sources."""
    documents = [
        _document("b.md", permalink="/same/"),
        _document("a.md", permalink="/same/"),
        _document("c.md"),
    ]
    with pytest.raises(PermalinkCollision) as excinfo:
        router.route(documents)
    assert excinfo.value.path == "same/index.html"
    assert excinfo.value.sources == ("a.md", "b.md")

    routes, collisions = router.plan(documents)
    assert len(collisions) == 1, f"expected one collision, got {collisions!r}"
    assert set(routes) == {"a.md", "b.md", "c.md"}


def test_reserved_paths_collide_with_documents(router: PermalinkRouter) -> None:
    """Paths claimed by static files count as taken."""
    documents = [_document("feed.md", permalink="/feed.xml")]
    _routes, collisions = router.plan(documents, reserved={"feed.xml": "feed.xml"})
    assert [collision.sources for collision in collisions] == [
        ("feed.md", "feed.xml")
    ]


def test_distinct_documents_route_without_collision(router: PermalinkRouter) -> None:
    """Unique permalinks route cleanly."""
    routes = router.route([_document("about.md"), _document("cv.md")])
    assert routes["about.md"].url == "/about/"
    assert routes["cv.md"].url == "/cv/"


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("", "/"),
        ("/", "/"),
        ("blog", "/blog/"),
        ("/blog//2021/../notes", "/blog/2021/notes/"),
        ("/./a/./b/", "/a/b/"),
        ("/feed.xml", "/feed.xml"),
        ("/docs.v2/", "/docs.v2/"),
    ],
)
def test_normalize_url(url: str, expected: str) -> None:
    """Normalization adds slashes and drops empty and dot segments."""
    assert normalize_url(url) == expected


def test_url_to_path() -> None:
    """Directory URLs map to ``index.html``; file URLs map to themselves."""
    assert url_to_path("/") == "index.html"
    assert url_to_path("/a/b/") == "a/b/index.html"
    assert url_to_path("/feed.xml") == "feed.xml"
