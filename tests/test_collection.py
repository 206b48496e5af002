"""Unit tests for collection grouping, ordering, and derived fields."""

from __future__ import annotations

import datetime as dt

import pytest

from scholar_pages.collection import (
    CollectionManager,
    coerce_tags,
    parse_date,
    resolve_kind,
)
from scholar_pages.errors import InvalidDate, MalformedMetadata
from scholar_pages.models import ContentUnit


def _unit(source: str, body: str = "Body.", **metadata: object) -> ContentUnit:
    return ContentUnit(source, metadata, body)


def test_dated_documents_sort_newest_first_with_stable_ties() -> None:
    """Equal dates keep source order and undated documents come last."""
    units = [
        _unit("_posts/a.md", date="2020-01-01"),
        _unit("_posts/b.md", date="2021-01-01"),
        _unit("_posts/c.md", date="2020-01-01"),
        _unit("_posts/d.md"),
        _unit("_posts/e.md", date="2019-12-31 23:59"),
    ]
    result = CollectionManager().build(units)
    order = [doc.source for doc in result.collections["posts"]]
    assert order == [
        "_posts/b.md",
        "_posts/a.md",
        "_posts/c.md",
        "_posts/e.md",
        "_posts/d.md",
    ], f"unexpected ordering {order!r}"
    dates = [doc.date for doc in result.collections["posts"] if doc.date]
    assert all(left >= right for left, right in zip(dates, dates[1:], strict=False))


def test_invalid_date_excludes_the_unit_and_reports_it() -> None:
    """A present but unparsable date drops only that unit."""
    units = [
        _unit("_posts/good.md", date="2021-02-03"),
        _unit("_posts/bad.md", date="not-a-date"),
    ]
    result = CollectionManager().build(units)
    sources = [doc.source for doc in result.collections["posts"]]
    assert sources == ["_posts/good.md"], f"bad unit leaked into {sources!r}"
    assert len(result.errors) == 1, f"expected one error, got {result.errors!r}"
    error = result.errors[0]
    assert isinstance(error, InvalidDate)
    assert error.source == "_posts/bad.md"
    assert "not-a-date" in str(error)


def test_filename_prefix_supplies_date_and_slug() -> None:
    """``YYYY-MM-DD-name`` files get their date and slug from the file name."""
    document = CollectionManager().document(_unit("_posts/2021-05-06-Hello-World.md"))
    assert document.kind == "posts"
    assert document.date == dt.datetime(2021, 5, 6, tzinfo=dt.UTC)
    assert document.slug == "hello-world"


def test_metadata_date_and_slug_win_over_file_name() -> None:
    """Explicit ``date`` and ``slug`` metadata override the file name."""
    document = CollectionManager().document(
        _unit("_posts/2021-05-06-x.md", date="2022-01-01", slug="Custom Slug")
    )
    assert document.date == dt.datetime(2022, 1, 1, tzinfo=dt.UTC)
    assert document.slug == "custom-slug"


def test_excerpt_strips_markup_and_respects_word_boundaries() -> None:
    """Excerpts drop markup and never end mid-word."""
    body = (
        "# Sparse coding\n\n"
        "Some **bold** text with a [link](notes.md) and <em>html</em>.\n"
        "{% if x %}hidden directive{% endif %}"
    )
    manager = CollectionManager(excerpt_length=30)
    excerpt = manager.excerpt(body)
    assert len(excerpt) <= 30, f"excerpt too long: {excerpt!r}"
    assert excerpt == "Sparse coding Some bold text", f"got {excerpt!r}"
    full = CollectionManager(excerpt_length=500).excerpt(body)
    assert full == (
        "Sparse coding Some bold text with a link and html. hidden directive"
    ), f"got {full!r}"


def test_excerpt_of_single_overlong_word_is_empty() -> None:
    """A first word longer than the limit yields an empty excerpt."""
    assert CollectionManager(excerpt_length=5).excerpt("Supercalifragilistic") == ""


def test_excerpt_length_must_be_positive() -> None:
    """Non-positive excerpt lengths are rejected."""
    with pytest.raises(ValueError, match="excerpt_length"):
        CollectionManager(excerpt_length=0)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (["a", "b"], ("a", "b")),
        (["a", " ", 3], ("a", "3")),
        ("a, b,", ("a", "b")),
        ("a b", ("a", "b")),
        (2021, ("2021",)),
        (None, ()),
    ],
)
def test_tags_are_coerced_to_strings(value: object, expected: tuple[str, ...]) -> None:
    """Tag metadata becomes an ordered tuple of strings."""
    assert coerce_tags(value) == expected


@pytest.mark.parametrize("value", [True, {"a": 1}])
def test_uncoercible_tags_are_malformed(value: object) -> None:
    """Booleans and mappings cannot serve as tags."""
    with pytest.raises(MalformedMetadata):
        coerce_tags(value, source="x.md")


def test_bad_tags_exclude_unit() -> None:
    """A unit with uncoercible tags is reported and left out."""
    result = CollectionManager().build([_unit("notes.md", tags=True)])
    assert result.collections == {}
    assert [error.source for error in result.errors] == ["notes.md"]


@pytest.mark.parametrize(
    ("source", "metadata", "kind"),
    [
        ("about.md", {}, "pages"),
        ("_posts/x.md", {}, "posts"),
        ("talks/2020/x.md", {}, "talks"),
        ("x.md", {"kind": "talks"}, "talks"),
        ("_posts/x.md", {"kind": " "}, "posts"),
    ],
)
def test_kind_resolution(source: str, metadata: dict[str, object], kind: str) -> None:
    """Kind comes from metadata, else the top-level directory, else ``pages``."""
    assert resolve_kind(ContentUnit(source, metadata, "")) == kind


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2021-03-04", dt.datetime(2021, 3, 4, tzinfo=dt.UTC)),
        ("2021-03-04 10:20", dt.datetime(2021, 3, 4, 10, 20, tzinfo=dt.UTC)),
        ("2021-03-04T10:20:30Z", dt.datetime(2021, 3, 4, 10, 20, 30, tzinfo=dt.UTC)),
        ("2021-03-04 10:20:00 +0200", dt.datetime(2021, 3, 4, 8, 20, tzinfo=dt.UTC)),
        ("2021-03-04T10:20:00-05:00", dt.datetime(2021, 3, 4, 15, 20, tzinfo=dt.UTC)),
        (dt.date(2021, 3, 4), dt.datetime(2021, 3, 4, tzinfo=dt.UTC)),
    ],
)
def test_parse_date_accepts_common_shapes(value: object, expected: dt.datetime) -> None:
    """Dates normalize to aware UTC datetimes."""
    assert parse_date(value) == expected


@pytest.mark.parametrize("value", ["not-a-date", "2021-13-01", "", "04/03/2021", 3])
def test_parse_date_rejects_other_values(value: object) -> None:
    """Anything that is not a calendar timestamp raises ``InvalidDate``."""
    with pytest.raises(InvalidDate):
        parse_date(value, source="x.md")


def test_build_is_deterministic() -> None:
    """Identical inputs produce identical collections."""
    units = [
        _unit("_posts/a.md", date="2020-01-01", tags="x, y"),
        _unit("_posts/b.md", date="2020-01-01"),
        _unit("about.md"),
    ]
    first = CollectionManager().build(units)
    second = CollectionManager().build(list(units))
    assert first.collections == second.collections
