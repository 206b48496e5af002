"""Behaviour tests for whole-site builds.

These pytest-bdd scenarios are backed by ``features/site_build.feature``.
They lay out the sample site from ``conftest.py`` in a temporary directory,
run :class:`~scholar_pages.builder.SiteBuilder`, and assert on the build
report and the rendered HTML.

Usage:
    Run these behaviour tests with pytest, for example:

        pytest tests/bdd/test_site_build.py -v
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest
from bs4 import BeautifulSoup
from pytest_bdd import given, parsers, scenarios, then, when

from scholar_pages.builder import BuildReport, SiteBuilder
from scholar_pages.config import load_site_config
from scholar_pages.errors import InvalidDate, PermalinkCollision

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "site_build.feature"
scenarios(FEATURE_FILE)


@pytest.fixture
def scenario_state() -> dict[str, object]:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {}


@given("a site with posts dated 2020-06-01 and 2021-01-02")
def given_sample_site(write_site: object, scenario_state: dict[str, object]) -> None:
    """Register the sample site writer for later steps."""
    scenario_state["site"] = write_site


@given(parsers.parse('a post "{source}" whose date is "{value}"'))
def given_post_with_date(
    scenario_state: dict[str, object], source: str, value: str
) -> None:
    """Add a post whose ``date`` metadata is ``value``."""
    site: typ.Any = scenario_state["site"]
    site.source(source, f"---\ntitle: Extra\ndate: {value}\n---\nBody.\n")


@given(
    parsers.parse(
        'the pages "{first}" and "{second}" both use the permalink "{permalink}"'
    )
)
def given_shared_permalink(
    scenario_state: dict[str, object], first: str, second: str, permalink: str
) -> None:
    """Add two pages that claim the same permalink."""
    site: typ.Any = scenario_state["site"]
    for source in (first, second):
        site.source(source, f"---\npermalink: {permalink}\n---\n{source}\n")


@when("I build the site")
def when_build(scenario_state: dict[str, object]) -> None:
    """Run a full build and keep the report."""
    site: typ.Any = scenario_state["site"]
    config = load_site_config(site.config_path)
    scenario_state["report"] = SiteBuilder(config).run()


def _report(scenario_state: dict[str, object]) -> BuildReport:
    report = scenario_state["report"]
    assert isinstance(report, BuildReport), "expected the build step to run first"
    return report


def _output_dir(scenario_state: dict[str, object]) -> Path:
    return scenario_state["site"].output_dir  # type: ignore[attr-defined]


@then("the build succeeds")
def then_build_succeeds(scenario_state: dict[str, object]) -> None:
    """Verify the report carries no errors."""
    report = _report(scenario_state)
    assert report.ok, f"expected a clean build, got {report.errors!r}"


@then(parsers.parse('the home page lists "{first}" before "{second}"'))
def then_home_page_order(
    scenario_state: dict[str, object], first: str, second: str
) -> None:
    """Verify the home page post links follow date order."""
    index = _output_dir(scenario_state) / "index.html"
    soup = BeautifulSoup(index.read_text(encoding="utf-8"), "html.parser")
    titles = [link.get_text() for link in soup.select("a.post")]
    assert titles == [first, second], (
        f"expected home page to list {[first, second]!r}, got {titles!r}"
    )


@then(parsers.parse('the "{title}" post renders its tags as "{expected}"'))
def then_post_tags(
    scenario_state: dict[str, object], title: str, expected: str
) -> None:
    """Verify the post body expanded its tag loop."""
    post = _output_dir(scenario_state) / "2021/01/02/notes/index.html"
    soup = BeautifulSoup(post.read_text(encoding="utf-8"), "html.parser")
    assert soup.title is not None
    assert soup.title.get_text().startswith(title), soup.title.get_text()
    article = soup.select_one("article.post")
    assert article is not None, "expected the post layout to wrap the body"
    assert article.get_text().strip() == f"Tagged: {expected}", article.get_text()


@then(parsers.parse('the build fails with an invalid date for "{source}"'))
def then_invalid_date(scenario_state: dict[str, object], source: str) -> None:
    """Verify exactly one ``InvalidDate`` naming ``source`` was reported."""
    report = _report(scenario_state)
    assert not report.ok, "expected the build to report an error"
    assert [(type(e), e.source) for e in report.errors] == [(InvalidDate, source)], (
        f"unexpected errors {report.errors!r}"
    )


@then(parsers.parse('the build fails with a collision on "{path}"'))
def then_collision(scenario_state: dict[str, object], path: str) -> None:
    """Verify the report carries a collision for ``path``."""
    report = _report(scenario_state)
    collisions = [e for e in report.errors if isinstance(e, PermalinkCollision)]
    assert [c.path for c in collisions] == [path], f"got {report.errors!r}"


@then("no output is written")
def then_nothing_written(scenario_state: dict[str, object]) -> None:
    """Verify the output directory was never created."""
    report = _report(scenario_state)
    assert report.written == [], f"unexpected outputs {report.written!r}"
    assert not _output_dir(scenario_state).exists()
