"""Cyclopts CLI entrypoint for building a scholar_pages site.

The ``scholar-pages`` console script defined here renders a content directory
into static HTML. ``scholar-pages build`` loads ``site.yaml``, runs the
build, prints one ``wrote <path>`` line per output file, and reports every
content error on stderr before exiting with status 1.

Examples
--------
Build the site described by ``site.yaml`` in the current directory:

>>> from scholar_pages.cli import main
>>> main()  # doctest: +SKIP

Build into a custom directory with four render workers:

>>> from scholar_pages.cli import app
>>> app(["build", "--output-dir", "dist", "--jobs", "4"])  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import sys
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .builder import SiteBuilder
from .config import load_site_config

DEFAULT_CONFIG = Path("site.yaml")

app = App(name="scholar-pages", config=cyclopts.config.Env("INPUT_", command=False))  # type: ignore[unknown-argument]


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


@app.command(help="Render the content directory into static HTML.")
def build(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to site config", env_var="INPUT_CONFIG")
    ] = DEFAULT_CONFIG,
    output_dir: typ.Annotated[
        Path | None,
        Parameter(help="Override the output folder", env_var="INPUT_OUTPUT_DIR"),
    ] = None,
    jobs: typ.Annotated[
        int | None,
        Parameter(help="Number of concurrent render passes", env_var="INPUT_JOBS"),
    ] = None,
    verbose: typ.Annotated[
        bool, Parameter(help="Log per-file progress", env_var="INPUT_VERBOSE")
    ] = False,
) -> None:
    """Build the site described by ``config``.

    Parameters
    ----------
    config : Path, optional
        Path to the ``site.yaml`` configuration file (overridable via
        ``INPUT_CONFIG``).
    output_dir : Path or None, optional
        Override for the configured output directory.
    jobs : int or None, optional
        Override for the configured number of render workers.
    verbose : bool, optional
        Enable DEBUG logging.

    Raises
    ------
    SystemExit
        With status 1 when any source failed to parse, route, or render.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    site_config = load_site_config(config)
    report = SiteBuilder(site_config, output_dir=output_dir, jobs=jobs).run()
    for path in report.written:
        print(f"wrote {_format_path(path)}")
    if not report.ok:
        for error in report.errors:
            print(f"error: {error}", file=sys.stderr)
        raise SystemExit(1)


def main() -> None:
    """Invoke the Cyclopts application that powers ``scholar-pages``.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
