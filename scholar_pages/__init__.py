"""Render an academic personal website from front-matter content sources.

This package exposes the ``scholar-pages`` CLI, which turns a directory of
markdown and HTML sources plus ``site.yaml`` into a static site.

Exports
-------
- ``app``: Cyclopts application holding the ``build`` command.
- ``main``: Convenience function that invokes the app.

Examples
--------
>>> from scholar_pages import main
>>> main()  # doctest: +SKIP
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
