"""Typed dataclasses describing scholar_pages site configuration."""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

from .._constants import (
    DEFAULT_EXCERPT_LENGTH,
    DEFAULT_LAYOUTS,
    DEFAULT_PERMALINK,
    DEFAULT_PERMALINKS,
)


class SiteConfigError(ValueError):
    """Raised when the site configuration is invalid or incomplete."""


@dc.dataclass(slots=True)
class SiteConfig:
    """Site-wide data plus the settings that drive one build.

    Attributes
    ----------
    site : dict[str, Any]
        Free-form site-wide data (title, base URL, author, ...) merged into
        every render context.
    content_dir : Path
        Directory holding content sources and static files.
    layouts_dir : Path
        Directory holding ``<name>.html`` layout templates.
    output_dir : Path
        Directory receiving rendered output.
    excerpt_length : int
        Maximum excerpt length in characters.
    jobs : int
        Number of render passes allowed to run concurrently.
    pygments_style : str
        Pygments style used for highlighted code blocks.
    permalinks : dict[str, str]
        Permalink pattern per collection kind.
    default_permalink : str
        Pattern for kinds missing from ``permalinks``.
    layouts : dict[str, str]
        Default layout name per collection kind.
    """

    site: dict[str, typ.Any] = dc.field(default_factory=dict)
    content_dir: Path = Path("content")
    layouts_dir: Path = Path("layouts")
    output_dir: Path = Path("_site")
    excerpt_length: int = DEFAULT_EXCERPT_LENGTH
    jobs: int = 1
    pygments_style: str = "default"
    permalinks: dict[str, str] = dc.field(
        default_factory=lambda: dict(DEFAULT_PERMALINKS)
    )
    default_permalink: str = DEFAULT_PERMALINK
    layouts: dict[str, str] = dc.field(default_factory=lambda: dict(DEFAULT_LAYOUTS))


__all__ = ["SiteConfig", "SiteConfigError"]
