"""Load site configuration YAML into typed dataclasses."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from .._constants import DEFAULT_EXCERPT_LENGTH, DEFAULT_PERMALINK
from .helpers import _positive_int, _resolve_dir, _string_mapping
from .models import SiteConfig, SiteConfigError


def load_site_config(path: Path) -> SiteConfig:
    """Load the YAML configuration describing site data and build settings.

    Parameters
    ----------
    path : Path
        Filesystem path to the YAML configuration file (for example,
        ``site.yaml``). Relative directories inside it resolve against the
        file's own directory.

    Returns
    -------
    SiteConfig
        Parsed configuration with defaults applied.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    TypeError
        If the top-level YAML structure is not a mapping.
    SiteConfigError
        If a section or field has the wrong shape (for example a non-mapping
        ``site`` block or a non-positive ``excerpt_length``).
    YAMLError
        If the YAML content cannot be parsed by the underlying loader.

    Examples
    --------
    >>> from pathlib import Path
    >>> from scholar_pages.config import load_site_config
    >>> config = load_site_config(Path("site.yaml"))  # doctest: +SKIP
    >>> config.site["title"]  # doctest: +SKIP
    'Jane Doe'
    """
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    raw: dict[str, typ.Any] = dict(loaded)
    return build_site_config(raw, base_dir=path.resolve().parent)


def build_site_config(raw: typ.Mapping[str, typ.Any], *, base_dir: Path) -> SiteConfig:
    """Build a :class:`SiteConfig` from an already-parsed mapping."""
    site = raw.get("site") or {}
    if not isinstance(site, dict):
        msg = "'site' must be a mapping of site-wide data."
        raise SiteConfigError(msg)
    build = raw.get("build") or {}
    if not isinstance(build, dict):
        msg = "'build' must be a mapping of build settings."
        raise SiteConfigError(msg)

    defaults = SiteConfig()
    default_permalink = build.get("default_permalink", DEFAULT_PERMALINK)
    if not isinstance(default_permalink, str):
        msg = f"'default_permalink' must be a string, got {default_permalink!r}."
        raise SiteConfigError(msg)

    return SiteConfig(
        site=dict(site),
        content_dir=_resolve_dir(base_dir, build.get("content_dir"), "content"),
        layouts_dir=_resolve_dir(base_dir, build.get("layouts_dir"), "layouts"),
        output_dir=_resolve_dir(base_dir, build.get("output_dir"), "_site"),
        excerpt_length=_positive_int(
            build.get("excerpt_length"),
            field="excerpt_length",
            default=DEFAULT_EXCERPT_LENGTH,
        ),
        jobs=_positive_int(build.get("jobs"), field="jobs", default=1),
        pygments_style=str(build.get("pygments_style", defaults.pygments_style)),
        permalinks=_string_mapping(
            build.get("permalinks"), field="permalinks", base=defaults.permalinks
        ),
        default_permalink=default_permalink,
        layouts=_string_mapping(
            build.get("layouts"), field="layouts", base=defaults.layouts
        ),
    )


__all__ = ["build_site_config", "load_site_config"]
