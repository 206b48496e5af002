"""Load and validate the site configuration YAML for a scholar_pages build.

This subpackage parses the project's ``site.yaml`` file, applies defaults for
directories, excerpt length, permalink patterns, and layouts, and produces a
:class:`SiteConfig` that the builder consumes. The primary entry point is
:func:`load_site_config`.

Examples
--------
>>> from pathlib import Path
>>> from scholar_pages.config import load_site_config
>>> config = load_site_config(Path("site.yaml"))  # doctest: +SKIP
>>> config.permalinks["posts"]  # doctest: +SKIP
'/:year/:month/:day/:slug/'
"""

from .loader import build_site_config, load_site_config
from .models import SiteConfig, SiteConfigError

__all__ = [
    "SiteConfig",
    "SiteConfigError",
    "build_site_config",
    "load_site_config",
]
