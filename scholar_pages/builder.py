"""Orchestrate a full site build from a :class:`~scholar_pages.config.SiteConfig`.

The builder discovers content sources, parses their front matter, groups them
into collections, routes every document to an output path, renders bodies
and layouts, and finally writes the results. Per-source failures are
collected into the returned :class:`BuildReport` rather than aborting the
build, except for permalink collisions, which stop the build before anything
is written.

Example
-------
>>> from pathlib import Path
>>> from scholar_pages.builder import SiteBuilder
>>> from scholar_pages.config import load_site_config
>>> config = load_site_config(Path("site.yaml"))  # doctest: +SKIP
>>> report = SiteBuilder(config).run()  # doctest: +SKIP
>>> report.ok  # doctest: +SKIP
True
"""

from __future__ import annotations

import concurrent.futures as cf
import dataclasses as dc
import logging
import shutil
import typing as typ
from pathlib import Path

from ._constants import (
    CONTENT_EXTENSIONS,
    LAYOUT_SUFFIX,
    MARKDOWN_EXTENSIONS,
    NO_LAYOUT,
)
from .collection import CollectionManager
from .config import SiteConfigError
from .errors import ContentError, MalformedMetadata, UnresolvedDirective
from .front_matter import parse_front_matter
from .link_rewriter import SourceLinkExtension
from .markdown_renderer import HtmlContentRenderer
from .models import ContentUnit, RenderContext
from .permalink import PermalinkRouter
from .templating import parse_template

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .collection import CollectionSet
    from .config import SiteConfig
    from .front_matter import MetaValue
    from .models import Document
    from .permalink import OutputPath
    from .templating import Template

logger = logging.getLogger(__name__)


@dc.dataclass(slots=True)
class BuildReport:
    """Outcome of one build.

    Attributes
    ----------
    written : list[Path]
        Output files written, in source order.
    errors : list[ContentError]
        Every per-source failure met during the build.
    """

    written: list[Path] = dc.field(default_factory=list)
    errors: list[ContentError] = dc.field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Return ``True`` when the build finished without errors."""
        return not self.errors


@dc.dataclass(frozen=True, slots=True)
class StaticFile:
    """A non-content file copied verbatim into the output directory."""

    source: str
    path: Path


@dc.dataclass(frozen=True, slots=True)
class Layout:
    """A parsed layout template and its own front matter."""

    name: str
    template: Template
    metadata: cabc.Mapping[str, MetaValue]

    @property
    def parent(self) -> str | None:
        """Return the layout this one is wrapped in, if any."""
        return layout_name(self.metadata.get("layout"))


@dc.dataclass(frozen=True, slots=True)
class _Rendered:
    source: str
    output: OutputPath
    html: str | None = None
    error: ContentError | None = None


def layout_name(value: object) -> str | None:
    """Return the layout named by ``value`` or ``None`` for ``none``-like values."""
    if value is None or value is False:
        return None
    name = str(value).strip()
    if name.lower() in NO_LAYOUT:
        return None
    return name


class SiteBuilder:
    """Build every content source of a site into its output directory."""

    def __init__(
        self,
        config: SiteConfig,
        *,
        output_dir: Path | None = None,
        jobs: int | None = None,
    ) -> None:
        """Initialize the builder.

        Parameters
        ----------
        config : SiteConfig
            Loaded site configuration.
        output_dir : Path, optional
            Override for ``config.output_dir``.
        jobs : int, optional
            Override for ``config.jobs``; values above one render documents
            on a thread pool.

        Raises
        ------
        SiteConfigError
            If the output directory is, or contains, the content or layouts
            directory. Stale outputs are deleted after each build.
        """
        self.config = config
        self.output_dir = output_dir or config.output_dir
        for source_dir in (config.content_dir, config.layouts_dir):
            if source_dir.resolve().is_relative_to(self.output_dir.resolve()):
                msg = f"Output directory '{self.output_dir}' contains '{source_dir}'."
                raise SiteConfigError(msg)
        self.jobs = max(jobs or config.jobs, 1)
        self.collection_manager = CollectionManager(config.excerpt_length)
        self.router = PermalinkRouter(
            config.permalinks, default_pattern=config.default_permalink
        )
        self.renderer = HtmlContentRenderer(config.pygments_style)

    def run(self) -> BuildReport:
        """Build the site and return a report of written files and errors.

        Returns
        -------
        BuildReport
            Files written plus every collected error. When any permalink
            collision is detected the report holds the collisions and no
            file is written or removed. Otherwise outputs left over from
            earlier builds are deleted once writing is done.
        """
        report = BuildReport()
        units, static_files = self.discover(report.errors)
        collection_set = self.collection_manager.build(units)
        report.errors.extend(collection_set.errors)

        reserved = {item.source: item.source for item in static_files}
        routes, collisions = self.router.plan(
            collection_set.documents, reserved=reserved
        )
        if collisions:
            for collision in collisions:
                logger.error("%s", collision)
            report.errors.extend(collisions)
            return report

        layouts = self.load_layouts()
        rendered = self._render_all(collection_set, routes, layouts)

        for result in rendered:
            if result.error is not None:
                report.errors.append(result.error)
                continue
            report.written.append(self._write(result))
        for item in static_files:
            report.written.append(self._copy(item))
        self._prune(set(report.written))
        return report

    def discover(
        self, errors: list[ContentError]
    ) -> tuple[list[ContentUnit], list[StaticFile]]:
        """Return parsed content units and static files in source order.

        Front matter errors are appended to ``errors`` and the offending
        source is skipped.
        """
        content_dir = self.config.content_dir
        if not content_dir.is_dir():
            msg = f"Content directory '{content_dir}' not found."
            raise FileNotFoundError(msg)

        units: list[ContentUnit] = []
        static_files: list[StaticFile] = []
        for path in _visible_files(content_dir):
            source = path.relative_to(content_dir).as_posix()
            if path.suffix.lower() not in CONTENT_EXTENSIONS:
                static_files.append(StaticFile(source, path))
                continue
            try:
                text = _read_source(path, source)
                metadata, body = parse_front_matter(text, source=source)
            except ContentError as exc:
                logger.debug("skipping %s: %s", source, exc)
                errors.append(exc)
                continue
            units.append(ContentUnit(source, metadata, body))
        logger.debug(
            "discovered %d content sources, %d static files",
            len(units),
            len(static_files),
        )
        return units, static_files

    def load_layouts(self) -> dict[str, Layout | ContentError]:
        """Parse every layout template once, keyed by name.

        A layout that fails to parse maps to its error so that every document
        using it reports the failure.
        """
        layouts: dict[str, Layout | ContentError] = {}
        layouts_dir = self.config.layouts_dir
        if not layouts_dir.is_dir():
            logger.debug("no layouts directory at %s", layouts_dir)
            return layouts
        for path in _visible_files(layouts_dir):
            if path.suffix.lower() != LAYOUT_SUFFIX:
                continue
            name = path.relative_to(layouts_dir).with_suffix("").as_posix()
            source = f"{layouts_dir.name}/{path.relative_to(layouts_dir).as_posix()}"
            try:
                text = _read_source(path, source)
                metadata, body = parse_front_matter(text, source=source)
                template = parse_template(body, name=source)
            except ContentError as exc:
                logger.warning("layout %r is unusable: %s", name, exc)
                layouts[name] = exc
                continue
            layouts[name] = Layout(name, template, metadata)
        return layouts

    def _render_all(
        self,
        collection_set: CollectionSet,
        routes: cabc.Mapping[str, OutputPath],
        layouts: cabc.Mapping[str, Layout | ContentError],
    ) -> list[_Rendered]:
        urls = {source: output.url for source, output in routes.items()}
        views = {
            kind: [doc.as_context(urls.get(doc.source)) for doc in collection]
            for kind, collection in collection_set.collections.items()
        }
        site = {**self.config.site, "pygments_css": self.renderer.stylesheet}
        documents = collection_set.documents

        def _task(document: Document) -> _Rendered:
            output = routes[document.source]
            try:
                html = self.render_document(
                    document,
                    site=site,
                    collections=views,
                    url=output.url,
                    urls=urls,
                    layouts=layouts,
                )
            except ContentError as exc:
                return _Rendered(document.source, output, error=exc)
            return _Rendered(document.source, output, html=html)

        if self.jobs == 1:
            return [_task(document) for document in documents]
        with cf.ThreadPoolExecutor(max_workers=self.jobs) as executor:
            return list(executor.map(_task, documents))

    def render_document(
        self,
        document: Document,
        *,
        site: cabc.Mapping[str, typ.Any],
        collections: cabc.Mapping[str, list[dict[str, typ.Any]]],
        url: str,
        urls: cabc.Mapping[str, str],
        layouts: cabc.Mapping[str, Layout | ContentError],
    ) -> str:
        """Render one document's body and wrap it in its layout chain.

        Raises
        ------
        UnresolvedDirective
            If the body or a layout in its chain cannot be parsed, or the
            layout chain loops back on itself.
        """
        page = document.as_context(url)
        context = RenderContext.build(site=site, collections=collections, page=page)
        body = parse_template(document.unit.body, name=document.source)
        html = body.render(context)
        if document.unit.suffix in MARKDOWN_EXTENSIONS:
            link_extension = SourceLinkExtension(urls, document.source)
            html = self.renderer.convert(html, extensions=[link_extension])

        requested = document.metadata.get(
            "layout", self.config.layouts.get(document.kind)
        )
        name = layout_name(requested)
        seen: list[str] = []
        while name is not None:
            if name in seen:
                chain = " -> ".join([*seen, name])
                msg = f"layout cycle {chain}"
                raise UnresolvedDirective(msg, source=document.source)
            layout = layouts.get(name)
            if layout is None:
                logger.warning("layout %r not found for %s", name, document.source)
                break
            if isinstance(layout, ContentError):
                msg = f"layout {name!r} cannot be used: {layout}"
                raise UnresolvedDirective(msg, source=document.source)
            seen.append(name)
            scope = context.child(content=html, layout=dict(layout.metadata))
            html = layout.template.render(scope)
            name = layout.parent
        logger.debug("rendered %s -> %s", document.source, url)
        return html

    def _write(self, result: _Rendered) -> Path:
        html = typ.cast("str", result.html)
        if not html.endswith("\n"):
            html += "\n"
        target = self.output_dir / result.output.path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(html, encoding="utf-8")
        return target

    def _copy(self, item: StaticFile) -> Path:
        target = self.output_dir / item.source
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(item.path, target)
        return target

    def _prune(self, keep: set[Path]) -> None:
        """Delete output files this build did not produce.

        Anything not written by this run is removed, then every directory
        left empty. A document that failed keeps no output from earlier runs.
        Hidden entries (for example a ``.git`` checkout) are left alone.
        """
        if not self.output_dir.is_dir():
            return
        for path in _visible_files(self.output_dir):
            if path not in keep:
                logger.debug("removing stale output %s", path)
                path.unlink()
        directories = [
            path
            for path in self.output_dir.rglob("*")
            if path.is_dir()
            and not any(
                part.startswith(".")
                for part in path.relative_to(self.output_dir).parts
            )
        ]
        for directory in sorted(directories, key=lambda p: len(p.parts), reverse=True):
            if not any(directory.iterdir()):
                directory.rmdir()


def _read_source(path: Path, source: str) -> str:
    """Return the UTF-8 text of ``path`` or raise :class:`MalformedMetadata`."""
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        msg = f"not valid UTF-8 (byte {exc.start})"
        raise MalformedMetadata(msg, source=source) from exc


def _visible_files(root: Path) -> cabc.Iterator[Path]:
    """Yield files under ``root`` in sorted order, skipping hidden entries."""
    for path in sorted(root.rglob("*"), key=lambda p: p.relative_to(root).as_posix()):
        relative = path.relative_to(root)
        if any(part.startswith(".") for part in relative.parts):
            continue
        if path.is_file():
            yield path


__all__ = ["BuildReport", "Layout", "SiteBuilder", "StaticFile", "layout_name"]
