"""Records that flow through the rendering pipeline.

Content units are created once per build by the front matter parser, turned
into :class:`Document` records by the collection manager, and exposed to
templates through an immutable :class:`RenderContext`.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import datetime as dt  # noqa: TC003 - used for runtime type metadata
import typing as typ
from pathlib import PurePosixPath

if typ.TYPE_CHECKING:
    from .front_matter import MetaValue


@dc.dataclass(frozen=True, slots=True)
class ContentUnit:
    """One parsed source document.

    Attributes
    ----------
    source : str
        POSIX path of the source relative to the content directory; stable
        across runs and used as the unit's identifier.
    metadata : Mapping[str, MetaValue]
        Front matter values keyed by name.
    body : str
        Text following the front matter block.
    """

    source: str
    metadata: cabc.Mapping[str, MetaValue]
    body: str

    @property
    def suffix(self) -> str:
        """Return the lower-cased file extension of the source."""
        return PurePosixPath(self.source).suffix.lower()


@dc.dataclass(frozen=True, slots=True)
class Document:
    """A content unit together with the fields derived for its collection."""

    unit: ContentUnit
    kind: str
    date: dt.datetime | None
    excerpt: str
    tags: tuple[str, ...]
    slug: str

    @property
    def source(self) -> str:
        return self.unit.source

    @property
    def metadata(self) -> cabc.Mapping[str, MetaValue]:
        return self.unit.metadata

    def as_context(self, url: str | None = None) -> dict[str, typ.Any]:
        """Return the template-facing view of this document.

        Metadata keys come first so derived fields (``date``, ``tags``,
        ``excerpt``) always carry their normalized values.
        """
        view: dict[str, typ.Any] = dict(self.unit.metadata)
        view.update(
            {
                "source": self.unit.source,
                "kind": self.kind,
                "date": self.date,
                "excerpt": self.excerpt,
                "tags": list(self.tags),
                "slug": self.slug,
            }
        )
        if url is not None:
            view["url"] = url
        return view


@dc.dataclass(frozen=True, slots=True)
class Collection:
    """Documents of one kind in their rendering order."""

    kind: str
    documents: tuple[Document, ...] = ()

    def __iter__(self) -> cabc.Iterator[Document]:
        return iter(self.documents)

    def __len__(self) -> int:
        return len(self.documents)


class RenderContext(cabc.Mapping[str, typ.Any]):
    """Immutable variable scope supplied to one render pass.

    Lookups fall back to the parent scope, so loop bodies receive a fresh
    child context instead of mutating the enclosing one.

    Examples
    --------
    >>> ctx = RenderContext({"title": "Site"})
    >>> inner = ctx.child(title="Post")
    >>> inner["title"], ctx["title"]
    ('Post', 'Site')
    """

    __slots__ = ("_bindings", "_parent")

    def __init__(
        self,
        bindings: cabc.Mapping[str, typ.Any] | None = None,
        *,
        parent: RenderContext | None = None,
    ) -> None:
        self._bindings = dict(bindings or {})
        self._parent = parent

    @classmethod
    def build(
        cls,
        *,
        site: cabc.Mapping[str, typ.Any],
        collections: cabc.Mapping[str, cabc.Sequence[cabc.Mapping[str, typ.Any]]]
        | None = None,
        page: cabc.Mapping[str, typ.Any] | None = None,
    ) -> RenderContext:
        """Merge site-wide data, collections, and page data into one context.

        Parameters
        ----------
        site : Mapping[str, Any]
            Site-wide data; every key is bound at top level and the whole
            mapping is also available as ``site``.
        collections : Mapping[str, Sequence[Mapping[str, Any]]], optional
            Collection views keyed by kind; bound at top level and under
            ``site.<kind>``.
        page : Mapping[str, Any], optional
            The current unit's metadata and derived fields; bound at top level
            (shadowing site-wide names) and as ``page``.
        """
        collection_views = dict(collections or {})
        site_view = {**site, **collection_views}
        bindings: dict[str, typ.Any] = dict(site)
        bindings.update(collection_views)
        if page:
            bindings.update(page)
        bindings["site"] = site_view
        bindings["page"] = dict(page or {})
        return cls(bindings)

    def child(self, **bindings: typ.Any) -> RenderContext:
        """Return a nested scope binding ``bindings`` over this context."""
        return RenderContext(bindings, parent=self)

    def __getitem__(self, key: str) -> typ.Any:
        if key in self._bindings:
            return self._bindings[key]
        if self._parent is not None:
            return self._parent[key]
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        if key in self._bindings:
            return True
        return self._parent is not None and key in self._parent

    def __iter__(self) -> cabc.Iterator[str]:
        seen: set[str] = set()
        scope: RenderContext | None = self
        while scope is not None:
            for key in scope._bindings:
                if key not in seen:
                    seen.add(key)
                    yield key
            scope = scope._parent

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __repr__(self) -> str:
        return f"RenderContext({dict(self)!r})"


__all__ = ["Collection", "ContentUnit", "Document", "RenderContext"]
