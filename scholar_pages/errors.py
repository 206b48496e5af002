"""Error taxonomy raised and collected by the rendering pipeline.

Every error is a :class:`ContentError`, which records the source identifier
of the content unit (or template) it concerns so the builder can report
failures together at the end of a build.
"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc


class ContentError(ValueError):
    """Base class for failures attributable to one content source."""

    def __init__(self, message: str, *, source: str | None = None) -> None:
        self.message = message
        self.source = source
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.source:
            return f"{self.source}: {self.message}"
        return self.message


class MalformedMetadata(ContentError):
    """Raised when a front matter block cannot be parsed."""

    def __init__(
        self, message: str, *, source: str | None = None, line: int | None = None
    ) -> None:
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message, source=source)


class InvalidDate(ContentError):
    """Raised when a ``date`` value is present but not a calendar timestamp."""

    def __init__(self, value: object, *, source: str | None = None) -> None:
        self.value = value
        super().__init__(f"invalid date {value!r}", source=source)


class UnresolvedDirective(ContentError):
    """Raised for syntactically malformed template directives."""


class PermalinkCollision(ContentError):
    """Raised when several sources resolve to the same output path."""

    def __init__(self, path: str, sources: cabc.Sequence[str]) -> None:
        self.path = path
        self.sources = tuple(sources)
        joined = ", ".join(self.sources)
        super().__init__(f"output path '{path}' claimed by {joined}")


__all__ = [
    "ContentError",
    "InvalidDate",
    "MalformedMetadata",
    "PermalinkCollision",
    "UnresolvedDirective",
]
