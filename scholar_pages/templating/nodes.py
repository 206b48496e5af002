"""Node and expression variants that make up a parsed template.

Both families are closed: the renderer evaluates them with structural
``match`` statements, so adding a variant means adding a case there.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc


@dc.dataclass(frozen=True, slots=True)
class Literal:
    """A quoted string, number, boolean, or ``nil`` written in the template."""

    value: typ.Any


@dc.dataclass(frozen=True, slots=True)
class Variable:
    """A dotted lookup such as ``post.title`` or ``site.posts.0``."""

    path: tuple[str, ...]

    @property
    def dotted(self) -> str:
        return ".".join(self.path)


@dc.dataclass(frozen=True, slots=True)
class FilterCall:
    """One ``| name: arg, arg`` application inside a pipeline."""

    name: str
    function: cabc.Callable[..., typ.Any] = dc.field(compare=False, repr=False)
    args: tuple[Expression, ...] = ()


@dc.dataclass(frozen=True, slots=True)
class Pipeline:
    """An operand followed by filters applied left to right."""

    operand: Literal | Variable
    filters: tuple[FilterCall, ...] = ()


@dc.dataclass(frozen=True, slots=True)
class Comparison:
    """A binary comparison such as ``a == b`` or ``tags contains "ml"``."""

    left: Expression
    operator: str
    right: Expression


@dc.dataclass(frozen=True, slots=True)
class Logical:
    """Short-circuit ``and`` / ``or`` of two conditions."""

    operator: typ.Literal["and", "or"]
    left: Expression
    right: Expression


@dc.dataclass(frozen=True, slots=True)
class Not:
    """Negated condition used by ``unless`` blocks."""

    operand: Expression


Expression: typ.TypeAlias = Literal | Variable | Pipeline | Comparison | Logical | Not


@dc.dataclass(frozen=True, slots=True)
class Text:
    """Literal template text emitted verbatim."""

    text: str


@dc.dataclass(frozen=True, slots=True)
class Output:
    """An ``{{ expression }}`` substitution."""

    expression: Expression


@dc.dataclass(frozen=True, slots=True)
class Branch:
    """A guarded body within a conditional."""

    condition: Expression
    body: tuple[Node, ...]


@dc.dataclass(frozen=True, slots=True)
class Conditional:
    """``if``/``elsif``/``else`` (or ``unless``/``else``) block."""

    branches: tuple[Branch, ...]
    otherwise: tuple[Node, ...] = ()


@dc.dataclass(frozen=True, slots=True)
class Loop:
    """``for variable in iterable`` block with optional slicing parameters."""

    variable: str
    iterable: Expression
    body: tuple[Node, ...]
    otherwise: tuple[Node, ...] = ()
    limit: Expression | None = None
    offset: Expression | None = None
    reversed: bool = False


Node: typ.TypeAlias = Text | Output | Conditional | Loop


__all__ = [
    "Branch",
    "Comparison",
    "Conditional",
    "Expression",
    "FilterCall",
    "Literal",
    "Logical",
    "Loop",
    "Node",
    "Not",
    "Output",
    "Pipeline",
    "Text",
    "Variable",
]
