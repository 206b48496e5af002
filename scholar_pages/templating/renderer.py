"""Evaluate parsed templates against a :class:`RenderContext`.

Rendering walks the node tuple with structural pattern matching. Neither the
template nor the context is modified: loops bind their variables in child
contexts, so independent render passes can share one template.

Truthiness follows Liquid rather than Python: ``nil``, ``false``, empty
strings, and empty sequences or mappings are falsy, while every other value,
including ``0`` and ``0.0``, is truthy.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import datetime as dt
import operator
import typing as typ

from ..models import RenderContext
from .nodes import (
    Comparison,
    Conditional,
    Literal,
    Logical,
    Loop,
    Not,
    Output,
    Pipeline,
    Text,
    Variable,
)

if typ.TYPE_CHECKING:
    from .nodes import Expression, Node

ORDERING_OPERATORS: dict[str, cabc.Callable[[typ.Any, typ.Any], bool]] = {
    "<": operator.lt,
    ">": operator.gt,
    "<=": operator.le,
    ">=": operator.ge,
}


@dc.dataclass(frozen=True, slots=True)
class Template:
    """An immutable parsed template.

    Attributes
    ----------
    nodes : tuple[Node, ...]
        Top-level nodes in document order.
    name : str or None
        Identifier of the template source, used in error messages.
    """

    nodes: tuple[Node, ...]
    name: str | None = None

    def render(self, context: cabc.Mapping[str, typ.Any]) -> str:
        """Render this template against ``context``."""
        return render(self, context)


def render(template: Template, context: cabc.Mapping[str, typ.Any]) -> str:
    """Expand ``template`` against ``context`` and return the output text."""
    scope = context if isinstance(context, RenderContext) else RenderContext(context)
    parts: list[str] = []
    _render_nodes(template.nodes, scope, parts)
    return "".join(parts)


def _render_nodes(
    nodes: tuple[Node, ...], context: RenderContext, out: list[str]
) -> None:
    for node in nodes:
        match node:
            case Text(text=text):
                out.append(text)
            case Output(expression=expression):
                out.append(to_text(evaluate(expression, context)))
            case Conditional(branches=branches, otherwise=otherwise):
                for branch in branches:
                    if is_truthy(evaluate(branch.condition, context)):
                        _render_nodes(branch.body, context, out)
                        break
                else:
                    _render_nodes(otherwise, context, out)
            case Loop():
                _render_loop(node, context, out)


def _render_loop(loop: Loop, context: RenderContext, out: list[str]) -> None:
    items = iteration_items(evaluate(loop.iterable, context))
    if loop.offset is not None:
        offset = _as_int(evaluate(loop.offset, context), 0)
        items = items[max(offset, 0) :]
    if loop.limit is not None:
        limit = _as_int(evaluate(loop.limit, context), len(items))
        items = items[: max(limit, 0)]
    if loop.reversed:
        items.reverse()
    if not items:
        _render_nodes(loop.otherwise, context, out)
        return

    length = len(items)
    for index, item in enumerate(items):
        forloop = {
            "index": index + 1,
            "index0": index,
            "rindex": length - index,
            "rindex0": length - index - 1,
            "first": index == 0,
            "last": index == length - 1,
            "length": length,
        }
        scope = context.child(**{loop.variable: item, "forloop": forloop})
        _render_nodes(loop.body, scope, out)


def evaluate(expression: Expression, context: cabc.Mapping[str, typ.Any]) -> typ.Any:
    """Return the value of ``expression`` in ``context``."""
    match expression:
        case Literal(value=value):
            return value
        case Variable(path=path):
            return lookup(context, path)
        case Pipeline(operand=operand, filters=filters):
            value = evaluate(operand, context)
            for call in filters:
                args = [evaluate(arg, context) for arg in call.args]
                value = call.function(value, *args)
            return value
        case Comparison(left=left, operator=op, right=right):
            return _compare(evaluate(left, context), op, evaluate(right, context))
        case Logical(operator="and", left=left, right=right):
            return is_truthy(evaluate(left, context)) and is_truthy(
                evaluate(right, context)
            )
        case Logical(operator="or", left=left, right=right):
            return is_truthy(evaluate(left, context)) or is_truthy(
                evaluate(right, context)
            )
        case Not(operand=operand):
            return not is_truthy(evaluate(operand, context))
    msg = f"unsupported expression {expression!r}"  # pragma: no cover
    raise TypeError(msg)  # pragma: no cover


def lookup(context: cabc.Mapping[str, typ.Any], path: tuple[str, ...]) -> typ.Any:
    """Resolve a dotted path, yielding ``None`` as soon as a segment is absent."""
    value = context.get(path[0])
    for segment in path[1:]:
        if value is None:
            return None
        value = _step(value, segment)
    return value


def _step(value: typ.Any, segment: str) -> typ.Any:
    match value:
        case cabc.Mapping():
            if segment in value:
                return value[segment]
            if segment == "size":
                return len(value)
            return None
        case str() | cabc.Sequence():
            return _sequence_step(value, segment)
        case _ if not segment.startswith("_"):
            attribute = getattr(value, segment, None)
            return None if callable(attribute) else attribute
    return None


def _sequence_step(value: cabc.Sequence[typ.Any], segment: str) -> typ.Any:
    if segment == "size":
        return len(value)
    if segment == "first":
        return value[0] if value else None
    if segment == "last":
        return value[-1] if value else None
    if segment.isdigit():
        index = int(segment)
        return value[index] if index < len(value) else None
    return None


def _compare(left: typ.Any, op: str, right: typ.Any) -> bool:
    match op:
        case "==":
            return left == right
        case "!=":
            return left != right
        case "contains":
            if isinstance(left, str):
                return isinstance(right, str) and right in left
            if isinstance(left, cabc.Container):
                return right in left
            return False
    try:
        return bool(ORDERING_OPERATORS[op](left, right))
    except TypeError:
        return False


def is_truthy(value: typ.Any) -> bool:
    """Return the template truthiness of ``value`` (``0`` is truthy)."""
    if value is None or value is False:
        return False
    if isinstance(value, cabc.Sized):
        return len(value) > 0
    return True


def iteration_items(value: typ.Any) -> list[typ.Any]:
    """Return the elements a ``for`` loop visits for ``value``."""
    match value:
        case None:
            return []
        case str():
            return [value] if value else []
        case cabc.Mapping():
            return [[key, item] for key, item in value.items()]
        case cabc.Iterable():
            return list(value)
        case _:
            return [value]


def to_text(value: typ.Any) -> str:
    """Format a value for output."""
    match value:
        case None:
            return ""
        case bool():
            return "true" if value else "false"
        case str():
            return value
        case dt.datetime():
            return value.strftime("%Y-%m-%d %H:%M:%S %z")
        case cabc.Mapping():
            return str(dict(value))
        case cabc.Iterable():
            return "".join(to_text(item) for item in value)
        case _:
            return str(value)


def _as_int(value: typ.Any, fallback: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return fallback


__all__ = [
    "Template",
    "evaluate",
    "is_truthy",
    "iteration_items",
    "lookup",
    "render",
    "to_text",
]
