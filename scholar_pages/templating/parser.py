r"""Parse Liquid-style template source into an immutable :class:`Template`.

Supported directives::

    {{ post.title | upcase }}
    {% if post.description %}...{% elsif page.summary %}...{% else %}...{% endif %}
    {% unless forloop.last %}, {% endunless %}
    {% for post in site.posts limit: 5 %}...{% else %}...{% endfor %}
    {% comment %}...{% endcomment %}
    {% raw %}{{ kept verbatim }}{% endraw %}

A ``-`` just inside a delimiter (``{%-``, ``-}}``) trims whitespace on that
side of the directive.

Example
-------
>>> from scholar_pages.templating import parse_template
>>> template = parse_template("{% for t in tags %}{{t}},{% endfor %}")
>>> template.render({"tags": ["a", "b"]})
'a,b,'
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import inspect
import re
import typing as typ

from ..errors import UnresolvedDirective
from .filters import FILTERS
from .nodes import (
    Branch,
    Comparison,
    Conditional,
    FilterCall,
    Literal,
    Logical,
    Loop,
    Not,
    Output,
    Pipeline,
    Text,
    Variable,
)
from .renderer import Template

if typ.TYPE_CHECKING:
    from .filters import FilterFunction
    from .nodes import Expression, Node

OPEN_PATTERN = re.compile(r"\{[{%]")
EXPRESSION_TOKEN_PATTERN = re.compile(
    r"""
    \s*(?:
        (?P<string>"[^"]*"|'[^']*')
      | (?P<number>-?\d+(?:\.\d+)?)(?![\w.])
      | (?P<operator>==|!=|<=|>=|<|>)
      | (?P<punct>[|:,])
      | (?P<name>[A-Za-z_][\w-]*(?:\.[\w-]+)*)
    )
    """,
    re.VERBOSE,
)
LOOP_HEAD_PATTERN = re.compile(
    r"^(?P<variable>[A-Za-z_]\w*)\s+in\s+(?P<rest>.+)$", re.DOTALL
)
KEYWORD_LITERALS: dict[str, typ.Any] = {
    "true": True,
    "false": False,
    "nil": None,
    "null": None,
}
VERBATIM_TAGS = {"raw": "endraw", "comment": "endcomment"}


@dc.dataclass(frozen=True, slots=True)
class _Token:
    kind: typ.Literal["text", "output", "tag"]
    content: str
    line: int

    @property
    def tag(self) -> str:
        return self.content.split(None, 1)[0] if self.content else ""

    @property
    def arguments(self) -> str:
        parts = self.content.split(None, 1)
        return parts[1] if len(parts) > 1 else ""


def parse_template(
    source: str,
    *,
    name: str | None = None,
    filters: cabc.Mapping[str, FilterFunction] | None = None,
) -> Template:
    """Parse ``source`` into a reusable :class:`Template`.

    Parameters
    ----------
    source : str
        Template text.
    name : str, optional
        Identifier (usually the source path) attached to raised errors.
    filters : Mapping[str, FilterFunction], optional
        Filter registry; defaults to :data:`~scholar_pages.templating.filters.FILTERS`.

    Raises
    ------
    UnresolvedDirective
        If a directive is unclosed, a block tag is unbalanced or unknown, an
        expression cannot be parsed, or a filter name is not registered.
    """
    tokens = _tokenize(source, name)
    parser = _Parser(tokens, name, FILTERS if filters is None else filters)
    return Template(parser.parse(), name=name)


def _line_of(source: str, offset: int) -> int:
    return source.count("\n", 0, offset) + 1


def _tokenize(source: str, name: str | None) -> list[_Token]:
    """Split ``source`` into text, output, and tag tokens."""
    tokens: list[_Token] = []
    position = 0
    trim_next = False
    while True:
        opening = OPEN_PATTERN.search(source, position)
        end_of_text = opening.start() if opening else len(source)
        text = source[position:end_of_text]
        if trim_next:
            text = text.lstrip()
        if opening is None:
            if text:
                tokens.append(_Token("text", text, _line_of(source, position)))
            return tokens

        line = _line_of(source, opening.start())
        is_output = source[opening.start() + 1] == "{"
        closer = "}}" if is_output else "%}"
        closing = source.find(closer, opening.end())
        if closing == -1:
            msg = f"unclosed '{opening.group(0)}' at line {line}"
            raise UnresolvedDirective(msg, source=name)

        inner = source[opening.end() : closing]
        if inner.startswith("-"):
            text = text.rstrip()
            inner = inner[1:]
        trim_next = inner.endswith("-")
        if trim_next:
            inner = inner[:-1]
        if text:
            tokens.append(_Token("text", text, _line_of(source, position)))

        token = _Token("output" if is_output else "tag", inner.strip(), line)
        position = closing + 2
        if token.kind == "tag" and token.tag in VERBATIM_TAGS:
            position, trim_next = _consume_verbatim(
                source, position, token, tokens, name
            )
        elif not token.content:
            msg = f"empty directive at line {line}"
            raise UnresolvedDirective(msg, source=name)
        else:
            tokens.append(token)


def _consume_verbatim(
    source: str,
    position: int,
    token: _Token,
    tokens: list[_Token],
    name: str | None,
) -> tuple[int, bool]:
    """Skip to the matching ``endraw``/``endcomment``, keeping raw text."""
    end_tag = VERBATIM_TAGS[token.tag]
    pattern = re.compile(r"\{%(-?)\s*" + end_tag + r"\s*(-?)%\}")
    match = pattern.search(source, position)
    if match is None:
        msg = (
            f"'{{% {token.tag} %}}' at line {token.line} "
            f"has no '{{% {end_tag} %}}'"
        )
        raise UnresolvedDirective(msg, source=name)
    if token.tag == "raw":
        text = source[position : match.start()]
        if match.group(1):
            text = text.rstrip()
        if text:
            tokens.append(_Token("text", text, token.line))
    return match.end(), bool(match.group(2))


def _accepts(function: FilterFunction, count: int) -> bool:
    """Return whether ``function`` takes the piped value plus ``count`` arguments."""
    try:
        signature = inspect.signature(function)
    except ValueError:  # C callables without introspectable signatures
        return True
    try:
        signature.bind(None, *range(count))
    except TypeError:
        return False
    return True


class _Parser:
    """Recursive-descent parser turning tokens into template nodes."""

    def __init__(
        self,
        tokens: list[_Token],
        name: str | None,
        filters: cabc.Mapping[str, FilterFunction],
    ) -> None:
        self.tokens = tokens
        self.name = name
        self.filters = filters
        self.index = 0

    def parse(self) -> tuple[Node, ...]:
        nodes, closing = self._block(frozenset())
        if closing is not None:  # pragma: no cover - top level has no stop tags
            self._fail(f"unexpected '{{% {closing.tag} %}}'", closing)
        return nodes

    def _fail(self, message: str, token: _Token) -> typ.NoReturn:
        raise UnresolvedDirective(f"{message} at line {token.line}", source=self.name)

    def _block(self, stop: frozenset[str]) -> tuple[tuple[Node, ...], _Token | None]:
        """Collect nodes until a tag in ``stop`` (returned) or end of input."""
        nodes: list[Node] = []
        while self.index < len(self.tokens):
            token = self.tokens[self.index]
            self.index += 1
            match token.kind:
                case "text":
                    nodes.append(Text(token.content))
                case "output":
                    nodes.append(Output(self._expression(token.content, token)))
                case "tag" if token.tag in stop:
                    return tuple(nodes), token
                case "tag" if token.tag in {"if", "unless"}:
                    nodes.append(self._conditional(token))
                case "tag" if token.tag == "for":
                    nodes.append(self._loop(token))
                case _:
                    self._fail(f"unexpected '{{% {token.tag} %}}'", token)
        if stop:
            expected = " or ".join(f"'{{% {tag} %}}'" for tag in sorted(stop))
            raise UnresolvedDirective(
                f"reached end of template while looking for {expected}",
                source=self.name,
            )
        return tuple(nodes), None

    def _conditional(self, opening: _Token) -> Conditional:
        negate = opening.tag == "unless"
        end_tag = "endunless" if negate else "endif"
        condition = self._condition(opening.arguments, opening)
        if negate:
            condition = Not(condition)

        branches: list[Branch] = []
        while True:
            body, closing = self._block(frozenset({"elsif", "else", end_tag}))
            branches.append(Branch(condition, body))
            if closing is None or closing.tag == end_tag:
                return Conditional(tuple(branches))
            if closing.tag == "else":
                otherwise, _end = self._block(frozenset({end_tag}))
                return Conditional(tuple(branches), otherwise)
            condition = self._condition(closing.arguments, closing)

    def _loop(self, opening: _Token) -> Loop:
        head = LOOP_HEAD_PATTERN.match(opening.arguments)
        if head is None:
            self._fail("expected '{% for name in expression %}'", opening)
        cursor = _Cursor(_lex(head.group("rest"), self, opening), self, opening)
        iterable = self._pipeline(cursor)
        params: dict[str, Expression] = {}
        reverse = False
        while not cursor.done:
            word = cursor.expect("name")
            if word == "reversed":
                reverse = True
                continue
            if word not in {"limit", "offset"}:
                self._fail(f"unknown for-loop parameter {word!r}", opening)
            cursor.expect("punct", ":")
            params[word] = self._operand(cursor)

        body, closing = self._block(frozenset({"else", "endfor"}))
        otherwise: tuple[Node, ...] = ()
        if closing is not None and closing.tag == "else":
            otherwise, _end = self._block(frozenset({"endfor"}))
        return Loop(
            variable=head.group("variable"),
            iterable=iterable,
            body=body,
            otherwise=otherwise,
            limit=params.get("limit"),
            offset=params.get("offset"),
            reversed=reverse,
        )

    def _expression(self, text: str, token: _Token) -> Expression:
        cursor = _Cursor(_lex(text, self, token), self, token)
        expression = self._pipeline(cursor)
        if not cursor.done:
            self._fail(f"unexpected {cursor.peek_value()!r} in {text!r}", token)
        return expression

    def _condition(self, text: str, token: _Token) -> Expression:
        if not text.strip():
            self._fail(f"'{{% {token.tag} %}}' needs a condition", token)
        cursor = _Cursor(_lex(text, self, token), self, token)
        expression = self._or(cursor)
        if not cursor.done:
            self._fail(f"unexpected {cursor.peek_value()!r} in {text!r}", token)
        return expression

    def _or(self, cursor: _Cursor) -> Expression:
        left = self._and(cursor)
        while cursor.accept("name", "or"):
            left = Logical("or", left, self._and(cursor))
        return left

    def _and(self, cursor: _Cursor) -> Expression:
        left = self._comparison(cursor)
        while cursor.accept("name", "and"):
            left = Logical("and", left, self._comparison(cursor))
        return left

    def _comparison(self, cursor: _Cursor) -> Expression:
        left = self._pipeline(cursor)
        operator = cursor.accept("operator") or cursor.accept("name", "contains")
        if operator is None:
            return left
        return Comparison(left, operator, self._pipeline(cursor))

    def _pipeline(self, cursor: _Cursor) -> Expression:
        operand = self._operand(cursor)
        filters: list[FilterCall] = []
        while cursor.accept("punct", "|"):
            filter_name = cursor.expect("name")
            function = self.filters.get(filter_name)
            if function is None:
                self._fail(f"unknown filter {filter_name!r}", cursor.token)
            args: list[Expression] = []
            if cursor.accept("punct", ":"):
                args.append(self._operand(cursor))
                while cursor.accept("punct", ","):
                    args.append(self._operand(cursor))
            if not _accepts(function, len(args)):
                self._fail(
                    f"filter {filter_name!r} does not accept {len(args)} argument(s)",
                    cursor.token,
                )
            filters.append(FilterCall(filter_name, function, tuple(args)))
        if not filters:
            return operand
        return Pipeline(operand, tuple(filters))

    def _operand(self, cursor: _Cursor) -> Literal | Variable:
        kind, value = cursor.next()
        match kind:
            case "string":
                return Literal(value[1:-1])
            case "number":
                return Literal(float(value) if "." in value else int(value))
            case "name" if value in KEYWORD_LITERALS:
                return Literal(KEYWORD_LITERALS[value])
            case "name":
                return Variable(tuple(value.split(".")))
            case _:
                self._fail(f"expected a value, got {value!r}", cursor.token)


def _lex(text: str, parser: _Parser, token: _Token) -> list[tuple[str, str]]:
    """Split a directive's expression text into ``(kind, value)`` pairs."""
    items: list[tuple[str, str]] = []
    position = 0
    stripped = text.rstrip()
    while position < len(stripped):
        match = EXPRESSION_TOKEN_PATTERN.match(stripped, position)
        if match is None or match.end() == position:
            parser._fail(f"cannot parse {stripped[position:].strip()!r}", token)
        kind = typ.cast("str", match.lastgroup)
        items.append((kind, match.group(kind)))
        position = match.end()
    return items


class _Cursor:
    """Position within a lexed expression."""

    def __init__(
        self, items: list[tuple[str, str]], parser: _Parser, token: _Token
    ) -> None:
        self.items = items
        self.parser = parser
        self.token = token
        self.position = 0

    @property
    def done(self) -> bool:
        return self.position >= len(self.items)

    def peek_value(self) -> str:
        return self.items[self.position][1] if not self.done else ""

    def next(self) -> tuple[str, str]:
        if self.done:
            msg = f"incomplete expression {self.token.content!r}"
            self.parser._fail(msg, self.token)
        item = self.items[self.position]
        self.position += 1
        return item

    def accept(self, kind: str, value: str | None = None) -> str | None:
        if self.done:
            return None
        item_kind, item_value = self.items[self.position]
        if item_kind != kind or (value is not None and item_value != value):
            return None
        self.position += 1
        return item_value

    def expect(self, kind: str, value: str | None = None) -> str:
        accepted = self.accept(kind, value)
        if accepted is None:
            wanted = value or kind
            found = self.peek_value() or "end of expression"
            self.parser._fail(f"expected {wanted!r}, got {found!r}", self.token)
        return accepted


__all__ = ["parse_template"]
