r"""Split content sources into front matter metadata and body text.

A content unit may open with a fenced metadata block::

    ---
    title: Notes on sparse coding
    date: 2021-03-04
    tags: [neuro, ml]
    authors:
      - A. Author
      - B. Author
    venue:
      name: NeurIPS
      year: 2021
    ---
    Body text follows.

Values are typed by shape rather than by a YAML loader so that dates stay
plain strings for the collection manager to validate, and bracketed lists are
always sequences of strings.

Example
-------
>>> from scholar_pages.front_matter import parse_front_matter
>>> meta, body = parse_front_matter("---\ntags: [a, b]\n---\nHello\n")
>>> meta["tags"]
['a', 'b']
>>> body
'Hello\n'
"""

from __future__ import annotations

import re
import typing as typ

from ._constants import FRONT_MATTER_CLOSERS, FRONT_MATTER_DELIMITER
from .errors import MalformedMetadata

Scalar: typ.TypeAlias = str | int | float | bool
MetaValue: typ.TypeAlias = Scalar | list[str] | dict[str, Scalar]

KEY_LINE_PATTERN = re.compile(r"^(?P<key>[A-Za-z_][\w.-]*)\s*:(?:\s+(?P<value>.*))?$")
LIST_ITEM_PATTERN = re.compile(r"^-(?:\s+(?P<value>.*))?$")
INT_PATTERN = re.compile(r"^-?\d+$")
FLOAT_PATTERN = re.compile(r"^-?\d+\.\d+$")
LIST_PART_PATTERN = re.compile(r"""(?:"[^"]*"|'[^']*'|[^,])+""")
TRUE_WORDS = frozenset({"true", "yes"})
FALSE_WORDS = frozenset({"false", "no"})


def parse_front_matter(
    text: str, *, source: str | None = None
) -> tuple[dict[str, MetaValue], str]:
    """Return the metadata mapping and body of a content source.

    Parameters
    ----------
    text : str
        Raw source text, optionally opening with a ``---`` delimited block.
    source : str, optional
        Identifier attached to raised errors.

    Returns
    -------
    tuple[dict[str, MetaValue], str]
        Parsed metadata and the remaining body. Text without an opening
        delimiter yields an empty mapping and the entire input as body.

    Raises
    ------
    MalformedMetadata
        If the opening delimiter has no matching closing delimiter, a key is
        repeated, or a line inside the block is neither a key/value line nor
        an indented list item or sub-key.
    """
    text = text.removeprefix("\ufeff")
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip() != FRONT_MATTER_DELIMITER:
        return {}, text

    for index, line in enumerate(lines[1:], start=1):
        if line.rstrip() in FRONT_MATTER_CLOSERS:
            block = [raw.rstrip("\r\n") for raw in lines[1:index]]
            body = "".join(lines[index + 1 :])
            return _parse_block(block, source), body

    msg = "front matter opened with '---' but never closed"
    raise MalformedMetadata(msg, source=source, line=1)


def _parse_block(lines: list[str], source: str | None) -> dict[str, MetaValue]:
    """Parse the lines between the delimiters into a metadata mapping."""
    metadata: dict[str, MetaValue] = {}
    pending: str | None = None
    for number, line in enumerate(lines, start=2):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        if line[0] in " \t":
            if pending is None:
                msg = f"indented line without a parent key: {stripped!r}"
                raise MalformedMetadata(msg, source=source, line=number)
            _add_nested(metadata, pending, stripped, source, number)
            continue

        match = KEY_LINE_PATTERN.match(stripped)
        if match is None:
            msg = f"expected 'key: value', got {stripped!r}"
            raise MalformedMetadata(msg, source=source, line=number)
        key = match.group("key")
        if key in metadata:
            msg = f"duplicate key {key!r}"
            raise MalformedMetadata(msg, source=source, line=number)

        raw_value = (match.group("value") or "").strip()
        if raw_value:
            metadata[key] = _parse_value(raw_value)
            pending = None
        else:
            pending = key
            metadata[key] = ""
    return metadata


def _add_nested(
    metadata: dict[str, MetaValue],
    key: str,
    line: str,
    source: str | None,
    number: int,
) -> None:
    """Attach an indented list item or sub-key to the pending ``key``."""
    current = metadata[key]
    item = LIST_ITEM_PATTERN.match(line)
    if item is not None:
        if current == "":
            current = metadata[key] = []
        if not isinstance(current, list):
            msg = f"list item mixed into mapping {key!r}"
            raise MalformedMetadata(msg, source=source, line=number)
        current.append(_unquote((item.group("value") or "").strip()))
        return

    pair = KEY_LINE_PATTERN.match(line)
    if pair is None:
        msg = f"expected '- item' or 'key: value' under {key!r}, got {line!r}"
        raise MalformedMetadata(msg, source=source, line=number)
    if current == "":
        current = metadata[key] = {}
    if not isinstance(current, dict):
        msg = f"sub-key mixed into list {key!r}"
        raise MalformedMetadata(msg, source=source, line=number)
    sub_key = pair.group("key")
    if sub_key in current:
        msg = f"duplicate key {key}.{sub_key}"
        raise MalformedMetadata(msg, source=source, line=number)
    value = _parse_value((pair.group("value") or "").strip())
    if isinstance(value, list):
        msg = f"nested list under {key}.{sub_key} is not supported"
        raise MalformedMetadata(msg, source=source, line=number)
    current[sub_key] = value


def _parse_value(raw: str) -> MetaValue:
    """Type a scalar or bracketed list by its shape."""
    if raw.startswith("[") and raw.endswith("]"):
        inner = raw[1:-1].strip()
        if not inner:
            return []
        parts = (match.group().strip() for match in LIST_PART_PATTERN.finditer(inner))
        return [_unquote(part) for part in parts if part]
    if _is_quoted(raw):
        return raw[1:-1]
    lowered = raw.lower()
    if lowered in TRUE_WORDS:
        return True
    if lowered in FALSE_WORDS:
        return False
    if INT_PATTERN.match(raw):
        return int(raw)
    if FLOAT_PATTERN.match(raw):
        return float(raw)
    return raw


def _is_quoted(raw: str) -> bool:
    return len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in "\"'"


def _unquote(raw: str) -> str:
    return raw[1:-1] if _is_quoted(raw) else raw


__all__ = ["MetaValue", "Scalar", "parse_front_matter"]
