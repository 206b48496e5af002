"""Utility helpers shared by the scholar_pages configuration loader."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from .models import SiteConfigError


def _resolve_dir(base: Path, value: object, default: str) -> Path:
    """Return ``value`` as a directory path, relative paths anchored at ``base``."""
    if value is None:
        value = default
    if not isinstance(value, str | Path) or not str(value).strip():
        msg = f"Expected a directory path, got {value!r}."
        raise SiteConfigError(msg)
    path = Path(value).expanduser()
    return path if path.is_absolute() else base / path


def _positive_int(value: object, *, field: str, default: int) -> int:
    """Return ``value`` as a positive integer or raise ``SiteConfigError``."""
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        msg = f"'{field}' must be a positive integer, got {value!r}."
        raise SiteConfigError(msg)
    return value


def _string_mapping(
    value: object, *, field: str, base: typ.Mapping[str, str]
) -> dict[str, str]:
    """Overlay a ``{kind: text}`` mapping from config onto ``base``."""
    merged = dict(base)
    if value is None:
        return merged
    if not isinstance(value, dict):
        msg = f"'{field}' must be a mapping of kind to text."
        raise SiteConfigError(msg)
    for key, text in value.items():
        if not isinstance(text, str):
            msg = f"'{field}.{key}' must be a string, got {text!r}."
            raise SiteConfigError(msg)
        merged[str(key)] = text
    return merged


__all__ = ["_positive_int", "_resolve_dir", "_string_mapping"]
