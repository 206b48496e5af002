"""Liquid-style template parsing and rendering for content and layouts."""

from .filters import FILTERS, register
from .parser import parse_template
from .renderer import Template, is_truthy, render

__all__ = [
    "FILTERS",
    "Template",
    "is_truthy",
    "parse_template",
    "register",
    "render",
]
