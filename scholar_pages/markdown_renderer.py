"""Convert markdown content bodies to HTML.

Fenced code is highlighted by Pygments through ``codehilite`` and every
highlighted block carries a ``data-language`` attribute naming the language
on its opening fence (``text`` when there is none). Fence lines indented by
up to three spaces and info strings such as ```` ```rust,no_run ```` are
normalized before ``fenced_code`` sees them.

Example
-------
>>> from scholar_pages.markdown_renderer import render_markdown
>>> render_markdown("*hi*")
'<p><em>hi</em></p>'
"""

from __future__ import annotations

import functools
import re
import typing as typ
from html import escape

from markdown import Markdown
from markdown.extensions import Extension
from markdown.postprocessors import Postprocessor
from markdown.preprocessors import Preprocessor
from pygments.formatters.html import HtmlFormatter

if typ.TYPE_CHECKING:
    import collections.abc as cabc

FENCE_PATTERN = re.compile(r"^[ ]{0,3}(?P<fence>`{3,}|~{3,})(?P<info>[^`\r\n]*)$")
FENCE_LANGUAGE_PATTERN = re.compile(r"^\s*(?P<language>[A-Za-z0-9_+#.-]+)")
CODEHILITE_OPEN_TAG = re.compile(r'<div class="codehilite">')
BASE_EXTENSIONS = ("fenced_code", "codehilite", "tables", "sane_lists", "footnotes")


class _FencePreprocessor(Preprocessor):
    """Normalize fence lines and record each block's language in order."""

    def __init__(self, md: Markdown, languages: list[str]) -> None:
        super().__init__(md)
        self.languages = languages

    def run(self, lines: list[str]) -> list[str]:
        self.languages.clear()
        output: list[str] = []
        opener: str | None = None
        for line in lines:
            match = FENCE_PATTERN.match(line)
            if match is None:
                output.append(line)
                continue
            fence, info = match.group("fence"), match.group("info")
            if opener is None:
                language = FENCE_LANGUAGE_PATTERN.match(info)
                name = language.group("language") if language else ""
                self.languages.append(name or "text")
                opener = fence
                output.append(f"{fence}{name}")
            elif fence.startswith(opener) and not info.strip():
                opener = None
                output.append(fence)
            else:
                output.append(line)
        return output


class _LanguagePostprocessor(Postprocessor):
    """Add ``data-language`` to highlighted blocks once raw HTML is restored."""

    def __init__(self, md: Markdown, languages: list[str]) -> None:
        super().__init__(md)
        self.languages = languages

    def run(self, text: str) -> str:
        remaining = iter(self.languages)

        def _annotate(_match: re.Match[str]) -> str:
            language = escape(next(remaining, "text"), quote=True)
            return f'<div class="codehilite" data-language="{language}">'

        return CODEHILITE_OPEN_TAG.sub(_annotate, text)


class CodeLanguageExtension(Extension):
    """Label highlighted code blocks with their fence language."""

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the fence preprocessor and the annotating postprocessor."""
        languages: list[str] = []
        # Runs before fenced_code (25); annotation runs after raw_html (30).
        md.preprocessors.register(
            _FencePreprocessor(md, languages), "scholar_fences", 35
        )
        md.postprocessors.register(
            _LanguagePostprocessor(md, languages), "scholar_code_languages", 5
        )


class HtmlContentRenderer:
    """Markdown converter sharing one Pygments style across a build."""

    def __init__(self, pygments_style: str = "default") -> None:
        """Initialize the converter.

        Parameters
        ----------
        pygments_style : str, optional
            Name of the Pygments style used for highlighted blocks and for
            :attr:`stylesheet`. Defaults to ``"default"``.
        """
        self.pygments_style = pygments_style
        self._formatter = HtmlFormatter(style=pygments_style, cssclass="codehilite")

    @property
    def stylesheet(self) -> str:
        """Return the CSS rules for ``.codehilite`` blocks."""
        return self._formatter.get_style_defs(".codehilite")

    def convert(
        self, text: str, *, extensions: cabc.Sequence[Extension] = ()
    ) -> str:
        """Render ``text`` to HTML.

        Parameters
        ----------
        text : str
            Markdown source.
        extensions : Sequence[Extension], optional
            Extra extensions for this conversion only, for example a
            :class:`~scholar_pages.link_rewriter.SourceLinkExtension` bound to
            the document being rendered.

        Returns
        -------
        str
            The converted HTML, or ``""`` for blank input.

        Notes
        -----
        Every call builds its own ``Markdown`` instance, so one renderer can
        serve render passes running on several threads.
        """
        if not text.strip():
            return ""
        md = Markdown(
            extensions=[*BASE_EXTENSIONS, CodeLanguageExtension(), *extensions],
            extension_configs={
                "codehilite": {
                    "linenums": False,
                    "guess_lang": False,
                    "css_class": "codehilite",
                    "pygments_style": self.pygments_style,
                }
            },
            output_format="html",
        )
        return md.convert(text)


@functools.cache
def default_renderer() -> HtmlContentRenderer:
    """Return the renderer used when no site-specific one is supplied."""
    return HtmlContentRenderer()


def render_markdown(text: str) -> str:
    """Render ``text`` with the default renderer (backs ``markdownify``)."""
    return default_renderer().convert(text)


__all__ = [
    "CodeLanguageExtension",
    "HtmlContentRenderer",
    "default_renderer",
    "render_markdown",
]
