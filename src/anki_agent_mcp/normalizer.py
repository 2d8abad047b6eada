"""Markdown to Anki field HTML conversion."""

import re

import markdown

MARKDOWN_EXTENSIONS = ["nl2br", "sane_lists", "fenced_code"]

_SINGLE_PARAGRAPH_RE = re.compile(r"^<p>(?P<body>.*)</p>$", re.DOTALL)


class MarkdownNormalizer:
    """Converts lightly marked-up text into Anki field HTML.

    Raw HTML in the input is never passed through: the block and inline HTML
    handlers are removed, so ``<`` and ``>`` come out escaped and only the
    Markdown conversions themselves produce tags.
    """

    def __init__(self, extensions: list[str] | None = None) -> None:
        self.extensions = extensions if extensions is not None else MARKDOWN_EXTENSIONS

    def _build(self) -> markdown.Markdown:
        md = markdown.Markdown(extensions=self.extensions)
        md.preprocessors.deregister("html_block")
        md.inlinePatterns.deregister("html")
        return md

    def normalize(self, text: str) -> str:
        """Render Markdown and drop a single wrapping paragraph.

        Anki adds its own spacing around field values, so a lone ``<p>``
        wrapper would double it. Multi-paragraph output is left as is.
        """
        html = self._build().convert(text).strip()
        match = _SINGLE_PARAGRAPH_RE.match(html)
        if match and "<p>" not in match.group("body"):
            html = match.group("body")
        return html.strip()


_default_normalizer = MarkdownNormalizer()


def normalize(text: str) -> str:
    """Convert Markdown to Anki field HTML with the default extensions."""
    return _default_normalizer.normalize(text)
