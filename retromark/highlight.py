"""Pygments-backed syntax highlighting for code blocks."""

from __future__ import annotations

from pygments import highlight as pygments_highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

PLAIN_TEXT = "text"


class PygmentsHighlighter:
    """Highlights code with Pygments, emitting spans without a wrapper.

    Attributes:
        cssclass: CSS class the ``pygments_css`` stylesheet is scoped to.
    """

    def __init__(self, cssclass: str = "highlight"):
        self.cssclass = cssclass
        self._formatter = HtmlFormatter(nowrap=True)

    def knows(self, language: str) -> bool:
        if not language:
            return False
        try:
            get_lexer_by_name(language)
        except ClassNotFound:
            return False
        return True

    def highlight(self, code: str, language: str) -> str:
        try:
            lexer = get_lexer_by_name(language or PLAIN_TEXT)
        except ClassNotFound:
            lexer = get_lexer_by_name(PLAIN_TEXT)
        return pygments_highlight(code, lexer, self._formatter)

    def css(self) -> str:
        """Return the stylesheet for the highlighted markup."""
        return HtmlFormatter().get_style_defs(f".{self.cssclass}")
