"""Math typesetting engines for RetroMark.

The ``math.engine`` setting selects one of:

- ``katex``: expressions are rendered at build time to MathML using
  latex2mathml, so pages need no client-side script.
- ``mathjax``: expressions are left as TeX wrapped in the configured
  ``math.delimiters`` for a client-side typesetter.
- ``none``: math is disabled; the renderer treats ``$...$`` spans and
  ``math`` blocks as ordinary code.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from latex2mathml.converter import convert

from .html_utils import escape_html


class MathRenderError(Exception):
    """Raised when an expression cannot be typeset.

    Attributes:
        expression: The offending TeX source.
        display_mode: Whether it was a block equation.
    """

    def __init__(self, expression: str, display_mode: bool, reason: str = ""):
        self.expression = expression
        self.display_mode = display_mode
        self.reason = reason
        mode = "display" if display_mode else "inline"
        super().__init__(f"cannot render {mode} math {expression!r}: {reason}")


class KatexEngine:
    """Server-side engine producing MathML markup."""

    name = "katex"

    def __init__(self, copy_tex: bool = True):
        self.copy_tex = copy_tex

    def render(self, expression: str, display_mode: bool = False) -> str:
        source = expression.strip()
        if not source:
            raise MathRenderError(expression, display_mode, "empty expression")
        try:
            mathml = convert(source, display="block" if display_mode else "inline")
        except Exception as exc:
            raise MathRenderError(
                expression, display_mode, f"{type(exc).__name__}: {exc}"
            ) from exc
        if self.copy_tex:
            # Keep the TeX source around for copy/paste.
            return (
                f'<span class="math" data-tex="{escape_html(source)}">{mathml}</span>'
            )
        return mathml


class MathJaxEngine:
    """Client-side engine emitting delimited TeX for MathJax."""

    name = "mathjax"

    def __init__(
        self,
        inline: tuple[str, str] = ("$", "$"),
        display: tuple[str, str] = ("$$", "$$"),
    ):
        self.inline = inline
        self.display = display

    def render(self, expression: str, display_mode: bool = False) -> str:
        if not expression.strip():
            raise MathRenderError(expression, display_mode, "empty expression")
        opening, closing = self.display if display_mode else self.inline
        css = "math-display" if display_mode else "math-inline"
        return (
            f'<span class="math {css}">'
            f"{escape_html(opening)}{escape_html(expression)}{escape_html(closing)}"
            "</span>"
        )


def _delimiter_pair(value: Any, fallback: tuple[str, str]) -> tuple[str, str]:
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return str(value[0]), str(value[1])
    return fallback


def engine_from_config(math_config: Mapping[str, Any]) -> KatexEngine | MathJaxEngine | None:
    """Build the engine selected by the ``math`` configuration section.

    Args:
        math_config: The resolved ``math`` mapping.

    Returns:
        An engine instance, or None when math is disabled.
    """
    engine = math_config.get("engine", "katex")
    if engine == "none":
        return None
    if engine == "mathjax":
        delimiters = math_config.get("delimiters") or {}
        return MathJaxEngine(
            inline=_delimiter_pair(delimiters.get("inline"), ("$", "$")),
            display=_delimiter_pair(delimiters.get("display"), ("$$", "$$")),
        )
    return KatexEngine(copy_tex=bool(math_config.get("copy_tex", True)))
