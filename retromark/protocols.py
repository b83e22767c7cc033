"""Protocol definitions for RetroMark.

This module defines the interfaces of the collaborators the content
pipeline consumes: the math typesetter, the syntax highlighter and the
layout renderer. Concrete implementations live in ``math_engines``,
``highlight`` and ``templates``; tests substitute their own.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .content import RenderedDocument, SourceDocument


@runtime_checkable
class MathEngine(Protocol):
    """Protocol for typesetting TeX expressions.

    Implementations raise ``MathRenderError`` for malformed input; the
    Markdown renderer catches it and emits fallback markup.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the engine identifier used in configuration."""
        ...

    @abstractmethod
    def render(self, expression: str, display_mode: bool = False) -> str:
        """Render an expression to HTML.

        Args:
            expression: TeX source without delimiters.
            display_mode: True for block equations, False for inline.

        Returns:
            HTML string.
        """
        ...


@runtime_checkable
class Highlighter(Protocol):
    """Protocol for syntax highlighting code blocks."""

    @abstractmethod
    def knows(self, language: str) -> bool:
        """Check whether a language name is recognised."""
        ...

    @abstractmethod
    def highlight(self, code: str, language: str) -> str:
        """Return highlighted HTML for ``code`` (without a wrapper element)."""
        ...


@runtime_checkable
class TemplateRenderer(Protocol):
    """Protocol for filling a layout with a rendered document."""

    @abstractmethod
    def render_page(self, document: SourceDocument, rendered: RenderedDocument) -> str:
        """Render a document with its layout.

        Raises:
            LayoutNotFoundError: If the selected layout does not exist.
        """
        ...
