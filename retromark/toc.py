"""Table of contents building for RetroMark.

Headings collected while rendering a document are turned into a forest of
TocNode objects, rendered as nested lists and wrapped in a positioned
navigation container.

Key functions:
- build_toc: Filter headings by depth and nest them.
- render_toc_list: Render a forest as nested ``<ul>`` markup.
- wrap_toc: Wrap rendered markup in the ``<nav>`` container.
- build_toc_html: All three steps in one call.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .html_utils import escape_html

POSITION_CLASSES = {
    "sticky-left": "toc-sticky toc-left",
    "sticky-right": "toc-sticky toc-right",
    "top": "toc-top",
    "bottom": "toc-bottom",
}


@dataclass(frozen=True)
class Heading:
    """Represents a heading extracted from markdown content for TOC generation.

    Attributes:
        level: Heading level (1-6).
        text: Plain text of the heading.
        anchor: Anchor ID for the heading (URL-friendly slug).
    """

    level: int
    text: str
    anchor: str


@dataclass
class TocNode:
    """A heading plus the headings nested beneath it."""

    heading: Heading
    children: list[TocNode] = field(default_factory=list)

    @property
    def level(self) -> int:
        return self.heading.level

    @property
    def text(self) -> str:
        return self.heading.text

    @property
    def anchor(self) -> str:
        return self.heading.anchor


def build_toc(headings: Iterable[Heading], max_depth: int = 3) -> list[TocNode]:
    """Nest headings into a forest.

    Headings deeper than ``max_depth`` are dropped before nesting. Nesting
    only compares levels with the previous heading and the open stack, so
    a jump such as H1, H3, H2 makes both the H3 and the H2 children of
    the H1.

    Args:
        headings: Headings in document order.
        max_depth: Deepest heading level to keep.

    Returns:
        The root nodes in document order.
    """
    filtered = [h for h in headings if h.level <= max_depth]
    if not filtered:
        return []

    roots: list[TocNode] = []
    stack: list[TocNode] = []
    current_level = filtered[0].level

    def attach(node: TocNode) -> None:
        if stack:
            stack[-1].children.append(node)
        else:
            roots.append(node)

    for heading in filtered:
        node = TocNode(heading)
        if heading.level > current_level:
            attach(node)
        elif heading.level == current_level:
            if stack:
                stack.pop()
            attach(node)
        else:
            while stack and stack[-1].level >= heading.level:
                stack.pop()
            attach(node)
        stack.append(node)
        current_level = heading.level
    return roots


def render_toc_list(
    forest: list[TocNode],
    numbering: bool = False,
    indent_guides: bool = True,
    depth: int = 1,
) -> str:
    """Render a forest as nested lists.

    Args:
        forest: Nodes to render at this depth.
        numbering: Prefix each item with its position among its siblings.
        indent_guides: Add the ``toc-indent`` class to every list.
        depth: Recursion depth, exposed as the ``toc-depth-N`` class.

    Returns:
        HTML markup, or an empty string for an empty forest.
    """
    if not forest:
        return ""
    classes = f"toc-list toc-depth-{depth}"
    if indent_guides:
        classes += " toc-indent"
    parts = [f'<ul class="{classes}">\n']
    for index, node in enumerate(forest, start=1):
        parts.append(f'<li class="toc-item toc-h{node.level}">')
        parts.append(f'<a href="#{escape_html(node.anchor)}" class="toc-link">')
        if numbering:
            parts.append(f'<span class="toc-number">{index}</span> ')
        parts.append(escape_html(node.text))
        parts.append("</a>")
        if node.children:
            parts.append("\n")
            parts.append(
                render_toc_list(node.children, numbering, indent_guides, depth + 1)
            )
        parts.append("</li>\n")
    parts.append("</ul>\n")
    return "".join(parts)


def wrap_toc(list_html: str, position: str = "sticky-left", style: str = "classic") -> str:
    """Wrap rendered TOC markup in its navigation container.

    Args:
        list_html: Output of :func:`render_toc_list`.
        position: One of top, bottom, sticky-left, sticky-right or none.
        style: Style variant, exposed as ``toc-style-<style>``.

    Returns:
        The container markup; empty when ``position`` is ``none`` or there
        is nothing to wrap.
    """
    if position == "none" or not list_html:
        return ""
    position_class = POSITION_CLASSES.get(position, POSITION_CLASSES["sticky-left"])
    return (
        f'<nav class="retro-toc {position_class} toc-style-{escape_html(style)}" '
        'aria-label="Table of contents">\n'
        '<div class="toc-header"><span class="toc-title">Contents</span></div>\n'
        f'<div class="toc-content">\n{list_html}</div>\n'
        "</nav>\n"
    )


def build_toc_html(
    headings: Iterable[Heading],
    depth: int = 3,
    options: Mapping[str, Any] | None = None,
) -> str:
    """Build, render and wrap a table of contents.

    Args:
        headings: Headings in document order.
        depth: Deepest heading level to include.
        options: ``position``, ``style``, ``numbering`` and ``indent_guides``
            (the keys of the ``toc`` configuration section).

    Returns:
        The TOC markup, or an empty string.
    """
    opts = options or {}
    forest = build_toc(headings, depth)
    list_html = render_toc_list(
        forest,
        numbering=bool(opts.get("numbering", False)),
        indent_guides=bool(opts.get("indent_guides", True)),
    )
    return wrap_toc(
        list_html,
        position=opts.get("position", "sticky-left"),
        style=opts.get("style", "classic"),
    )
