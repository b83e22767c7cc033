"""Content processing for RetroMark.

This module handles loading of Markdown sources and running the
per-document part of the pipeline: front matter extraction followed by
Markdown rendering.

Key classes:
- SourceDocument: A Markdown file identified by its content-relative path.
- RenderedDocument: Body HTML, front matter and headings of one document.
- RenderedPage: Final HTML keyed by its output path.
- FileContentLoader: Discovers Markdown sources beneath the content root.

Key functions:
- render_document: Split and render raw document text.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .extractors import split_front_matter
from .renderers import MarkdownRenderer
from .toc import Heading
from .utils import find_markdown_files, output_path_for


@dataclass(frozen=True)
class SourceDocument:
    """A content file discovered at build start.

    Attributes:
        path: Absolute path of the Markdown file.
        rel_path: Path relative to the content root.
        raw: Raw file text.
    """

    path: Path
    rel_path: Path
    raw: str

    @property
    def output_path(self) -> Path:
        """Relative output path: same location, ``.html`` extension."""
        return output_path_for(self.rel_path)

    @classmethod
    def read(cls, path: Path, content_root: Path) -> SourceDocument:
        return cls(
            path=path,
            rel_path=path.relative_to(content_root),
            raw=path.read_text(encoding="utf-8"),
        )


@dataclass
class RenderedDocument:
    """Result of rendering one document body.

    Attributes:
        html: Rendered body HTML.
        front_matter: Metadata from the front matter block.
        headings: Headings in document order, for TOC generation.
    """

    html: str
    front_matter: dict[str, Any] = field(default_factory=dict)
    headings: list[Heading] = field(default_factory=list)


@dataclass(frozen=True)
class RenderedPage:
    """Final page HTML and where it belongs beneath the output root."""

    source: Path
    output_path: Path
    html: str


def render_document(
    raw_text: str,
    config: Mapping[str, Any],
    renderer: MarkdownRenderer | None = None,
    source: str = "<string>",
) -> RenderedDocument:
    """Run front matter extraction and Markdown rendering.

    Args:
        raw_text: Complete document text.
        config: Resolved site configuration.
        renderer: Renderer to reuse across documents; one is built from
            ``config`` when omitted.
        source: Name used in log messages.

    Returns:
        RenderedDocument with HTML, front matter and headings.
    """
    split = split_front_matter(raw_text, source=source)
    markdown = renderer or MarkdownRenderer(config)
    rendered = markdown.render(split.body)
    return RenderedDocument(
        html=rendered.html, front_matter=split.data, headings=rendered.headings
    )


class FileContentLoader:
    """Loads Markdown sources from a content directory.

    Attributes:
        content_dir: Root directory of the Markdown sources.
        exclude: Exclusion glob patterns.
    """

    def __init__(self, content_dir: Path, exclude: Iterable[str] = ()):
        """Initialize the content loader.

        Args:
            content_dir: Path to the content directory.
            exclude: Glob patterns of files to skip.
        """
        self.content_dir = content_dir
        self.exclude = list(exclude)

    def iter_files(self) -> list[Path]:
        """Return all Markdown files that are not excluded."""
        return find_markdown_files(self.content_dir, self.exclude)
