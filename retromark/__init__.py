"""RetroMark static site generator.

This package converts a tree of Markdown documents with YAML front matter
into themed HTML pages. The content pipeline splits front matter, renders
Markdown with custom construct rules (headings, math, code, images, links,
tables, blockquotes), builds a table of contents and fills a Jinja2 layout.

The functions below are the entry points for the CLI and for embedding:

- resolve_config: Resolve defaults, ``retro.yml`` and environment overrides.
- render_document: Render raw document text to HTML, front matter and headings.
- build_toc_html: Render a table of contents from headings.
"""

__all__ = ["__version__", "build_toc_html", "render_document", "resolve_config"]
__version__ = "0.1.0"

from .config import resolve_config  # noqa: E402
from .content import render_document  # noqa: E402
from .toc import build_toc_html  # noqa: E402
