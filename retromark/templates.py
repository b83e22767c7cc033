"""Template rendering engine for RetroMark.

This module uses Jinja2 to assemble pages: a rendered document body, its
front matter and its table of contents are filled into the layout named by
the document (``layout`` front matter key) or by the configured theme.

Layouts are looked up as ``layouts/<name>.html.jinja``, first in the
project's ``templates/`` directory and then in the built-in templates.

Key class:
- TemplateEngine: Handles layout resolution and provides context to templates.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from datetime import datetime
from pathlib import Path
from typing import Any

from jinja2 import (
    Environment,
    FileSystemLoader,
    TemplateNotFound,
    select_autoescape,
)
from markupsafe import Markup

from .config import validate_nav_items
from .content import RenderedDocument, SourceDocument
from .highlight import PygmentsHighlighter
from .html_utils import join_root_url
from .toc import TocNode, build_toc, render_toc_list, wrap_toc

logger = logging.getLogger(__name__)

BUILTIN_TEMPLATES_DIR = Path(__file__).parent / "builtin"
LAYOUT_SUFFIX = ".html.jinja"

_UNSAFE_CSS_RE = re.compile(r"[<>{};]")


class LayoutNotFoundError(Exception):
    """Raised when a document's layout template does not exist.

    Attributes:
        layout: Name of the missing layout.
        searched: Directories that were searched.
    """

    def __init__(self, layout: str, searched: list[Path]):
        self.layout = layout
        self.searched = searched
        places = ", ".join(str(p) for p in searched)
        super().__init__(f"Layout '{layout}' not found (searched: {places})")


def css_variables(config: Mapping[str, Any]) -> dict[str, str]:
    """Compute CSS custom properties from the theme-related settings.

    Colors become ``--<name>-color``, typography settings map onto the
    font and size variables, and ``theme_variables`` entries are passed
    through as ``--<key>``.

    Args:
        config: Resolved site configuration.

    Returns:
        Ordered mapping of property name to value.
    """
    variables: dict[str, str] = {}
    for key, value in (config.get("colors") or {}).items():
        variables[f"--{key.replace('_', '-')}-color"] = value
    typography = config.get("typography") or {}
    for key, value in (typography.get("font") or {}).items():
        variables[f"--font-{key}"] = value
    for key, value in (typography.get("sizes") or {}).items():
        name = "base-font-size" if key == "base" else f"{key}-size"
        variables[f"--{name}"] = value
    if typography.get("line_height") is not None:
        variables["--line-height"] = typography["line_height"]
    if typography.get("max_width"):
        variables["--max-content-width"] = typography["max_width"]
    for key, value in (config.get("theme_variables") or {}).items():
        variables[f"--{key}"] = value
    return {
        name: _UNSAFE_CSS_RE.sub("", str(value))
        for name, value in variables.items()
        if value is not None
    }


class TemplateEngine:
    """Template rendering engine using Jinja2.

    One engine is created per build and shared by every document; it only
    reads the configuration.

    Attributes:
        config: Resolved site configuration.
        search_path: Template directories, most specific first.
        env: Jinja2 environment.
    """

    def __init__(
        self,
        config: Mapping[str, Any],
        project_root: Path | None = None,
        highlighter: PygmentsHighlighter | None = None,
    ):
        """Initialize the template engine.

        Args:
            config: Resolved site configuration.
            project_root: Project directory; its ``templates/`` directory
                takes precedence over the built-in templates.
            highlighter: Highlighter whose stylesheet ``pygments_css`` returns.
        """
        self.config = config
        self.highlighter = highlighter or PygmentsHighlighter()
        self.search_path: list[Path] = []
        if project_root is not None and (project_root / "templates").is_dir():
            self.search_path.append(project_root / "templates")
        self.search_path.append(BUILTIN_TEMPLATES_DIR)
        self.env = Environment(
            loader=FileSystemLoader([str(p) for p in self.search_path]),
            autoescape=select_autoescape(["html", "xml", "html.jinja"]),
            enable_async=False,
        )
        self._install_globals()

    def _install_globals(self) -> None:
        """Install global variables and functions in the Jinja environment."""
        self.env.globals["url_for"] = self._url_for
        self.env.globals["pygments_css"] = self._pygments_css
        self.env.globals["render_toc"] = self.render_toc
        self.env.globals["css_variables"] = self._css_variables

    def _pygments_css(self) -> Markup:
        return Markup(self.highlighter.css())

    def _css_variables(self) -> Markup:
        lines = [f"{name}: {value};" for name, value in css_variables(self.config).items()]
        return Markup("\n".join(lines))

    def _url_for(self, path: str) -> str:
        """Generate a URL for a path, applying base_url if configured.

        Args:
            path: Path to generate URL for.

        Returns:
            Full URL with the base_url prefix if configured.
        """
        if path.startswith(("http://", "https://", "//")):
            return path
        base = str(self.config.get("base_url") or "")
        if base and base != "/":
            return join_root_url(base, path)
        return path if path.startswith("/") else f"/{path}"

    def render_toc(
        self,
        toc: list[TocNode],
        position: str | None = None,
        numbering: bool | None = None,
        indent_guides: bool | None = None,
        style: str | None = None,
    ) -> Markup:
        """Render a TOC forest inside its navigation container.

        Options default to the ``toc`` configuration section; a layout can
        override any of them.
        """
        options = self.config.get("toc") or {}
        list_html = render_toc_list(
            toc or [],
            numbering=bool(options.get("numbering") if numbering is None else numbering),
            indent_guides=bool(
                options.get("indent_guides", True)
                if indent_guides is None
                else indent_guides
            ),
        )
        return Markup(
            wrap_toc(
                list_html,
                position=position or options.get("position", "sticky-left"),
                style=style or options.get("style", "classic"),
            )
        )

    def layout_name(self, document: SourceDocument, rendered: RenderedDocument) -> str:
        """Layout named in front matter, else the configured theme."""
        name = rendered.front_matter.get("layout")
        if isinstance(name, str) and name.strip():
            return name.strip()
        return str(self.config.get("theme"))

    def _resolve_layout_template(self, layout: str):
        try:
            return self.env.get_template(f"layouts/{layout}{LAYOUT_SUFFIX}")
        except TemplateNotFound as exc:
            raise LayoutNotFoundError(layout, self.search_path) from exc

    def build_context(
        self, document: SourceDocument, rendered: RenderedDocument
    ) -> dict[str, Any]:
        """Assemble the fixed template context for a document."""
        toc_config = self.config.get("toc") or {}
        toc: list[TocNode] = []
        if toc_config.get("enabled", True):
            toc = build_toc(rendered.headings, int(toc_config.get("depth", 3)))
        page = {
            **rendered.front_matter,
            "title": self._page_title(document, rendered),
            "source": document.rel_path.as_posix(),
            "output_path": document.output_path.as_posix(),
        }
        return {
            "config": self.config,
            "page": page,
            "front_matter": rendered.front_matter,
            "content": Markup(rendered.html),
            "toc": toc,
            "nav": validate_nav_items(self.config.get("nav")),
            "build_time": datetime.now(),
        }

    def render_page(self, document: SourceDocument, rendered: RenderedDocument) -> str:
        """Render a document with its layout.

        Args:
            document: The source document.
            rendered: Its rendered body, front matter and headings.

        Returns:
            Rendered HTML string.

        Raises:
            LayoutNotFoundError: If the selected layout does not exist.
        """
        template = self._resolve_layout_template(self.layout_name(document, rendered))
        return template.render(**self.build_context(document, rendered))

    @staticmethod
    def _page_title(document: SourceDocument, rendered: RenderedDocument) -> str:
        title = rendered.front_matter.get("title")
        if title:
            return str(title)
        for heading in rendered.headings:
            if heading.level == 1:
                return heading.text
        words = re.split(r"[\s\-_]+", document.rel_path.stem)
        return " ".join(word.capitalize() for word in words if word) or "Untitled"
