"""Markdown rendering for RetroMark.

Markdown is tokenized by mistune. Instead of overriding renderer methods
one by one, the constructs RetroMark styles are looked up in RENDER_RULES,
a table from token type to a rendering function. Every rule receives the
active renderer first, followed by the same arguments mistune passes to its
own method for that token.

Key objects:
- RENDER_RULES: Construct kind -> rendering function.
- MarkdownRenderer: Renders a document body to HTML plus its headings.
- heading_anchor: Slug used for heading IDs.
"""

from __future__ import annotations

import html
import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import mistune

from .highlight import PLAIN_TEXT, PygmentsHighlighter
from .html_utils import escape_html, plain_text
from .math_engines import MathRenderError, engine_from_config
from .protocols import Highlighter, MathEngine
from .toc import Heading

logger = logging.getLogger(__name__)

POLAROID_MARKER = "#polaroid"
_NON_ANCHOR_RE = re.compile(r"[^a-z0-9]+")
EXTERNAL_ICON = '<span class="external-icon">↗</span>'


def heading_anchor(text: str) -> str:
    """Generate a URL-friendly ID from heading text.

    The text is lower-cased and every run of characters other than ASCII
    letters and digits becomes a single hyphen.

    Examples:
        >>> heading_anchor("Hello, World!")
        'hello-world-'

        >>> heading_anchor("Step 2: snake_case")
        'step-2-snake-case'
    """
    return _NON_ANCHOR_RE.sub("-", text.lower())


@dataclass
class RenderedMarkdown:
    """Output of a single render call.

    Attributes:
        html: Rendered body HTML.
        headings: Headings in document order.
    """

    html: str
    headings: list[Heading] = field(default_factory=list)


class _RetroHTMLRenderer(mistune.HTMLRenderer):
    """mistune renderer dispatching styled constructs through a rule table.

    One instance is created per render call, so the heading list and
    anchor counters never outlive a single document.
    """

    def __init__(
        self,
        rules: Mapping[str, Callable[..., str]],
        features: Mapping[str, Any],
        math_engine: MathEngine | None,
        highlighter: Highlighter,
    ):
        super().__init__(escape=False)
        self.rules = rules
        self.features = features
        self.math_engine = math_engine
        self.highlighter = highlighter
        self.headings: list[Heading] = []
        self._anchor_counts: dict[str, int] = {}
        self._issued: set[str] = set()

    def render_token(self, token: dict[str, Any], state: Any) -> str:
        rule = self.rules.get(token["type"])
        if rule is None:
            return super().render_token(token, state)
        attrs = token.get("attrs") or {}
        if "raw" in token:
            return rule(self, token["raw"], **attrs)
        if "children" in token:
            return rule(self, self.render_tokens(token["children"], state), **attrs)
        return rule(self, **attrs)

    def unique_anchor(self, text: str) -> str:
        base = heading_anchor(text) or "section"
        count = self._anchor_counts.get(base, 0)
        anchor = base
        # A suffixed anchor may collide with a later heading's own slug.
        while anchor in self._issued:
            count += 1
            anchor = f"{base}-{count}"
        self._anchor_counts[base] = count
        self._issued.add(anchor)
        return anchor


def render_heading(renderer: _RetroHTMLRenderer, text: str, level: int, **attrs) -> str:
    """Render a heading with an anchor and record it for the TOC."""
    display = plain_text(text.replace(EXTERNAL_ICON, ""))
    anchor = renderer.unique_anchor(display)
    renderer.headings.append(Heading(level=level, text=display, anchor=anchor))
    glyph = ""
    if renderer.features.get("header_anchors", True):
        glyph = f'<a href="#{anchor}" class="header-anchor" aria-hidden="true">#</a> '
    return f'<h{level} id="{anchor}" class="retro-header">{glyph}{text}</h{level}>\n'


def render_codespan(renderer: _RetroHTMLRenderer, text: str) -> str:
    """Render inline code, typesetting ``$...$`` spans as inline math."""
    literal = html.unescape(text)
    if (
        renderer.math_engine is not None
        and len(literal) > 2
        and literal.startswith("$")
        and literal.endswith("$")
    ):
        expression = literal[1:-1]
        try:
            return renderer.math_engine.render(expression, display_mode=False)
        except MathRenderError as exc:
            logger.warning("Math error in inline math: %s (%s)", expression, exc.reason)
            return f'<code class="math-error">{escape_html(expression)}</code>'
    return f"<code>{escape_html(literal)}</code>"


def render_block_code(
    renderer: _RetroHTMLRenderer, code: str, info: str | None = None, **attrs
) -> str:
    """Render fenced code: math blocks, or highlighted code with a header."""
    language = info.split()[0] if info and info.strip() else ""
    if language == "math" and renderer.math_engine is not None:
        try:
            rendered = renderer.math_engine.render(code, display_mode=True)
        except MathRenderError as exc:
            logger.warning("Math error in block math: %s (%s)", code.strip(), exc.reason)
            return f'<pre class="math-error"><code>{escape_html(code)}</code></pre>\n'
        return f'<div class="math-block">\n{rendered}\n</div>\n'

    resolved = language if renderer.highlighter.knows(language) else PLAIN_TEXT
    if renderer.features.get("syntax_highlighting", True):
        body = renderer.highlighter.highlight(code, resolved)
    else:
        body = escape_html(code)
    return (
        '<div class="code-block">\n'
        f'<div class="code-header"><span class="language-tag">{resolved}</span></div>\n'
        f'<pre><code class="highlight language-{resolved}">{body}</code></pre>\n'
        "</div>\n"
    )


def render_block_quote(renderer: _RetroHTMLRenderer, text: str) -> str:
    """Wrap a blockquote in decorative quotation glyphs."""
    return (
        '<blockquote class="retro-blockquote">\n'
        '<div class="quote-decoration">❝</div>\n'
        f"{text}"
        '<div class="quote-decoration">❞</div>\n'
        "</blockquote>\n"
    )


def render_image(
    renderer: _RetroHTMLRenderer, text: str, url: str, title: str | None = None
) -> str:
    """Render an image, with polaroid styling and an optional caption."""
    polaroid = POLAROID_MARKER in url
    src = renderer.safe_url(url.replace(POLAROID_MARKER, ""))
    alt = escape_html(plain_text(text))
    classes = "image-container polaroid" if polaroid else "image-container"
    title_attr = f' title="{escape_html(title)}"' if title else ""
    caption = (
        f'<span class="image-caption">{escape_html(title)}</span>' if title else ""
    )
    return (
        f'<span class="{classes}">'
        f'<img src="{src}" alt="{alt}"{title_attr} />{caption}</span>'
    )


def render_table(renderer: _RetroHTMLRenderer, text: str) -> str:
    """Wrap a table in its styling container."""
    return f'<div class="retro-table-container">\n<table>\n{text}</table>\n</div>\n'


def render_link(
    renderer: _RetroHTMLRenderer, text: str, url: str, title: str | None = None
) -> str:
    """Render a link, marking external targets."""
    href = renderer.safe_url(url)
    title_attr = f' title="{escape_html(title)}"' if title else ""
    if url.startswith(("#", "/")):
        return f'<a href="{href}"{title_attr} class="internal-link">{text}</a>'
    return (
        f'<a href="{href}"{title_attr} class="external-link" '
        'target="_blank" rel="noopener noreferrer">'
        f"{text}{EXTERNAL_ICON}</a>"
    )


RENDER_RULES: dict[str, Callable[..., str]] = {
    "heading": render_heading,
    "codespan": render_codespan,
    "block_code": render_block_code,
    "block_quote": render_block_quote,
    "image": render_image,
    "table": render_table,
    "link": render_link,
}


class MarkdownRenderer:
    """Renders Markdown document bodies to HTML.

    The renderer is configured once from the site configuration and can be
    shared across documents and threads: all per-document state lives in
    the mistune renderer created for each call.

    Attributes:
        config: Resolved site configuration.
        math_engine: Engine for ``$...$`` spans and ``math`` blocks, or None.
        highlighter: Syntax highlighter for code blocks.
        rules: Construct rule table.
    """

    def __init__(
        self,
        config: Mapping[str, Any],
        math_engine: MathEngine | None = None,
        highlighter: Highlighter | None = None,
        rules: Mapping[str, Callable[..., str]] | None = None,
    ):
        self.config = config
        self.math_engine = (
            math_engine
            if math_engine is not None
            else engine_from_config(config.get("math") or {})
        )
        self.highlighter = highlighter or PygmentsHighlighter()
        self.rules = dict(RENDER_RULES if rules is None else rules)
        self._features = config.get("features") or {}
        self._processing = config.get("processing") or {}

    def _plugins(self) -> list[str]:
        plugins = ["strikethrough", "table"]
        if self._features.get("footnotes", True):
            plugins.append("footnotes")
        if self._processing.get("linkify", True):
            plugins.append("url")
        return plugins

    def render(self, body: str) -> RenderedMarkdown:
        """Render Markdown content to HTML.

        Args:
            body: Markdown source without front matter.

        Returns:
            RenderedMarkdown with the HTML and the headings in document order.
        """
        renderer = _RetroHTMLRenderer(
            self.rules, self._features, self.math_engine, self.highlighter
        )
        markdown = mistune.create_markdown(
            escape=False,
            hard_wrap=bool(self._processing.get("preserve_line_breaks", False)),
            renderer=renderer,
            plugins=self._plugins(),
        )
        html_out = markdown(body)
        return RenderedMarkdown(html=html_out, headings=list(renderer.headings))
