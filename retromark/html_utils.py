"""HTML utility functions for RetroMark.

This module provides the small HTML string helpers shared by the
Markdown renderer, the table of contents builder and the template engine.

Functions:
    escape_html: Escape special HTML characters in a string.
    plain_text: Reduce rendered inline HTML to plain text.
    join_root_url: Join a base URL with a path.
"""

from __future__ import annotations

import html
import re

_TAG_RE = re.compile(r"<[^>]+>")


def escape_html(text: str) -> str:
    """Escape special HTML characters in a string.

    Converts the following characters to their HTML entity equivalents:
    - & becomes &amp;
    - < becomes &lt;
    - > becomes &gt;
    - " becomes &quot;

    Args:
        text: The string to escape.

    Returns:
        The escaped string, safe for inclusion in HTML.

    Examples:
        >>> escape_html('<script>alert("XSS")</script>')
        '&lt;script&gt;alert(&quot;XSS&quot;)&lt;/script&gt;'

        >>> escape_html('Tom & Jerry')
        'Tom &amp; Jerry'
    """
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def plain_text(fragment: str) -> str:
    """Strip tags and decode entities from an inline HTML fragment.

    Examples:
        >>> plain_text('Hello <em>World</em> &amp; more')
        'Hello World & more'
    """
    return html.unescape(_TAG_RE.sub("", fragment)).strip()


def join_root_url(root_url: str, path: str) -> str:
    """Safely join a root URL and a path, avoiding double slashes.

    Args:
        root_url: Base URL (e.g., https://example.com/blog).
        path: Path beginning with or without a leading slash.

    Returns:
        Combined URL with proper slash handling.

    Examples:
        >>> join_root_url('https://example.com', '/about')
        'https://example.com/about'

        >>> join_root_url('https://example.com/', 'about')
        'https://example.com/about'
    """
    if not root_url:
        return path
    base = root_url.rstrip("/")
    suffix = path if path.startswith("/") else f"/{path}"
    return f"{base}{suffix}"
