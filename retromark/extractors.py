"""Front matter extraction for RetroMark.

A document may begin with a YAML block delimited by ``---`` lines. This
module splits that block from the Markdown body. It is the single place
front matter is recognised; the Markdown renderer never sees the block.

The first line consisting solely of ``---`` after the opening delimiter
closes the block, so metadata values cannot contain such a line.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any

import yaml

logger = logging.getLogger(__name__)

FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(?P<meta>.*?)^---[ \t]*\r?\n", re.DOTALL | re.MULTILINE
)


@dataclass(frozen=True)
class FrontMatter:
    """Result of splitting a document.

    Attributes:
        data: Parsed metadata mapping (empty when absent or invalid).
        body: Document text following the closing delimiter.
        present: Whether a delimited block was found.
    """

    data: dict[str, Any] = field(default_factory=dict)
    body: str = ""
    present: bool = False


def split_front_matter(text: str, source: str = "<string>") -> FrontMatter:
    """Split YAML front matter from the document body.

    Args:
        text: Raw file content.
        source: Name used in warnings (usually the file path).

    Returns:
        FrontMatter with the metadata and the remaining body. Without
        delimiters the body is the input unchanged. An unparsable or
        non-mapping block yields empty metadata and a warning; the body
        still starts after the closing delimiter.
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return FrontMatter(data={}, body=text, present=False)
    body = text[match.end() :]
    try:
        data = yaml.safe_load(match.group("meta")) or {}
    except yaml.YAMLError as exc:
        logger.warning("Error parsing front matter in %s: %s", source, exc)
        return FrontMatter(data={}, body=body, present=True)
    if not isinstance(data, dict):
        logger.warning(
            "Front matter in %s is not a mapping (got %s); ignoring it.",
            source,
            type(data).__name__,
        )
        return FrontMatter(data={}, body=body, present=True)
    return FrontMatter(data=data, body=body, present=True)

