import logging
import re
from concurrent.futures import ThreadPoolExecutor

import pytest

from conftest import FailingMathEngine, FakeMathEngine, make_config
from retromark.renderers import RENDER_RULES, MarkdownRenderer, heading_anchor
from retromark.toc import Heading


def render(markdown, overrides=None, **kwargs):
    return MarkdownRenderer(make_config(overrides), **kwargs).render(markdown)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Hello World", "hello-world"),
        ("Hello, World!", "hello-world-"),
        ("Step 2: snake_case", "step-2-snake-case"),
        ("  Leading space", "-leading-space"),
        ("Ünïcode Títle", "-n-code-t-tle"),
        ("日本語 Ⅻ x²", "-x-"),
    ],
)
def test_heading_anchor(text, expected):
    assert heading_anchor(text) == expected


def test_heading_anchor_is_deterministic_and_url_safe():
    samples = [
        "Intro",
        "A <b>bold</b> claim",
        "100% sure?",
        "dash--dash",
        "tab\there",
        "Ñandú x²",
    ]
    for text in samples:
        anchor = heading_anchor(text)
        assert anchor == heading_anchor(text)
        assert re.fullmatch(r"[a-z0-9-]*", anchor)
        assert "--" not in anchor
        assert anchor == anchor.lower()


def test_heading_rendering_and_collection():
    result = render("# Hello World\n\nText\n\n## Second part\n")
    assert '<h1 id="hello-world" class="retro-header">' in result.html
    assert '<a href="#hello-world" class="header-anchor" aria-hidden="true">#</a>' in result.html
    assert result.headings == [
        Heading(level=1, text="Hello World", anchor="hello-world"),
        Heading(level=2, text="Second part", anchor="second-part"),
    ]


def test_heading_text_is_plain():
    result = render("## Using `code` and *em*\n")
    assert result.headings == [
        Heading(level=2, text="Using code and em", anchor="using-code-and-em")
    ]
    assert "<code>code</code>" in result.html
    assert "<em>em</em>" in result.html


def test_duplicate_headings_get_unique_anchors():
    result = render("# Intro\n\n# Intro\n\n# Intro\n\n# !!!\n")
    assert [h.anchor for h in result.headings] == ["intro", "intro-1", "intro-2", "-"]


def test_empty_anchor_falls_back_to_section():
    result = render("# ![](a.png)\n\n# ![](b.png)\n\n# Real\n")
    assert [h.anchor for h in result.headings] == ["section", "section-1", "real"]
    assert '<h1 id="section" class="retro-header">' in result.html


def test_suffixed_anchor_does_not_collide_with_later_heading():
    result = render("# A\n\n# A\n\n# A 1\n\n# A\n")
    anchors = [h.anchor for h in result.headings]
    assert anchors == ["a", "a-1", "a-1-1", "a-2"]
    assert len(set(anchors)) == len(anchors)


def test_heading_with_external_link_has_clean_toc_text():
    result = render("# See [docs](https://example.com)\n")
    assert result.headings == [Heading(level=1, text="See docs", anchor="see-docs")]
    assert 'class="external-link"' in result.html


def test_malformed_math_through_default_engine_degrades(caplog):
    markdown = "Inline `$\\frac{1}{$` math\n\n```math\n\\left( x\n```\n\nAfter\n"
    with caplog.at_level(logging.WARNING, logger="retromark.renderers"):
        result = render(markdown)
    assert '<code class="math-error">\\frac{1}{</code>' in result.html
    assert '<pre class="math-error"><code>\\left( x' in result.html
    assert "<p>After</p>" in result.html
    assert "Math error in inline math" in caplog.text
    assert "Math error in block math" in caplog.text


def test_header_anchors_can_be_disabled():
    result = render("# Title\n", {"features": {"header_anchors": False}})
    assert "header-anchor" not in result.html
    assert '<h1 id="title" class="retro-header">Title</h1>' in result.html


def test_headings_do_not_leak_between_renders():
    renderer = MarkdownRenderer(make_config())
    first = renderer.render("# One\n")
    second = renderer.render("# Two\n\n# One\n")
    assert [h.anchor for h in first.headings] == ["one"]
    assert [h.anchor for h in second.headings] == ["two", "one"]


def test_concurrent_renders_keep_their_own_headings():
    renderer = MarkdownRenderer(make_config())
    bodies = [f"# Doc {i}\n\n## Part {i}\n" for i in range(8)]
    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(renderer.render, bodies))
    for i, result in enumerate(results):
        assert [h.text for h in result.headings] == [f"Doc {i}", f"Part {i}"]


def test_inline_math_uses_engine():
    result = render("Euler: `$e^{i\\pi}$`\n", math_engine=FakeMathEngine())
    assert "<m>e^{i\\pi}</m>" in result.html
    assert "<code>" not in result.html


def test_inline_math_unescapes_before_rendering():
    result = render("`$a < b$`\n", math_engine=FakeMathEngine())
    assert "<m>a < b</m>" in result.html


def test_short_dollar_codespan_is_plain_code():
    result = render("Price: `$$` and `$`\n", math_engine=FakeMathEngine())
    assert "<code>$$</code>" in result.html
    assert "<code>$</code>" in result.html


def test_inline_math_failure_degrades(caplog):
    with caplog.at_level(logging.WARNING, logger="retromark.renderers"):
        result = render("Broken `$x^$` here\n", math_engine=FailingMathEngine())
    assert '<code class="math-error">x^</code>' in result.html
    assert "Broken" in result.html and "here" in result.html
    assert "Math error in inline math" in caplog.text
    assert "x^" in caplog.text


def test_block_math_uses_engine():
    result = render("```math\nx^2 + y^2\n```\n", math_engine=FakeMathEngine())
    assert '<div class="math-block">' in result.html
    assert "<M>x^2 + y^2</M>" in result.html


def test_block_math_failure_degrades(caplog):
    markdown = "# Before\n\n```math\n\\frac{1}{\n```\n\nAfter\n"
    with caplog.at_level(logging.WARNING, logger="retromark.renderers"):
        result = render(markdown, math_engine=FailingMathEngine())
    assert '<pre class="math-error"><code>\\frac{1}{' in result.html
    assert "<p>After</p>" in result.html
    assert "Math error in block math" in caplog.text


def test_math_engine_none_treats_math_as_code():
    result = render("`$x$`\n\n```math\nx\n```\n", {"math": {"engine": "none"}})
    assert "<code>$x$</code>" in result.html
    assert "math-block" not in result.html
    assert '<div class="code-block">' in result.html


def test_katex_engine_renders_mathml():
    result = render("`$x^2$`\n")
    assert "<math" in result.html
    assert 'data-tex="x^2"' in result.html


def test_code_block_is_highlighted():
    result = render("```python\nprint('hi')\n```\n")
    assert '<div class="code-block">' in result.html
    assert '<span class="language-tag">python</span>' in result.html
    assert '<code class="highlight language-python">' in result.html
    assert '<span class="nb">print</span>' in result.html


@pytest.mark.parametrize("fence", ["```\nplain\n```\n", "```notalanguage\nplain\n```\n"])
def test_unknown_language_falls_back_to_text(fence):
    result = render(fence)
    assert '<span class="language-tag">text</span>' in result.html
    assert "language-text" in result.html
    assert "plain" in result.html


def test_syntax_highlighting_can_be_disabled():
    result = render(
        "```python\nif x < 1:\n    pass\n```\n",
        {"features": {"syntax_highlighting": False}},
    )
    assert "if x &lt; 1:" in result.html
    assert '<span class="k">' not in result.html


def test_blockquote_decoration():
    result = render("> quoted words\n")
    assert '<blockquote class="retro-blockquote">' in result.html
    assert "❝" in result.html and "❞" in result.html
    assert "<p>quoted words</p>" in result.html


def test_polaroid_image_with_caption():
    result = render('![A cat](photos/cat.jpg#polaroid "Our cat")\n')
    assert '<span class="image-container polaroid">' in result.html
    assert 'src="photos/cat.jpg"' in result.html
    assert 'alt="A cat"' in result.html
    assert '<span class="image-caption">Our cat</span>' in result.html
    assert "#polaroid" not in result.html


def test_plain_image_without_caption():
    result = render("![Logo](logo.png)\n")
    assert '<span class="image-container">' in result.html
    assert "image-caption" not in result.html


def test_table_is_wrapped():
    result = render("| a | b |\n|---|---|\n| 1 | 2 |\n")
    assert '<div class="retro-table-container">' in result.html
    assert "<thead>" in result.html
    assert "<td>1</td>" in result.html


def test_links_are_classified():
    result = render("[ext](https://example.com) [int](/about/) [anchor](#top)\n")
    assert (
        '<a href="https://example.com" class="external-link" '
        'target="_blank" rel="noopener noreferrer">ext'
    ) in result.html
    assert result.html.count("↗") == 1
    assert '<a href="/about/" class="internal-link">int</a>' in result.html
    assert '<a href="#top" class="internal-link">anchor</a>' in result.html


def test_strikethrough_and_footnotes_plugins():
    result = render("~~gone~~ text[^1]\n\n[^1]: A note.\n")
    assert "<del>gone</del>" in result.html
    assert "A note." in result.html


def test_preserve_line_breaks():
    result = render("one\ntwo\n", {"processing": {"preserve_line_breaks": True}})
    assert "<br />" in result.html


def test_rules_can_be_replaced():
    rules = {**RENDER_RULES, "block_quote": lambda renderer, text: f"<aside>{text}</aside>"}
    result = render("> hi\n", rules=rules)
    assert "<aside><p>hi</p>\n</aside>" in result.html
    assert "retro-blockquote" not in result.html
