from retromark.toc import (
    Heading,
    build_toc,
    build_toc_html,
    render_toc_list,
    wrap_toc,
)


def headings(*levels):
    names = "ABCDEFGHIJ"
    return [
        Heading(level=level, text=names[i], anchor=names[i].lower())
        for i, level in enumerate(levels)
    ]


def shape(forest):
    return [(node.text, shape(node.children)) for node in forest]


def test_nesting_follows_levels():
    forest = build_toc(headings(1, 2, 3, 2, 1))
    assert shape(forest) == [
        ("A", [("B", [("C", [])]), ("D", [])]),
        ("E", []),
    ]


def test_skipped_level_then_shallower_heading():
    forest = build_toc(headings(1, 3, 2))
    assert shape(forest) == [("A", [("B", []), ("C", [])])]


def test_first_heading_need_not_be_level_one():
    assert shape(build_toc(headings(2, 3, 1))) == [("A", [("B", [])]), ("C", [])]
    assert shape(build_toc(headings(2, 2))) == [("A", []), ("B", [])]
    assert shape(build_toc(headings(3, 1, 2))) == [("A", []), ("B", [("C", [])])]


def test_depth_filter_drops_deep_headings():
    forest = build_toc(headings(1, 2, 3, 4), max_depth=2)
    assert shape(forest) == [("A", [("B", [])])]


def test_filtered_headings_do_not_affect_nesting():
    forest = build_toc(headings(1, 4, 2), max_depth=3)
    assert shape(forest) == [("A", [("C", [])])]


def test_empty_input():
    assert build_toc([]) == []
    assert build_toc(headings(4, 5), max_depth=3) == []
    assert render_toc_list([]) == ""
    assert build_toc_html([]) == ""


def test_render_list_structure():
    html = render_toc_list(build_toc(headings(1, 2)))
    assert html == (
        '<ul class="toc-list toc-depth-1 toc-indent">\n'
        '<li class="toc-item toc-h1"><a href="#a" class="toc-link">A</a>\n'
        '<ul class="toc-list toc-depth-2 toc-indent">\n'
        '<li class="toc-item toc-h2"><a href="#b" class="toc-link">B</a></li>\n'
        "</ul>\n"
        "</li>\n"
        "</ul>\n"
    )


def test_numbering_restarts_per_sibling_group():
    html = render_toc_list(build_toc(headings(1, 2, 2, 1)), numbering=True)
    assert '<span class="toc-number">1</span> A' in html
    assert '<span class="toc-number">1</span> B' in html
    assert '<span class="toc-number">2</span> C' in html
    assert '<span class="toc-number">2</span> D' in html


def test_indent_guides_can_be_disabled():
    html = render_toc_list(build_toc(headings(1)), indent_guides=False)
    assert "toc-indent" not in html


def test_heading_text_is_escaped():
    forest = build_toc([Heading(level=1, text='<b>"Tom" & Jerry</b>', anchor="tom")])
    html = render_toc_list(forest)
    assert "&lt;b&gt;&quot;Tom&quot; &amp; Jerry&lt;/b&gt;" in html


def test_wrap_positions():
    list_html = render_toc_list(build_toc(headings(1)))
    assert wrap_toc(list_html, "none") == ""
    assert wrap_toc("", "top") == ""
    right = wrap_toc(list_html, "sticky-right", "minimal")
    assert right.startswith('<nav class="retro-toc toc-sticky toc-right toc-style-minimal"')
    assert '<div class="toc-header"><span class="toc-title">Contents</span></div>' in right
    assert list_html in right
    assert 'class="retro-toc toc-top ' in wrap_toc(list_html, "top")
    assert 'class="retro-toc toc-bottom ' in wrap_toc(list_html, "bottom")


def test_build_toc_html_applies_options():
    html = build_toc_html(
        headings(1, 2, 3),
        depth=2,
        options={"position": "top", "numbering": True, "style": "modern"},
    )
    assert 'class="retro-toc toc-top toc-style-modern"' in html
    assert 'href="#b"' in html
    assert 'href="#c"' not in html
    assert "toc-number" in html
    assert build_toc_html(headings(1), options={"position": "none"}) == ""
