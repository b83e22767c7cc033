from pathlib import Path

from conftest import make_config
from retromark import build_toc_html, render_document
from retromark.content import FileContentLoader, SourceDocument


def test_render_document_splits_and_renders(config):
    raw = "---\ntitle: Post\ntags: [a]\n---\n# Heading\n\nSome *text*.\n"
    rendered = render_document(raw, config)
    assert rendered.front_matter == {"title": "Post", "tags": ["a"]}
    assert "<em>text</em>" in rendered.html
    assert "title: Post" not in rendered.html
    assert [h.text for h in rendered.headings] == ["Heading"]


def test_render_document_without_front_matter(config):
    rendered = render_document("Plain paragraph.\n", config)
    assert rendered.front_matter == {}
    assert rendered.html == "<p>Plain paragraph.</p>\n"
    assert rendered.headings == []


def test_headings_feed_the_toc(config):
    rendered = render_document("# A\n\n## B\n\n### C\n\n#### D\n", config)
    html = build_toc_html(rendered.headings, depth=3)
    assert 'href="#c"' in html
    assert 'href="#d"' not in html


def test_source_document_paths(tmp_path):
    content = tmp_path / "content"
    (content / "guide").mkdir(parents=True)
    path = content / "guide" / "intro.md"
    path.write_text("# Intro\n", encoding="utf-8")
    document = SourceDocument.read(path, content)
    assert document.rel_path == Path("guide/intro.md")
    assert document.output_path == Path("guide/intro.html")
    assert document.raw == "# Intro\n"


def test_file_content_loader_applies_exclusions(tmp_path):
    (tmp_path / "drafts").mkdir()
    (tmp_path / "index.md").write_text("x", encoding="utf-8")
    (tmp_path / "drafts" / "wip.md").write_text("x", encoding="utf-8")
    config = make_config()
    loader = FileContentLoader(tmp_path, config["exclude"])
    assert [p.name for p in loader.iter_files()] == ["index.md"]
    assert len(FileContentLoader(tmp_path).iter_files()) == 2
