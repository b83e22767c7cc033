from pathlib import Path

import pytest

from retromark.config import DEFAULT_CONFIG, SiteConfig, deep_merge
from retromark.math_engines import MathRenderError


def make_config(overrides: dict | None = None) -> SiteConfig:
    return SiteConfig(deep_merge(DEFAULT_CONFIG, overrides or {}))


class FakeMathEngine:
    name = "fake"

    def render(self, expression: str, display_mode: bool = False) -> str:
        tag = "M" if display_mode else "m"
        return f"<{tag}>{expression.strip()}</{tag}>"


class FailingMathEngine:
    name = "failing"

    def render(self, expression: str, display_mode: bool = False) -> str:
        raise MathRenderError(expression, display_mode, "unbalanced input")


@pytest.fixture
def config() -> SiteConfig:
    return make_config()


@pytest.fixture(autouse=True)
def _clear_rm_env(monkeypatch):
    for name in (
        "RM_THEME",
        "RM_TITLE",
        "RM_BASE_URL",
        "RM_OUTPUT_DIR",
        "RM_MATH_ENGINE",
        "RM_TOC_POSITION",
    ):
        monkeypatch.delenv(name, raising=False)


def create_project(tmp_path: Path) -> Path:
    project = tmp_path / "site"
    content = project / "content"
    (content / "guide").mkdir(parents=True)
    (content / "drafts").mkdir()
    (project / "public" / "images").mkdir(parents=True)

    (project / "retro.yml").write_text(
        "title: Test Site\ntheme: novel\ntoc:\n  depth: 2\n", encoding="utf-8"
    )
    (content / "index.md").write_text(
        "---\ntitle: Home\n---\n# Welcome\n\nHello.\n\n## Section\n", encoding="utf-8"
    )
    (content / "guide" / "intro.md").write_text(
        "---\ntitle: Intro\nchapter: 1\n---\n# Intro\n\n[Docs](https://example.com)\n",
        encoding="utf-8",
    )
    (content / "drafts" / "wip.md").write_text("# Not yet", encoding="utf-8")
    (project / "public" / "images" / "logo.txt").write_text("logo", encoding="utf-8")
    (project / "style.css").write_text("body { color: black; }", encoding="utf-8")
    return project
