"""Site building functionality for RetroMark.

This module contains the logic for building a static site from a content
directory. It resolves the configuration, renders every Markdown document
through the content pipeline, fills layouts and writes the output files.

A failure in one document is logged and recorded in the BuildResult; the
remaining documents are still built.

Key functions:
- build_site: Main function to build the entire site.
"""

from __future__ import annotations

import logging
import shutil
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from jinja2 import TemplateSyntaxError

from .config import SiteConfig, resolve_config
from .content import FileContentLoader, RenderedPage, SourceDocument, render_document
from .renderers import MarkdownRenderer
from .templates import LayoutNotFoundError, TemplateEngine
from .utils import copy_tree, ensure_clean_dir

logger = logging.getLogger(__name__)

STYLESHEET_NAME = "style.css"


class BuildError(Exception):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the source file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        pages: Pages written, in source order.
        failures: One BuildError per document that could not be built.
        output_dir: Directory where the site was built.
        config: Configuration used for the build.
    """

    pages: list[RenderedPage]
    output_dir: Path
    config: SiteConfig
    failures: list[BuildError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message.

    Args:
        exc: The exception to format.

    Returns:
        A human-readable error message.
    """
    if isinstance(exc, LayoutNotFoundError):
        return f"Missing layout: {exc.layout}"
    if isinstance(exc, TemplateSyntaxError):
        return f"Template syntax error on line {exc.lineno}: {exc.message}"
    if isinstance(exc, UnicodeDecodeError):
        return f"File is not valid UTF-8: {exc.reason}"

    error_type = type(exc).__name__
    error_msg = str(exc)
    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if isinstance(exc, OSError):
        return f"I/O error: {error_msg}"
    return f"{error_type}: {error_msg}"


class SiteBuilder:
    """Builds every document of a site with shared, read-only collaborators.

    Attributes:
        config: Resolved site configuration.
        content_dir: Root of the Markdown sources.
        output_dir: Root of the generated site.
        renderer: Markdown renderer shared by all documents.
        engine: Template engine shared by all documents.
    """

    def __init__(
        self,
        config: SiteConfig,
        content_dir: Path,
        output_dir: Path,
        project_root: Path,
        renderer: MarkdownRenderer | None = None,
        engine: TemplateEngine | None = None,
    ):
        self.config = config
        self.content_dir = content_dir
        self.output_dir = output_dir
        self.renderer = renderer or MarkdownRenderer(config)
        self.engine = engine or TemplateEngine(config, project_root)

    def build_document(self, path: Path) -> RenderedPage:
        """Read, render, assemble and write one document.

        Raises:
            BuildError: If any step fails.
        """
        try:
            document = SourceDocument.read(path, self.content_dir)
            rendered = render_document(
                document.raw, self.config, self.renderer, source=str(path)
            )
            html = self.engine.render_page(document, rendered)
            _write_page(self.output_dir, document.output_path, html)
        except Exception as exc:
            raise BuildError(path, _format_error_message(exc), exc) from exc
        return RenderedPage(source=path, output_path=document.output_path, html=html)

    def _build_one(self, path: Path) -> RenderedPage | BuildError:
        try:
            page = self.build_document(path)
        except BuildError as exc:
            logger.error("Failed to process file %s: %s", path, exc.message)
            return exc
        logger.info("Rendered: %s", page.output_path.as_posix())
        return page

    def build_all(self, paths: list[Path], workers: int = 1) -> BuildResult:
        """Build all documents, isolating failures per document.

        Args:
            paths: Markdown files to build.
            workers: Number of threads; 1 builds sequentially.

        Returns:
            BuildResult listing pages and failures in source order.
        """
        if workers > 1 and len(paths) > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                outcomes = list(pool.map(self._build_one, paths))
        else:
            outcomes = [self._build_one(path) for path in paths]
        result = BuildResult(pages=[], output_dir=self.output_dir, config=self.config)
        for outcome in outcomes:
            if isinstance(outcome, BuildError):
                result.failures.append(outcome)
            else:
                result.pages.append(outcome)
        return result


def build_site(
    project_root: Path,
    content_dir: Path | None = None,
    config: SiteConfig | None = None,
    config_path: Path | None = None,
    output_dir_override: Path | None = None,
    clean_output: bool = True,
    workers: int = 1,
) -> BuildResult:
    """Build the entire static site.

    Args:
        project_root: Root directory of the project.
        content_dir: Markdown sources (defaults to ``project_root/content``).
        config: Pre-resolved configuration; resolved from the project when
            omitted.
        config_path: Explicit configuration file used when ``config`` is omitted.
        output_dir_override: Output directory instead of the configured one.
        clean_output: Whether to wipe the output directory before building.
        workers: Number of documents built concurrently.

    Returns:
        BuildResult containing written pages and per-document failures.

    Raises:
        FileNotFoundError: If the content directory does not exist.
        ValueError: If the output directory would contain the sources.
    """
    if config is None:
        config = resolve_config(config_path, project_root=project_root)
    source_dir = content_dir or project_root / "content"
    if not source_dir.is_dir():
        raise FileNotFoundError(f"Expected content directory at {source_dir}")
    output_dir = output_dir_override or project_root / str(config["output"])
    resolved_output = output_dir.resolve()
    if resolved_output in (project_root.resolve(), *source_dir.resolve().parents) or (
        resolved_output == source_dir.resolve()
    ):
        raise ValueError(f"Refusing to build into {output_dir}: it contains the sources")

    if clean_output:
        logger.info("Cleaning output directory: %s", output_dir)
        ensure_clean_dir(output_dir)
    else:
        output_dir.mkdir(parents=True, exist_ok=True)

    _copy_public(project_root, output_dir)
    _copy_stylesheet(project_root, output_dir)

    files = FileContentLoader(source_dir, config.get("exclude") or ()).iter_files()
    if not files:
        logger.warning("No markdown files found in %s.", source_dir)
        return BuildResult(pages=[], output_dir=output_dir, config=config)
    logger.info("Found %d markdown files to process.", len(files))

    builder = SiteBuilder(config, source_dir, output_dir, project_root)
    result = builder.build_all(files, workers=workers)
    if result.failures:
        logger.warning(
            "Build finished with %d of %d documents failing.",
            len(result.failures),
            len(files),
        )
    else:
        logger.info("Build completed: %d pages.", len(result.pages))
    return result


def _copy_public(project_root: Path, output_dir: Path) -> None:
    public_dir = project_root / "public"
    if public_dir.is_dir():
        logger.info("Copying public assets from %s", public_dir)
        copy_tree(public_dir, output_dir)


def _copy_stylesheet(project_root: Path, output_dir: Path) -> None:
    stylesheet = project_root / STYLESHEET_NAME
    if stylesheet.is_file():
        logger.info("Copying %s to the site directory.", STYLESHEET_NAME)
        shutil.copy2(stylesheet, output_dir / STYLESHEET_NAME)
    else:
        logger.warning(
            "%s not found in %s. Site will be unstyled.", STYLESHEET_NAME, project_root
        )


def _write_page(output_dir: Path, rel_output: Path, rendered: str) -> None:
    """Write a rendered page beneath the output directory.

    Args:
        output_dir: Base output directory.
        rel_output: Output path relative to ``output_dir``.
        rendered: Rendered HTML content.
    """
    target = output_dir / rel_output
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w", encoding="utf-8") as f:
        f.write(rendered)
