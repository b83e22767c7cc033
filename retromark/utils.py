"""Filesystem utility functions for RetroMark.

These helpers sit around the content pipeline: discovering Markdown
sources, applying exclusion globs, mapping sources to output paths and
preparing the output directory.

Key functions:
    is_markdown: Check if a path is a Markdown file.
    is_excluded: Check a relative path against exclusion globs.
    find_markdown_files: Recursively discover Markdown sources.
    output_path_for: Map a source path to its HTML output path.
    ensure_clean_dir: Ensure a directory exists and is empty.
    copy_tree: Copy a directory's contents into another directory.
"""

from __future__ import annotations

import fnmatch
import shutil
from collections.abc import Iterable
from pathlib import Path, PurePosixPath


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file.

    Args:
        path: Path to check.

    Returns:
        True if the file has .md extension (case-insensitive).
    """
    return path.suffix.lower() == ".md"


def is_excluded(rel: Path, patterns: Iterable[str]) -> bool:
    """Check whether a content-relative path matches an exclusion glob.

    A pattern ending with ``/`` names a directory and excludes everything
    beneath it. Other patterns are matched against the whole relative path
    and against the bare file name.

    Args:
        rel: Path relative to the content root.
        patterns: Glob patterns from the ``exclude`` setting.

    Returns:
        True if any pattern matches.

    Examples:
        >>> is_excluded(Path("drafts/idea.md"), ["drafts/"])
        True

        >>> is_excluded(Path("notes/scratch.tmp.md"), ["*.tmp.md"])
        True
    """
    posix = PurePosixPath(rel.as_posix())
    for pattern in patterns:
        if not pattern:
            continue
        if pattern.endswith("/"):
            directory = pattern.rstrip("/")
            parents = [p.as_posix() for p in posix.parents if p.as_posix() != "."]
            if any(fnmatch.fnmatch(parent, directory) for parent in parents):
                return True
            if any(fnmatch.fnmatch(part, directory) for part in posix.parts[:-1]):
                return True
            continue
        if fnmatch.fnmatch(posix.as_posix(), pattern) or fnmatch.fnmatch(
            posix.name, pattern
        ):
            return True
    return False


def find_markdown_files(root: Path, exclude: Iterable[str] = ()) -> list[Path]:
    """Recursively list Markdown files beneath ``root`` in a stable order.

    Args:
        root: Content root directory.
        exclude: Exclusion glob patterns.

    Returns:
        Sorted list of absolute Markdown file paths.
    """
    patterns = list(exclude)
    files: list[Path] = []
    for path in sorted(root.rglob("*")):
        if path.is_dir() or not is_markdown(path):
            continue
        if is_excluded(path.relative_to(root), patterns):
            continue
        files.append(path)
    return files


def output_path_for(rel: Path) -> Path:
    """Map a content-relative Markdown path to its HTML output path.

    Examples:
        >>> output_path_for(Path("guide/intro.md")).as_posix()
        'guide/intro.html'
    """
    return rel.with_suffix(".html")


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    If the directory exists, removes all contents. Creates the
    directory if it doesn't exist.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(str(path), ignore_errors=True)
        if path.exists():
            # Fallback for stubborn directories
            for item in path.rglob("*"):
                if item.is_file():
                    item.unlink()
            for item in sorted(
                [p for p in path.rglob("*") if p.is_dir()], reverse=True
            ):
                item.rmdir()
            path.rmdir()
    path.mkdir(parents=True, exist_ok=True)


def copy_tree(source: Path, dest: Path) -> int:
    """Copy every file under ``source`` into ``dest``, mirroring paths.

    Args:
        source: Directory to copy from.
        dest: Directory to copy into (created as needed).

    Returns:
        Number of files copied.
    """
    count = 0
    for path in source.rglob("*"):
        if path.is_dir():
            continue
        target = dest / path.relative_to(source)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(path, target)
        count += 1
    return count
