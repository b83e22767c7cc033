"""Command-line interface for RetroMark.

This module defines the CLI commands using the Click framework.

Commands:
- build: Build the site into the output directory.
- config: Print the default configuration as YAML.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from . import __version__

LOG_FORMAT = "%(levelname)s: %(message)s"


def _configure_logging(verbose: bool) -> None:
    """Send library log records to stderr with a level prefix."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        force=True,
    )


@click.group()
@click.version_option(version=__version__, prog_name="retromark")
def cli():
    """RetroMark static site generator."""


@cli.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Configuration file (defaults to retro.yml)",
)
@click.option(
    "--content",
    "content_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default="content",
    show_default=True,
    help="Directory containing Markdown sources",
)
@click.option(
    "--output",
    "output_dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Output directory (overrides the configured one)",
)
@click.option("--workers", type=click.IntRange(min=1), default=1, show_default=True)
@click.option("--verbose", "-v", is_flag=True, help="Show debug output")
def build(
    config_path: Path | None,
    content_dir: Path,
    output_dir: Path | None,
    workers: int,
    verbose: bool,
):
    """Build the site into the output directory."""
    _configure_logging(verbose)
    project_root = Path.cwd()
    from .build import build_site

    try:
        result = build_site(
            project_root,
            content_dir=project_root / content_dir,
            config_path=config_path,
            output_dir_override=project_root / output_dir if output_dir else None,
            workers=workers,
        )
    except (FileNotFoundError, ValueError) as exc:
        raise click.ClickException(str(exc)) from None

    for failure in result.failures:
        click.echo(click.style("Failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  File: {failure.source_path}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {failure.message}", fg="white"), err=True)
    click.echo(f"Built {len(result.pages)} pages into {result.output_dir}")


@cli.command("config")
def show_config():
    """Print the default configuration as YAML."""
    from .config import default_config_yaml

    click.echo(default_config_yaml(), nl=False)


def main():
    """Entry point for the CLI application."""
    cli()
