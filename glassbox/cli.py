"""Command-line interface for Glassbox.

This module defines the CLI commands using Click framework.

Commands:
- serve: Load every post once and serve the site.
- check: Load every post and report problems without serving.
- css: Print the stylesheet for highlighted code blocks.
- md: Create a new post interactively.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

import click
import questionary
import yaml

from . import __version__
from .config import content_root, load_config
from .errors import GlassboxError, PostLoadError
from .renderers import highlight_css
from .utils import identifier_from_name, is_markdown, slugify


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _report_error(exc: GlassboxError, project_root: Path) -> None:
    """Print a load failure in a user-friendly way and exit."""
    cause = exc
    while not isinstance(cause, PostLoadError) and isinstance(
        cause.__cause__, GlassboxError
    ):
        cause = cause.__cause__
    if isinstance(cause, PostLoadError):
        source = Path(str(cause.source_path))
        try:
            source = source.relative_to(project_root)
        except ValueError:
            pass
        click.echo(click.style("Load failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  File: {source}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {cause.message}", fg="white"), err=True)
    else:
        click.echo(click.style(f"Load failed: {exc}", fg="red", bold=True), err=True)
    raise SystemExit(1)


def _load_config(content: str | None, base_url: str | None) -> dict:
    project_root = Path.cwd()
    try:
        config = load_config(project_root)
    except GlassboxError as exc:
        raise click.ClickException(str(exc)) from exc
    if content:
        config["content_dir"] = content
    if base_url:
        config["base_url"] = base_url
    return config


@click.group()
@click.version_option(version=__version__, prog_name="glassbox")
def cli():
    """Glassbox personal site server."""


@cli.command()
@click.option("--host", default=None, help="Interface to bind (overrides glassbox.yaml)")
@click.option("--port", type=int, default=None, help="Port to listen on (overrides PORT)")
@click.option("--content", default=None, help="Content directory")
@click.option("--base-url", default=None, help="Base URL for feed links")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def serve(
    host: str | None,
    port: int | None,
    content: str | None,
    base_url: str | None,
    verbose: bool,
):
    """Load all posts once and serve the site."""
    _configure_logging(verbose)
    project_root = Path.cwd()
    config = _load_config(content, base_url)
    from .app import initialize_site
    from .server import SiteServer

    try:
        site = initialize_site(project_root, config)
    except GlassboxError as exc:
        _report_error(exc, project_root)

    server = SiteServer(
        site.cache,
        site.engine,
        host=host if host is not None else config["host"],
        port=port if port is not None else config["port"],
    )
    server.serve_forever()


@cli.command()
@click.option("--content", default=None, help="Content directory")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def check(content: str | None, verbose: bool):
    """Load every post and report the result without serving."""
    _configure_logging(verbose)
    project_root = Path.cwd()
    config = _load_config(content, None)
    from .app import initialize_site

    try:
        site = initialize_site(project_root, config)
    except GlassboxError as exc:
        _report_error(exc, project_root)

    feed = site.cache.feed()
    click.echo(f"Loaded {len(site.cache)} posts from {content_root(project_root, config)}")
    if feed is None:
        click.echo(click.style("RSS feed unavailable", fg="yellow"), err=True)
        raise SystemExit(1)
    compressed = len(feed.compressed) if feed.compressed else 0
    click.echo(f"RSS feed: {len(feed.raw)} bytes ({compressed} compressed)")


@cli.command()
def css():
    """Print the stylesheet for highlighted code blocks."""
    click.echo(highlight_css())


@cli.command()
def md():
    """Create a new post interactively."""
    project_root = Path.cwd()
    config = _load_config(None, None)
    target_dir = content_root(project_root, config)

    title = questionary.text(
        "Title:",
        validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
        style=_questionary_style(),
    ).ask()
    if title is None:
        raise click.Abort()
    title = title.strip()

    slug = questionary.text(
        "Slug:",
        default=slugify(title),
        validate=lambda x: bool(slugify(x)) or "Slug cannot be empty",
        style=_questionary_style(),
    ).ask()
    if slug is None:
        raise click.Abort()
    slug = slugify(slug)

    target_path = target_dir / f"{slug}.md"
    if slug in _existing_identifiers(target_dir):
        raise click.ClickException(f"A post with slug '{slug}' already exists")

    excerpt = questionary.text("Excerpt:", style=_questionary_style()).ask()
    if excerpt is None:
        raise click.Abort()

    target_dir.mkdir(parents=True, exist_ok=True)
    target_path.write_text(
        render_post_template(title, excerpt.strip(), datetime.now(timezone.utc)),
        encoding="utf-8",
    )
    click.echo(f"Created {target_path.relative_to(project_root)}")


def render_post_template(title: str, excerpt: str, published_at: datetime) -> str:
    """Return the initial text of a new post."""
    metadata = {
        "title": title,
        "author": "",
        "published_at": published_at.replace(microsecond=0).isoformat(),
        "excerpt": excerpt,
        "tags": [],
    }
    block = yaml.safe_dump(metadata, sort_keys=False, allow_unicode=True)
    return f"---\n{block}---\n\n"


def _existing_identifiers(folder: Path) -> set[str]:
    """Get identifiers of the posts already in a folder (case-insensitive)."""
    if not folder.exists():
        return set()
    return {
        identifier_from_name(f.name).lower()
        for f in folder.iterdir()
        if f.is_file() and is_markdown(f.name)
    }


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()
