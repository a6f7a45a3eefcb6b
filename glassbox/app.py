"""Composition root for Glassbox.

Wires configuration, content loading, templates and the post cache together.
The returned cache is constructed but not initialized; callers decide when
to run the one-time load.

Key functions:
- create_site: Build the site's collaborators from configuration.
- initialize_site: Build and initialize in one step.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .cache import PostCache
from .config import content_root, feed_config
from .content import ContentProcessor
from .protocols import BodyRenderer, ContentSource
from .renderers import MarkdownRenderer
from .templates import TemplateEngine


@dataclass
class Site:
    """The collaborators of a running site.

    Attributes:
        cache: Post cache shared by every request handler.
        engine: Template engine for page rendering.
        config: Configuration the site was built from.
    """

    cache: PostCache
    engine: TemplateEngine
    config: dict[str, Any]


def create_site(
    project_root: Path,
    config: dict[str, Any],
    source: ContentSource | None = None,
    body_renderer: BodyRenderer | None = None,
) -> Site:
    """Build the site from configuration.

    Args:
        project_root: Project root that relative paths resolve against.
        config: Loaded configuration.
        source: Optional content root overriding ``content_dir``.
        body_renderer: Optional markdown renderer, defaults to MarkdownRenderer.

    Returns:
        Site with an uninitialized cache.
    """
    engine = TemplateEngine(
        {
            "title": config.get("title", ""),
            "description": config.get("description", ""),
            "base_url": config.get("base_url", ""),
        },
        latest_count=config.get("latest_count", 5),
    )
    root = source if source is not None else content_root(project_root, config)
    loader = ContentProcessor(
        root,
        body_renderer=body_renderer or MarkdownRenderer(),
        page_renderer=engine.render_post,
    )
    cache = PostCache(loader, feed_config(config))
    return Site(cache=cache, engine=engine, config=config)


def initialize_site(project_root: Path, config: dict[str, Any]) -> Site:
    """Build the site and run the one-time cache load.

    Raises:
        GlassboxError: If any post fails to load.
    """
    site = create_site(project_root, config)
    site.cache.initialize(timeout=config.get("init_timeout"))
    return site
