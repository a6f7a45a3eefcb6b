"""Page templates for Glassbox.

This module uses Jinja2 to render the site's HTML pages. Post pages are
rendered once at load time and cached; listing pages are rendered per request
from the cache's ordered posts.

Key class:
- TemplateEngine: Renders post, listing and error pages.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from jinja2 import Environment, PackageLoader, select_autoescape
from markupsafe import Markup

from .content import Post

__all__ = ["TemplateEngine", "format_date"]


def format_date(value: datetime) -> str:
    """Format a publication date for display.

    Examples:
        >>> format_date(datetime(2024, 1, 5))
        'January 5, 2024'
    """
    return f"{value:%B} {value.day}, {value.year}"


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Attributes:
        data: Global site data available to every template as ``site``.
        latest_count: Number of posts shown on the home page.
        env: Jinja2 environment.
    """

    def __init__(self, data: dict[str, Any] | None = None, latest_count: int = 5):
        self.data = dict(data or {})
        self.latest_count = latest_count
        self.env = Environment(
            loader=PackageLoader("glassbox", "templates"),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            enable_async=False,
        )
        self.env.filters["date"] = format_date
        self.env.globals["site"] = self.data

    def render_post(self, post: Post) -> str:
        """Render the full page for a single post.

        This is the page renderer handed to the content loader.
        """
        return self.env.get_template("reflection.html.jinja").render(
            post=post, content=Markup(post.content)
        )

    def render_home(self, posts: Sequence[Post]) -> str:
        return self.env.get_template("home.html.jinja").render(
            posts=list(posts[: self.latest_count])
        )

    def render_reflections(self, posts: Sequence[Post]) -> str:
        return self.env.get_template("reflections.html.jinja").render(posts=posts)

    def render_not_found(self) -> str:
        return self.env.get_template("404.html.jinja").render()
