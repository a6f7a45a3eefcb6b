"""Utility functions for Glassbox.

Key functions:
    is_markdown: Check if a file name marks a content file.
    identifier_from_name: Derive a post identifier from its file name.
    join_url: Join a base URL and a path segment with a single slash.
    slugify: Convert free text to a URL-safe identifier.
"""

from __future__ import annotations

import re

MARKDOWN_SUFFIX = ".md"


def is_markdown(name: str) -> bool:
    """Check if a file name is a markdown content file.

    Args:
        name: File name.

    Returns:
        True if the name has a .md extension (case-insensitive).
    """
    return name.lower().endswith(MARKDOWN_SUFFIX) and len(name) > len(MARKDOWN_SUFFIX)


def identifier_from_name(name: str) -> str:
    """Derive a post identifier from a content file name.

    Examples:
        >>> identifier_from_name("hello-world.md")
        'hello-world'
    """
    if is_markdown(name):
        return name[: -len(MARKDOWN_SUFFIX)]
    return name


def join_url(base: str, path: str) -> str:
    """Join a base URL and a path with exactly one separating slash.

    Examples:
        >>> join_url("https://example.com/reflections/", "/hello")
        'https://example.com/reflections/hello'
    """
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


def slugify(text: str) -> str:
    """Convert text to a lowercase, hyphenated slug.

    Args:
        text: Free text such as a title.

    Returns:
        URL-friendly slug, or an empty string if nothing usable remains.
    """
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", text)
    return cleaned.strip("-").lower()

