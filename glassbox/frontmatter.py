"""Front matter parsing for Glassbox.

Every content file starts with a YAML metadata block fenced by ``---`` lines:

    ---
    title: Hello
    published_at: 2024-01-15T10:00:00Z
    tags: [go, web]
    ---
    Markdown body...

Key functions:
- split_frontmatter: Separate the metadata block from the body.
- parse_frontmatter: Split and decode the block into a FrontMatter record.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Any

import yaml

from .errors import GlassboxError

BYTE_ORDER_MARK = "\ufeff"
OPENING_RE = re.compile(r"\A---[ \t]*\r?\n")
CLOSING_RE = re.compile(r"^---[ \t]*(?:\r?\n|\Z)", re.MULTILINE)


class FrontMatterError(GlassboxError):
    """Base class for front matter failures."""


class NoFrontMatterError(FrontMatterError):
    """The document does not begin with a front matter marker."""

    def __init__(self) -> None:
        super().__init__("no front matter found")


class MalformedFrontMatterError(FrontMatterError):
    """The front matter block is never closed."""

    def __init__(self) -> None:
        super().__init__("malformed front matter: missing closing marker")


class FrontMatterDecodeError(FrontMatterError):
    """The front matter block does not match the expected schema."""


@dataclass(frozen=True)
class FrontMatter:
    """Decoded post metadata.

    Attributes:
        title: Post title.
        published_at: Timezone-aware publication timestamp.
        author: Author name, empty when not given.
        excerpt: Short summary used in listings and the feed.
        tags: Tags in authored order.
    """

    title: str
    published_at: datetime
    author: str = ""
    excerpt: str = ""
    tags: tuple[str, ...] = field(default_factory=tuple)


def split_frontmatter(text: str) -> tuple[str, str]:
    """Split a document into its metadata block and body.

    Args:
        text: Raw document text.

    Returns:
        Tuple of (metadata block, body). The body is returned verbatim.

    Raises:
        NoFrontMatterError: If the document does not start with ``---``.
        MalformedFrontMatterError: If no closing ``---`` line follows.
    """
    text = text.removeprefix(BYTE_ORDER_MARK)
    opening = OPENING_RE.match(text)
    if not opening:
        raise NoFrontMatterError()
    closing = CLOSING_RE.search(text, opening.end())
    if not closing:
        raise MalformedFrontMatterError()
    block = text[opening.end() : closing.start()]
    return block, text[closing.end() :]


def parse_frontmatter(text: str) -> tuple[FrontMatter, str]:
    """Parse front matter from a document.

    Args:
        text: Raw document text.

    Returns:
        Tuple of (FrontMatter, body).

    Raises:
        FrontMatterError: If the block is missing, unterminated or invalid.
    """
    block, body = split_frontmatter(text)
    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        raise FrontMatterDecodeError(f"invalid YAML in front matter: {exc}") from exc
    if not isinstance(data, dict):
        raise FrontMatterDecodeError("front matter must be a mapping of keys to values")
    return decode_frontmatter(data), body


def decode_frontmatter(data: dict[str, Any]) -> FrontMatter:
    """Decode a metadata mapping into a FrontMatter record.

    Args:
        data: Mapping loaded from the YAML block.

    Returns:
        FrontMatter instance.

    Raises:
        FrontMatterDecodeError: If a required key is missing or has the wrong type.
    """
    if "title" not in data or data["title"] is None:
        raise FrontMatterDecodeError("missing required key 'title'")
    if "published_at" not in data or data["published_at"] is None:
        raise FrontMatterDecodeError("missing required key 'published_at'")

    return FrontMatter(
        title=_as_text(data["title"], "title"),
        published_at=parse_timestamp(data["published_at"]),
        author=_as_text(data.get("author"), "author"),
        excerpt=_as_text(data.get("excerpt"), "excerpt"),
        tags=_as_tags(data.get("tags")),
    )


def parse_timestamp(value: Any) -> datetime:
    """Convert a YAML timestamp value into an aware datetime.

    Accepts YAML timestamps, YAML dates and RFC 3339 strings. Naive values
    are interpreted as UTC.

    Args:
        value: Raw value from the metadata block.

    Returns:
        Timezone-aware datetime.

    Raises:
        FrontMatterDecodeError: If the value is not a recognizable timestamp.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time())
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError as exc:
            raise FrontMatterDecodeError(
                f"'published_at' is not an RFC 3339 timestamp: {value!r}"
            ) from exc
    else:
        raise FrontMatterDecodeError(
            f"'published_at' must be a timestamp, got {type(value).__name__}"
        )
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _as_text(value: Any, key: str) -> str:
    if value is None:
        return ""
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise FrontMatterDecodeError(
            f"'{key}' must be a string, got {type(value).__name__}"
        )
    return str(value)


def _as_tags(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise FrontMatterDecodeError(
            f"'tags' must be a list, got {type(value).__name__}"
        )
    return tuple(_as_text(tag, "tags") for tag in value)
