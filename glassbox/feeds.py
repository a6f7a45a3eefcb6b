"""RSS feed generation for Glassbox.

The feed is generated once, from the cache's final ordered post list, and
served as a pre-compressed artifact. Output is deterministic: the same posts
and configuration always produce the same bytes.

Classes:
    FeedConfig: Feed-level settings fixed at startup.
    RSSGenerator: Builds the RSS 2.0 document.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import TYPE_CHECKING

from .artifacts import RSS_CONTENT_TYPE, RenderedArtifact
from .errors import FeedError
from .utils import join_url

if TYPE_CHECKING:
    from .content import Post

XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>\n'
RSS_VERSION = "2.0"
DEFAULT_LANGUAGE = "en-us"
REPLACEMENT_CHARACTER = "\ufffd"

# Characters outside the XML 1.0 Char production.
_INVALID_XML_CHARS = re.compile(
    r"[^\x09\x0a\x0d\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]"
)


@dataclass(frozen=True)
class FeedConfig:
    """Feed configuration.

    Attributes:
        base_url: Absolute URL that post identifiers are appended to.
        title: Channel title.
        description: Channel description.
        language: Channel language tag.
    """

    base_url: str
    title: str
    description: str
    language: str = DEFAULT_LANGUAGE


def format_rfc1123(value: datetime) -> str:
    """Format a timestamp as RFC 1123 with a numeric zone.

    Examples:
        >>> format_rfc1123(datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc))
        'Mon, 15 Jan 2024 10:00:00 +0000'
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return format_datetime(value)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def xml_text(value: str) -> str:
    """Replace characters XML 1.0 cannot represent with U+FFFD.

    Control characters other than tab, newline and carriage return, lone
    surrogates and the noncharacters U+FFFE and U+FFFF are replaced.
    """
    return _INVALID_XML_CHARS.sub(REPLACEMENT_CHARACTER, value)


class RSSGenerator:
    """Generates an RSS 2.0 feed from ordered posts.

    Items follow the order of the given posts; the cache passes them newest
    first. The channel's last build date is the newest publication date, or
    the current time when there are no posts.

    Attributes:
        clock: Callable returning the current time.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None):
        self.clock = clock or _utcnow

    def generate(self, posts: Sequence[Post], config: FeedConfig) -> bytes:
        """Generate the feed document.

        Args:
            posts: Posts in feed order.
            config: Feed configuration.

        Returns:
            UTF-8 encoded RSS XML.

        Raises:
            FeedError: If the document cannot be encoded.
        """
        try:
            rss = ET.Element("rss", {"version": RSS_VERSION})
            channel = ET.SubElement(rss, "channel")
            ET.SubElement(channel, "title").text = xml_text(config.title)
            ET.SubElement(channel, "link").text = xml_text(config.base_url)
            ET.SubElement(channel, "description").text = xml_text(config.description)
            ET.SubElement(channel, "language").text = xml_text(config.language)
            ET.SubElement(channel, "lastBuildDate").text = format_rfc1123(
                self._last_build_date(posts)
            )

            for post in posts:
                link = xml_text(join_url(config.base_url, post.identifier))
                item = ET.SubElement(channel, "item")
                ET.SubElement(item, "title").text = xml_text(post.title)
                ET.SubElement(item, "link").text = link
                ET.SubElement(item, "description").text = xml_text(post.excerpt)
                ET.SubElement(item, "pubDate").text = format_rfc1123(post.published_at)
                ET.SubElement(item, "guid").text = link

            ET.indent(rss, space="  ")
            body = ET.tostring(rss, encoding="unicode", short_empty_elements=False)
        except (TypeError, ValueError) as exc:
            raise FeedError(f"failed to encode rss feed: {exc}") from exc
        return (XML_HEADER + body + "\n").encode("utf-8")

    def render(self, posts: Sequence[Post], config: FeedConfig) -> RenderedArtifact:
        """Generate the feed and wrap it in a compressed artifact."""
        return RenderedArtifact.build(self.generate(posts, config), RSS_CONTENT_TYPE)

    def _last_build_date(self, posts: Sequence[Post]) -> datetime:
        if not posts:
            return self.clock()
        return max(post.published_at for post in posts)
