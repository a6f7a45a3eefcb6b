from datetime import datetime, timezone
from pathlib import Path

import pytest

from glassbox.artifacts import HTML_CONTENT_TYPE, RenderedArtifact
from glassbox.content import Post, RenderedPost
from glassbox.feeds import FeedConfig


class StubRenderer:
    """Body renderer that wraps the body instead of parsing markdown."""

    def __init__(self):
        self.calls = 0

    def render(self, body: str) -> str:
        self.calls += 1
        return f"<p>{body.strip()}</p>"


class StubLoader:
    """Loader returning canned posts and counting how often it runs."""

    def __init__(self, rendered=(), delay=None, error=None):
        self.rendered = list(rendered)
        self.delay = delay
        self.error = error
        self.calls = 0

    def load(self):
        self.calls += 1
        if self.delay is not None:
            self.delay()
        if self.error is not None:
            raise self.error
        return list(self.rendered)


def make_post(identifier: str, day: int = 1, hour: int = 0, **kwargs) -> Post:
    return Post(
        identifier=identifier,
        title=kwargs.pop("title", identifier.replace("-", " ").title()),
        author=kwargs.pop("author", "Jane Doe"),
        published_at=datetime(2024, 1, day, hour, tzinfo=timezone.utc),
        tags=kwargs.pop("tags", ()),
        excerpt=kwargs.pop("excerpt", f"About {identifier}"),
        content=kwargs.pop("content", f"<p>{identifier}</p>"),
    )


def make_rendered(identifier: str, day: int = 1, hour: int = 0, **kwargs) -> RenderedPost:
    post = make_post(identifier, day, hour, **kwargs)
    return RenderedPost(
        post=post, artifact=RenderedArtifact.build(post.content, HTML_CONTENT_TYPE)
    )


def write_post(
    folder: Path,
    name: str,
    title: str = "Title",
    published_at: str = "2024-01-15T10:00:00Z",
    body: str = "Body text.",
    extra: str = "",
) -> Path:
    folder.mkdir(parents=True, exist_ok=True)
    path = folder / name
    path.write_text(
        f"---\ntitle: {title}\nauthor: Jane Doe\npublished_at: {published_at}\n"
        f"excerpt: Excerpt for {title}\ntags: [one, two]\n{extra}---\n{body}\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def feed_config():
    return FeedConfig(
        base_url="https://example.com/reflections",
        title="Example Reflections",
        description="Thoughts and notes",
    )


@pytest.fixture
def stub_renderer():
    return StubRenderer()
