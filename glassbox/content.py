"""Content loading for Glassbox.

This module discovers content files, parses their front matter, renders
their bodies and pre-renders the full page served for each post.

Key classes:
- Post: Immutable record of one published post.
- RenderedPost: A Post together with its served page artifact.
- FileContentLoader: Discovers content files under a content root.
- PostBuilder: Builds a RenderedPost from one content file.
- ContentProcessor: Facade that loads every post under a root.

Scanning is flat: only files directly inside the content root are
considered. Loading is fail-fast: the first file that cannot be read,
parsed or rendered aborts the whole load with a PostLoadError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from .artifacts import HTML_CONTENT_TYPE, RenderedArtifact
from .errors import ContentReadError, PostLoadError, RenderError
from .frontmatter import FrontMatterError, parse_frontmatter
from .protocols import BodyRenderer, ContentSource, PageRenderer
from .renderers import MarkdownRenderer
from .utils import identifier_from_name, is_markdown

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Post:
    """A published post.

    Attributes:
        identifier: Unique key derived from the file name; also the URL slug.
        title: Post title.
        author: Author name.
        published_at: Timezone-aware publication timestamp.
        tags: Tags in authored order.
        excerpt: Short summary.
        content: Rendered body HTML.
    """

    identifier: str
    title: str
    author: str
    published_at: datetime
    tags: tuple[str, ...] = field(default_factory=tuple)
    excerpt: str = ""
    content: str = ""

    @property
    def slug(self) -> str:
        return self.identifier


@dataclass(frozen=True)
class RenderedPost:
    """A post with its pre-rendered, pre-compressed page."""

    post: Post
    artifact: RenderedArtifact

    @property
    def identifier(self) -> str:
        return self.post.identifier


def body_only(post: Post) -> str:
    """Default page renderer: serve the rendered body as the page."""
    return post.content


class FileContentLoader:
    """Discovers content files directly inside a content root.

    Attributes:
        root: Directory (or read-only resource tree) holding content files.
    """

    def __init__(self, root: ContentSource):
        self.root = root

    def iter_files(self) -> list[ContentSource]:
        """List markdown files in the root, ordered by name.

        Returns:
            Content file entries.

        Raises:
            ContentReadError: If the root cannot be listed.
        """
        try:
            entries = list(self.root.iterdir())
        except OSError as exc:
            raise ContentReadError(
                f"error reading content directory {self.root}: {exc}"
            ) from exc
        files = [e for e in entries if e.is_file() and is_markdown(e.name)]
        return sorted(files, key=lambda e: e.name)


class PostBuilder:
    """Builds RenderedPost objects from content files.

    Attributes:
        body_renderer: Converts markdown bodies to HTML.
        page_renderer: Renders the full page served for a post.
    """

    def __init__(
        self,
        body_renderer: BodyRenderer | None = None,
        page_renderer: PageRenderer | None = None,
    ):
        self.body_renderer = body_renderer or MarkdownRenderer()
        self.page_renderer = page_renderer or body_only

    def build(self, entry: ContentSource) -> RenderedPost:
        """Build a RenderedPost from a content file.

        Args:
            entry: Content file.

        Returns:
            RenderedPost for the file.

        Raises:
            PostLoadError: If the file cannot be read, parsed or rendered.
        """
        try:
            text = entry.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise PostLoadError(entry, f"failed to read file: {exc}", exc) from exc

        try:
            frontmatter, body = parse_frontmatter(text)
        except FrontMatterError as exc:
            raise PostLoadError(entry, f"failed to parse front matter: {exc}", exc) from exc

        try:
            content = self.body_renderer.render(body)
        except RenderError as exc:
            raise PostLoadError(entry, str(exc), exc) from exc
        except Exception as exc:
            raise PostLoadError(entry, f"failed to render markdown: {exc}", exc) from exc

        post = Post(
            identifier=identifier_from_name(entry.name),
            title=frontmatter.title,
            author=frontmatter.author,
            published_at=frontmatter.published_at,
            tags=frontmatter.tags,
            excerpt=frontmatter.excerpt,
            content=content,
        )

        try:
            page = self.page_renderer(post)
        except Exception as exc:
            raise PostLoadError(entry, f"error rendering post page: {exc}", exc) from exc

        return RenderedPost(
            post=post, artifact=RenderedArtifact.build(page, HTML_CONTENT_TYPE)
        )


class ContentProcessor:
    """Facade that loads every post under a content root.

    Attributes:
        root: Content root.
    """

    def __init__(
        self,
        root: ContentSource,
        body_renderer: BodyRenderer | None = None,
        page_renderer: PageRenderer | None = None,
        content_loader: FileContentLoader | None = None,
        post_builder: PostBuilder | None = None,
    ):
        self.root = root
        self._content_loader = content_loader or FileContentLoader(root)
        self._post_builder = post_builder or PostBuilder(body_renderer, page_renderer)

    def load(self) -> list[RenderedPost]:
        """Load all content files.

        Returns:
            Rendered posts, unordered.

        Raises:
            ContentReadError: If the content root cannot be read.
            PostLoadError: If any single post fails to load.
        """
        posts: list[RenderedPost] = []
        for entry in self._content_loader.iter_files():
            logger.debug("Loading post from %s", entry)
            posts.append(self._post_builder.build(entry))
        logger.info("Loaded %d posts from %s", len(posts), self.root)
        return posts
