"""In-memory post cache for Glassbox.

The cache is constructed empty by the server's composition root, populated
exactly once by ``initialize()`` and read-only afterwards. Lookups never
trigger loading, and no lock is taken on the read path: the published state is
swapped in as a whole only after it is complete.

State machine::

    UNINITIALIZED -> INITIALIZING -> READY
                                  -> FAILED

Key classes:
- CacheState: Lifecycle states.
- PostCache: Ordered posts, lookup index and feed artifact.
"""

from __future__ import annotations

import enum
import logging
import threading
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType

from .artifacts import RenderedArtifact
from .content import Post, RenderedPost
from .errors import (
    CacheInitializationError,
    DuplicatePostError,
    FeedError,
    InitializationTimeoutError,
)
from .feeds import FeedConfig, RSSGenerator
from .protocols import PostLoader

logger = logging.getLogger(__name__)


class CacheState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class _Snapshot:
    posts: tuple[Post, ...] = ()
    by_identifier: Mapping[str, RenderedPost] = field(
        default_factory=lambda: MappingProxyType({})
    )
    feed: RenderedArtifact | None = None
    feed_error: Exception | None = None


def sort_posts(posts: Iterable[Post]) -> list[Post]:
    """Order posts newest first.

    Posts published at the same instant are ordered by identifier so the
    result is deterministic.
    """
    by_identifier = sorted(posts, key=lambda p: p.identifier)
    return sorted(by_identifier, key=lambda p: p.published_at, reverse=True)


def index_posts(rendered: Iterable[RenderedPost]) -> dict[str, RenderedPost]:
    """Index rendered posts by identifier.

    Raises:
        DuplicatePostError: If two posts share an identifier.
    """
    index: dict[str, RenderedPost] = {}
    for item in rendered:
        if item.identifier in index:
            raise DuplicatePostError(item.identifier)
        index[item.identifier] = item
    return index


class PostCache:
    """Run-once cache of rendered posts and the feed.

    Attributes:
        loader: Produces the rendered posts.
        feed_config: Feed settings, fixed before initialization.
        feed_generator: Builds the feed artifact.
    """

    def __init__(
        self,
        loader: PostLoader,
        feed_config: FeedConfig,
        feed_generator: RSSGenerator | None = None,
    ):
        self.loader = loader
        self.feed_config = feed_config
        self.feed_generator = feed_generator or RSSGenerator()
        self._state = CacheState.UNINITIALIZED
        self._state_lock = threading.Lock()
        self._done = threading.Event()
        self._snapshot = _Snapshot()
        self._error: BaseException | None = None

    @property
    def state(self) -> CacheState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is CacheState.READY

    @property
    def feed_error(self) -> Exception | None:
        return self._snapshot.feed_error

    def initialize(self, timeout: float | None = None) -> None:
        """Load, sort and index all posts, then generate the feed.

        Safe to call any number of times from any number of threads: exactly
        one caller performs the load, every other caller blocks until it has
        finished and then observes the same state.

        Args:
            timeout: Maximum seconds to wait for the load, whether this call
                started it or another caller did. None waits indefinitely.
                With a timeout, the starting caller runs the load on a worker
                thread. The load itself is never interrupted.

        Raises:
            InitializationTimeoutError: If waiting exceeded ``timeout``.
            CacheInitializationError: If a previous or concurrent load failed.
            GlassboxError: The original load error, for the loading caller.
        """
        with self._state_lock:
            owner = self._state is CacheState.UNINITIALIZED
            if owner:
                self._state = CacheState.INITIALIZING

        if owner:
            if timeout is None:
                self._run_load()
            else:
                threading.Thread(
                    target=self._run_load, name="glassbox-cache-load", daemon=True
                ).start()
                if not self._done.wait(timeout):
                    raise InitializationTimeoutError(timeout)
            if self._state is CacheState.FAILED:
                raise self._error
            return

        if not self._done.wait(timeout):
            raise InitializationTimeoutError(timeout)
        if self._state is CacheState.FAILED:
            raise CacheInitializationError(
                f"post cache failed to initialize: {self._error}"
            ) from self._error

    def _run_load(self) -> None:
        logger.info("Initializing post cache")
        try:
            snapshot = self._load()
        except BaseException as exc:
            self._error = exc
            self._state = CacheState.FAILED
            logger.error("Post cache initialization failed: %s", exc)
            if not isinstance(exc, Exception):
                raise
        else:
            self._snapshot = snapshot
            self._state = CacheState.READY
            logger.info("Post cache ready with %d posts", len(snapshot.posts))
        finally:
            self._done.set()

    def _load(self) -> _Snapshot:
        rendered = list(self.loader.load())
        index = index_posts(rendered)
        posts = tuple(sort_posts(item.post for item in rendered))

        feed: RenderedArtifact | None = None
        feed_error: Exception | None = None
        try:
            feed = self.feed_generator.render(posts, self.feed_config)
        except FeedError as exc:
            feed_error = exc
            logger.error("RSS feed unavailable: %s", exc)

        return _Snapshot(
            posts=posts,
            by_identifier=MappingProxyType(index),
            feed=feed,
            feed_error=feed_error,
        )

    def all_posts(self) -> Sequence[Post]:
        """Return all posts, newest first. Empty until the cache is ready."""
        return self._snapshot.posts

    def post_by_identifier(self, identifier: str) -> RenderedPost | None:
        """Look up a post by identifier.

        Returns:
            The rendered post, or None if no post has that identifier.
        """
        return self._snapshot.by_identifier.get(identifier)

    def feed(self) -> RenderedArtifact | None:
        """Return the feed artifact, or None if it is not available."""
        return self._snapshot.feed

    def __len__(self) -> int:
        return len(self._snapshot.posts)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"PostCache({self._state.value}, {len(self)} posts)"
