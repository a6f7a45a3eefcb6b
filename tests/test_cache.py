import threading
import time
import xml.etree.ElementTree as ET
from datetime import datetime, timezone

import pytest
from conftest import StubLoader, make_rendered, write_post

from glassbox.cache import CacheState, PostCache, index_posts, sort_posts
from glassbox.compression import decompress
from glassbox.content import ContentProcessor
from glassbox.errors import (
    CacheInitializationError,
    DuplicatePostError,
    FeedError,
    InitializationTimeoutError,
    PostLoadError,
)
from glassbox.feeds import RSSGenerator


def test_new_cache_is_empty(feed_config):
    cache = PostCache(StubLoader([make_rendered("a")]), feed_config)
    assert cache.state is CacheState.UNINITIALIZED
    assert not cache.is_ready
    assert list(cache.all_posts()) == []
    assert cache.post_by_identifier("a") is None
    assert cache.feed() is None
    assert len(cache) == 0


def test_posts_are_sorted_newest_first(feed_config):
    loader = StubLoader(
        [make_rendered("middle", day=5), make_rendered("oldest", day=1), make_rendered("newest", day=9)]
    )
    cache = PostCache(loader, feed_config)
    cache.initialize()
    assert [p.identifier for p in cache.all_posts()] == ["newest", "middle", "oldest"]
    stamps = [p.published_at for p in cache.all_posts()]
    assert all(a > b for a, b in zip(stamps, stamps[1:]))


def test_equal_timestamps_are_ordered_by_identifier():
    posts = [make_rendered(name, day=3).post for name in ("charlie", "alpha", "bravo")]
    posts.append(make_rendered("zulu", day=4).post)
    assert [p.identifier for p in sort_posts(posts)] == ["zulu", "alpha", "bravo", "charlie"]


def test_lookup_by_identifier(feed_config):
    rendered = [make_rendered("one", day=1), make_rendered("two", day=2)]
    cache = PostCache(StubLoader(rendered), feed_config)
    cache.initialize()
    for item in rendered:
        found = cache.post_by_identifier(item.identifier)
        assert found is not None
        assert found.identifier == item.identifier
        assert found.artifact == item.artifact
    assert cache.post_by_identifier("three") is None
    assert cache.post_by_identifier("") is None


def test_index_is_read_only(feed_config):
    cache = PostCache(StubLoader([make_rendered("one")]), feed_config)
    cache.initialize()
    with pytest.raises(TypeError):
        cache._snapshot.by_identifier["two"] = None
    assert isinstance(cache.all_posts(), tuple)


def test_initialize_is_idempotent(feed_config):
    loader = StubLoader([make_rendered("one")])
    cache = PostCache(loader, feed_config)
    cache.initialize()
    posts = cache.all_posts()
    feed = cache.feed()
    cache.initialize()
    cache.initialize()
    assert loader.calls == 1
    assert cache.all_posts() is posts
    assert cache.feed() is feed


def test_concurrent_initialize_loads_once(feed_config):
    loader = StubLoader(
        [make_rendered(f"post-{i}", day=i + 1) for i in range(5)],
        delay=lambda: time.sleep(0.05),
    )
    cache = PostCache(loader, feed_config)
    callers = 16
    barrier = threading.Barrier(callers)
    observed = []
    errors = []

    def worker():
        barrier.wait()
        try:
            cache.initialize()
            observed.append((cache.state, tuple(p.identifier for p in cache.all_posts()), cache.feed()))
        except Exception as exc:  # pragma: no cover - reported below
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(callers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert errors == []
    assert loader.calls == 1
    assert len(observed) == callers
    assert len(set(observed)) == 1
    state, identifiers, feed = observed[0]
    assert state is CacheState.READY
    assert identifiers == ("post-4", "post-3", "post-2", "post-1", "post-0")
    assert feed is not None


def test_waiting_caller_times_out_with_distinct_error(feed_config):
    release = threading.Event()
    started = threading.Event()

    def block():
        started.set()
        release.wait(5)

    cache = PostCache(StubLoader([make_rendered("slow")], delay=block), feed_config)
    owner = threading.Thread(target=cache.initialize)
    owner.start()
    assert started.wait(5)

    with pytest.raises(InitializationTimeoutError):
        cache.initialize(timeout=0.05)
    assert cache.state is CacheState.INITIALIZING
    assert cache.all_posts() == ()

    release.set()
    owner.join(5)
    assert cache.state is CacheState.READY
    cache.initialize(timeout=0.05)
    assert [p.identifier for p in cache.all_posts()] == ["slow"]


def test_duplicate_identifiers_fail_initialization(feed_config):
    loader = StubLoader([make_rendered("same", day=1), make_rendered("same", day=2)])
    cache = PostCache(loader, feed_config)
    with pytest.raises(DuplicatePostError, match="same"):
        cache.initialize()
    assert cache.state is CacheState.FAILED
    assert cache.all_posts() == ()


def test_index_posts_detects_duplicates():
    with pytest.raises(DuplicatePostError):
        index_posts([make_rendered("x"), make_rendered("x")])
    assert set(index_posts([make_rendered("x"), make_rendered("y")])) == {"x", "y"}


def test_failed_initialization_is_terminal(feed_config):
    loader = StubLoader(error=PostLoadError("broken.md", "no front matter found"))
    cache = PostCache(loader, feed_config)

    with pytest.raises(PostLoadError):
        cache.initialize()
    with pytest.raises(CacheInitializationError) as excinfo:
        cache.initialize()

    assert isinstance(excinfo.value.__cause__, PostLoadError)
    assert loader.calls == 1
    assert cache.state is CacheState.FAILED
    assert cache.feed() is None


def test_malformed_file_aborts_startup(tmp_path, feed_config, stub_renderer):
    root = tmp_path / "content"
    write_post(root, "good-one.md", title="One")
    write_post(root, "good-two.md", title="Two")
    (root / "bad.md").write_text("no front matter\n", encoding="utf-8")

    cache = PostCache(ContentProcessor(root, body_renderer=stub_renderer), feed_config)
    with pytest.raises(PostLoadError) as excinfo:
        cache.initialize()

    assert excinfo.value.source_path == root / "bad.md"
    assert cache.state is CacheState.FAILED
    assert cache.all_posts() == ()
    assert cache.post_by_identifier("good-one") is None


def test_feed_is_generated_from_sorted_posts(feed_config):
    loader = StubLoader([make_rendered("old", day=1), make_rendered("new", day=2)])
    cache = PostCache(loader, feed_config)
    cache.initialize()

    feed = cache.feed()
    assert feed.content_type == "application/rss+xml; charset=utf-8"
    assert decompress(feed.compressed) == feed.raw
    links = [el.text for el in ET.fromstring(feed.raw).iter("link")]
    assert links == [
        "https://example.com/reflections",
        "https://example.com/reflections/new",
        "https://example.com/reflections/old",
    ]


def test_feed_generator_sees_final_order(feed_config):
    seen = []

    class RecordingGenerator(RSSGenerator):
        def render(self, posts, config):
            seen.append([p.identifier for p in posts])
            return super().render(posts, config)

    loader = StubLoader([make_rendered("b", day=1), make_rendered("a", day=3), make_rendered("c", day=2)])
    cache = PostCache(loader, feed_config, feed_generator=RecordingGenerator())
    cache.initialize()
    assert seen == [["a", "c", "b"]]


def test_feed_failure_keeps_posts_serving(feed_config):
    class BrokenGenerator(RSSGenerator):
        def render(self, posts, config):
            raise FeedError("cannot encode")

    cache = PostCache(
        StubLoader([make_rendered("one")]), feed_config, feed_generator=BrokenGenerator()
    )
    cache.initialize()

    assert cache.state is CacheState.READY
    assert cache.feed() is None
    assert isinstance(cache.feed_error, FeedError)
    assert cache.post_by_identifier("one") is not None


def test_empty_corpus(feed_config):
    now = datetime(2025, 6, 1, 12, 30, tzinfo=timezone.utc)
    cache = PostCache(StubLoader([]), feed_config, feed_generator=RSSGenerator(clock=lambda: now))
    cache.initialize()

    assert cache.is_ready
    assert cache.all_posts() == ()
    assert cache.post_by_identifier("anything") is None
    channel = ET.fromstring(cache.feed().raw).find("channel")
    assert channel.findall("item") == []
    assert channel.findtext("lastBuildDate") == "Sun, 01 Jun 2025 12:30:00 +0000"


def test_loading_caller_times_out_when_load_is_slow(feed_config):
    release = threading.Event()
    loader = StubLoader([make_rendered("slow")], delay=lambda: release.wait(5))
    cache = PostCache(loader, feed_config)

    with pytest.raises(InitializationTimeoutError):
        cache.initialize(timeout=0.05)
    assert cache.state is CacheState.INITIALIZING

    release.set()
    cache.initialize(timeout=5)
    assert cache.state is CacheState.READY
    assert loader.calls == 1
    assert [p.identifier for p in cache.all_posts()] == ["slow"]


def test_loading_caller_with_timeout_gets_original_error(feed_config):
    loader = StubLoader(error=PostLoadError("broken.md", "no front matter found"))
    cache = PostCache(loader, feed_config)

    with pytest.raises(PostLoadError):
        cache.initialize(timeout=5)
    assert cache.state is CacheState.FAILED


def test_loading_caller_with_timeout_completes_fast_loads(feed_config):
    cache = PostCache(StubLoader([make_rendered("one")]), feed_config)
    cache.initialize(timeout=5)
    assert cache.is_ready
    assert cache.feed() is not None
