import threading

import pytest
from conftest import write_post

from glassbox.app import create_site, initialize_site
from glassbox.cache import CacheState
from glassbox.config import load_config
from glassbox.errors import InitializationTimeoutError

release = threading.Event()


class SlowProcessor:
    def __init__(self, root, body_renderer=None, page_renderer=None):
        self.root = root

    def load(self):
        release.wait(5)
        return []


@pytest.fixture
def slow_loading(monkeypatch):
    release.clear()
    monkeypatch.setattr("glassbox.app.ContentProcessor", SlowProcessor)
    yield
    release.set()


def test_initialize_site_loads_posts(tmp_path):
    write_post(tmp_path / "content" / "reflections", "hello.md", title="Hello")
    site = initialize_site(tmp_path, load_config(tmp_path, environ={}))

    assert site.cache.is_ready
    assert [p.identifier for p in site.cache.all_posts()] == ["hello"]
    page = site.cache.post_by_identifier("hello").artifact.raw
    assert b"<h1>Hello</h1>" in page


def test_create_site_leaves_cache_uninitialized(tmp_path):
    site = create_site(tmp_path, load_config(tmp_path, environ={}))
    assert site.cache.state is CacheState.UNINITIALIZED
    assert site.engine.data["title"] == site.config["title"]


def test_configured_timeout_bounds_startup(tmp_path, slow_loading):
    (tmp_path / "glassbox.yaml").write_text("init_timeout: 0.05\n", encoding="utf-8")
    config = load_config(tmp_path, environ={})

    with pytest.raises(InitializationTimeoutError):
        initialize_site(tmp_path, config)
