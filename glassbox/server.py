"""HTTP server for Glassbox.

Serves the cached site on a threading HTTP server, one thread per request:
- ``/`` and ``/reflections`` render listings from the cache's ordered posts.
- ``/reflections/<slug>`` serves the pre-rendered post page.
- ``/reflections/feed.rss`` serves the pre-rendered RSS feed.
- ``/static/highlight.css`` serves the code highlighting stylesheet.

Pre-rendered payloads are served Brotli-compressed when the client accepts
it. Only GET and HEAD are allowed.

Key classes:
- SiteServer: Owns the HTTP server and its collaborators.
- _SiteHandler: Request handler routing to the cache.
"""

from __future__ import annotations

import functools
import logging
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import unquote, urlsplit

from .artifacts import CSS_CONTENT_TYPE, HTML_CONTENT_TYPE, RenderedArtifact
from .cache import PostCache
from .negotiation import select_payload
from .renderers import highlight_css
from .templates import TemplateEngine

logger = logging.getLogger(__name__)

REFLECTIONS_PATH = "/reflections"
FEED_PATH = "/reflections/feed.rss"
STYLESHEET_PATH = "/static/highlight.css"


class _SiteHandler(BaseHTTPRequestHandler):
    """Request handler serving pages from the post cache.

    Attributes:
        cache: Initialized post cache.
        engine: Template engine for listing and error pages.
        stylesheet: Pre-rendered highlight stylesheet.
    """

    server_version = "glassbox"

    def __init__(
        self,
        *args,
        cache: PostCache,
        engine: TemplateEngine,
        stylesheet: RenderedArtifact,
        **kwargs,
    ):
        self.cache = cache
        self.engine = engine
        self.stylesheet = stylesheet
        super().__init__(*args, **kwargs)

    def do_GET(self) -> None:
        self._dispatch(head_only=False)

    def do_HEAD(self) -> None:
        self._dispatch(head_only=True)

    def _method_not_allowed(self) -> None:
        self._send_text(HTTPStatus.METHOD_NOT_ALLOWED, "Method not allowed")

    do_POST = do_PUT = do_PATCH = do_DELETE = do_OPTIONS = _method_not_allowed

    def log_message(self, format: str, *args) -> None:
        logger.info("%s - %s", self.address_string(), format % args)

    def _dispatch(self, head_only: bool) -> None:
        self._head_only = head_only
        path = unquote(urlsplit(self.path).path)

        if path == "/":
            self._send_html(self.engine.render_home(self.cache.all_posts()))
        elif path == REFLECTIONS_PATH:
            self._send_html(self.engine.render_reflections(self.cache.all_posts()))
        elif path == FEED_PATH:
            self._serve_feed()
        elif path.startswith(REFLECTIONS_PATH + "/"):
            self._serve_post(path[len(REFLECTIONS_PATH) + 1 :])
        elif path == STYLESHEET_PATH:
            self._send_artifact(self.stylesheet)
        else:
            self._serve_not_found()

    def _serve_post(self, slug: str) -> None:
        if not slug:
            self._send_text(HTTPStatus.BAD_REQUEST, "reflection id must be set")
            return
        rendered = self.cache.post_by_identifier(slug)
        if rendered is None:
            self._serve_not_found()
            return
        self._send_artifact(rendered.artifact)

    def _serve_feed(self) -> None:
        feed = self.cache.feed()
        if feed is None:
            self._send_text(HTTPStatus.INTERNAL_SERVER_ERROR, "RSS feed not available")
            return
        self._send_artifact(feed)

    def _serve_not_found(self) -> None:
        self._send_html(self.engine.render_not_found(), HTTPStatus.NOT_FOUND)

    def _send_artifact(self, artifact: RenderedArtifact) -> None:
        body, headers = select_payload(artifact, self.headers.get("Accept-Encoding"))
        self._send(HTTPStatus.OK, body, headers)

    def _send_html(self, html: str, status: HTTPStatus = HTTPStatus.OK) -> None:
        self._send(status, html.encode("utf-8"), {"Content-Type": HTML_CONTENT_TYPE})

    def _send_text(self, status: HTTPStatus, message: str) -> None:
        self._send(
            status,
            f"{message}\n".encode("utf-8"),
            {"Content-Type": "text/plain; charset=utf-8"},
        )

    def _send(self, status: HTTPStatus, body: bytes, headers: dict[str, str]) -> None:
        self.send_response(status)
        for name, value in headers.items():
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if not getattr(self, "_head_only", False):
            self.wfile.write(body)


class SiteServer:
    """HTTP server for a ready post cache.

    Attributes:
        cache: Post cache, initialized before serving.
        engine: Template engine.
        host: Interface to bind.
        port: Port to bind; 0 picks a free port.
    """

    def __init__(
        self,
        cache: PostCache,
        engine: TemplateEngine,
        host: str = "",
        port: int = 9090,
    ):
        self.cache = cache
        self.engine = engine
        self.stylesheet = RenderedArtifact.build(highlight_css(), CSS_CONTENT_TYPE)
        handler = functools.partial(
            _SiteHandler, cache=cache, engine=engine, stylesheet=self.stylesheet
        )
        self.httpd = ThreadingHTTPServer((host, port), handler)
        self.httpd.daemon_threads = True

    @property
    def port(self) -> int:
        return self.httpd.server_address[1]

    def serve_forever(self) -> None:  # pragma: no cover - integration path
        logger.info("Server starting on http://localhost:%d", self.port)
        try:
            self.httpd.serve_forever()
        except KeyboardInterrupt:
            logger.info("Shutting down")
        finally:
            self.httpd.server_close()

    def shutdown(self) -> None:
        self.httpd.shutdown()
        self.httpd.server_close()
