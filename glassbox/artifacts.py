"""Rendered artifacts: raw bytes paired with their compressed form.

Posts, the feed and the highlight stylesheet are all served from the same
value type, so the HTTP layer has a single code path for content negotiation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .compression import compress
from .errors import CompressionError

logger = logging.getLogger(__name__)

HTML_CONTENT_TYPE = "text/html; charset=utf-8"
RSS_CONTENT_TYPE = "application/rss+xml; charset=utf-8"
CSS_CONTENT_TYPE = "text/css; charset=utf-8"


@dataclass(frozen=True)
class RenderedArtifact:
    """A cached payload with an optional pre-compressed counterpart.

    Attributes:
        raw: Uncompressed payload.
        compressed: Brotli form of ``raw``, or None when compression failed.
        content_type: Value for the Content-Type response header.
    """

    raw: bytes
    compressed: bytes | None
    content_type: str

    @classmethod
    def build(cls, raw: bytes | str, content_type: str) -> RenderedArtifact:
        """Create an artifact, compressing the payload.

        A compression failure is logged and leaves the artifact raw-only.

        Args:
            raw: Payload; strings are encoded as UTF-8.
            content_type: Content type of the payload.

        Returns:
            New RenderedArtifact.
        """
        if isinstance(raw, str):
            raw = raw.encode("utf-8")
        try:
            compressed: bytes | None = compress(raw)
        except CompressionError as exc:
            logger.warning("Serving uncompressed %s payload: %s", content_type, exc)
            compressed = None
        return cls(raw=raw, compressed=compressed, content_type=content_type)

    def raw_bytes(self) -> bytes:
        return self.raw

    def compressed_bytes(self) -> bytes | None:
        return self.compressed

    @property
    def has_compressed(self) -> bool:
        return bool(self.compressed)
