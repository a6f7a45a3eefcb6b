"""Error types for Glassbox.

All errors raised by the content pipeline derive from GlassboxError so the
CLI can report them uniformly. Per-file failures carry the offending source
path so startup aborts point at the file to fix.
"""

from __future__ import annotations

from pathlib import PurePath


class GlassboxError(Exception):
    """Base class for all Glassbox errors."""


class ConfigError(GlassboxError):
    """Invalid configuration value."""


class ContentReadError(GlassboxError):
    """The content root or a content file could not be read."""


class RenderError(GlassboxError):
    """The markdown renderer or page renderer failed."""


class CompressionError(GlassboxError):
    """A payload could not be compressed."""


class FeedError(GlassboxError):
    """The syndication feed could not be generated."""


class PostLoadError(GlassboxError):
    """Error while loading a single post, with file context.

    Attributes:
        source_path: Path to the source file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: PurePath | str,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


class DuplicatePostError(GlassboxError):
    """Two content files resolved to the same post identifier."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"Duplicate post identifier: {identifier!r}")


class CacheInitializationError(GlassboxError):
    """The post cache failed to initialize and will never become ready."""


class InitializationTimeoutError(GlassboxError):
    """Waiting for another caller's cache initialization took too long."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Cache initialization did not finish within {timeout:g}s")
