"""Glassbox personal site server.

This package serves markdown reflections from disk as pre-rendered HTML pages,
alongside an RSS feed. Content is loaded, rendered and compressed exactly once
per process and then served from an immutable in-memory cache.

The main entry point is the CLI module, which provides commands for serving
the site, checking content, printing the highlight stylesheet and scaffolding
new posts.

Architecture:
- frontmatter: splits documents into metadata and body.
- renderers: markdown to HTML behind a small protocol.
- compression: Brotli payloads served with content negotiation.
- content: discovers content files and builds posts.
- cache: run-once initialization and read-only lookups.
- feeds: RSS 2.0 generation.
- server: HTTP handlers on top of the cache.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
