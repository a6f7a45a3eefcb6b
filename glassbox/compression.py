"""Brotli compression for pre-rendered payloads.

Every payload is compressed once at load time with the same quality setting
so that outputs are deterministic across posts, the feed and the stylesheet.
"""

from __future__ import annotations

import brotli

from .errors import CompressionError

ENCODING = "br"

# Balanced setting between speed (0) and size (11).
COMPRESSION_QUALITY = 6


def compress(payload: bytes, quality: int = COMPRESSION_QUALITY) -> bytes:
    """Compress a payload with Brotli.

    Args:
        payload: Raw bytes.
        quality: Brotli quality level (0-11).

    Returns:
        Compressed bytes.

    Raises:
        CompressionError: If the compressor rejects the input.
    """
    try:
        return brotli.compress(bytes(payload), quality=quality)
    except (brotli.error, TypeError, ValueError) as exc:
        raise CompressionError(f"failed to compress payload: {exc}") from exc


def decompress(payload: bytes) -> bytes:
    """Decompress a Brotli payload.

    Raises:
        CompressionError: If the payload is not valid Brotli data.
    """
    try:
        return brotli.decompress(payload)
    except brotli.error as exc:
        raise CompressionError(f"failed to decompress payload: {exc}") from exc
