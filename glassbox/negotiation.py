"""Content-encoding negotiation for pre-compressed artifacts."""

from __future__ import annotations

from .artifacts import RenderedArtifact
from .compression import ENCODING


def accepted_encodings(header: str | None) -> dict[str, float]:
    """Parse an Accept-Encoding header into a mapping of coding to q-value.

    Malformed q-values are treated as 0.

    Examples:
        >>> accepted_encodings("gzip, br;q=0.8")
        {'gzip': 1.0, 'br': 0.8}
    """
    result: dict[str, float] = {}
    if not header:
        return result
    for part in header.split(","):
        coding, _, params = part.strip().partition(";")
        coding = coding.strip().lower()
        if not coding:
            continue
        quality = 1.0
        for param in params.split(";"):
            name, _, value = param.strip().partition("=")
            if name.strip().lower() == "q":
                try:
                    quality = float(value)
                except ValueError:
                    quality = 0.0
        result[coding] = quality
    return result


def accepts(header: str | None, coding: str = ENCODING) -> bool:
    """Check whether a client accepts the given content coding."""
    encodings = accepted_encodings(header)
    if coding in encodings:
        return encodings[coding] > 0
    return encodings.get("*", 0) > 0


def select_payload(
    artifact: RenderedArtifact, accept_encoding: str | None
) -> tuple[bytes, dict[str, str]]:
    """Choose the raw or compressed payload for a request.

    Args:
        artifact: Artifact to serve.
        accept_encoding: Value of the request's Accept-Encoding header.

    Returns:
        Tuple of (body, response headers).
    """
    headers = {"Content-Type": artifact.content_type}
    if artifact.has_compressed and accepts(accept_encoding):
        headers["Content-Encoding"] = ENCODING
        headers["Vary"] = "Accept-Encoding"
        return artifact.compressed_bytes(), headers
    return artifact.raw_bytes(), headers
