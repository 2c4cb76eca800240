"""Request body compression for the collector endpoints."""

import gzip

SUPPORTED = ("", "gzip")

GZIP_MAGIC = b"\x1f\x8b"


def validate_compression(name: str) -> str:
    """Normalize a compression name; "" (or "none") disables compression."""
    name = (name or "").strip().lower()
    if name == "none":
        name = ""
    if name not in SUPPORTED:
        raise ValueError(f"Unsupported compression: {name!r}")
    return name


def compress_body(body: bytes, compression: str) -> tuple[bytes, dict]:
    """Compress *body* and return it with the headers that describe it."""
    if compression == "gzip":
        return gzip.compress(body), {"Content-Encoding": "gzip"}
    return body, {}


def decompress_body(body: bytes, content_encoding: str = "") -> bytes:
    """Undo :func:`compress_body` based on the Content-Encoding header."""
    if content_encoding.strip().lower() == "gzip":
        return gzip.decompress(body)
    return body


def is_compressed(data: bytes) -> bool:
    """Detect gzip data by its magic bytes."""
    return data[:2] == GZIP_MAGIC
