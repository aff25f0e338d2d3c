"""Content codec and text conversion.

Stores hold content as opaque bytes, possibly encrypted.  The applier
passes every content it merges through a ``ContentCodec``: ``decode``
after reading from a store and ``encode`` before writing back.  The
conversion between bytes and text uses charset-normalizer detection so
legacy-encoded text files merge correctly; merged text is always written
back as UTF-8.
"""

from __future__ import annotations

from typing import Protocol

from charset_normalizer import from_bytes


class ContentCodec(Protocol):
    """Transform applied around every content read/write of a merge."""

    def encode(self, data: bytes) -> bytes:
        """Transform plain bytes into their stored form."""
        ...  # pragma: no cover

    def decode(self, data: bytes) -> bytes:
        """Transform stored bytes back into plain bytes."""
        ...  # pragma: no cover


class PlainCodec:
    """Identity codec: content is stored as-is."""

    def encode(self, data: bytes) -> bytes:
        return data

    def decode(self, data: bytes) -> bytes:
        return data


def bytes_to_text(raw: bytes) -> str:
    """Decode *raw* with automatic encoding detection.

    Defaults to UTF-8 for empty content or when detection fails.
    """
    if not raw:
        return ""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        pass

    result = from_bytes(raw).best()
    if result is None:
        return raw.decode("utf-8", errors="replace")
    return str(result)


def text_to_bytes(text: str) -> bytes:
    """Encode *text* as UTF-8."""
    return text.encode("utf-8")
