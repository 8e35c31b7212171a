"""Payload encodings.

Maps the recognized encoding names onto Python codecs, serializes payloads
for the payload file, and decodes payload bytes incrementally when streamed.
"""

from __future__ import annotations

import base64
import binascii
import codecs
import json
from enum import Enum
from typing import Any

from duocache.core.caching.errors import InvalidInputError


class Encoding(str, Enum):
    """Recognized payload encodings. Declaration order matters: the first is the default."""

    UTF8 = "utf8"
    ASCII = "ascii"
    BINARY = "binary"
    LATIN1 = "latin1"
    UTF16LE = "utf16le"
    UCS2 = "ucs2"
    BASE64 = "base64"
    HEX = "hex"


DEFAULT_ENCODING = next(iter(Encoding))

_TEXT_CODECS: dict[Encoding, str] = {
    Encoding.UTF8: "utf-8",
    Encoding.ASCII: "ascii",
    Encoding.BINARY: "latin-1",
    Encoding.LATIN1: "latin-1",
    Encoding.UTF16LE: "utf-16-le",
    Encoding.UCS2: "utf-16-le",
}

BytesLike = bytes | bytearray | memoryview


def parse_encoding(value: Any) -> Encoding | None:
    """Return the Encoding named by ``value`` (case-insensitive), or None if unrecognized."""
    if isinstance(value, Encoding):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Encoding(value.strip().lower())
    except ValueError:
        return None


def resolve_encoding(requested: Any, payload: Any) -> Encoding:
    """
    Pick the encoding for a payload.

    An explicit recognized choice wins; byte buffers default to binary;
    everything else gets the first recognized encoding.
    """
    encoding = parse_encoding(requested)
    if encoding is not None:
        return encoding
    if isinstance(payload, BytesLike):
        return Encoding.BINARY
    return DEFAULT_ENCODING


def serialize_payload(payload: Any, encoding: Encoding) -> bytes:
    """
    Convert a payload to the bytes stored in its payload file.

    Byte buffers are stored verbatim. Non-string values are JSON-serialized
    first. For base64 and hex, the text is taken to be already encoded and
    its decoded bytes are stored.

    Raises:
        InvalidInputError: If the payload cannot be represented in ``encoding``
    """
    if isinstance(payload, BytesLike):
        return bytes(payload)

    if isinstance(payload, str):
        text = payload
    else:
        try:
            text = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"payload is not JSON-serializable: {e}", cause=e) from e

    try:
        if encoding is Encoding.BASE64:
            return base64.b64decode("".join(text.split()), validate=True)
        if encoding is Encoding.HEX:
            return bytes.fromhex(text)
        return text.encode(_TEXT_CODECS[encoding])
    except (binascii.Error, ValueError, UnicodeEncodeError) as e:
        raise InvalidInputError(
            f"payload cannot be encoded as {encoding.value}: {e}", cause=e
        ) from e


class ChunkDecoder:
    """
    Incremental decoder turning payload file chunks into stream items.

    ``binary`` yields bytes untouched, ``base64`` and ``hex`` yield encoded
    text, and the text codecs yield ``str`` without splitting multibyte
    sequences across chunks.
    """

    def __init__(self, encoding: Encoding) -> None:
        self.encoding = encoding
        self._pending = b""
        self._text = (
            codecs.getincrementaldecoder(_TEXT_CODECS[encoding])(errors="replace")
            if encoding in _TEXT_CODECS and encoding is not Encoding.BINARY
            else None
        )

    def decode(self, chunk: bytes, final: bool = False) -> str | bytes:
        if self.encoding is Encoding.BINARY:
            return chunk
        if self.encoding is Encoding.HEX:
            return chunk.hex()
        if self.encoding is Encoding.BASE64:
            data = self._pending + chunk
            cut = len(data) if final else len(data) - len(data) % 3
            self._pending = data[cut:]
            return base64.b64encode(data[:cut]).decode("ascii")

        if self._text is None:
            raise ValueError(f"no text decoder for encoding {self.encoding.value}")
        return self._text.decode(chunk, final)
