"""
Text-safe encoding of binary file payloads for snapshots.

Files travel inside the JSON snapshot as data URIs
(``data:<mime>;base64,<payload>``). Decoding also accepts a bare base64
string: the text is split once on the first comma and, when there are two
parts, the second one is the payload; otherwise the whole string is.
"""

import base64
import binascii
import re
from collections.abc import Iterator
from typing import BinaryIO

from libreader.constants import ARCHIVE_CHUNK_SIZE, MIME_TYPES
from libreader.exceptions import ValidationError

_MIME_PATTERN = re.compile(r":(.*?);")
_WHITESPACE = re.compile(r"\s+")


def default_mime_type(kind: str) -> str:
    """Return the MIME type used for a document kind (epub or pdf)."""
    return MIME_TYPES.get(kind, MIME_TYPES["pdf"])


def data_uri_prefix(mime_type: str) -> str:
    """Return the header written in front of a base64 payload."""
    return f"data:{mime_type};base64,"


def encode_data_uri(content: bytes, mime_type: str) -> str:
    """Encode bytes as a ``data:<mime>;base64,`` string."""
    return data_uri_prefix(mime_type) + base64.b64encode(content).decode("ascii")


def iter_data_uri(
    stream: BinaryIO, mime_type: str, chunk_size: int = ARCHIVE_CHUNK_SIZE
) -> Iterator[str]:
    """
    Encode a binary stream as a data URI, one chunk at a time.

    Each slice read from the stream is a multiple of 3 bytes long, so the
    concatenated chunks equal ``encode_data_uri`` of the whole content.

    Args:
        stream: Readable binary stream
        mime_type: MIME type written in the header
        chunk_size: Raw bytes per chunk, rounded down to a multiple of 3

    Yields:
        The header followed by base64 text chunks
    """
    chunk_size = max(3, chunk_size - chunk_size % 3)
    yield data_uri_prefix(mime_type)

    pending = b""
    while True:
        block = stream.read(chunk_size - len(pending))
        if not block:
            break
        pending += block
        if len(pending) < chunk_size:
            continue
        yield base64.b64encode(pending).decode("ascii")
        pending = b""

    if pending:
        yield base64.b64encode(pending).decode("ascii")


def split_payload(data: str) -> str:
    """Return the base64 part of a data URI or of a bare payload."""
    parts = data.split(",", 1)
    return parts[1] if len(parts) == 2 else parts[0]  # noqa: PLR2004


def decode_payload(data: str) -> bytes:
    """
    Decode a data URI or a bare base64 string into bytes.

    Whitespace is ignored and missing padding is restored.

    Raises:
        ValidationError: If the payload is not valid base64
    """
    payload = _WHITESPACE.sub("", split_payload(data))
    payload += "=" * (-len(payload) % 4)
    try:
        return base64.b64decode(payload)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"Invalid base64 file payload: {e!s}") from e


def parse_mime_type(data: str, default: str | None = None) -> str | None:
    """Return the MIME type from a data URI header, or ``default`` for bare payloads."""
    if "," not in data:
        return default
    header = data.split(",", 1)[0]
    match = _MIME_PATTERN.search(header)
    if match and match.group(1):
        return match.group(1)
    return default
