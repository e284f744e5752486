"""Content encodings: base64 heuristic, payload codecs, append merge policy.

File content crosses the API as a string. Without an explicit
:class:`Encoding` the string is a base64 payload; with one it is text in
that encoding. On disk the decoded bytes are stored, and the record keeps
an encoding tag so reads can hand back what was written.
"""

from __future__ import annotations

import base64
import binascii

from .exceptions import InvalidEncodingError
from .types import Encoding

BASE64_TAG = "base64"

# utf-16 without BOM so that appended chunks concatenate cleanly
_CODECS: dict[Encoding, str] = {
    Encoding.UTF8: "utf-8",
    Encoding.ASCII: "ascii",
    Encoding.UTF16: "utf-16-le",
}


def is_base64(content: str) -> bool:
    """Round-trip heuristic: decode then re-encode must reproduce *content*.

    Probabilistic. Plain text such as ``"abcd"`` is valid base64 and is
    classified as binary.
    """
    try:
        decoded = base64.b64decode(content, validate=True)
    except (binascii.Error, ValueError):
        return False
    return base64.b64encode(decoded).decode("ascii") == content


def detect_encoding(content: str) -> Encoding | None:
    """Classify *content*: ``None`` for base64-looking content, else UTF-8."""
    return None if is_base64(content) else Encoding.UTF8


def encoding_tag(encoding: Encoding | None) -> str:
    """Return the tag stored on the record for *encoding*."""
    return BASE64_TAG if encoding is None else Encoding(encoding).value


def encoding_from_tag(tag: str | None) -> Encoding | None:
    """Inverse of :func:`encoding_tag`. Unknown/missing tags map to ``None``."""
    if tag is None or tag == BASE64_TAG:
        return None
    return Encoding(tag)


def is_binary_tag(tag: str | None) -> bool:
    return tag == BASE64_TAG


def encode_payload(content: str, encoding: Encoding | None) -> bytes:
    """Turn API content into the bytes stored on disk."""
    if encoding is None:
        if not is_base64(content):
            raise InvalidEncodingError("The supplied data is not valid base64 content.")
        return base64.b64decode(content)
    try:
        return content.encode(_CODECS[Encoding(encoding)])
    except UnicodeEncodeError as e:
        raise InvalidEncodingError(f"Content cannot be encoded as {encoding.value}: {e}") from e


def decode_payload(data: bytes, encoding: Encoding | None) -> str:
    """Turn stored bytes back into API content."""
    if encoding is None:
        return base64.b64encode(data).decode("ascii")
    try:
        return data.decode(_CODECS[Encoding(encoding)])
    except UnicodeDecodeError as e:
        raise InvalidEncodingError(f"File content is not valid {encoding.value}: {e}") from e


def content_size(content: str) -> int:
    """Size of content in its stored encoding."""
    return len(content)


def sniff_stored(data: bytes) -> tuple[str, Encoding | None]:
    """Decode bytes of an untagged file: UTF-8 text if possible, else base64."""
    try:
        return data.decode("utf-8"), Encoding.UTF8
    except UnicodeDecodeError:
        return base64.b64encode(data).decode("ascii"), None


def merge_payload(
    existing: bytes,
    existing_tag: str | None,
    content: str,
    encoding: Encoding | None,
) -> tuple[bytes, str, int]:
    """Merge appended *content* into *existing* stored bytes.

    Returns ``(merged_bytes, tag, size)``.

    - binary + binary: decode both, concatenate bytes, re-encode
    - text + text: concatenate the text
    - binary + text (either way): :class:`InvalidEncodingError`

    Empty or untagged existing content adopts the new encoding.
    """
    new_is_binary = encoding is None
    if existing and existing_tag is not None and is_binary_tag(existing_tag) != new_is_binary:
        raise InvalidEncodingError(
            f"Cannot append {encoding_tag(encoding)} content to a {existing_tag} file"
        )

    if new_is_binary:
        merged = existing + encode_payload(content, None)
        return merged, BASE64_TAG, content_size(decode_payload(merged, None))

    old_encoding = encoding_from_tag(existing_tag) if existing_tag else encoding
    old_text = decode_payload(existing, old_encoding) if existing else ""
    merged_text = old_text + content
    return encode_payload(merged_text, encoding), encoding_tag(encoding), content_size(merged_text)
