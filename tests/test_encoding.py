"""Tests for fs/encoding.py — base64 heuristic, codecs, append merge policy."""

from __future__ import annotations

import base64

import pytest

from handlefs.fs.encoding import (
    BASE64_TAG,
    decode_payload,
    detect_encoding,
    encode_payload,
    encoding_from_tag,
    encoding_tag,
    is_base64,
    merge_payload,
    sniff_stored,
)
from handlefs.fs.exceptions import InvalidEncodingError
from handlefs.fs.types import Encoding


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


class TestIsBase64:
    @pytest.mark.parametrize(
        ("content", "expected"),
        [
            pytest.param("aGVsbG8=", True, id="padded"),
            pytest.param("IHdvcmxk", True, id="unpadded-multiple-of-4"),
            pytest.param("hello", False, id="plain-word"),
            pytest.param("!!!", False, id="punctuation"),
            pytest.param("aGVsbG8", False, id="missing-padding"),
            pytest.param("héllo", False, id="non-ascii"),
            pytest.param("", True, id="empty"),
        ],
    )
    def test_round_trip(self, content: str, expected: bool):
        assert is_base64(content) is expected

    def test_heuristic_misclassifies_base64_looking_text(self):
        # plain text that happens to round-trip is treated as binary
        assert detect_encoding("abcd") is None
        assert detect_encoding("hello") is Encoding.UTF8


class TestTags:
    def test_binary_tag(self):
        assert encoding_tag(None) == BASE64_TAG
        assert encoding_from_tag(BASE64_TAG) is None

    @pytest.mark.parametrize("encoding", list(Encoding))
    def test_text_tags(self, encoding: Encoding):
        assert encoding_from_tag(encoding_tag(encoding)) is encoding

    def test_missing_tag(self):
        assert encoding_from_tag(None) is None


class TestPayloadCodecs:
    def test_base64_payload_decoded_for_storage(self):
        assert encode_payload("aGVsbG8=", None) == b"hello"
        assert decode_payload(b"hello", None) == "aGVsbG8="

    def test_invalid_base64_rejected(self):
        with pytest.raises(InvalidEncodingError, match="base64"):
            encode_payload("not base64!", None)

    def test_ascii_cannot_encode_non_ascii(self):
        with pytest.raises(InvalidEncodingError):
            encode_payload("café", Encoding.ASCII)

    def test_utf16_has_no_bom(self):
        assert encode_payload("ab", Encoding.UTF16) == b"a\x00b\x00"

    def test_undecodable_bytes(self):
        with pytest.raises(InvalidEncodingError):
            decode_payload(b"\xff\xfe\xfd", Encoding.UTF8)

    def test_sniff_stored(self):
        assert sniff_stored(b"plain") == ("plain", Encoding.UTF8)
        assert sniff_stored(b"\xff\x00") == (b64(b"\xff\x00"), None)


class TestMergePayload:
    def test_text_plus_text(self):
        data, tag, size = merge_payload(b"hello", "utf8", "!!!", Encoding.UTF8)
        assert data == b"hello!!!"
        assert tag == "utf8"
        assert size == len("hello!!!")

    def test_binary_plus_binary_concatenates_decoded_bytes(self):
        data, tag, size = merge_payload(b"hello", BASE64_TAG, b64(b" world"), None)
        assert data == b"hello world"
        assert tag == BASE64_TAG
        assert size == len(b64(b"hello world"))

    def test_binary_existing_with_text_input_fails(self):
        with pytest.raises(InvalidEncodingError):
            merge_payload(b"\x00\x01", BASE64_TAG, "text", Encoding.UTF8)

    def test_text_existing_with_binary_input_fails(self):
        with pytest.raises(InvalidEncodingError):
            merge_payload(b"hello", "utf8", b64(b"x"), None)

    def test_empty_existing_adopts_new_encoding(self):
        data, tag, _ = merge_payload(b"", BASE64_TAG, "text", Encoding.UTF8)
        assert data == b"text"
        assert tag == "utf8"

    def test_untagged_existing_is_compatible(self):
        data, tag, size = merge_payload(b"disk ", None, "note", Encoding.UTF8)
        assert data == b"disk note"
        assert tag == "utf8"
        assert size == 9

    def test_text_size_counts_characters(self):
        _, _, size = merge_payload("é".encode(), "utf8", "è", Encoding.UTF8)
        assert size == 2
