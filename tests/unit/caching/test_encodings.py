"""Tests for payload encodings."""

import pytest

from duocache.core.caching import DEFAULT_ENCODING, Encoding, InvalidInputError
from duocache.core.caching.encodings import (
    ChunkDecoder,
    parse_encoding,
    resolve_encoding,
    serialize_payload,
)


class TestParseEncoding:
    """Tests for encoding name recognition."""

    def test_recognized_names(self):
        """Test all eight names are recognized, in declaration order."""
        assert [e.value for e in Encoding] == [
            "utf8",
            "ascii",
            "binary",
            "latin1",
            "utf16le",
            "ucs2",
            "base64",
            "hex",
        ]
        assert DEFAULT_ENCODING is Encoding.UTF8

    @pytest.mark.parametrize("value", ["HEX", "Hex", " hex "])
    def test_case_insensitive(self, value):
        assert parse_encoding(value) is Encoding.HEX

    @pytest.mark.parametrize("value", ["utf-8", "klingon", "", None, 8])
    def test_unrecognized(self, value):
        assert parse_encoding(value) is None


class TestResolveEncoding:
    """Tests for choosing a payload's encoding."""

    def test_explicit_choice_wins(self):
        assert resolve_encoding("ascii", b"raw") is Encoding.ASCII

    @pytest.mark.parametrize("payload", [b"raw", bytearray(b"raw"), memoryview(b"raw")])
    def test_byte_buffers_default_to_binary(self, payload):
        assert resolve_encoding(None, payload) is Encoding.BINARY

    @pytest.mark.parametrize("payload", ["text", {"a": 1}, 42])
    def test_everything_else_defaults(self, payload):
        assert resolve_encoding("bogus", payload) is DEFAULT_ENCODING


class TestSerializePayload:
    """Tests for payload file contents."""

    def test_bytes_verbatim(self):
        """Test byte buffers ignore the encoding."""
        assert serialize_payload(b"\xff\x00", Encoding.UTF8) == b"\xff\x00"

    def test_text_codecs(self):
        assert serialize_payload("é", Encoding.UTF8) == b"\xc3\xa9"
        assert serialize_payload("é", Encoding.LATIN1) == b"\xe9"
        assert serialize_payload("é", Encoding.BINARY) == b"\xe9"
        assert serialize_payload("ab", Encoding.UTF16LE) == b"a\x00b\x00"
        assert serialize_payload("ab", Encoding.UCS2) == b"a\x00b\x00"

    def test_structured_payload_is_compact_json(self):
        assert serialize_payload({"a": [1, "é"]}, Encoding.UTF8) == '{"a":[1,"é"]}'.encode()

    def test_zero_and_false_payloads(self):
        """Test falsy scalar payloads are data, not absence."""
        assert serialize_payload(0, Encoding.UTF8) == b"0"
        assert serialize_payload(False, Encoding.UTF8) == b"false"

    def test_base64_and_hex_store_decoded_bytes(self):
        assert serialize_payload("aGVs\nbG8=", Encoding.BASE64) == b"hello"
        assert serialize_payload("68656c6c6f", Encoding.HEX) == b"hello"

    @pytest.mark.parametrize(
        ("payload", "encoding"),
        [
            ("not base64!", Encoding.BASE64),
            ("xyz", Encoding.HEX),
            ("é", Encoding.ASCII),
            ({1, 2}, Encoding.UTF8),
        ],
    )
    def test_unrepresentable_payload(self, payload, encoding):
        """Test payloads the encoding cannot hold are invalid input."""
        with pytest.raises(InvalidInputError):
            serialize_payload(payload, encoding)


class TestChunkDecoder:
    """Tests for incremental decoding."""

    def test_base64_buffers_partial_groups(self):
        """Test base64 output is identical however the bytes are chunked."""
        decoder = ChunkDecoder(Encoding.BASE64)
        parts = [decoder.decode(b"he"), decoder.decode(b"ll"), decoder.decode(b"o", final=True)]

        assert parts[0] == ""
        assert "".join(parts) == "aGVsbG8="

    def test_utf16_split_code_unit(self):
        decoder = ChunkDecoder(Encoding.UTF16LE)
        assert decoder.decode(b"a") == ""
        assert decoder.decode(b"\x00", final=True) == "a"

    def test_invalid_bytes_replaced(self):
        decoder = ChunkDecoder(Encoding.UTF8)
        assert decoder.decode(b"\xff", final=True) == "�"

    @pytest.mark.parametrize("encoding", list(Encoding))
    def test_every_encoding_decodes(self, encoding: Encoding):
        """Test each recognized encoding has a working decode path."""
        item = ChunkDecoder(encoding).decode(b"ab", final=True)

        expected_type = bytes if encoding is Encoding.BINARY else str
        assert isinstance(item, expected_type)

    def test_missing_text_decoder_raises(self):
        """Test a text encoding without a decoder fails loudly instead of asserting."""
        decoder = ChunkDecoder(Encoding.UTF8)
        decoder._text = None

        with pytest.raises(ValueError, match="no text decoder for encoding utf8"):
            decoder.decode(b"ab")
