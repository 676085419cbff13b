"""Tests for character stream processing."""

import io
from pathlib import Path

import pytest

from xmlquery.character import CharacterStreamProcessor, DetectionMethod
from xmlquery.shared import CharacterConfig, EncodingError

E_ACUTE = chr(0xE9)


class TestCharacterStreamProcessor:
    """Test decoding of every supported input type."""

    def test_string_input_is_not_decoded(self):
        """Test that str input passes through unchanged."""
        result = CharacterStreamProcessor().process("<a>x</a>")

        assert result.text == "<a>x</a>"
        assert result.encoding.method == DetectionMethod.NOT_APPLICABLE
        assert result.metadata["input_type"] == "str"

    def test_utf8_bytes(self):
        """Test that UTF-8 bytes are decoded with the fallback encoding."""
        result = CharacterStreamProcessor().process(f"<a>{E_ACUTE}</a>".encode("utf-8"))

        assert result.text == f"<a>{E_ACUTE}</a>"
        assert result.encoding.encoding == "utf-8"

    def test_bom_is_stripped(self):
        """Test that the BOM does not reach the tokenizer."""
        result = CharacterStreamProcessor().process(b"\xef\xbb\xbf<a/>")

        assert result.text == "<a/>"
        assert result.encoding.bom_length == 3

    def test_utf16_with_bom(self):
        """Test decoding UTF-16 input."""
        data = "<a/>".encode("utf-16-le")

        result = CharacterStreamProcessor().process(b"\xff\xfe" + data)

        assert result.text == "<a/>"
        assert result.encoding.encoding == "utf-16-le"

    def test_declared_encoding_is_honored(self):
        """Test that latin-1 bytes are decoded per the declaration."""
        data = b'<?xml version="1.0" encoding="ISO-8859-1"?><a>\xe9</a>'

        result = CharacterStreamProcessor().process(data)

        assert result.text.endswith(f"<a>{E_ACUTE}</a>")
        assert result.encoding.method == DetectionMethod.XML_DECLARATION

    def test_undecodable_bytes_raise(self):
        """Test that invalid bytes are an error, never replaced."""
        with pytest.raises(EncodingError, match="not valid utf-8"):
            CharacterStreamProcessor().process(b"<a>\xff</a>")

    def test_unknown_declared_encoding_raises(self):
        """Test that an unsupported declared encoding is an error."""
        with pytest.raises(EncodingError, match="Unsupported declared encoding"):
            CharacterStreamProcessor().process(
                b'<?xml version="1.0" encoding="x-unknown"?><a/>'
            )

    def test_line_endings_are_normalized(self):
        """Test CRLF and lone CR become LF."""
        result = CharacterStreamProcessor().process("<a>\r\nx\ry</a>")

        assert result.text == "<a>\nx\ny</a>"
        assert "Normalized line endings" in result.diagnostics

    def test_line_ending_normalization_can_be_disabled(self):
        """Test that normalization is skipped when disabled."""
        config = CharacterConfig(normalize_line_endings=False)

        result = CharacterStreamProcessor(config).process("<a>\r\n</a>")

        assert result.text == "<a>\r\n</a>"

    def test_binary_file_object(self):
        """Test reading from a binary file object."""
        result = CharacterStreamProcessor().process(io.BytesIO(b"<a/>"))

        assert result.text == "<a/>"
        assert result.metadata["input_type"] == "binary_file"

    def test_text_file_object(self):
        """Test reading from a text file object."""
        result = CharacterStreamProcessor().process(io.StringIO("<a/>"))

        assert result.text == "<a/>"
        assert result.metadata["input_type"] == "text_file"

    def test_path_input(self, tmp_path: Path):
        """Test reading from a pathlib.Path."""
        path = tmp_path / "doc.xml"
        path.write_bytes(b"<a/>")

        result = CharacterStreamProcessor().process(path)

        assert result.text == "<a/>"
        assert result.metadata["input_type"] == "path"

    def test_unsupported_input_type(self):
        """Test that unsupported input raises TypeError."""
        with pytest.raises(TypeError, match="Unsupported input type"):
            CharacterStreamProcessor().process(42)  # type: ignore[arg-type]
