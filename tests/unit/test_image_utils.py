#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/unit/test_image_utils.py
"""Unit tests for image payload utilities.

Tests cover:
- data: URI detection and decoding
- Hex side-table decoding and key candidates
- Image table loading from mappings, records and JSON files
- Format sniffing and SVG size detection

"""

import json

import pytest
from utils import MINIMAL_PNG_B64, MINIMAL_PNG_BYTES, MINIMAL_SVG

from docxmd.exceptions import ValidationError
from docxmd.utils.images import (
    decode_base64_image,
    decode_hex_image,
    detect_image_format_from_bytes,
    get_image_extension,
    get_svg_size,
    image_table_keys,
    is_data_uri,
    load_image_table,
)


@pytest.mark.unit
class TestDataUri:
    """Tests for data: URI handling."""

    def test_is_data_uri(self):
        assert is_data_uri(f"data:image/png;base64,{MINIMAL_PNG_B64}")
        assert not is_data_uri("images/logo.png")
        assert not is_data_uri("")

    def test_decode(self):
        data, image_format = decode_base64_image(f"data:image/png;base64,{MINIMAL_PNG_B64}")
        assert data == MINIMAL_PNG_BYTES
        assert image_format == "png"

    def test_invalid_base64(self):
        assert decode_base64_image("data:image/png;base64,@@@") == (None, None)

    def test_unsupported_mime(self):
        assert decode_base64_image("data:text/plain;base64,aGVsbG8=") == (None, None)


@pytest.mark.unit
class TestHexPayloads:
    """Tests for hex side-table payloads."""

    def test_round_trip(self):
        assert decode_hex_image(MINIMAL_PNG_BYTES.hex()) == MINIMAL_PNG_BYTES

    def test_odd_length_is_padded(self):
        assert decode_hex_image("abc") == b"\x0a\xbc"

    def test_whitespace_ignored(self):
        assert decode_hex_image("89 50\n4e 47") == b"\x89PNG"

    def test_invalid(self):
        assert decode_hex_image("zz") is None
        assert decode_hex_image("") is None

    def test_table_keys(self):
        assert image_table_keys("logo.png") == ["images/logo.png", "logo.png"]
        assert image_table_keys("media/logo.png") == [
            "images/media/logo.png",
            "media/logo.png",
            "images/logo.png",
        ]


@pytest.mark.unit
class TestLoadImageTable:
    """Tests for side-table normalization."""

    def test_mapping(self):
        assert load_image_table({"images/a.png": "00"}) == {"images/a.png": "00"}

    def test_records(self):
        table = load_image_table([{"src": "images/a.png", "hex": "00"}])
        assert table == {"images/a.png": "00"}

    def test_json_file(self, tmp_path):
        path = tmp_path / "images.json"
        path.write_text(json.dumps([{"src": "images/b.png", "hex": "ff"}]), encoding="utf-8")
        assert load_image_table(str(path)) == {"images/b.png": "ff"}

    def test_none(self):
        assert load_image_table(None) == {}

    def test_bad_record(self):
        with pytest.raises(ValidationError) as exc_info:
            load_image_table([{"name": "a.png"}])
        assert exc_info.value.parameter_name == "images"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValidationError):
            load_image_table(tmp_path / "missing.json")

    def test_unsupported_type(self):
        with pytest.raises(ValidationError):
            load_image_table(42)


@pytest.mark.unit
class TestFormats:
    """Tests for extension and format detection."""

    @pytest.mark.parametrize(
        "src,expected",
        [
            ("images/Logo.PNG?v=2", ".png"),
            ("https://example.com/a/b.jpeg#frag", ".jpeg"),
            ("data:image/svg+xml;base64,PHN2Zz4=", ".svg"),
            ("diagram", ""),
        ],
    )
    def test_extension(self, src, expected):
        assert get_image_extension(src) == expected

    def test_detect_from_bytes(self):
        assert detect_image_format_from_bytes(MINIMAL_PNG_BYTES) == "png"
        assert detect_image_format_from_bytes(b"\xff\xd8\xff\xe0rest") == "jpg"
        assert detect_image_format_from_bytes(b"GIF89a...") == "gif"
        assert detect_image_format_from_bytes(MINIMAL_SVG) == "svg"
        assert detect_image_format_from_bytes(b"abc") is None

    def test_svg_size_from_attributes(self):
        assert get_svg_size(MINIMAL_SVG) == (40, 20)

    def test_svg_size_from_view_box(self):
        svg = b'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 300 150"/>'
        assert get_svg_size(svg) == (300, 150)

    def test_svg_size_with_units(self):
        svg = b'<svg xmlns="http://www.w3.org/2000/svg" width="1in" height="72pt"/>'
        assert get_svg_size(svg) == (96, 96)

    def test_svg_without_size(self):
        assert get_svg_size(b'<svg xmlns="http://www.w3.org/2000/svg" width="50%"/>') is None
        assert get_svg_size(b"not xml") is None
