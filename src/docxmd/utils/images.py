#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/docxmd/utils/images.py
"""Image payload utilities.

Images reach the HTML to DOCX converter in three ways: through the hex
side-table keyed by ``images/<src>``, as base64 ``data:`` URIs, or not at
all (in which case a placeholder is embedded). This module holds the
decoding helpers for the first two plus the format sniffing used when
images are pulled back out of a package.

"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import posixpath
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlparse

from docxmd.constants import IMAGE_TABLE_KEY_PREFIX
from docxmd.exceptions import ValidationError

logger = logging.getLogger(__name__)

_MIME_TO_EXT = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/gif": "gif",
    "image/svg+xml": "svg",
    "image/bmp": "bmp",
}

_SVG_LENGTH = re.compile(r"^\s*(?P<value>\d+(?:\.\d+)?)\s*(?P<unit>px|pt|in|cm|mm)?\s*$")


def is_data_uri(uri: str) -> bool:
    """Check if a string is a data URI.

    Examples
    --------
        >>> is_data_uri("data:image/png;base64,...")
        True
        >>> is_data_uri("images/logo.png")
        False

    """
    if not uri or not isinstance(uri, str):
        return False
    return uri.startswith("data:")


def decode_base64_image(data_uri: str) -> tuple[bytes | None, str | None]:
    """Decode a base64-encoded data URI to image bytes.

    Parameters
    ----------
    data_uri : str
        Data URI string in format: data:image/{format};base64,{data}

    Returns
    -------
    tuple[bytes or None, str or None]
        Tuple of (image_data, image_format) or (None, None) if decoding fails.
        image_format is the file extension without dot (e.g., "png", "jpg").

    """
    if not is_data_uri(data_uri):
        return None, None

    match = re.match(r"^data:(?P<mime>[^;,]+);base64,(?P<data>.+)$", data_uri, re.DOTALL)
    if not match:
        logger.debug(f"Invalid data URI format for URI starting with '{data_uri[:50]}...'")
        return None, None

    image_format = _MIME_TO_EXT.get(match.group("mime").lower())
    if not image_format:
        logger.debug(f"Unsupported data URI MIME type: {match.group('mime')}")
        return None, None

    try:
        return base64.b64decode(match.group("data"), validate=True), image_format
    except (ValueError, binascii.Error) as e:
        logger.debug(f"Invalid base64 encoding: failed to decode ({type(e).__name__}: {e})")
        return None, None


def decode_hex_image(hex_text: str) -> bytes | None:
    """Decode a hex-encoded image payload.

    An odd number of digits is padded with a leading ``0``.

    Returns
    -------
    bytes or None
        The decoded payload, or None if the text is not valid hex

    Examples
    --------
        >>> decode_hex_image("89504e47")
        b'\\x89PNG'
        >>> decode_hex_image("abc")
        b'\\n\\xbc'

    """
    if not hex_text:
        return None
    cleaned = "".join(hex_text.split())
    if len(cleaned) % 2:
        cleaned = "0" + cleaned
    try:
        return bytes.fromhex(cleaned)
    except ValueError:
        logger.debug("Image side-table entry is not valid hex")
        return None


def get_image_extension(src: str) -> str:
    """Return the lower-cased extension (with its dot) of an image source.

    Query strings and fragments are ignored; ``data:`` URIs map their MIME
    type to an extension.

    Examples
    --------
        >>> get_image_extension("images/Logo.PNG?v=2")
        '.png'
        >>> get_image_extension("data:image/jpeg;base64,/9j/")
        '.jpg'
        >>> get_image_extension("diagram")
        ''

    """
    if is_data_uri(src):
        mime = src[5:].split(";", 1)[0].split(",", 1)[0].lower()
        ext = _MIME_TO_EXT.get(mime)
        return f".{ext}" if ext else ""
    path = unquote(urlparse(src).path) if "://" in src else src.split("?", 1)[0].split("#", 1)[0]
    return posixpath.splitext(path)[1].lower()


def image_table_keys(src: str) -> list[str]:
    """Candidate side-table keys for an image source, most specific first."""
    basename = posixpath.basename(src.replace("\\", "/"))
    keys = [IMAGE_TABLE_KEY_PREFIX + src]
    for candidate in (src, IMAGE_TABLE_KEY_PREFIX + basename):
        if candidate not in keys:
            keys.append(candidate)
    return keys


def load_image_table(source: Mapping[str, str] | list[dict[str, str]] | str | Path | None) -> dict[str, str]:
    """Normalize an image side-table to ``{"images/<name>": "<hex>"}``.

    Parameters
    ----------
    source : mapping, list, str, Path or None
        Either a mapping of key to hex payload, a list of ``{"src", "hex"}``
        records, or a path to a JSON file holding one of those shapes.

    Returns
    -------
    dict
        Mapping from side-table key to hex payload

    Raises
    ------
    ValidationError
        If the table has an unexpected shape or the JSON file cannot be read.

    """
    if source is None:
        return {}
    if isinstance(source, (str, Path)):
        try:
            source = json.loads(Path(source).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ValidationError(
                f"Could not read image table {source}: {e}", parameter_name="images", original_error=e
            ) from e

    if isinstance(source, Mapping):
        return {str(key): str(value) for key, value in source.items()}
    if isinstance(source, list):
        table: dict[str, str] = {}
        for record in source:
            if not isinstance(record, Mapping) or "src" not in record or "hex" not in record:
                raise ValidationError(
                    "Image table records must be objects with 'src' and 'hex' keys",
                    parameter_name="images",
                    parameter_value=record,
                )
            table[str(record["src"])] = str(record["hex"])
        return table
    raise ValidationError(
        f"Unsupported image table type: {type(source).__name__}", parameter_name="images", parameter_value=source
    )


def detect_image_format_from_bytes(data: bytes) -> str | None:
    r"""Detect an image format from its leading magic bytes.

    Returns
    -------
    str or None
        Extension without dot (``png``, ``jpg``, ``gif``, ``bmp``, ``tiff``,
        ``svg``) or None if unrecognized

    """
    if not data or len(data) < 4:
        return None
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "png"
    if data.startswith(b"\xff\xd8\xff"):
        return "jpg"
    if data.startswith((b"GIF87a", b"GIF89a")):
        return "gif"
    if data.startswith(b"BM"):
        return "bmp"
    if data.startswith((b"II*\x00", b"MM\x00*")):
        return "tiff"
    stripped = data.lstrip()
    if stripped.startswith(b"<svg") or (stripped.startswith(b"<?xml") and b"<svg" in stripped[:512]):
        return "svg"
    return None


def get_svg_size(data: bytes) -> tuple[int, int] | None:
    """Read the pixel size declared by an SVG document.

    ``width``/``height`` attributes are used when present, otherwise the
    ``viewBox``. Percentages and unparseable values yield None.
    """
    from lxml import etree

    try:
        root = etree.fromstring(data, parser=etree.XMLParser(resolve_entities=False, no_network=True))
    except etree.XMLSyntaxError:
        return None

    width = _svg_length_to_px(root.get("width"))
    height = _svg_length_to_px(root.get("height"))
    if width and height:
        return width, height

    view_box = root.get("viewBox")
    if view_box:
        parts = view_box.replace(",", " ").split()
        if len(parts) == 4:
            try:
                return max(1, round(float(parts[2]))), max(1, round(float(parts[3])))
            except ValueError:
                return None
    return None


def _svg_length_to_px(value: Any) -> int | None:
    if not value:
        return None
    match = _SVG_LENGTH.match(value)
    if not match:
        return None
    number = float(match.group("value"))
    factor = {"pt": 96 / 72, "in": 96.0, "cm": 96 / 2.54, "mm": 96 / 25.4}.get(match.group("unit") or "px", 1.0)
    return max(1, round(number * factor))
