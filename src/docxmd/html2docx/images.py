#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/docxmd/html2docx/images.py
"""Embed ``<img>`` elements as inline drawings.

The payload comes from a ``data:`` URI or from the hex side-table keyed by
``images/<src>``. Raster formats go through python-docx's image part
handling; SVG is stored as its own part and referenced through the Office
2016 ``svgBlip`` extension, with a PNG fallback for older readers. When no
payload can be found or decoded a small placeholder is shown instead.

"""

from __future__ import annotations

import base64
import logging
import posixpath
from dataclasses import dataclass
from io import BytesIO
from typing import TYPE_CHECKING, Any, Mapping

from docxmd.constants import (
    EMU_PER_PIXEL,
    PLACEHOLDER_IMAGE_B64,
    SUPPORTED_IMAGE_EXTENSIONS,
    SVG_BLIP_EXT_URI,
    SVG_BLIP_NS,
)
from docxmd.exceptions import RenderingError, UnsupportedImageFormatError
from docxmd.html2docx.oxml import make_element, new_run, set_element_property
from docxmd.options.docx import HtmlToDocxOptions
from docxmd.utils.images import (
    decode_base64_image,
    decode_hex_image,
    detect_image_format_from_bytes,
    get_image_extension,
    get_svg_size,
    image_table_keys,
    is_data_uri,
)

if TYPE_CHECKING:
    from docxmd.html2docx.tokenizer import TagEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmbeddedImage:
    """Relationship id and natural pixel size of an embedded image.

    For SVG, ``r_id`` is the PNG fallback and ``svg_rid`` the vector part.
    """

    r_id: str
    size: tuple[int, int]
    svg_rid: str | None = None


class ImageEmbedder:
    """Turn ``<img>`` tags into runs holding an inline drawing.

    Parameters
    ----------
    document : docx.document.Document
        Target document; image parts are added to its main part
    images : mapping
        Side-table from ``images/<src>`` to hex-encoded payloads
    options : HtmlToDocxOptions
        Placeholder size and resource error policy

    """

    def __init__(self, document: Any, images: Mapping[str, str], options: HtmlToDocxOptions):
        self._part = document.part
        self._images = images
        self._options = options
        self._placeholder_rid: str | None = None
        self.placeholders = 0

    def embed(self, event: TagEvent) -> Any | None:
        """Build the run for an ``<img>`` tag.

        Returns
        -------
        lxml element or None
            A ``w:r`` containing a ``w:drawing``; None when the tag has no ``src``.

        Raises
        ------
        UnsupportedImageFormatError
            If the source extension is not bmp, gif, jpg, jpeg, png or svg.
        RenderingError
            If the payload is missing and ``fail_on_resource_errors`` is set.

        """
        src = (event.attributes["src"] or "").strip()
        if not src:
            logger.debug("Skipping <img> without src")
            return None

        extension = get_image_extension(src)
        if extension not in SUPPORTED_IMAGE_EXTENSIONS:
            raise UnsupportedImageFormatError(src, extension)

        alt = event.attributes["title"] or event.attributes["alt"] or ""
        blob = self._resolve_payload(src)

        embedded = None
        if blob is not None:
            embedded = self._embed_blob(src, blob, extension)
        if embedded is None:
            if self._options.fail_on_resource_errors:
                raise RenderingError(f"Could not embed image '{src}'", rendering_stage="image")
            logger.warning(f"Image '{src}' could not be resolved; using a placeholder")
            self.placeholders += 1
            embedded = EmbeddedImage(self._placeholder(), self._options.placeholder_size_px)

        width, height = _preferred_size(event, embedded.size)
        filename = posixpath.basename(src.split("?", 1)[0]) if not is_data_uri(src) else f"image{extension}"
        run = self._drawing_run(embedded, filename, width, height, alt)

        border = _image_border(event)
        if border is not None:
            set_element_property(run, border)
        return run

    def add_svg_reference(self, run: Any, svg_rid: str) -> None:
        """Attach the ``asvg:svgBlip`` extension pointing at ``svg_rid`` to a drawing run."""
        from docx.oxml import OxmlElement
        from docx.oxml.ns import qn
        from lxml import etree

        blip = run.find(f".//{qn('a:blip')}")
        if blip is None:
            return
        ext_lst = OxmlElement("a:extLst")
        ext = OxmlElement("a:ext", attrs={"uri": SVG_BLIP_EXT_URI})
        svg_blip = etree.SubElement(ext, f"{{{SVG_BLIP_NS}}}svgBlip", nsmap={"asvg": SVG_BLIP_NS})
        svg_blip.set(qn("r:embed"), svg_rid)
        ext_lst.append(ext)
        blip.append(ext_lst)

    def _resolve_payload(self, src: str) -> bytes | None:
        if is_data_uri(src):
            blob, _ = decode_base64_image(src)
            return blob
        for key in image_table_keys(src):
            if key in self._images:
                return decode_hex_image(self._images[key])
        logger.debug(f"No side-table entry for image '{src}'")
        return None

    def _embed_blob(self, src: str, blob: bytes, extension: str) -> EmbeddedImage | None:
        from docx.image.exceptions import UnrecognizedImageError

        if extension == ".svg" or detect_image_format_from_bytes(blob) == "svg":
            return self._embed_svg(src, blob)
        try:
            r_id, image = self._part.get_or_add_image(BytesIO(blob))
        except UnrecognizedImageError as e:
            logger.warning(f"Image '{src}' has an unrecognized format: {e}")
            return None
        except Exception as e:
            logger.warning(f"Failed to read image '{src}': {type(e).__name__}: {e}")
            return None
        return EmbeddedImage(r_id, (max(1, image.px_width), max(1, image.px_height)))

    def _embed_svg(self, src: str, blob: bytes) -> EmbeddedImage | None:
        from docx.opc.constants import RELATIONSHIP_TYPE as RT
        from docx.parts.image import ImagePart

        size = get_svg_size(blob)
        if size is None:
            logger.warning(f"SVG image '{src}' has no readable size")
            size = self._options.placeholder_size_px

        package = self._part.package
        partname = package.next_partname("/word/media/image%d.svg")
        svg_part = ImagePart(partname, "image/svg+xml", blob)
        svg_rid = self._part.relate_to(svg_part, RT.IMAGE)
        return EmbeddedImage(self._placeholder(), size, svg_rid)

    def _placeholder(self) -> str:
        if self._placeholder_rid is None:
            blob = base64.b64decode(PLACEHOLDER_IMAGE_B64)
            self._placeholder_rid, _ = self._part.get_or_add_image(BytesIO(blob))
        return self._placeholder_rid

    def _drawing_run(self, embedded: EmbeddedImage, filename: str, width: int, height: int, alt: str) -> Any:
        from docx.oxml.shape import CT_Inline
        from docx.shared import Emu

        inline = CT_Inline.new_pic_inline(
            self._part.next_id,
            embedded.r_id,
            filename or "image",
            Emu(width * EMU_PER_PIXEL),
            Emu(height * EMU_PER_PIXEL),
        )
        inline.docPr.set("descr", alt)
        run = new_run(children=[make_element("drawing", children=[inline])])
        if embedded.svg_rid is not None:
            self.add_svg_reference(run, embedded.svg_rid)
        return run


def add_hyperlink_click(run: Any, r_id: str | None, tooltip: str | None) -> None:
    """Make a drawing run clickable through ``a:hlinkClick`` on its ``wp:docPr``."""
    from docx.oxml import OxmlElement
    from docx.oxml.ns import qn

    doc_pr = run.find(f".//{qn('wp:docPr')}")
    if doc_pr is None or r_id is None:
        return
    click = OxmlElement("a:hlinkClick")
    click.set(qn("r:id"), r_id)
    if tooltip:
        click.set("tooltip", tooltip)
    doc_pr.append(click)


def has_drawing(element: Any) -> bool:
    from docx.oxml.ns import qn

    return element.find(f".//{qn('w:drawing')}") is not None


def _preferred_size(event: TagEvent, natural: tuple[int, int]) -> tuple[int, int]:
    """Size in pixels from ``width``/``height`` attributes or CSS, keeping the aspect ratio when only one is given."""
    width = event.styles.get_as_unit("width")
    if not width.is_valid:
        width = event.attributes.get_as_unit("width")
    height = event.styles.get_as_unit("height")
    if not height.is_valid:
        height = event.attributes.get_as_unit("height")

    natural_width, natural_height = natural
    preferred_width = width.value_in_px if width.is_fixed and width.value > 0 else None
    preferred_height = height.value_in_px if height.is_fixed and height.value > 0 else None

    if preferred_width and preferred_height:
        return preferred_width, preferred_height
    if preferred_width:
        return preferred_width, max(1, round(natural_height * preferred_width / natural_width))
    if preferred_height:
        return max(1, round(natural_width * preferred_height / natural_height)), preferred_height
    return natural_width, natural_height


def _image_border(event: TagEvent) -> Any | None:
    """``w:bdr`` from the CSS border or the legacy ``border`` attribute (pixels)."""
    border = event.styles.get_as_border()
    for side in border.sides().values():
        if side.is_valid and side.style != "none":
            return make_element("bdr", side.ooxml_attributes())

    size = event.attributes.get_as_int("border")
    if size and size > 0:
        return make_element("bdr", {"val": "single", "sz": min(96, size * 4), "space": 0, "color": "auto"})
    return None
