#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/docxmd/html2docx/oxml.py
"""Small builders for WordprocessingML elements.

The tag handlers assemble paragraphs, runs and tables directly as
``w:``-namespaced lxml elements through python-docx's ``OxmlElement``.
Property containers (``w:pPr``, ``w:rPr``, ``w:tblPr``, ``w:tcPr``) must
keep their children in schema order, which ``set_property`` maintains.

"""

from __future__ import annotations

from copy import deepcopy
from typing import Any, Iterable, Mapping


PPR_ORDER = (
    "pStyle",
    "keepNext",
    "keepLines",
    "pageBreakBefore",
    "framePr",
    "widowControl",
    "numPr",
    "suppressLineNumbers",
    "pBdr",
    "shd",
    "tabs",
    "suppressAutoHyphens",
    "kinsoku",
    "wordWrap",
    "overflowPunct",
    "topLinePunct",
    "autoSpaceDE",
    "autoSpaceDN",
    "bidi",
    "adjustRightInd",
    "snapToGrid",
    "spacing",
    "ind",
    "contextualSpacing",
    "mirrorIndents",
    "suppressOverlap",
    "jc",
    "textDirection",
    "textAlignment",
    "textboxTightWrap",
    "outlineLvl",
    "divId",
    "cnfStyle",
    "rPr",
    "sectPr",
    "pPrChange",
)

RPR_ORDER = (
    "rStyle",
    "rFonts",
    "b",
    "bCs",
    "i",
    "iCs",
    "caps",
    "smallCaps",
    "strike",
    "dstrike",
    "outline",
    "shadow",
    "emboss",
    "imprint",
    "noProof",
    "snapToGrid",
    "vanish",
    "webHidden",
    "color",
    "spacing",
    "w",
    "kern",
    "position",
    "sz",
    "szCs",
    "highlight",
    "u",
    "effect",
    "bdr",
    "shd",
    "fitText",
    "vertAlign",
    "rtl",
    "cs",
    "em",
    "lang",
    "eastAsianLayout",
    "specVanish",
    "oMath",
)

TBLPR_ORDER = (
    "tblStyle",
    "tblpPr",
    "tblOverlap",
    "bidiVisual",
    "tblStyleRowBandSize",
    "tblStyleColBandSize",
    "tblW",
    "jc",
    "tblCellSpacing",
    "tblInd",
    "tblBorders",
    "shd",
    "tblLayout",
    "tblCellMar",
    "tblLook",
)

TRPR_ORDER = (
    "cnfStyle",
    "divId",
    "gridBefore",
    "gridAfter",
    "wBefore",
    "wAfter",
    "cantSplit",
    "trHeight",
    "tblHeader",
    "tblCellSpacing",
    "jc",
    "hidden",
)

TCPR_ORDER = (
    "cnfStyle",
    "tcW",
    "gridSpan",
    "hMerge",
    "vMerge",
    "tcBorders",
    "shd",
    "noWrap",
    "tcMar",
    "textDirection",
    "tcFitText",
    "vAlign",
    "hideMark",
)

BORDER_ORDER = ("top", "left", "bottom", "right", "between", "bar", "insideH", "insideV", "tl2br", "tr2bl")
MARGIN_ORDER = ("top", "left", "bottom", "right")

_PROPERTY_ORDERS = {
    "pPr": PPR_ORDER,
    "rPr": RPR_ORDER,
    "tblPr": TBLPR_ORDER,
    "trPr": TRPR_ORDER,
    "tcPr": TCPR_ORDER,
}

# Children that must stay in front of everything else in their parent
_LEADING_CHILDREN = {"p": "pPr", "r": "rPr", "tbl": "tblPr", "tr": "trPr", "tc": "tcPr"}


def _qn(tag: str) -> str:
    from docx.oxml.ns import qn

    return qn(tag)


def local_name(element: Any) -> str:
    """Return the tag name of an element without its namespace."""
    tag = element.tag
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def make_element(tag: str, attrs: Mapping[str, Any] | None = None, children: Iterable[Any] = ()) -> Any:
    """Create a ``w:`` element.

    Parameters
    ----------
    tag : str
        Tag without prefix (``"jc"``) or with an explicit one (``"w14:checked"``)
    attrs : mapping, optional
        Attribute names without prefix are put in the ``w:`` namespace
    children : iterable
        Elements appended in order

    """
    from docx.oxml import OxmlElement

    element = OxmlElement(tag if ":" in tag else f"w:{tag}")
    for name, value in (attrs or {}).items():
        if value is None:
            continue
        element.set(_qn(name if ":" in name else f"w:{name}"), str(value))
    for child in children:
        element.append(child)
    return element


def get_or_add_properties(parent: Any) -> Any:
    """Return the property container of a ``w:p``/``w:r``/``w:tbl``/``w:tr``/``w:tc``, creating it first."""
    pr_name = _LEADING_CHILDREN[local_name(parent)]
    properties = parent.find(_qn(f"w:{pr_name}"))
    if properties is None:
        properties = make_element(pr_name)
        parent.insert(0, properties)
    return properties


def get_properties(parent: Any) -> Any | None:
    pr_name = _LEADING_CHILDREN.get(local_name(parent))
    return parent.find(_qn(f"w:{pr_name}")) if pr_name else None


def set_property(properties: Any, child: Any, order: tuple[str, ...] | None = None) -> Any:
    """Insert ``child`` into a property container, replacing any element with the same tag.

    The child lands in front of the first existing sibling that comes later
    in ``order`` (the schema sequence of the container).
    """
    order = order or _PROPERTY_ORDERS[local_name(properties)]
    name = local_name(child)
    for existing in properties.findall(child.tag):
        properties.remove(existing)

    rank = order.index(name) if name in order else len(order)
    for index, sibling in enumerate(properties):
        sibling_name = local_name(sibling)
        if sibling_name in order and order.index(sibling_name) > rank:
            properties.insert(index, child)
            return child
    properties.append(child)
    return child


def set_element_property(parent: Any, child: Any) -> Any:
    """Shortcut for ``set_property(get_or_add_properties(parent), child)``."""
    return set_property(get_or_add_properties(parent), child)


def find_property(parent: Any, name: str) -> Any | None:
    properties = get_properties(parent)
    return properties.find(_qn(f"w:{name}")) if properties is not None else None


def make_borders(container: str, sides: Mapping[str, Mapping[str, Any]]) -> Any:
    """Build ``w:pBdr``/``w:tblBorders``/``w:tcBorders``/``w:bdr`` children in schema order."""
    element = make_element(container)
    for side in BORDER_ORDER:
        if side in sides:
            element.append(make_element(side, sides[side]))
    return element


def make_margins(container: str, sides: Mapping[str, tuple[int, str]]) -> Any:
    """Build ``w:tcMar``/``w:tblCellMar`` from ``{side: (width, type)}``."""
    element = make_element(container)
    for side in MARGIN_ORDER:
        if side in sides:
            width, width_type = sides[side]
            element.append(make_element(side, {"w": width, "type": width_type}))
    return element


def new_text(text: str) -> Any:
    element = make_element("t")
    element.text = text
    element.set(_qn("xml:space"), "preserve")
    return element


def new_run(text: str | None = None, properties: Iterable[Any] = (), children: Iterable[Any] = ()) -> Any:
    """Create a ``w:r`` with the given property fragments (deep-copied) and content."""
    run = make_element("r")
    properties = list(properties)
    if properties:
        rpr = get_or_add_properties(run)
        for fragment in properties:
            set_property(rpr, deepcopy(fragment))
    if text is not None:
        run.append(new_text(text))
    for child in children:
        run.append(child)
    return run


def new_paragraph(children: Iterable[Any] = ()) -> Any:
    paragraph = make_element("p")
    for child in children:
        paragraph.append(child)
    return paragraph


def has_content(paragraph: Any) -> bool:
    """True when a paragraph holds anything besides its properties."""
    return any(local_name(child) != "pPr" for child in paragraph)


def element_text(element: Any) -> str:
    """Concatenated ``w:t`` text below an element."""
    return "".join(node.text or "" for node in element.iter(_qn("w:t")))
