"""
DOM -> ElementNode tree.

Walks a parsed document depth-first in document order and records, per
element, its tag, attributes, canonical style (inline declarations first,
then the resolver's computed snapshot on top), the trimmed text of a lone
text child and an image/vector payload for ``img`` and ``svg`` elements.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from .css_styles import (
    DEFAULT_VIEWPORT_WIDTH,
    NullStyleResolver,
    StyleRecord,
    StyleResolver,
    StylesheetStyleResolver,
    parse_declarations,
)

logger = logging.getLogger(__name__)

# The HTML parser folds every name to lower case; SVG is case-sensitive.
SVG_TAG_NAMES = {
    name.lower(): name
    for name in (
        "altGlyph", "altGlyphDef", "altGlyphItem", "animateColor", "animateMotion",
        "animateTransform", "clipPath", "feBlend", "feColorMatrix", "feComponentTransfer",
        "feComposite", "feConvolveMatrix", "feDiffuseLighting", "feDisplacementMap",
        "feDistantLight", "feDropShadow", "feFlood", "feFuncA", "feFuncB", "feFuncG", "feFuncR",
        "feGaussianBlur", "feImage", "feMerge", "feMergeNode", "feMorphology", "feOffset",
        "fePointLight", "feSpecularLighting", "feSpotLight", "feTile", "feTurbulence",
        "foreignObject", "glyphRef", "linearGradient", "radialGradient", "textPath",
    )
}

SVG_ATTRIBUTE_NAMES = {
    name.lower(): name
    for name in (
        "attributeName", "attributeType", "baseFrequency", "baseProfile", "calcMode",
        "clipPathUnits", "diffuseConstant", "edgeMode", "filterUnits", "glyphRef",
        "gradientTransform", "gradientUnits", "kernelMatrix", "kernelUnitLength", "keyPoints",
        "keySplines", "keyTimes", "lengthAdjust", "limitingConeAngle", "markerHeight",
        "markerUnits", "markerWidth", "maskContentUnits", "maskUnits", "numOctaves",
        "pathLength", "patternContentUnits", "patternTransform", "patternUnits", "pointsAtX",
        "pointsAtY", "pointsAtZ", "preserveAlpha", "preserveAspectRatio", "primitiveUnits",
        "refX", "refY", "repeatCount", "repeatDur", "requiredExtensions", "requiredFeatures",
        "specularConstant", "specularExponent", "spreadMethod", "startOffset", "stdDeviation",
        "stitchTiles", "surfaceScale", "systemLanguage", "tableValues", "targetX", "targetY",
        "textLength", "viewBox", "viewTarget", "xChannelSelector", "yChannelSelector",
        "zoomAndPan",
    )
}


# --------------------------------------------------------------------------- #
# Data model
# --------------------------------------------------------------------------- #


@dataclass
class ImagePayload:
    src: str
    width: Optional[int] = None
    height: Optional[int] = None
    alt: Optional[str] = None


@dataclass
class VectorPayload:
    markup: str
    width: Optional[int] = None
    height: Optional[int] = None
    view_box: Optional[str] = None


MediaPayload = Union[ImagePayload, VectorPayload, None]


@dataclass
class ElementNode:
    tag: str
    attributes: Dict[str, str] = field(default_factory=dict)
    style: StyleRecord = field(default_factory=dict)
    children: List["ElementNode"] = field(default_factory=list)
    text_content: Optional[str] = None
    media_payload: MediaPayload = None

    @property
    def image(self) -> Optional[ImagePayload]:
        return self.media_payload if isinstance(self.media_payload, ImagePayload) else None

    @property
    def vector(self) -> Optional[VectorPayload]:
        return self.media_payload if isinstance(self.media_payload, VectorPayload) else None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "tag": self.tag,
            "attributes": dict(self.attributes),
            "style": dict(self.style),
            "children": [child.to_dict() for child in self.children],
        }
        if self.text_content is not None:
            data["textContent"] = self.text_content
        if self.image:
            data["imageData"] = _drop_none(
                {"src": self.image.src, "width": self.image.width, "height": self.image.height, "alt": self.image.alt}
            )
        if self.vector:
            data["svgData"] = _drop_none(
                {
                    "path": self.vector.markup,
                    "width": self.vector.width,
                    "height": self.vector.height,
                    "viewBox": self.vector.view_box,
                }
            )
        return data


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #


def parse_int_attr(value: Optional[str]) -> Optional[int]:
    """parseInt-style: leading digits of the attribute, ``None`` when absent."""
    if value is None:
        return None
    raw = value.strip()
    digits = ""
    for idx, ch in enumerate(raw):
        if ch.isdigit() or (idx == 0 and ch in "+-"):
            digits += ch
        else:
            break
    try:
        return int(digits)
    except ValueError:
        return None


def attr_text(value: Any) -> str:
    # bs4 splits multi-valued attributes such as class into lists
    if isinstance(value, (list, tuple)):
        return " ".join(value)
    return str(value)


def svg_markup(element: Tag) -> str:
    """Serialize an ``svg`` subtree with SVG's camelCase tag and attribute names."""
    svg = copy.copy(element)
    for tag in [svg] + svg.find_all(True):
        tag.name = SVG_TAG_NAMES.get(tag.name, tag.name)
        tag.attrs = {SVG_ATTRIBUTE_NAMES.get(key, key): val for key, val in tag.attrs.items()}
    return str(svg)


def is_text_node(node: Any) -> bool:
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


# --------------------------------------------------------------------------- #
# Extractor
# --------------------------------------------------------------------------- #


class DomExtractor:
    def __init__(self, resolver: Optional[StyleResolver] = None):
        self.resolver = resolver or NullStyleResolver()

    def extract(self, element: Tag) -> ElementNode:
        tag_name = element.name.lower()
        node = ElementNode(tag=tag_name)

        for name, value in element.attrs.items():
            if name == "style":
                node.style.update(parse_declarations(attr_text(value)))
            else:
                node.attributes[name] = attr_text(value)

        if tag_name == "img":
            node.media_payload = ImagePayload(
                src=node.attributes.get("src", ""),
                width=parse_int_attr(node.attributes.get("width")),
                height=parse_int_attr(node.attributes.get("height")),
                alt=node.attributes.get("alt") or None,
            )
        elif tag_name == "svg":
            node.media_payload = VectorPayload(
                markup=svg_markup(element),
                width=parse_int_attr(node.attributes.get("width")),
                height=parse_int_attr(node.attributes.get("height")),
                view_box=node.attributes.get("viewBox") or node.attributes.get("viewbox") or None,
            )

        node.style.update(self.resolver.resolve(element))

        # svg descendants are walked too, even though the markup already carries them
        for child in element.children:
            if isinstance(child, Tag):
                node.children.append(self.extract(child))

        contents = element.contents
        if len(contents) == 1 and is_text_node(contents[0]):
            node.text_content = str(contents[0]).strip()

        return node


def find_root(soup: BeautifulSoup, root_selector: Optional[str] = None) -> Tag:
    if root_selector:
        root = soup.select_one(root_selector)
        if root is None:
            raise ValueError(f"No element matches root selector {root_selector!r}")
        return root
    if soup.body is not None:
        return soup.body
    for child in soup.children:
        if isinstance(child, Tag):
            return child
    raise ValueError("Document has no elements")


def extract_html(
    html: str,
    resolver: Optional[StyleResolver] = None,
    root_selector: Optional[str] = None,
    use_stylesheets: bool = False,
    viewport_width: float = DEFAULT_VIEWPORT_WIDTH,
) -> ElementNode:
    """Parse ``html`` and extract the tree under ``<body>`` (or ``root_selector``).

    With ``use_stylesheets`` and no explicit resolver, the document's own
    ``<style>`` blocks provide the computed-style overlay.
    """
    soup = BeautifulSoup(html, "lxml")
    if resolver is None and use_stylesheets:
        resolver = StylesheetStyleResolver(soup, viewport_width)
    root = find_root(soup, root_selector)
    logger.debug("Extracting from <%s>", root.name)
    return DomExtractor(resolver).extract(root)
