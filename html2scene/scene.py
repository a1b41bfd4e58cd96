"""
In-memory scene graph and the host that creates its nodes.

``SceneHost`` plays the part of the design tool: it creates containers,
text, placeholder rectangles and vectors, decodes image bytes into image
handles and loads fonts. Subclass it to target another tool or to
simulate failures.
"""

from __future__ import annotations

import hashlib
import io
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from lxml import etree
from PIL import Image, UnidentifiedImageError

from .errors import FontLoadError, ImageCreationError, VectorCreationError
from .style_mapper import Effect, FontName, LineHeight, Paint, TargetStyle

logger = logging.getLogger(__name__)

DEFAULT_FONT = FontName("Inter", "Regular")


class NodeKind(str, Enum):
    FRAME = "FRAME"
    TEXT = "TEXT"
    RECTANGLE = "RECTANGLE"
    VECTOR = "VECTOR"


def _present(value: Optional[float]) -> bool:
    return bool(value) and not math.isnan(value)


def _finite(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


CONTAINER_KINDS = {NodeKind.FRAME}
FILLABLE_KINDS = {NodeKind.FRAME, NodeKind.RECTANGLE, NodeKind.VECTOR}


@dataclass
class ImageHandle:
    hash: str
    width: int
    height: int
    data: bytes = field(repr=False)


@dataclass
class SceneNode:
    kind: NodeKind
    name: str = ""
    x: float = 0.0
    y: float = 0.0
    width: Optional[float] = None
    height: Optional[float] = None
    fills: List[Paint] = field(default_factory=list)
    strokes: List[Paint] = field(default_factory=list)
    stroke_weight: Optional[float] = None
    effects: List[Effect] = field(default_factory=list)
    characters: str = ""
    font_name: Optional[FontName] = None
    font_size: Optional[float] = None
    text_align_horizontal: Optional[str] = None
    letter_spacing: Optional[float] = None
    line_height: Optional[LineHeight] = None
    layout_mode: str = "NONE"
    primary_axis_sizing_mode: str = "FIXED"
    counter_axis_sizing_mode: str = "FIXED"
    vector_markup: Optional[str] = None
    children: List["SceneNode"] = field(default_factory=list)
    parent: Optional["SceneNode"] = field(default=None, repr=False, compare=False)

    @property
    def is_container(self) -> bool:
        return self.kind in CONTAINER_KINDS

    def resize(self, width: float, height: float):
        self.width = width
        self.height = height

    def append_child(self, child: "SceneNode"):
        if not self.is_container:
            raise TypeError(f"{self.kind.value} nodes cannot have children")
        child.parent = self
        self.children.append(child)

    def walk(self) -> Iterator["SceneNode"]:
        yield self
        for child in self.children:
            yield from child.walk()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.kind.value, "name": self.name, "x": self.x, "y": self.y}
        if self.width is not None:
            data["width"] = self.width
            data["height"] = self.height
        if self.fills:
            data["fills"] = [paint.to_dict() for paint in self.fills]
        if self.strokes:
            data["strokes"] = [paint.to_dict() for paint in self.strokes]
            if self.stroke_weight is not None:
                data["strokeWeight"] = self.stroke_weight
        if self.effects:
            data["effects"] = [effect.to_dict() for effect in self.effects]
        if self.kind == NodeKind.TEXT:
            font = self.font_name or DEFAULT_FONT
            data["characters"] = self.characters
            data["fontName"] = {"family": font.family, "style": font.style}
            for key, value in (
                ("fontSize", self.font_size),
                ("textAlignHorizontal", self.text_align_horizontal),
                ("letterSpacing", self.letter_spacing),
            ):
                if value is not None:
                    data[key] = value
            if self.line_height is not None:
                data["lineHeight"] = {"value": self.line_height.value, "unit": self.line_height.unit}
        if self.layout_mode != "NONE":
            data["layoutMode"] = self.layout_mode
            data["primaryAxisSizingMode"] = self.primary_axis_sizing_mode
            data["counterAxisSizingMode"] = self.counter_axis_sizing_mode
        if self.vector_markup is not None:
            data["svg"] = self.vector_markup
        if self.is_container:
            data["children"] = [child.to_dict() for child in self.children]
        return data


# --------------------------------------------------------------------------- #
# Host
# --------------------------------------------------------------------------- #


class SceneHost:
    """Creates scene nodes. ``available_fonts=None`` accepts every font."""

    def __init__(self, available_fonts: Optional[Set[Tuple[str, str]]] = None):
        self.available_fonts = available_fonts
        self.images: Dict[str, ImageHandle] = {}
        self.loaded_fonts: Set[Tuple[str, str]] = set()

    def create_container(self) -> SceneNode:
        return SceneNode(NodeKind.FRAME)

    def create_text(self) -> SceneNode:
        return SceneNode(NodeKind.TEXT)

    def create_placeholder(self) -> SceneNode:
        return SceneNode(NodeKind.RECTANGLE)

    def create_vector_from_markup(self, markup: str) -> SceneNode:
        try:
            root = etree.fromstring(markup.encode("utf-8"))
        except etree.XMLSyntaxError as exc:
            raise VectorCreationError(f"Invalid SVG markup: {exc}") from exc
        if etree.QName(root).localname.lower() != "svg":
            raise VectorCreationError(f"Expected <svg> root, got <{etree.QName(root).localname}>")
        node = SceneNode(NodeKind.VECTOR)
        node.vector_markup = markup
        return node

    def create_image_fill(self, data: bytes) -> ImageHandle:
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                width, height = img.size
        except (UnidentifiedImageError, OSError) as exc:
            raise ImageCreationError(f"Could not decode image ({len(data)} bytes): {exc}") from exc
        handle = ImageHandle(hashlib.sha1(data).hexdigest(), width, height, data)
        self.images[handle.hash] = handle
        logger.debug("Decoded image %s (%dx%d)", handle.hash[:8], width, height)
        return handle

    def load_font(self, family: str, style: str):
        key = (family, style)
        if self.available_fonts is not None and key not in self.available_fonts:
            raise FontLoadError(f"Font {family} {style} is not available")
        self.loaded_fonts.add(key)

    def apply_styles(self, node: SceneNode, target: TargetStyle):
        if target.fills and node.kind in FILLABLE_KINDS:
            node.fills = list(target.fills)
        if target.strokes and node.kind in FILLABLE_KINDS:
            node.strokes = list(target.strokes)
            node.stroke_weight = target.stroke_weight if _finite(target.stroke_weight) else None
        if target.effects:
            node.effects = list(target.effects)
        if node.kind != NodeKind.TEXT:
            return
        if _present(target.font_size):
            node.font_size = target.font_size
        if target.text_align_horizontal:
            node.text_align_horizontal = target.text_align_horizontal
        if _present(target.letter_spacing):
            node.letter_spacing = target.letter_spacing
        if target.line_height and _finite(target.line_height.value):
            node.line_height = target.line_height
