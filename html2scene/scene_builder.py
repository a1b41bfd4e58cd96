"""
ElementNode tree -> scene graph.

Depth-first and strictly sequential. Per node the kind is chosen by
priority vector > image > text > container, each media path has its own
fallback, and any other failure skips just that node's subtree.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional

from .css_values import Color
from .dom_extractor import ElementNode, ImagePayload, VectorPayload
from .errors import FontLoadError, ImageCreationError
from .scene import DEFAULT_FONT, SceneHost, SceneNode
from .style_mapper import ImagePaint, SolidPaint, TargetStyle, css_to_target

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_SIZE = 200
PLACEHOLDER_COLOR = Color(0.9, 0.9, 0.9)


# --------------------------------------------------------------------------- #
# Status reporting
# --------------------------------------------------------------------------- #


@dataclass
class StatusEvent:
    status: str
    error_detail: Optional[str] = None
    level: str = "info"  # info | warning | error | complete


StatusSink = Callable[[StatusEvent], None]
ImageFetcher = Callable[[str], bytes]

_LOG_LEVELS = {"warning": logging.WARNING, "error": logging.ERROR}


def log_status(event: StatusEvent):
    level = _LOG_LEVELS.get(event.level, logging.INFO)
    if event.error_detail:
        logger.log(level, "%s (%s)", event.status, event.error_detail)
    else:
        logger.log(level, "%s", event.status)


# --------------------------------------------------------------------------- #
# Builder
# --------------------------------------------------------------------------- #


def node_name(element: ElementNode) -> str:
    cls = element.attributes.get("class")
    return element.tag + (f".{cls}" if cls else "")


def _finite(*values: Optional[float]) -> bool:
    return all(v is not None and math.isfinite(v) for v in values)


def apply_auto_layout(node: SceneNode, flex_direction: Optional[str]):
    node.layout_mode = "VERTICAL" if flex_direction == "column" else "HORIZONTAL"
    node.primary_axis_sizing_mode = "AUTO"
    node.counter_axis_sizing_mode = "AUTO"


class SceneBuilder:
    def __init__(
        self,
        host: SceneHost,
        sink: Optional[StatusSink] = None,
        image_loader: Optional[ImageFetcher] = None,
    ):
        self.host = host
        self.sink = sink or log_status
        self.image_loader = image_loader
        self.built = 0
        self.skipped = 0
        self.fallbacks = 0

    def build(self, element: ElementNode, parent: SceneNode) -> Optional[SceneNode]:
        """Create the node for ``element`` under ``parent`` and recurse.

        Returns ``None`` when the node failed and its subtree was skipped.
        """
        try:
            target = css_to_target(element.style)
            node = self._create_node(element, target)
            node.name = node_name(element)
            parent.append_child(node)
            self.built += 1

            if node.is_container:
                for child in element.children:
                    self.build(child, node)
                if element.style.get("display") == "flex":
                    apply_auto_layout(node, element.style.get("flexDirection"))
            elif element.children:
                logger.debug("Dropping %d children of %s (%s)", len(element.children), node.name, node.kind.value)
            return node
        except Exception as exc:
            self.skipped += 1
            logger.warning("Error converting <%s>: %s", element.tag, exc)
            self.sink(StatusEvent(f"Error converting {element.tag}: {exc}", error_detail=repr(exc), level="warning"))
            return None

    def _create_node(self, element: ElementNode, target: TargetStyle) -> SceneNode:
        if element.vector:
            try:
                return self._vector_node(element.vector, target)
            except Exception as exc:
                self._fallback(f"Warning: Could not convert SVG element, falling back to frame: {exc}", exc)
                return self._container_node(target)
        if element.image:
            try:
                return self._image_node(element.image, target)
            except Exception as exc:
                self._fallback(f"Warning: Could not load image, falling back to placeholder: {exc}", exc)
                return self._placeholder_node(element.image, target)
        if element.text_content:
            return self._text_node(element.text_content, target)
        return self._container_node(target)

    def _fallback(self, message: str, exc: Exception):
        self.fallbacks += 1
        logger.warning(message)
        self.sink(StatusEvent(message, error_detail=repr(exc), level="warning"))

    def _container_node(self, target: TargetStyle) -> SceneNode:
        node = self.host.create_container()
        if _finite(target.width, target.height):
            node.resize(target.width, target.height)
        self.host.apply_styles(node, target)
        return node

    def _vector_node(self, vector: VectorPayload, target: TargetStyle) -> SceneNode:
        node = self.host.create_vector_from_markup(vector.markup)
        if vector.width is not None and vector.height is not None:
            node.resize(vector.width, vector.height)
        self.host.apply_styles(node, target)
        return node

    def _image_node(self, image: ImagePayload, target: TargetStyle) -> SceneNode:
        if self.image_loader is None:
            raise ImageCreationError("no image loader configured")
        data = self.image_loader(image.src)
        handle = self.host.create_image_fill(data)
        node = self.host.create_placeholder()
        node.resize(image.width or DEFAULT_IMAGE_SIZE, image.height or DEFAULT_IMAGE_SIZE)
        self.host.apply_styles(node, target)
        node.fills = list(node.fills) + [ImagePaint(handle.hash)]
        return node

    def _placeholder_node(self, image: ImagePayload, target: TargetStyle) -> SceneNode:
        node = self.host.create_placeholder()
        node.resize(image.width or DEFAULT_IMAGE_SIZE, image.height or DEFAULT_IMAGE_SIZE)
        self.host.apply_styles(node, target)
        node.fills = [SolidPaint(PLACEHOLDER_COLOR)]
        return node

    def _text_node(self, text: str, target: TargetStyle) -> SceneNode:
        node = self.host.create_text()
        font = target.font_name or DEFAULT_FONT
        try:
            self.host.load_font(font.family, font.style)
            node.font_name = font
        except FontLoadError as exc:
            logger.warning("Keeping default font: %s", exc)
            try:
                self.host.load_font(DEFAULT_FONT.family, DEFAULT_FONT.style)
            except FontLoadError as default_exc:
                logger.warning("No font could be loaded for text: %s", default_exc)
        node.characters = text
        if _finite(target.width, target.height):
            node.resize(target.width, target.height)
        self.host.apply_styles(node, target)
        return node
