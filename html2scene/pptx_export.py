"""
Scene graph -> PPTX.

- SceneLayout: positions an in-memory scene graph. HORIZONTAL frames place
  children left-to-right, everything else stacks top-to-bottom; hugging or
  unsized frames grow to fit. Text is measured with Pillow when a TrueType
  font is at hand and estimated otherwise.
- PPTXExporter: renders the positioned graph onto a single slide with
  python-pptx (rectangles, pictures, text boxes).
"""

from __future__ import annotations

import io
import logging
import math
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from PIL import Image, ImageDraw, ImageFont
from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.shapes import MSO_AUTO_SHAPE_TYPE
from pptx.enum.text import PP_ALIGN
from pptx.util import Inches, Pt

from .css_values import Color
from .scene import DEFAULT_FONT, ImageHandle, NodeKind, SceneNode
from .style_mapper import GradientPaint, ImagePaint, Paint, SolidPaint

logger = logging.getLogger(__name__)

# --------------------------------------------------------------------------- #
# Constants
# --------------------------------------------------------------------------- #

PX_PER_INCH = 96.0
FLOW_GAP = 8.0
DEFAULT_FONT_SIZE = 16.0
LINE_HEIGHT_FACTOR = 1.2
CHAR_WIDTH_FACTOR = 0.55
MIN_SHAPE_SIZE = 1.0
FONT_CANDIDATES = ("Arial.ttf", "DejaVuSans.ttf", "/System/Library/Fonts/Supplemental/Arial.ttf")
TEXT_ALIGN = {
    "LEFT": PP_ALIGN.LEFT,
    "CENTER": PP_ALIGN.CENTER,
    "RIGHT": PP_ALIGN.RIGHT,
    "JUSTIFY": PP_ALIGN.JUSTIFY,
    "JUSTIFIED": PP_ALIGN.JUSTIFY,
}


def pt_from_px(px_val: float) -> Pt:
    return Pt(px_val * 72.0 / PX_PER_INCH)


def _sized(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


def rgb_color(color: Color) -> RGBColor:
    return RGBColor(*(max(0, min(255, int(round(c * 255)))) for c in (color.r, color.g, color.b)))


def first_color(paints: List[Paint]) -> Optional[Color]:
    """Color of the first solid paint; a gradient stands in with its first stop."""
    for paint in paints:
        if isinstance(paint, SolidPaint):
            return paint.color
        if isinstance(paint, GradientPaint) and paint.gradient_stops:
            return paint.gradient_stops[0].color
    return None


# --------------------------------------------------------------------------- #
# Text measurement
# --------------------------------------------------------------------------- #


class TextMeasurer:
    def __init__(self):
        self.canvas = Image.new("RGB", (1, 1))
        self.drawer = ImageDraw.Draw(self.canvas)
        self.font_cache: Dict[int, Any] = {}

    def _font(self, size: float):
        key = max(1, int(size))
        if key in self.font_cache:
            return self.font_cache[key]
        font = None
        for cand in FONT_CANDIDATES:
            try:
                font = ImageFont.truetype(cand, key)
                break
            except OSError:
                continue
        self.font_cache[key] = font
        return font

    def _word_width(self, word: str, font, size: float) -> float:
        if font is None:
            return len(word) * size * CHAR_WIDTH_FACTOR
        return float(self.drawer.textbbox((0, 0), word, font=font)[2])

    def measure(self, text: str, size: float, max_width: float) -> Tuple[float, int]:
        """(widest line, line count) of ``text`` wrapped at ``max_width``."""
        words = text.replace("\xa0", " ").split()
        if not words:
            return (0.0, 1)
        font = self._font(size)
        space_w = self._word_width(" ", font, size) or size * CHAR_WIDTH_FACTOR
        lines = 0
        current_w = 0.0
        max_w = 0.0
        for word in words:
            w = self._word_width(word, font, size)
            if current_w and current_w + space_w + w > max_width:
                lines += 1
                max_w = max(max_w, current_w)
                current_w = w
            else:
                current_w = current_w + space_w + w if current_w else w
        lines += 1
        max_w = max(max_w, current_w)
        return (max_w, lines)


# --------------------------------------------------------------------------- #
# Layout
# --------------------------------------------------------------------------- #


class SceneLayout:
    def __init__(self, measurer: Optional[TextMeasurer] = None, gap: float = FLOW_GAP):
        self.measurer = measurer or TextMeasurer()
        self.gap = gap

    def layout(self, root: SceneNode, available_width: Optional[float] = None) -> SceneNode:
        width = available_width if _sized(available_width) else root.width
        self._layout(root, width if _sized(width) else 0.0)
        return root

    def _layout(self, node: SceneNode, available: float) -> Tuple[float, float]:
        if node.kind == NodeKind.TEXT:
            return self._layout_text(node, available)
        if not node.is_container:
            width = node.width if _sized(node.width) else 0.0
            height = node.height if _sized(node.height) else 0.0
            return (width, height)

        hug = node.layout_mode != "NONE" and node.primary_axis_sizing_mode == "AUTO"
        inner = node.width if _sized(node.width) and not hug else available
        horizontal = node.layout_mode == "HORIZONTAL"
        cursor = 0.0
        cross = 0.0
        for idx, child in enumerate(node.children):
            if idx:
                cursor += self.gap
            child_w, child_h = self._layout(child, inner)
            if horizontal:
                child.x, child.y = cursor, 0.0
                cursor += child_w
                cross = max(cross, child_h)
            else:
                child.x, child.y = 0.0, cursor
                cursor += child_h
                cross = max(cross, child_w)
        content_w, content_h = (cursor, cross) if horizontal else (cross, cursor)

        if hug:
            node.resize(content_w, content_h)
        elif not (_sized(node.width) and _sized(node.height)):
            # unsized blocks fill the available width
            node.resize(
                node.width if _sized(node.width) else inner,
                node.height if _sized(node.height) else content_h,
            )
        return (node.width, node.height)

    def _layout_text(self, node: SceneNode, available: float) -> Tuple[float, float]:
        if _sized(node.width) and _sized(node.height):
            return (node.width, node.height)
        size = node.font_size or DEFAULT_FONT_SIZE
        line_height = size * LINE_HEIGHT_FACTOR
        if node.line_height is not None and _sized(node.line_height.value) and node.line_height.value > 0:
            line_height = node.line_height.value
        max_width = available if available > 0 else float("inf")
        text_w, lines = self.measurer.measure(node.characters, size, max_width)
        node.resize(min(text_w, max_width), lines * line_height)
        return (node.width, node.height)


# --------------------------------------------------------------------------- #
# PPTX rendering
# --------------------------------------------------------------------------- #


class PPTXExporter:
    def __init__(
        self,
        width: Optional[float] = None,
        height: Optional[float] = None,
        images: Optional[Dict[str, ImageHandle]] = None,
        layout: Optional[SceneLayout] = None,
    ):
        self.width = width
        self.height = height
        self.images = images if images is not None else {}
        self.layout = layout or SceneLayout()
        self.prs = Presentation()
        self.blank = self.prs.slide_layouts[6]
        self.shape_count = 0

    def render(self, root: SceneNode):
        self.layout.layout(root, self.width)
        width = self.width or root.width or MIN_SHAPE_SIZE
        height = self.height or max([root.height or 0.0] + [c.y + (c.height or 0.0) for c in root.children])
        self.prs.slide_width = Inches(width / PX_PER_INCH)
        self.prs.slide_height = Inches(max(height, MIN_SHAPE_SIZE) / PX_PER_INCH)
        slide = self.prs.slides.add_slide(self.blank)
        self._render_node(slide, root, 0.0, 0.0)
        logger.info("Rendered %d shapes onto a %.0fx%.0f slide", self.shape_count, width, height)
        return self.prs

    def _geometry(self, node: SceneNode, left: float, top: float):
        width = node.width if _sized(node.width) else 0.0
        height = node.height if _sized(node.height) else 0.0
        return (
            Inches(left / PX_PER_INCH),
            Inches(top / PX_PER_INCH),
            Inches(max(width, MIN_SHAPE_SIZE) / PX_PER_INCH),
            Inches(max(height, MIN_SHAPE_SIZE) / PX_PER_INCH),
        )

    def _render_node(self, slide, node: SceneNode, origin_x: float, origin_y: float):
        left = origin_x + node.x
        top = origin_y + node.y
        if node.kind == NodeKind.FRAME:
            if node.fills or node.strokes:
                self._render_shape(slide, node, left, top)
            for child in node.children:
                self._render_node(slide, child, left, top)
        elif node.kind == NodeKind.RECTANGLE:
            image = self._image_for(node)
            if image is not None:
                self._render_image(slide, node, image, left, top)
            else:
                self._render_shape(slide, node, left, top)
        elif node.kind == NodeKind.TEXT:
            self._render_text(slide, node, left, top)
        elif node.kind == NodeKind.VECTOR:
            self._render_vector(slide, node, left, top)

    def _image_for(self, node: SceneNode) -> Optional[ImageHandle]:
        for paint in reversed(node.fills):
            if isinstance(paint, ImagePaint):
                return self.images.get(paint.image_hash)
        return None

    def _render_shape(self, slide, node: SceneNode, left: float, top: float):
        shape = slide.shapes.add_shape(MSO_AUTO_SHAPE_TYPE.RECTANGLE, *self._geometry(node, left, top))
        self._apply_shape_style(shape, node)
        self.shape_count += 1

    def _render_image(self, slide, node: SceneNode, image: ImageHandle, left: float, top: float):
        x, y, width, height = self._geometry(node, left, top)
        slide.shapes.add_picture(io.BytesIO(image.data), x, y, width=width, height=height)
        self.shape_count += 1

    def _render_text(self, slide, node: SceneNode, left: float, top: float):
        shape = slide.shapes.add_textbox(*self._geometry(node, left, top))
        tf = shape.text_frame
        tf.word_wrap = True
        tf.clear()
        font_name = node.font_name or DEFAULT_FONT
        for idx, piece in enumerate(node.characters.split("\n")):
            paragraph = tf.add_paragraph() if idx else tf.paragraphs[0]
            run = paragraph.add_run()
            run.text = piece
            run.font.size = pt_from_px(node.font_size or DEFAULT_FONT_SIZE)
            run.font.name = font_name.family
            run.font.bold = font_name.style == "Bold"
            align = TEXT_ALIGN.get(node.text_align_horizontal or "")
            if align is not None:
                paragraph.alignment = align
        self.shape_count += 1

    def _render_vector(self, slide, node: SceneNode, left: float, top: float):
        shape = slide.shapes.add_shape(MSO_AUTO_SHAPE_TYPE.RECTANGLE, *self._geometry(node, left, top))
        self._apply_shape_style(shape, node)
        if not node.strokes:
            shape.line.color.rgb = RGBColor(0x80, 0x80, 0x80)
        self.shape_count += 1

    def _apply_shape_style(self, shape, node: SceneNode):
        fill = first_color(node.fills)
        if fill is not None:
            shape.fill.solid()
            shape.fill.fore_color.rgb = rgb_color(fill)
        else:
            shape.fill.background()
        stroke = first_color(node.strokes)
        if stroke is not None and _sized(node.stroke_weight) and node.stroke_weight > 0:
            shape.line.color.rgb = rgb_color(stroke)
            shape.line.width = pt_from_px(node.stroke_weight)
        else:
            shape.line.fill.background()

    def save(self, output: Union[str, Path]):
        self.prs.save(str(output))
