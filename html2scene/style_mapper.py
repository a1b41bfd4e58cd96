"""
Canonical style record -> target node style.

The mapping is field-by-field and never raises: unparseable colors, units,
gradients and shadows come out as black, ``nan`` or no paint/effect at all.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from .css_values import Color, parse_color, parse_number, parse_unit_value

# --------------------------------------------------------------------------- #
# Target schema
# --------------------------------------------------------------------------- #


@dataclass
class SolidPaint:
    color: Color
    type: str = "SOLID"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "color": self.color.to_dict()}


@dataclass
class ColorStop:
    position: float
    color: Color

    def to_dict(self) -> Dict[str, Any]:
        return {"position": self.position, "color": self.color.to_dict()}


@dataclass
class GradientPaint:
    gradient_transform: List[List[float]]
    gradient_stops: List[ColorStop]
    type: str = "GRADIENT_LINEAR"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "gradientTransform": [list(row) for row in self.gradient_transform],
            "gradientStops": [stop.to_dict() for stop in self.gradient_stops],
        }


@dataclass
class ImagePaint:
    image_hash: str
    scale_mode: str = "FILL"
    type: str = "IMAGE"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "scaleMode": self.scale_mode, "imageHash": self.image_hash}


Paint = Union[SolidPaint, GradientPaint, ImagePaint]


@dataclass
class DropShadow:
    color: Color
    offset: Tuple[float, float]
    radius: float
    visible: bool = True
    blend_mode: str = "NORMAL"
    type: str = "DROP_SHADOW"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "color": self.color.to_dict(),
            "offset": {"x": self.offset[0], "y": self.offset[1]},
            "radius": self.radius,
            "visible": self.visible,
            "blendMode": self.blend_mode,
        }


Effect = DropShadow


@dataclass
class FontName:
    family: str
    style: str = "Regular"


@dataclass
class LineHeight:
    value: float
    unit: str = "PIXELS"


@dataclass
class TargetStyle:
    width: Optional[float] = None
    height: Optional[float] = None
    fills: Optional[List[Paint]] = None
    strokes: Optional[List[Paint]] = None
    stroke_weight: Optional[float] = None
    effects: Optional[List[Effect]] = None
    font_name: Optional[FontName] = None
    font_size: Optional[float] = None
    text_align_horizontal: Optional[str] = None
    letter_spacing: Optional[float] = None
    line_height: Optional[LineHeight] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.width is not None:
            data["width"] = self.width
        if self.height is not None:
            data["height"] = self.height
        if self.fills is not None:
            data["fills"] = [paint.to_dict() for paint in self.fills]
        if self.strokes is not None:
            data["strokes"] = [paint.to_dict() for paint in self.strokes]
            data["strokeWeight"] = self.stroke_weight
        if self.effects is not None:
            data["effects"] = [effect.to_dict() for effect in self.effects]
        if self.font_name is not None:
            data["fontName"] = {"family": self.font_name.family, "style": self.font_name.style}
        if self.font_size is not None:
            data["fontSize"] = self.font_size
        if self.text_align_horizontal is not None:
            data["textAlignHorizontal"] = self.text_align_horizontal
        if self.letter_spacing is not None:
            data["letterSpacing"] = self.letter_spacing
        if self.line_height is not None:
            data["lineHeight"] = {"value": self.line_height.value, "unit": self.line_height.unit}
        return data


# --------------------------------------------------------------------------- #
# Gradients and shadows
# --------------------------------------------------------------------------- #

ANGLE_UNITS = {"deg": 1.0, "grad": 0.9, "rad": 180.0 / math.pi, "turn": 360.0}
_LEN = r"-?\d*\.?\d+(?:px)?"
_COLOR = r"rgba?\([^)]*\)|#[0-9a-fA-F]{3,8}"
SHADOW_RE = re.compile(rf"({_LEN})\s+({_LEN})\s+({_LEN})(?:\s+{_LEN})?\s+({_COLOR})")
SHADOW_COLOR_FIRST_RE = re.compile(rf"({_COLOR})\s+({_LEN})\s+({_LEN})\s+({_LEN})")
STOP_POSITION_RE = re.compile(r"^(.*?)\s+(-?\d*\.?\d+)%$", re.S)


def split_top_level(text: str, sep: str = ",") -> List[str]:
    parts: List[str] = []
    depth = 0
    current = ""
    for ch in text:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == sep and depth == 0:
            parts.append(current.strip())
            current = ""
        else:
            current += ch
    parts.append(current.strip())
    return parts


def _gradient_body(value: str) -> Optional[str]:
    start = value.find("linear-gradient(")
    if start < 0:
        return None
    idx = start + len("linear-gradient(")
    depth = 1
    for pos in range(idx, len(value)):
        if value[pos] == "(":
            depth += 1
        elif value[pos] == ")":
            depth -= 1
            if depth == 0:
                return value[idx:pos]
    return None


def _gradient_angle(token: str) -> Optional[float]:
    """Angle in degrees for an angle/direction argument, ``None`` for a color stop."""
    lowered = token.strip().lower()
    if lowered.startswith("to "):
        return 0.0
    for unit, factor in ANGLE_UNITS.items():
        if lowered.endswith(unit):
            num = parse_number(lowered)
            return 0.0 if math.isnan(num) else num * factor
    return None


def parse_gradient(value: Optional[str]) -> Optional[GradientPaint]:
    """``linear-gradient(angle, color pos%, ...)`` -> GRADIENT_LINEAR paint.

    Stops keep their declared order; stops without a position are spread
    evenly. Anything unparseable returns ``None``.
    """
    if not value:
        return None
    body = _gradient_body(value)
    if body is None:
        return None
    args = [arg for arg in split_top_level(body) if arg]
    if not args:
        return None
    angle = _gradient_angle(args[0])
    if angle is not None:
        args = args[1:]
    else:
        angle = 0.0
    if not args:
        return None

    stops: List[ColorStop] = []
    count = len(args)
    for idx, arg in enumerate(args):
        match = STOP_POSITION_RE.match(arg)
        if match:
            color_text = match.group(1)
            position = float(match.group(2)) / 100
        else:
            color_text = arg.split()[0] if not arg.startswith(("rgb", "hsl")) else arg
            position = idx / (count - 1) if count > 1 else 0.0
        stops.append(ColorStop(min(1.0, max(0.0, position)), parse_color(color_text)))

    rad = math.radians(angle)
    cos_a, sin_a = math.cos(rad), math.sin(rad)
    transform = [[cos_a, sin_a, 0.0], [-sin_a, cos_a, 0.0]]
    return GradientPaint(gradient_transform=transform, gradient_stops=stops)


def parse_box_shadow(value: Optional[str]) -> Optional[DropShadow]:
    """First ``offsetX offsetY blur color`` shadow (either order) as a DROP_SHADOW."""
    if not value or value.strip() == "none":
        return None
    match = SHADOW_RE.search(value)
    if match:
        offset_x, offset_y, blur, color = match.groups()
    else:
        match = SHADOW_COLOR_FIRST_RE.search(value)
        if not match:
            return None
        color, offset_x, offset_y, blur = match.groups()
    return DropShadow(
        color=parse_color(color),
        offset=(parse_unit_value(offset_x), parse_unit_value(offset_y)),
        radius=parse_unit_value(blur),
    )


# --------------------------------------------------------------------------- #
# Mapping
# --------------------------------------------------------------------------- #

BORDER_OFF_STYLES = ("none", "hidden")


def _border_stroke(style: Dict[str, str]) -> Optional[Tuple[SolidPaint, float]]:
    border = style.get("border")
    if border:
        parts = border.split(None, 2)
        if any(part.lower() in BORDER_OFF_STYLES for part in parts[:2]):
            return None
        width = parts[0] if parts else None
        color = parts[2] if len(parts) > 2 else None
        return SolidPaint(parse_color(color)), parse_unit_value(width)
    width = style.get("borderWidth")
    color = style.get("borderColor")
    if width and color and style.get("borderStyle", "solid").lower() not in BORDER_OFF_STYLES:
        return SolidPaint(parse_color(color)), parse_unit_value(width)
    return None


def css_to_target(style: Dict[str, str]) -> TargetStyle:
    target = TargetStyle()

    if style.get("width"):
        target.width = parse_unit_value(style["width"])
    if style.get("height"):
        target.height = parse_unit_value(style["height"])

    if style.get("backgroundColor"):
        target.fills = [SolidPaint(parse_color(style["backgroundColor"]))]
    background_image = style.get("backgroundImage") or ""
    if "gradient" in background_image:
        gradient = parse_gradient(background_image)
        if gradient is not None:
            target.fills = [gradient]

    stroke = _border_stroke(style)
    if stroke:
        paint, weight = stroke
        target.strokes = [paint]
        target.stroke_weight = weight

    shadow = parse_box_shadow(style.get("boxShadow"))
    if shadow is not None:
        target.effects = [shadow]

    if style.get("fontFamily"):
        family = re.sub(r"['\"]", "", style["fontFamily"])
        target.font_name = FontName(family, "Bold" if style.get("fontWeight") == "700" else "Regular")
    if style.get("fontSize"):
        target.font_size = parse_unit_value(style["fontSize"])
    if style.get("textAlign"):
        target.text_align_horizontal = style["textAlign"].upper()
    if style.get("letterSpacing"):
        target.letter_spacing = parse_unit_value(style["letterSpacing"])
    if style.get("lineHeight"):
        target.line_height = LineHeight(parse_unit_value(style["lineHeight"]))

    return target
