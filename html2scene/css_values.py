"""
Color and length normalisation for CSS values.

Both parsers are lenient on purpose: malformed input never raises. Colors
degrade to opaque black and lengths to ``nan``, and those values flow on to
the mapper unchanged.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Dict, Optional

from PIL import ImageColor

# --------------------------------------------------------------------------- #
# Constants
# --------------------------------------------------------------------------- #

ROOT_FONT_SIZE = 16.0

NUMBER_RE = re.compile(r"(-?[\d.]+)(%?)")
LEADING_NUMBER_RE = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")
HEX_RE = re.compile(r"^[0-9a-fA-F]{6}$")
CAMEL_RE = re.compile(r"-([a-z])")


# --------------------------------------------------------------------------- #
# Colors
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class Color:
    r: float
    g: float
    b: float
    a: Optional[float] = None

    def to_dict(self) -> Dict[str, float]:
        data = {"r": self.r, "g": self.g, "b": self.b}
        if self.a is not None:
            data["a"] = self.a
        return data


BLACK = Color(0.0, 0.0, 0.0)


def _clamp(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def parse_color(value: Optional[str]) -> Color:
    """Convert ``#RRGGBB``, ``#RGB``, ``rgb()``, ``rgba()`` or a color keyword.

    Channels and alpha are scaled to [0, 1] and clamped; ``%`` channels are
    fractions of 100.
    """
    if not value:
        return BLACK
    raw = value.strip()
    if raw.startswith("#"):
        hex_val = raw[1:]
        if len(hex_val) == 3:
            hex_val = "".join(c * 2 for c in hex_val)
        if not HEX_RE.match(hex_val):
            return BLACK
        return Color(
            int(hex_val[0:2], 16) / 255,
            int(hex_val[2:4], 16) / 255,
            int(hex_val[4:6], 16) / 255,
        )
    lowered = raw.lower()
    if lowered.startswith("rgb"):
        tokens = NUMBER_RE.findall(raw)
        if len(tokens) < 3:
            return BLACK
        channels = []
        for idx, (num, percent) in enumerate(tokens[:4]):
            try:
                val = float(num)
            except ValueError:
                return BLACK
            # alpha is already a fraction; r, g, b are 0-255
            scale = 100.0 if percent else (1.0 if idx == 3 else 255.0)
            channels.append(_clamp(val / scale))
        alpha = channels[3] if lowered.startswith("rgba") and len(channels) > 3 else None
        return Color(channels[0], channels[1], channels[2], alpha)
    try:
        rgb = ImageColor.getrgb(lowered)
    except ValueError:
        return BLACK
    return Color(rgb[0] / 255, rgb[1] / 255, rgb[2] / 255)


# --------------------------------------------------------------------------- #
# Lengths
# --------------------------------------------------------------------------- #


def parse_number(value: Optional[str]) -> float:
    """Leading numeric prefix of ``value`` (parseFloat semantics), else ``nan``."""
    if value is None:
        return math.nan
    match = LEADING_NUMBER_RE.match(str(value))
    if not match:
        return math.nan
    return float(match.group(1))


def parse_unit_value(value: Optional[str]) -> float:
    """Length in pixels. ``em`` and ``rem`` assume a 16px root font size."""
    num = parse_number(value)
    if math.isnan(num):
        return num
    unit = str(value).strip().lower()
    if unit.endswith("px"):
        return num
    if unit.endswith("rem") or unit.endswith("em"):
        return num * ROOT_FONT_SIZE
    return num


# --------------------------------------------------------------------------- #
# Property names
# --------------------------------------------------------------------------- #


def camel_case(name: str) -> str:
    name = name.strip()
    if name.startswith("--"):
        return name
    return CAMEL_RE.sub(lambda m: m.group(1).upper(), name.lower())
