"""HTML -> design-tool scene graph converter."""

from .converter import convert, convert_html
from .dom_extractor import ElementNode, extract_html
from .scene import SceneHost, SceneNode
from .style_mapper import TargetStyle, css_to_target

__version__ = "0.1.0"

__all__ = [
    "ElementNode",
    "SceneHost",
    "SceneNode",
    "TargetStyle",
    "convert",
    "convert_html",
    "css_to_target",
    "extract_html",
]
