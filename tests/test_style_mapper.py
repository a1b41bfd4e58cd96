"""Tests for the canonical style -> target style mapper."""

from __future__ import annotations

import math

import pytest

from html2scene.css_values import BLACK, Color
from html2scene.style_mapper import (
    GradientPaint,
    SolidPaint,
    css_to_target,
    parse_box_shadow,
    parse_gradient,
    split_top_level,
)


class TestBoxShadow:
    def test_offset_blur_color(self):
        shadow = parse_box_shadow("0px 4px 8px rgba(0,0,0,0.1)")
        assert shadow.type == "DROP_SHADOW"
        assert shadow.offset == (0.0, 4.0)
        assert shadow.radius == 8.0
        assert shadow.color.a == 0.1
        assert shadow.visible is True
        assert shadow.blend_mode == "NORMAL"

    def test_color_first_computed_form(self):
        shadow = parse_box_shadow("rgba(0, 0, 0, 0.25) 2px 3px 6px 0px")
        assert shadow.offset == (2.0, 3.0)
        assert shadow.radius == 6.0
        assert shadow.color.a == 0.25

    def test_hex_color(self):
        shadow = parse_box_shadow("1px 1px 2px #ff0000")
        assert shadow.color == Color(1.0, 0.0, 0.0)

    @pytest.mark.parametrize("value", [None, "", "none", "inset garbage"])
    def test_no_shadow(self, value):
        assert parse_box_shadow(value) is None

    def test_to_dict(self):
        data = parse_box_shadow("0px 4px 8px rgba(0,0,0,0.1)").to_dict()
        assert data["offset"] == {"x": 0.0, "y": 4.0}
        assert data["blendMode"] == "NORMAL"


class TestGradient:
    def test_angle_and_stops(self):
        paint = parse_gradient("linear-gradient(90deg, #ff0000 0%, #0000ff 100%)")
        assert isinstance(paint, GradientPaint)
        assert paint.type == "GRADIENT_LINEAR"
        assert [s.position for s in paint.gradient_stops] == [0.0, 1.0]
        assert paint.gradient_stops[0].color == Color(1.0, 0.0, 0.0)
        assert paint.gradient_stops[1].color == Color(0.0, 0.0, 1.0)
        (a, b, tx), (c, d, ty) = paint.gradient_transform
        assert a == pytest.approx(0.0, abs=1e-9)
        assert b == pytest.approx(1.0)
        assert c == pytest.approx(-1.0)
        assert d == pytest.approx(0.0, abs=1e-9)
        assert tx == ty == 0.0

    def test_missing_angle_is_zero(self):
        paint = parse_gradient("linear-gradient(#000 0%, #fff 100%)")
        assert paint.gradient_transform[0][:2] == [1.0, 0.0]
        assert len(paint.gradient_stops) == 2

    def test_direction_keyword_and_rgba_stops(self):
        paint = parse_gradient("linear-gradient(to right, rgba(0, 0, 0, 0.5), #ffffff)")
        assert [s.position for s in paint.gradient_stops] == [0.0, 1.0]
        assert paint.gradient_stops[0].color.a == 0.5

    def test_declared_order_preserved(self):
        paint = parse_gradient("linear-gradient(180deg, #fff 80%, #000 20%)")
        assert [s.position for s in paint.gradient_stops] == [0.8, 0.2]

    def test_positions_clamped(self):
        paint = parse_gradient("linear-gradient(0deg, #fff -10%, #000 150%)")
        assert [s.position for s in paint.gradient_stops] == [0.0, 1.0]

    @pytest.mark.parametrize(
        "value", [None, "", "radial-gradient(#fff, #000)", "linear-gradient(", "linear-gradient()", "linear-gradient(45deg)"]
    )
    def test_malformed_is_none(self, value):
        assert parse_gradient(value) is None

    def test_split_top_level(self):
        assert split_top_level("a, rgb(1, 2, 3) 10%, b") == ["a", "rgb(1, 2, 3) 10%", "b"]


class TestCssToTarget:
    def test_dimensions(self):
        target = css_to_target({"width": "2rem", "height": "100px"})
        assert target.width == 32.0
        assert target.height == 100.0

    def test_unparseable_dimension_is_nan(self):
        assert math.isnan(css_to_target({"width": "auto"}).width)

    def test_background_color_fill(self):
        target = css_to_target({"backgroundColor": "#fff"})
        assert target.fills == [SolidPaint(Color(1.0, 1.0, 1.0))]

    def test_gradient_overrides_color(self):
        target = css_to_target(
            {"backgroundColor": "#fff", "backgroundImage": "linear-gradient(90deg, #000 0%, #fff 100%)"}
        )
        assert len(target.fills) == 1
        assert isinstance(target.fills[0], GradientPaint)

    def test_broken_gradient_keeps_color(self):
        target = css_to_target({"backgroundColor": "#fff", "backgroundImage": "linear-gradient("})
        assert target.fills == [SolidPaint(Color(1.0, 1.0, 1.0))]

    def test_border_shorthand(self):
        target = css_to_target({"border": "2px solid rgb(255, 0, 0)"})
        assert target.strokes == [SolidPaint(Color(1.0, 0.0, 0.0))]
        assert target.stroke_weight == 2.0

    def test_border_with_missing_color_is_black(self):
        target = css_to_target({"border": "1px solid"})
        assert target.strokes == [SolidPaint(BLACK)]

    def test_border_longhands(self):
        target = css_to_target({"borderWidth": "3px", "borderStyle": "dashed", "borderColor": "#00ff00"})
        assert target.strokes == [SolidPaint(Color(0.0, 1.0, 0.0))]
        assert target.stroke_weight == 3.0

    def test_border_style_none_has_no_stroke(self):
        target = css_to_target({"borderWidth": "0px", "borderStyle": "none", "borderColor": "#000"})
        assert target.strokes is None

    @pytest.mark.parametrize("border", ["none", "hidden", "0px none rgb(0, 0, 0)", "1px HIDDEN red"])
    def test_border_shorthand_none_has_no_stroke(self, border):
        target = css_to_target({"border": border})
        assert target.strokes is None
        assert target.stroke_weight is None

    def test_box_shadow_effect(self):
        target = css_to_target({"boxShadow": "0px 4px 8px rgba(0,0,0,0.1)"})
        assert len(target.effects) == 1

    def test_font_family_quotes_stripped(self):
        target = css_to_target({"fontFamily": "'Open Sans', \"Helvetica\"", "fontWeight": "700"})
        assert target.font_name.family == "Open Sans, Helvetica"
        assert target.font_name.style == "Bold"

    @pytest.mark.parametrize("weight", ["400", "bold", "600", None])
    def test_only_700_is_bold(self, weight):
        style = {"fontFamily": "Inter"}
        if weight:
            style["fontWeight"] = weight
        assert css_to_target(style).font_name.style == "Regular"

    def test_font_weight_without_family(self):
        assert css_to_target({"fontWeight": "700"}).font_name is None

    def test_typography(self):
        target = css_to_target(
            {"fontSize": "1.5rem", "textAlign": "center", "letterSpacing": "2px", "lineHeight": "24px"}
        )
        assert target.font_size == 24.0
        assert target.text_align_horizontal == "CENTER"
        assert target.letter_spacing == 2.0
        assert target.line_height.value == 24.0
        assert target.line_height.unit == "PIXELS"

    def test_unknown_keys_ignored(self):
        target = css_to_target({"cursor": "pointer", "transform": "none"})
        assert target.to_dict() == {}

    def test_to_dict(self):
        data = css_to_target({"backgroundColor": "#000", "fontFamily": "Inter", "fontSize": "12px"}).to_dict()
        assert data == {
            "fills": [{"type": "SOLID", "color": {"r": 0.0, "g": 0.0, "b": 0.0}}],
            "fontName": {"family": "Inter", "style": "Regular"},
            "fontSize": 12.0,
        }
