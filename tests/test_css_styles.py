"""Tests for shorthand expansion, declaration/snapshot parsing and style resolvers."""

from __future__ import annotations

from bs4 import BeautifulSoup

from html2scene.css_styles import (
    NullStyleResolver,
    SnapshotStyleResolver,
    StylesheetStyleResolver,
    expand_shorthand,
    parse_declarations,
    parse_style_snapshot,
)
from html2scene.css_values import Color, parse_color


# ---------------------------------------------------------------------------
# Shorthand expansion
# ---------------------------------------------------------------------------

class TestExpandShorthand:
    def test_background_color_and_image(self):
        assert expand_shorthand("background", "url(a.png) #fff no-repeat") == {
            "backgroundImage": "url(a.png)",
            "backgroundColor": "#fff",
        }

    def test_background_last_color_wins(self):
        assert expand_shorthand("background", "#000 rgb(1,2,3)")["backgroundColor"] == "rgb(1,2,3)"

    def test_background_keyword_is_not_recognised(self):
        assert expand_shorthand("background", "red") == {}

    def test_border_three_tokens(self):
        assert expand_shorthand("border", "1px solid #333") == {
            "borderWidth": "1px",
            "borderStyle": "solid",
            "borderColor": "#333",
        }

    def test_border_too_few_tokens_ignored(self):
        assert expand_shorthand("border", "1px solid") == {}

    def test_font_last_family_token_wins(self):
        assert expand_shorthand("font", "bold 16px Arial") == {"fontSize": "16px", "fontFamily": "Arial"}

    def test_font_rem_size(self):
        assert expand_shorthand("font", "1.5rem Georgia")["fontSize"] == "1.5rem"

    def test_other_properties_expand_to_nothing(self):
        assert expand_shorthand("margin", "0 auto") == {}


# ---------------------------------------------------------------------------
# Declarations and snapshots
# ---------------------------------------------------------------------------

class TestParseDeclarations:
    def test_skips_incomplete_pairs(self):
        assert parse_declarations("color: red; ; :x; y: ;") == {"color": "red"}

    def test_camel_cases_and_expands(self):
        style = parse_declarations("background:#fff; font-size: 12px")
        assert style == {"background": "#fff", "backgroundColor": "#fff", "fontSize": "12px"}

    def test_later_declaration_overrides(self):
        style = parse_declarations("background: #000; background-color: #fff")
        assert style["backgroundColor"] == "#fff"

    def test_value_may_contain_colons(self):
        style = parse_declarations("background-image: url(http://x/a.png)")
        assert style["backgroundImage"] == "url(http://x/a.png)"

    def test_empty(self):
        assert parse_declarations(None) == {}
        assert parse_declarations("") == {}


class TestParseStyleSnapshot:
    def test_copies_non_empty_strings(self):
        snapshot = {"color": "red", "transform": "none", "cursor": "auto", "empty": "", "length": 3}
        assert parse_style_snapshot(snapshot) == {"color": "red", "transform": "none", "cursor": "auto"}

    def test_kebab_keys_canonicalised(self):
        assert parse_style_snapshot({"background-color": "rgb(0, 0, 0)"}) == {"backgroundColor": "rgb(0, 0, 0)"}

    def test_no_shorthand_expansion(self):
        assert parse_style_snapshot({"border": "1px solid rgb(0, 0, 0)"}) == {"border": "1px solid rgb(0, 0, 0)"}

    def test_none(self):
        assert parse_style_snapshot(None) == {}


# ---------------------------------------------------------------------------
# Resolvers
# ---------------------------------------------------------------------------

class TestSnapshotStyleResolver:
    def test_lookup_by_id_and_snapshot_id(self):
        soup = BeautifulSoup('<p id="a">x</p><p data-snapshot-id="s1">y</p><p>z</p>', "lxml")
        resolver = SnapshotStyleResolver({"a": {"color": "red"}, "s1": {"font-size": "12px"}})
        first, second, third = soup.find_all("p")
        assert resolver.resolve(first) == {"color": "red"}
        assert resolver.resolve(second) == {"fontSize": "12px"}
        assert resolver.resolve(third) == {}

    def test_null_resolver(self):
        soup = BeautifulSoup("<p>x</p>", "lxml")
        assert NullStyleResolver().resolve(soup.p) == {}


CASCADE_HTML = """<html><head><style>
/* comment */
p { color: red; font-size: 12px }
.big { font-size: 20px }
#x { color: blue }
p { color: green !important }
div > p:nth-child(99) { font-size: 99px }
</style></head>
<body><div style="font-family: Arial"><p class="big" id="x" style="letter-spacing: 2px">Hi</p><span>s</span></div></body></html>"""


class TestStylesheetStyleResolver:
    def _resolver(self):
        soup = BeautifulSoup(CASCADE_HTML, "lxml")
        return soup, StylesheetStyleResolver(soup)

    def test_specificity_orders_rules(self):
        soup, resolver = self._resolver()
        assert resolver.resolve(soup.p)["fontSize"] == "20px"

    def test_important_beats_id(self):
        soup, resolver = self._resolver()
        assert parse_color(resolver.resolve(soup.p)["color"]) == Color(0.0, 128 / 255, 0.0)

    def test_inline_declarations_applied(self):
        soup, resolver = self._resolver()
        assert resolver.resolve(soup.p)["letterSpacing"] == "2px"

    def test_typography_inherited_from_parent(self):
        soup, resolver = self._resolver()
        assert resolver.resolve(soup.p)["fontFamily"] == "Arial"
        assert resolver.resolve(soup.span)["fontFamily"] == "Arial"
        assert "color" not in resolver.resolve(soup.span)

    def test_shorthands_expanded_in_rules(self):
        soup = BeautifulSoup("<style>.c { border: 1px solid red }</style><div class='c'></div>", "lxml")
        style = StylesheetStyleResolver(soup).resolve(soup.div)
        assert style["borderWidth"] == "1px"
        assert style["borderStyle"] == "solid"

    def test_media_queries(self):
        soup = BeautifulSoup("<p></p>", "lxml")
        resolver = StylesheetStyleResolver(soup, viewport_width=1024)
        assert resolver._media_applies("screen and (min-width: 768px)")
        assert not resolver._media_applies("screen and (max-width: 600px)")
        assert not resolver._media_applies("print")
        assert resolver._media_applies("all")

    def test_print_media_not_applied(self):
        soup = BeautifulSoup("<style>@media print { p { color: red } }</style><p>x</p>", "lxml")
        assert "color" not in StylesheetStyleResolver(soup).resolve(soup.p)

    def test_no_stylesheet(self):
        soup = BeautifulSoup('<p style="color: red">x</p>', "lxml")
        assert StylesheetStyleResolver(soup).resolve(soup.p) == {"color": "red"}
