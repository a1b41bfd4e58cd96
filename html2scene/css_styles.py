"""
Canonical style records from heterogeneous CSS sources.

- expand_shorthand: structural (not grammar-correct) expansion of the
  ``background``, ``border`` and ``font`` shorthands into longhand keys.
- parse_declarations: ``prop: value; ...`` text (inline ``style`` attributes,
  rule bodies) into a camelCase record, shorthands expanded in order.
- parse_style_snapshot: a pre-computed per-element style object into a record.
- StyleResolver: where the per-element "computed" snapshot comes from. The
  stylesheet resolver is a lightweight cascade (cssutils + soupsieve), the
  snapshot resolver serves styles captured by a real rendering engine.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

import cssutils
from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from .css_values import camel_case, parse_unit_value

logger = logging.getLogger(__name__)

cssutils.log.setLevel(logging.ERROR)

StyleRecord = Dict[str, str]

DEFAULT_VIEWPORT_WIDTH = 1440.0
INHERITED_PROPS = (
    "color",
    "fontFamily",
    "fontSize",
    "fontStyle",
    "fontWeight",
    "letterSpacing",
    "lineHeight",
    "textAlign",
)


# --------------------------------------------------------------------------- #
# Shorthand expansion
# --------------------------------------------------------------------------- #


def expand_shorthand(name: str, value: str) -> StyleRecord:
    """Longhand fields implied by a ``background``, ``border`` or ``font`` value.

    Any other property expands to nothing. Later matching tokens overwrite
    earlier ones, so ``font: bold 16px Arial`` yields ``fontFamily: Arial``.
    """
    expanded: StyleRecord = {}
    parts = value.split()
    if name == "background":
        for part in parts:
            if part.startswith("#") or part.startswith("rgb") or "color" in part:
                expanded["backgroundColor"] = part
            elif "url" in part:
                expanded["backgroundImage"] = part
    elif name == "border":
        if len(parts) >= 3:
            expanded["borderWidth"] = parts[0]
            expanded["borderStyle"] = parts[1]
            expanded["borderColor"] = parts[2]
    elif name == "font":
        for part in parts:
            if "px" in part or "em" in part or "rem" in part:
                expanded["fontSize"] = part
            elif "/" not in part:
                expanded["fontFamily"] = part
    return expanded


def parse_declarations(text: Optional[str]) -> StyleRecord:
    style: StyleRecord = {}
    if not text:
        return style
    for decl in text.split(";"):
        if ":" not in decl:
            continue
        key, val = decl.split(":", 1)
        key = key.strip()
        val = val.strip()
        if not key or not val:
            continue
        key = camel_case(key)
        style[key] = val
        style.update(expand_shorthand(key, val))
    return style


def parse_style_snapshot(snapshot: Optional[Mapping[str, object]]) -> StyleRecord:
    """Copy every non-empty string property of a computed style object.

    Nothing is filtered: ``transform``, ``cursor`` and friends stay in the
    record and the mapper ignores what it does not know.
    """
    style: StyleRecord = {}
    if not snapshot:
        return style
    for key, val in snapshot.items():
        if not isinstance(key, str) or not isinstance(val, str) or not val:
            continue
        style[camel_case(key) if "-" in key else key] = val
    return style


# --------------------------------------------------------------------------- #
# Resolvers
# --------------------------------------------------------------------------- #


class StyleResolver:
    """Supplies the computed style snapshot the extractor overlays per element."""

    def resolve(self, element: Tag) -> StyleRecord:
        raise NotImplementedError


class NullStyleResolver(StyleResolver):
    def resolve(self, element: Tag) -> StyleRecord:
        return {}


class SnapshotStyleResolver(StyleResolver):
    """Serves snapshots captured elsewhere, keyed by ``data-snapshot-id`` or ``id``."""

    KEY_ATTRS = ("data-snapshot-id", "id")

    def __init__(self, snapshots: Mapping[str, Mapping[str, object]]):
        self.snapshots = snapshots

    def resolve(self, element: Tag) -> StyleRecord:
        for attr in self.KEY_ATTRS:
            key = element.get(attr)
            if key and key in self.snapshots:
                return parse_style_snapshot(self.snapshots[key])
        return {}


@dataclass
class CSSRule:
    selector: str
    props: StyleRecord
    important: StyleRecord
    specificity: Tuple[int, int, int]
    order: int


class StylesheetStyleResolver(StyleResolver):
    """Cascade over the document's own ``<style>`` blocks.

    Rules are ordered by specificity then source order, ``!important``
    declarations win over normal ones and inline declarations come last.
    Typography is inherited from the parent element.
    """

    TOKEN_RE = re.compile(r"([#.]?[\w-]+|\*|\[[^\]]*\]|:{1,2}[\w-]+)")
    MEDIA_FEATURE_RE = re.compile(r"\(\s*(min|max)-width\s*:\s*([^)]+)\)")

    def __init__(self, soup: BeautifulSoup, viewport_width: float = DEFAULT_VIEWPORT_WIDTH):
        self.soup = soup
        self.viewport_width = viewport_width
        self.rules: List[CSSRule] = []
        self._matched: Dict[int, List[CSSRule]] = {}
        self._cache: Dict[int, StyleRecord] = {}
        self._collect_rules()
        self._match_rules()

    def _collect_rules(self):
        order = 0
        for style_tag in self.soup.find_all("style"):
            css_text = style_tag.string or ""
            try:
                sheet = cssutils.parseString(css_text)
            except Exception as exc:  # cssutils raises its own zoo of errors
                logger.warning("Skipping unparseable <style> block: %s", exc)
                continue
            for rule in sheet:
                if rule.type == rule.STYLE_RULE:
                    order = self._add_rule(rule, order)
                elif rule.type == rule.MEDIA_RULE:
                    if not self._media_applies(rule.media.mediaText):
                        logger.debug("Media rule not applicable: %s", rule.media.mediaText)
                        continue
                    for inner in rule.cssRules:
                        if inner.type == inner.STYLE_RULE:
                            order = self._add_rule(inner, order)
        logger.debug("Collected %d stylesheet rules", len(self.rules))

    def _add_rule(self, rule, order: int) -> int:
        props: StyleRecord = {}
        important: StyleRecord = {}
        for prop in rule.style:
            target = important if prop.priority == "important" else props
            key = camel_case(prop.name)
            target[key] = prop.value
            target.update(expand_shorthand(key, prop.value))
        for selector in rule.selectorText.split(","):
            selector = selector.strip()
            if not selector:
                continue
            self.rules.append(CSSRule(selector, props, important, self._specificity(selector), order))
            order += 1
        return order

    def _specificity(self, selector: str) -> Tuple[int, int, int]:
        ids = classes = tags = 0
        for part in self.TOKEN_RE.findall(selector):
            if part.startswith("#"):
                ids += 1
            elif part.startswith((".", "[")) or (part.startswith(":") and not part.startswith("::")):
                classes += 1
            elif part != "*":
                tags += 1
        return (ids, classes, tags)

    def _media_applies(self, media_text: str) -> bool:
        lowered = media_text.lower()
        if "print" in lowered and "screen" not in lowered:
            return False
        for kind, raw in self.MEDIA_FEATURE_RE.findall(lowered):
            limit = parse_unit_value(raw)
            if math.isnan(limit):
                continue
            if kind == "min" and self.viewport_width < limit:
                return False
            if kind == "max" and self.viewport_width > limit:
                return False
        return True

    def _match_rules(self):
        for rule in self.rules:
            try:
                matches = self.soup.select(rule.selector)
            except (SelectorSyntaxError, NotImplementedError) as exc:
                logger.debug("Unsupported selector %r: %s", rule.selector, exc)
                continue
            for element in matches:
                self._matched.setdefault(id(element), []).append(rule)

    def resolve(self, element: Tag) -> StyleRecord:
        key = id(element)
        if key in self._cache:
            return self._cache[key]
        style: StyleRecord = {}
        parent = element.parent
        if isinstance(parent, Tag) and not isinstance(parent, BeautifulSoup):
            parent_style = self.resolve(parent)
            for prop in INHERITED_PROPS:
                if prop in parent_style:
                    style[prop] = parent_style[prop]

        applicable = sorted(self._matched.get(key, []), key=lambda r: (r.specificity, r.order))
        for rule in applicable:
            style.update(rule.props)
        style.update(parse_declarations(element.get("style")))
        for rule in applicable:
            style.update(rule.important)

        self._cache[key] = style
        return style
