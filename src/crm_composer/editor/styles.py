"""Inline style values and their CSS form."""

import re
from dataclasses import asdict, dataclass, replace

from bs4 import Tag

# Inline elements that may carry character styling
INLINE_STYLE_TAGS = {"span", "b", "strong", "i", "em", "u", "font"}

# Style property -> CSS declaration name
CSS_PROPERTIES = {
    "color": "color",
    "background_color": "background-color",
    "font_size": "font-size",
    "font_family": "font-family",
    "bold": "font-weight",
    "italic": "font-style",
    "underline": "text-decoration",
}

STYLE_PROPERTIES = tuple(CSS_PROPERTIES)

_TAG_DEFAULTS = {
    "b": {"bold": True},
    "strong": {"bold": True},
    "i": {"italic": True},
    "em": {"italic": True},
    "u": {"underline": True},
}


@dataclass(frozen=True)
class InlineStyle:
    """Effective character style at a point in the document."""

    color: str | None = None
    background_color: str | None = None
    font_size: str | None = None
    font_family: str | None = None
    bold: bool = False
    italic: bool = False
    underline: bool = False

    @property
    def is_neutral(self) -> bool:
        return self == NEUTRAL_STYLE

    def with_changes(self, **changes) -> "InlineStyle":
        return replace(self, **changes)

    def declarations(self) -> dict:
        """Only the properties that differ from the neutral style."""
        return {
            prop: value
            for prop, value in asdict(self).items()
            if value not in (None, False, "")
        }

    def to_css(self) -> str:
        return declarations_to_css(self.declarations())


NEUTRAL_STYLE = InlineStyle()


def _css_value(prop: str, value) -> str:
    if prop == "bold":
        return "bold" if value else "normal"
    if prop == "italic":
        return "italic" if value else "normal"
    if prop == "underline":
        return "underline" if value else "none"
    return str(value)


def declarations_to_css(declarations: dict) -> str:
    """Serialize ``{"color": "#f00", "bold": True}`` to an inline style string."""
    return "; ".join(
        f"{CSS_PROPERTIES[prop]}: {_css_value(prop, value)}"
        for prop, value in declarations.items()
        if prop in CSS_PROPERTIES
    )


def parse_css(style: str) -> dict:
    """Parse an inline style attribute into style properties it declares."""
    declared: dict = {}
    for chunk in (style or "").split(";"):
        if ":" not in chunk:
            continue
        name, value = chunk.split(":", 1)
        name = name.strip().lower()
        value = value.strip()
        if not value:
            continue
        lowered = value.lower()

        if name == "color":
            declared["color"] = value
        elif name in ("background-color", "background"):
            declared["background_color"] = value
        elif name == "font-size":
            declared["font_size"] = value
        elif name == "font-family":
            declared["font_family"] = value
        elif name == "font-weight":
            declared["bold"] = lowered == "bold" or (lowered.isdigit() and int(lowered) >= 600)
        elif name == "font-style":
            declared["italic"] = lowered in ("italic", "oblique")
        elif name in ("text-decoration", "text-decoration-line"):
            declared["underline"] = "underline" in lowered
    return declared


def declared_by(element: Tag) -> dict:
    """Style properties an inline element declares for its content."""
    if not isinstance(element, Tag) or element.name not in INLINE_STYLE_TAGS:
        return {}

    declared = dict(_TAG_DEFAULTS.get(element.name, {}))
    if element.name == "font":
        if element.get("color"):
            declared["color"] = element["color"]
        if element.get("face"):
            declared["font_family"] = element["face"]
    declared.update(parse_css(element.get("style", "")))
    return declared


def effective_style(node) -> InlineStyle:
    """Fold the styles of every inline ancestor of ``node``, outermost first."""
    chain = []
    parent = node.parent
    while parent is not None and isinstance(parent, Tag):
        chain.append(parent)
        parent = parent.parent

    merged: dict = {}
    for element in reversed(chain):
        merged.update(declared_by(element))
    return InlineStyle(**{key: value for key, value in merged.items() if key in STYLE_PROPERTIES})


_COLOR_RE = re.compile(r"^(#[0-9a-fA-F]{3,8}|rgba?\([^)]*\)|[a-zA-Z]+)$")


def is_valid_color(value: str) -> bool:
    return bool(value) and _COLOR_RE.match(value.strip()) is not None
