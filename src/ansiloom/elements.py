"""HTML elements corresponding to ANSI attributes.

An ANSI attribute change may open a new element or close an earlier one
(e.g. "bold" opens, "bold off" closes).  Each element belongs to exactly one
``Category``; at most one element per category is open at any time.

Static attributes are module-level singletons.  Colour elements are built
per colour value, so two foreground elements are equal only when they
carry the same colour.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from ansiloom.palette import CURRENT_COLOR

if TYPE_CHECKING:
    from ansiloom.palette import ColorPalette


class Category(StrEnum):
    """Rendering slots.  Colours are independent slots, the rest toggles."""

    DEFAULT = "default"
    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"
    STRIKEOUT = "strikeout"
    FRAMED = "framed"
    OVERLINE = "overline"
    FOREGROUND = "foreground"
    BACKGROUND = "background"
    # Both colours in one span, used for inverse video
    COLORS = "colors"


@dataclass(frozen=True, slots=True)
class AttributeElement:
    """One renderable attribute and the markup that opens and closes it.

    Attributes:
        category: The slot this element occupies.
        open_markup: Opening tag, e.g. ``<b>``.
        close_markup: Matching closing tag, e.g. ``</b>``.
        color: The colour a foreground or background element renders.
    """

    category: Category
    open_markup: str
    close_markup: str
    color: str | None = None

    @classmethod
    def tag(
        cls,
        category: Category,
        name: str,
        style: str = "",
        color: str | None = None,
    ) -> AttributeElement:
        """Build an element for an HTML tag with an optional inline style."""
        open_markup = f'<{name} style="{style}">' if style else f"<{name}>"
        return cls(category, open_markup, f"</{name}>", color)


BOLD = AttributeElement.tag(Category.BOLD, "b")
ITALIC = AttributeElement.tag(Category.ITALIC, "i")
UNDERLINE = AttributeElement.tag(Category.UNDERLINE, "u")
# Same slot as single underline: either one replaces the other.
DOUBLE_UNDERLINE = AttributeElement.tag(
    Category.UNDERLINE, "span", "border-bottom:3px double;"
)
STRIKEOUT = AttributeElement.tag(
    Category.STRIKEOUT, "span", "text-decoration:line-through;"
)
FRAMED = AttributeElement.tag(Category.FRAMED, "span", "border:1px solid;")
OVERLINE = AttributeElement.tag(Category.OVERLINE, "span", "text-decoration:overline;")

STATIC_ELEMENTS: tuple[AttributeElement, ...] = (
    BOLD,
    ITALIC,
    UNDERLINE,
    DOUBLE_UNDERLINE,
    STRIKEOUT,
    FRAMED,
    OVERLINE,
)


def foreground(color: str) -> AttributeElement:
    return AttributeElement.tag(
        Category.FOREGROUND, "span", f"color:{color};", color
    )


def background(color: str) -> AttributeElement:
    return AttributeElement.tag(
        Category.BACKGROUND, "span", f"background-color:{color};", color
    )


def colour_elements(
    fg: str | None,
    bg: str | None,
    palette: ColorPalette,
    *,
    inverse: bool = False,
) -> list[AttributeElement]:
    """Elements (outer to inner) rendering a foreground/background pair.

    *fg* and *bg* are the colours selected by SGR codes, None meaning the
    default.  In inverse video they are swapped, with the palette's inverse
    fallbacks standing in for defaults, and rendered as one span.  A
    ``currentColor`` background gets its own outer span so that it resolves
    against the inherited text colour, not the swapped one.
    """
    if not inverse:
        return [
            *([background(bg)] if bg else []),
            *([foreground(fg)] if fg else []),
        ]
    swapped_fg = bg or palette.inverse_foreground
    swapped_bg = fg or palette.inverse_background
    if swapped_bg == CURRENT_COLOR:
        return [background(swapped_bg), foreground(swapped_fg)]
    return [
        AttributeElement.tag(
            Category.COLORS,
            "span",
            f"background-color:{swapped_bg};color:{swapped_fg};",
        )
    ]


def default_pair(palette: ColorPalette) -> AttributeElement | None:
    """Build the outer wrapper for a palette's default colours.

    Returns None when the palette defines neither default.
    """
    style = ""
    if palette.default_background is not None:
        bg = palette.normal_color(palette.default_background)
        style += f"background-color:{bg};"
    if palette.default_foreground is not None:
        style += f"color:{palette.normal_color(palette.default_foreground)};"
    if not style:
        return None
    return AttributeElement.tag(Category.DEFAULT, "div", style)


def palette_elements(palette: ColorPalette) -> list[AttributeElement]:
    """Every element a render with *palette* can open outside inverse video."""
    elements = list(STATIC_ELEMENTS)
    for colours in (palette.normal, palette.bright):
        elements.extend(foreground(c) for c in colours)
        elements.extend(background(c) for c in colours)
    wrapper = default_pair(palette)
    if wrapper is not None:
        elements.append(wrapper)
    return elements
