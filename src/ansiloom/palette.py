"""Colour palettes mapping the eight ANSI base colours to CSS colours.

A palette holds two intensities (``normal`` for SGR 30-37/40-47 and
``bright`` for SGR 90-97/100-107) and optionally a default foreground and
background.  Defaults are indices into ``normal``; when either is set the
renderer wraps its whole output in one ``<div>`` carrying those colours.

Palettes are frozen pydantic models: they are loaded once per render
session, validated, and safely shared between concurrent renders.
"""

from __future__ import annotations

import logging
import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ansiloom.errors import UnknownPaletteError

logger = logging.getLogger(__name__)

# Colour values end up inside a double-quoted style attribute.
_UNSAFE_COLOUR = re.compile(r'["<>;&\\]')

CURRENT_COLOR = "currentColor"

COLOUR_NAMES: tuple[str, ...] = (
    "black",
    "red",
    "green",
    "yellow",
    "blue",
    "magenta",
    "cyan",
    "white",
)


class ColorPalette(BaseModel):
    """Eight colours at two intensities, plus optional default colours."""

    model_config = ConfigDict(frozen=True)

    name: str
    normal: tuple[str, ...]
    bright: tuple[str, ...]
    default_foreground: int | None = Field(default=None, ge=0, le=7)
    default_background: int | None = Field(default=None, ge=0, le=7)

    @field_validator("normal", "bright")
    @classmethod
    def _eight_safe_colours(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if len(value) != len(COLOUR_NAMES):
            msg = f"expected {len(COLOUR_NAMES)} colours, got {len(value)}"
            raise ValueError(msg)
        for colour in value:
            if not colour.strip() or _UNSAFE_COLOUR.search(colour):
                msg = f"invalid colour value {colour!r}"
                raise ValueError(msg)
        return value

    def normal_color(self, index: int) -> str:
        """Return the normal-intensity colour for ANSI colour *index* (0-7)."""
        return self.normal[index]

    def bright_color(self, index: int) -> str:
        """Return the high-intensity colour for ANSI colour *index* (0-7)."""
        return self.bright[index]

    @property
    def has_defaults(self) -> bool:
        return (
            self.default_foreground is not None
            or self.default_background is not None
        )

    @property
    def inverse_background(self) -> str:
        """Background for inverse video when no foreground colour is set.

        Without a default foreground the page's own text colour is used via
        ``currentColor``.
        """
        if self.default_foreground is not None:
            return self.normal_color(self.default_foreground)
        return CURRENT_COLOR

    @property
    def inverse_foreground(self) -> str:
        """Foreground for inverse video when no background colour is set."""
        if self.default_background is not None:
            return self.normal_color(self.default_background)
        return self.bright_color(7)


XTERM = ColorPalette(
    name="xterm",
    normal=(
        "#000000",
        "#CD0000",
        "#00CD00",
        "#CDCD00",
        "#1E90FF",
        "#CD00CD",
        "#00CDCD",
        "#E5E5E5",
    ),
    bright=(
        "#4C4C4C",
        "#FF0000",
        "#00FF00",
        "#FFFF00",
        "#4682B4",
        "#FF00FF",
        "#00FFFF",
        "#FFFFFF",
    ),
)

VGA = ColorPalette(
    name="vga",
    normal=(
        "#000000",
        "#AA0000",
        "#00AA00",
        "#AA5500",
        "#0000AA",
        "#AA00AA",
        "#00AAAA",
        "#AAAAAA",
    ),
    bright=(
        "#555555",
        "#FF5555",
        "#55FF55",
        "#FFFF55",
        "#5555FF",
        "#FF55FF",
        "#55FFFF",
        "#FFFFFF",
    ),
    # Light grey on black, like a VGA text console
    default_foreground=7,
    default_background=0,
)

CSS = ColorPalette(name="css", normal=COLOUR_NAMES, bright=COLOUR_NAMES)

BUILTIN_PALETTES: dict[str, ColorPalette] = {p.name: p for p in (XTERM, VGA, CSS)}

DEFAULT_PALETTE = XTERM


def get_palette(
    name: str,
    custom: dict[str, ColorPalette] | None = None,
) -> ColorPalette:
    """Look up a palette by name.

    Custom palettes shadow built-in ones of the same name.

    Raises:
        UnknownPaletteError: If *name* is neither custom nor built in.
    """
    if custom and name in custom:
        logger.debug("Using custom palette %r", name)
        return custom[name]
    try:
        return BUILTIN_PALETTES[name]
    except KeyError:
        available = sorted({*BUILTIN_PALETTES, *(custom or {})})
        raise UnknownPaletteError(name, available) from None
