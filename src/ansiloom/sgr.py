"""Decoding of SGR parameters into attribute-change events.

Unknown or unsupported codes are ignored: a hostile or truncated log line
must never abort rendering of the rest of the log.  Extended colours
(``38;5;n``, ``38;2;r;g;b`` and the ``48`` equivalents) are consumed with
their arguments and ignored, so that e.g. the ``1`` in ``38;5;1`` is not
mistaken for bold.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ansiloom import elements
from ansiloom.elements import Category
from ansiloom.events import (
    Conceal,
    Event,
    Inverse,
    PassThroughOpaque,
    Reset,
    ResetAll,
    Reveal,
    SetAttribute,
    Text,
)
from ansiloom.lexer import TokenType

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ansiloom.lexer import ControlToken
    from ansiloom.palette import ColorPalette

logger = logging.getLogger(__name__)

# Codes that do not depend on the palette
_STATIC_EVENTS: dict[int, Event] = {
    0: ResetAll(),
    1: SetAttribute(elements.BOLD),
    3: SetAttribute(elements.ITALIC),
    4: SetAttribute(elements.UNDERLINE),
    7: Inverse(on=True),
    8: Conceal(),
    9: SetAttribute(elements.STRIKEOUT),
    21: SetAttribute(elements.DOUBLE_UNDERLINE),
    22: Reset(Category.BOLD),
    23: Reset(Category.ITALIC),
    24: Reset(Category.UNDERLINE),
    27: Inverse(on=False),
    28: Reveal(),
    29: Reset(Category.STRIKEOUT),
    39: Reset(Category.FOREGROUND),
    49: Reset(Category.BACKGROUND),
    51: SetAttribute(elements.FRAMED),
    53: SetAttribute(elements.OVERLINE),
    # 54 turns off both framed and encircled; encircled is not rendered
    54: Reset(Category.FRAMED),
    55: Reset(Category.OVERLINE),
}

_EXTENDED_FOREGROUND = 38
_EXTENDED_BACKGROUND = 48

# No SGR code has more significant digits than this
_MAX_CODE_DIGITS = 3


def _colour_event(code: int, palette: ColorPalette) -> Event | None:
    if 30 <= code <= 37:
        return SetAttribute(elements.foreground(palette.normal_color(code - 30)))
    if 40 <= code <= 47:
        return SetAttribute(elements.background(palette.normal_color(code - 40)))
    if 90 <= code <= 97:
        return SetAttribute(elements.foreground(palette.bright_color(code - 90)))
    if 100 <= code <= 107:
        return SetAttribute(elements.background(palette.bright_color(code - 100)))
    return None


def _skip_extended_colour(params: Iterator[str]) -> None:
    """Consume the arguments of a ``38``/``48`` extended colour."""
    mode = next(params, None)
    if mode == "5":
        next(params, None)
    elif mode == "2":
        for _ in range(3):
            next(params, None)


def decode_sgr(params: str, palette: ColorPalette) -> list[Event]:
    """Decode the parameters of one ``ESC [ params m`` sequence.

    An empty parameter (``ESC [ m`` or ``ESC [ ; 1 m``) means 0.  Non-numeric
    parameters, and numbers too long to be an SGR code, are skipped.
    """
    events: list[Event] = []
    it = iter(params.split(";"))
    for raw in it:
        if raw and not (raw.isascii() and raw.isdigit()):
            logger.debug("Ignoring malformed SGR parameter %r", raw)
            continue
        digits = raw.lstrip("0")
        if len(digits) > _MAX_CODE_DIGITS:
            logger.debug("Ignoring oversized SGR parameter (%d digits)", len(raw))
            continue
        code = int(digits) if digits else 0
        if code in (_EXTENDED_FOREGROUND, _EXTENDED_BACKGROUND):
            _skip_extended_colour(it)
            logger.debug("Ignoring extended colour SGR in %r", params)
            continue
        event = _STATIC_EVENTS.get(code) or _colour_event(code, palette)
        if event is None:
            logger.debug("Ignoring unsupported SGR code %d", code)
            continue
        events.append(event)
    return events


def decode_token(token: ControlToken, palette: ColorPalette) -> list[Event]:
    """Turn one lexer token into the events it stands for.

    Control sequences other than SGR produce no events and are dropped.
    A lone ESC that starts no known sequence is kept as text.
    """
    match token.type:
        case TokenType.TEXT | TokenType.LONE_ESC:
            return [Text(token.value)]
        case TokenType.NOTE:
            return [PassThroughOpaque(token.value)]
        case TokenType.SGR:
            return decode_sgr(token.sgr_params, palette)
        case _:
            logger.debug("Dropping control sequence %r", token.value)
            return []
