"""Attribute-stack renderer: ANSI attribute changes to well-formed HTML.

ANSI attributes, unlike HTML elements, can overlap: "green on, bold on,
green off" leaves bold active although green was opened first.  The
renderer keeps the open elements on a stack (outer to inner) and, when a
category buried in the stack is turned off, closes everything down to it
and reopens the elements that were above it:

    green, bold, underline, green off
    -> </u></b></span><b><u>

Architecture:
    ``apply_event`` is a pure function ``(state, event) -> (state',
    fragments)``.  ``AttributeStackRenderer`` owns a state, feeds events
    through it, writes text to an output sink and passes markup fragments to
    an ``Emitter``.  The state is committed before any fragment is emitted,
    so a failing emitter never leaves the stack out of step with the ANSI
    state of the input.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Final

from ansiloom.elements import (
    AttributeElement,
    Category,
    colour_elements,
    default_pair,
)
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
from ansiloom.lexer import tokenize
from ansiloom.palette import DEFAULT_PALETTE
from ansiloom.sgr import decode_token

if TYPE_CHECKING:
    from collections.abc import Callable

    from ansiloom.emitters import Emitter
    from ansiloom.palette import ColorPalette

logger = logging.getLogger(__name__)


class _Invisible:
    """Marker fragment: a reset happened but produced no markup."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "INVISIBLE"


INVISIBLE: Final = _Invisible()

type Fragment = str | _Invisible


@dataclass(frozen=True, slots=True)
class RenderState:
    """Logical ANSI state.

    Attributes:
        stack: Open elements, outer to inner.
        concealed: Text is suppressed until revealed.
        foreground: Colour selected by the last foreground code, None for
            the default.
        background: Colour selected by the last background code, None for
            the default.
        inverse: Foreground and background are rendered swapped.
    """

    stack: tuple[AttributeElement, ...] = ()
    concealed: bool = False
    foreground: str | None = None
    background: str | None = None
    inverse: bool = False


_COLOUR_CATEGORIES = frozenset({Category.FOREGROUND, Category.BACKGROUND})
_COLOUR_SLOTS = _COLOUR_CATEGORIES | {Category.COLORS}


def _position_of(
    stack: tuple[AttributeElement, ...],
    category: Category,
) -> int | None:
    for pos in range(len(stack) - 1, -1, -1):
        if stack[pos].category is category:
            return pos
    return None


def _default_depth(stack: tuple[AttributeElement, ...]) -> int:
    """1 if the stack starts with the default-colour wrapper, else 0."""
    return 1 if stack and stack[0].category is Category.DEFAULT else 0


def _close_category(
    stack: tuple[AttributeElement, ...],
    category: Category,
) -> tuple[tuple[AttributeElement, ...], list[Fragment]]:
    """Close the element of *category*, reopening the elements above it."""
    pos = _position_of(stack, category)
    if pos is None:
        # Nothing to unwind if the attribute was never turned on
        return stack, []
    above = stack[pos + 1 :]
    fragments: list[Fragment] = [el.close_markup for el in reversed(stack[pos:])]
    fragments.extend(el.open_markup for el in above)
    return stack[:pos] + above, fragments


def _close_colours(
    stack: tuple[AttributeElement, ...],
) -> tuple[tuple[AttributeElement, ...], list[Fragment]]:
    """Close every colour element, reopening the other elements above them."""
    first = next(
        (pos for pos, el in enumerate(stack) if el.category in _COLOUR_SLOTS),
        None,
    )
    if first is None:
        return stack, []
    above = tuple(el for el in stack[first:] if el.category not in _COLOUR_SLOTS)
    fragments: list[Fragment] = [el.close_markup for el in reversed(stack[first:])]
    fragments.extend(el.open_markup for el in above)
    return stack[:first] + above, fragments


def _with_colour(
    state: RenderState,
    category: Category,
    color: str | None,
) -> RenderState:
    if category is Category.FOREGROUND:
        return replace(state, foreground=color)
    if category is Category.BACKGROUND:
        return replace(state, background=color)
    return state


def _recolour(
    state: RenderState,
    palette: ColorPalette,
) -> tuple[RenderState, list[Fragment]]:
    """Replace all colour elements with the ones *state*'s colours need."""
    stack, fragments = _close_colours(state.stack)
    opened = colour_elements(
        state.foreground, state.background, palette, inverse=state.inverse
    )
    fragments.extend(el.open_markup for el in opened)
    return replace(state, stack=(*stack, *opened)), fragments


def apply_event(
    state: RenderState,
    event: Event,
    palette: ColorPalette = DEFAULT_PALETTE,
) -> tuple[RenderState, list[Fragment]]:
    """Compute the state after *event* and the markup it produces.

    ``Text`` and ``PassThroughOpaque`` are content, not attribute changes:
    they leave the state unchanged and produce no fragments.  *palette*
    supplies the stand-in colours for inverse video.

    Outside inverse video each colour is an element of its own category.
    In inverse video both colours are rendered together, so any colour
    change closes and reopens all colour elements.
    """
    match event:
        case SetAttribute(element=element):
            if state.inverse and element.category in _COLOUR_CATEGORIES:
                return _recolour(
                    _with_colour(state, element.category, element.color), palette
                )
            stack, fragments = state.stack, []
            if element.category is not Category.DEFAULT:
                # A replace is a reset followed by a set
                stack, fragments = _close_category(stack, element.category)
            fragments.append(element.open_markup)
            state = _with_colour(state, element.category, element.color)
            return replace(state, stack=(*stack, element)), fragments
        case Reset(category=category):
            if category is Category.DEFAULT:
                return state, []
            if state.inverse and category in _COLOUR_CATEGORIES:
                return _recolour(_with_colour(state, category, None), palette)
            stack, fragments = _close_category(state.stack, category)
            state = _with_colour(state, category, None)
            return replace(state, stack=stack), fragments
        case Inverse(on=on):
            if on == state.inverse:
                return state, []
            return _recolour(replace(state, inverse=on), palette)
        case ResetAll():
            keep = _default_depth(state.stack)
            closing = state.stack[keep:]
            new_state = RenderState(stack=state.stack[:keep])
            if not closing:
                return new_state, [INVISIBLE]
            return new_state, [el.close_markup for el in reversed(closing)]
        case Conceal():
            return replace(state, concealed=True), []
        case Reveal():
            return replace(state, concealed=False), []
        case _:
            return state, []


class AttributeStackRenderer:
    """Renders attribute-change events through an emitter.

    Args:
        palette: Colours for SGR colour codes and the default wrapper.
        emitter: Receives opening/closing markup.
        write: Receives visible text and pass-through notes.
        carried: State left by a previous render (e.g. the previous log
            line).  Its elements are reopened when rendering starts; its
            concealment and colours stay in effect.
    """

    def __init__(
        self,
        palette: ColorPalette,
        emitter: Emitter,
        write: Callable[[str], object],
        carried: RenderState | None = None,
    ) -> None:
        self._palette = palette
        self._emitter = emitter
        self._write = write
        self._carried = carried or RenderState()
        self._state = RenderState()
        self._started = False

    @property
    def state(self) -> RenderState:
        return self._state

    @property
    def stack(self) -> tuple[AttributeElement, ...]:
        return self._state.stack

    @property
    def concealed(self) -> bool:
        return self._state.concealed

    @property
    def palette(self) -> ColorPalette:
        return self._palette

    def start(self) -> None:
        """Open the default wrapper and reopen carried-over elements.

        Called automatically before the first event; idempotent.
        """
        if self._started:
            return
        self._started = True
        wrapper = default_pair(self._palette)
        if wrapper is not None:
            self.apply(SetAttribute(wrapper))
        reopen = tuple(
            el for el in self._carried.stack if el.category is not Category.DEFAULT
        )
        self._state = replace(self._carried, stack=(*self._state.stack, *reopen))
        self._emit([el.open_markup for el in reopen])

    def apply(self, event: Event) -> None:
        """Apply one event, writing text or emitting markup."""
        self.start()
        match event:
            case Text(text=text):
                if not self._state.concealed:
                    self._write(text)
                return
            case PassThroughOpaque(text=text):
                # Notes are never interpreted and never concealed
                self._write(text)
                return
        self._state, fragments = apply_event(self._state, event, self._palette)
        self._emit(fragments)

    def feed(self, text: str, *, escape: bool = False) -> None:
        """Lex *text* and apply every event it contains.

        Args:
            text: Text possibly containing ANSI control sequences.
            escape: HTML-escape plain text (notes are never escaped).
        """
        for token in tokenize(text):
            for event in decode_token(token, self._palette):
                if escape and isinstance(event, Text):
                    event = Text(html.escape(event.text, quote=False))
                self.apply(event)

    def close(self) -> None:
        """Close every open element, innermost first, including the wrapper.

        Unlike ``ResetAll`` no invisible marker is emitted.  Does nothing if
        rendering never started.
        """
        if not self._started:
            return
        closing = self._state.stack
        self._state = RenderState()
        logger.debug("Closing %d open element(s) at end of stream", len(closing))
        self._emit([el.close_markup for el in reversed(closing)])

    def _emit(self, fragments: list[Fragment]) -> None:
        for fragment in fragments:
            if isinstance(fragment, _Invisible):
                self._emitter.emit_invisible()
            else:
                self._emitter.emit_markup(fragment)
