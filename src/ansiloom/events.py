"""Attribute-change events consumed by the renderer.

Events are tagged variants (frozen dataclasses) rather than a class
hierarchy with behaviour: the renderer dispatches on them with ``match``.
"""

from __future__ import annotations

from dataclasses import dataclass

from ansiloom.elements import AttributeElement, Category


@dataclass(frozen=True, slots=True)
class Text:
    """Plain text content, written unless concealed."""

    text: str


@dataclass(frozen=True, slots=True)
class SetAttribute:
    """Open *element*, replacing any open element of the same category."""

    element: AttributeElement


@dataclass(frozen=True, slots=True)
class Reset:
    """Turn a single category off."""

    category: Category


@dataclass(frozen=True, slots=True)
class ResetAll:
    """SGR 0: close every attribute and leave concealed mode."""


@dataclass(frozen=True, slots=True)
class Conceal:
    pass


@dataclass(frozen=True, slots=True)
class Reveal:
    pass


@dataclass(frozen=True, slots=True)
class Inverse:
    """SGR 7 / 27: swap foreground and background colours on or off."""

    on: bool


@dataclass(frozen=True, slots=True)
class PassThroughOpaque:
    """An embedded note, copied to the output verbatim."""

    text: str


type Event = (
    Text
    | SetAttribute
    | Reset
    | ResetAll
    | Conceal
    | Reveal
    | Inverse
    | PassThroughOpaque
)
