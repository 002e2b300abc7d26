"""Exceptions raised by ansiloom.

Malformed escape sequences are never errors: they are ignored while
rendering.  Emitter and decoding failures propagate as whatever the sink or
codec raised.
"""

from __future__ import annotations


class AnsiloomError(Exception):
    """Base class for errors raised by ansiloom itself."""


class UnknownPaletteError(AnsiloomError, KeyError):
    """Raised when a palette name is neither built in nor configured."""

    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.available = available
        super().__init__(
            f"Unknown palette {name!r} (available: {', '.join(available)})"
        )

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0])


class NoteDecodeError(AnsiloomError, ValueError):
    """Raised when an embedded note cannot be decoded."""
