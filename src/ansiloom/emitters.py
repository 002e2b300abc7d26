"""Emitters: where the renderer's markup fragments go.

The renderer only knows the ``Emitter`` protocol.  Implementations:

- ``StreamEmitter`` writes markup inline into the same stream as the text.
- ``NoteEmitter`` writes each fragment as a pre-encoded note, for logs
  that are rendered somewhere else.
- ``CollectingEmitter`` keeps fragments in a list.
- The annotator's offset recorder (``ansiloom.annotator``) turns fragments
  into positioned insertions.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from ansiloom.notes import encode_note

if TYPE_CHECKING:
    from typing import TextIO

logger = logging.getLogger(__name__)


class Emitter(Protocol):
    """Receives markup from the renderer."""

    def emit_markup(self, fragment: str) -> None:
        """Receive one opening or closing tag."""
        ...

    def emit_invisible(self) -> None:
        """Called when a reset happens with nothing open."""
        ...


class StreamEmitter:
    """Writes markup directly into a text stream."""

    def __init__(self, output: TextIO) -> None:
        self._output = output

    def emit_markup(self, fragment: str) -> None:
        self._output.write(fragment)

    def emit_invisible(self) -> None:
        pass


class NoteEmitter:
    """Writes markup as notes looked up by fragment.

    Args:
        output: Stream the notes are written to.
        notes: Pre-generated fragment-to-note table (see
            ``ansiloom.notes.pregenerate_notes``).  Fragments missing from it
            are encoded on first use and cached.
    """

    def __init__(self, output: TextIO, notes: dict[str, str] | None = None) -> None:
        self._output = output
        self._notes = dict(notes) if notes else {}

    def emit_markup(self, fragment: str) -> None:
        note = self._notes.get(fragment)
        if note is None:
            logger.debug("Encoding note for fragment %r on demand", fragment)
            note = encode_note(fragment)
            self._notes[fragment] = note
        self._output.write(note)

    def emit_invisible(self) -> None:
        pass


class CollectingEmitter:
    """Keeps emitted fragments and counts invisible resets."""

    def __init__(self) -> None:
        self.fragments: list[str] = []
        self.invisible_count = 0

    def emit_markup(self, fragment: str) -> None:
        self.fragments.append(fragment)

    def emit_invisible(self) -> None:
        self.invisible_count += 1
