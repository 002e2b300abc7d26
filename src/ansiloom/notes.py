"""HTML notes embedded in a log stream.

When HTML is produced on one machine and displayed on another, markup
cannot be written into the log as-is: the log must stay a plain text
stream.  Instead each fragment is wrapped in a note, an opaque token the
renderer and annotator pass through untouched.  ``expand_notes`` turns the
notes back into HTML at display time.

Encoding: ``NOTE_PREAMBLE`` + base64(gzip(JSON payload)) + ``NOTE_POSTAMBLE``.
The gzip header carries no timestamp, so encoding is deterministic and a
lookup table of pre-encoded fragments (``pregenerate_notes``) is stable.
"""

from __future__ import annotations

import base64
import binascii
import gzip
import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, ValidationError

from ansiloom.elements import palette_elements
from ansiloom.errors import NoteDecodeError
from ansiloom.lexer import TokenType, tokenize
from ansiloom.note_constants import NOTE_POSTAMBLE, NOTE_PREAMBLE

if TYPE_CHECKING:
    from ansiloom.palette import ColorPalette

logger = logging.getLogger(__name__)


class HtmlNote(BaseModel):
    """Payload of a note: one HTML fragment."""

    model_config = ConfigDict(frozen=True)

    html: str


def encode_note(html: str) -> str:
    """Wrap an HTML fragment in a note token."""
    payload = HtmlNote(html=html).model_dump_json().encode("utf-8")
    compressed = gzip.compress(payload, mtime=0)
    return NOTE_PREAMBLE + base64.b64encode(compressed).decode("ascii") + NOTE_POSTAMBLE


def decode_note(token: str) -> HtmlNote:
    """Decode a note token produced by ``encode_note``.

    Raises:
        NoteDecodeError: If *token* is not delimited like a note or its
            payload is not valid base64/gzip/JSON.
    """
    if not (token.startswith(NOTE_PREAMBLE) and token.endswith(NOTE_POSTAMBLE)):
        msg = "not a note: missing preamble or postamble"
        raise NoteDecodeError(msg)
    body = token[len(NOTE_PREAMBLE) : len(token) - len(NOTE_POSTAMBLE)]
    try:
        raw = gzip.decompress(base64.b64decode(body, validate=True))
        return HtmlNote.model_validate_json(raw)
    except (binascii.Error, OSError, EOFError, ValidationError) as exc:
        msg = f"malformed note payload: {exc}"
        raise NoteDecodeError(msg) from exc


def expand_notes(text: str) -> str:
    """Replace every note in *text* with the HTML it carries.

    Notes that do not decode (e.g. written by another producer using the
    same delimiters) are left in place.  Everything else is returned
    unchanged, escape sequences included.
    """
    parts: list[str] = []
    for token in tokenize(text):
        if token.type is not TokenType.NOTE:
            parts.append(token.value)
            continue
        try:
            parts.append(decode_note(token.value).html)
        except NoteDecodeError:
            logger.debug("Leaving undecodable note at %d in place", token.start_pos)
            parts.append(token.value)
    return "".join(parts)


def pregenerate_notes(palette: ColorPalette) -> dict[str, str]:
    """Encode every fragment a render with *palette* can emit.

    Returns:
        Mapping of markup fragment to its note token.
    """
    notes: dict[str, str] = {}
    for element in palette_elements(palette):
        for fragment in (element.open_markup, element.close_markup):
            if fragment not in notes:
                notes[fragment] = encode_note(fragment)
    logger.debug("Pre-generated %d notes for palette %r", len(notes), palette.name)
    return notes
