"""Delimiters for notes embedded in a log stream.

A note is an opaque, self-delimited token: a preamble, a base64 payload and
a postamble.  The preamble is itself an SGR "conceal" sequence so that a
terminal which does not understand notes hides the payload.

Shared between:
- lexer.py (notes are lexed as a single NOTE token and never interpreted)
- notes.py (encoding and decoding of the payload)
"""

from __future__ import annotations

NOTE_PREAMBLE = "\x1b[8mha:"
NOTE_POSTAMBLE = "\x1b[0m"