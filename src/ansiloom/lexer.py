"""Control-sequence lexer.

Splits text into tokens: SGR sequences (``ESC [ ... m``), embedded notes,
other control sequences that are consumed and dropped, and plain text.
Positions are code-point offsets into the input string, which is what the
annotator needs to place markup against the original text.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

from lark import Lark

from ansiloom.note_constants import NOTE_POSTAMBLE, NOTE_PREAMBLE

logger = logging.getLogger(__name__)

ESC = "\x1b"


class TokenType(Enum):
    """Token types for the control-sequence lexer."""

    TEXT = "TEXT"
    NOTE = "NOTE"
    SGR = "SGR"
    CSI = "CSI"
    ESCAPE = "ESCAPE"
    LONE_ESC = "LONE_ESC"


# Token types whose characters are (potentially) visible output.
CONTENT_TOKENS = frozenset({TokenType.TEXT, TokenType.NOTE, TokenType.LONE_ESC})


@dataclass(frozen=True, slots=True)
class ControlToken:
    """A token from the control-sequence lexer.

    Attributes:
        type: The token type.
        value: The raw string matched.
        start_pos: Start offset in the input.
        end_pos: End offset in the input (exclusive).
    """

    type: TokenType
    value: str
    start_pos: int
    end_pos: int

    @property
    def sgr_params(self) -> str:
        """The parameter string of an SGR token, e.g. ``"1;32"``."""
        return self.value[2:-1]


# Every ESC starts a token, so terminal priority decides between them:
# a note beats the SGR sequence its preamble begins with, SGR beats the
# generic CSI form, and a lone ESC is the fallback.  TEXT never contains ESC.
_CONTROL_GRAMMAR = r"""
NOTE.5: /\x1b\[8mha:.*?\x1b\[0m/s
SGR.4: /\x1b\[[0-9;]*m/
CSI.3: /\x1b\[[0-?]*[\x20-\x2f]*[@-~]/
ESCAPE.2: /\x1b(?:[()*+#%][0-9A-Za-z@]|[=>78DEHMNOZc])/
LONE_ESC.1: /\x1b/
TEXT: /[^\x1b]+/
"""

# Compile once at module load
_control_lexer = Lark(_CONTROL_GRAMMAR, parser=None, lexer="basic")

# A complete sequence at the start of a string (see split_incomplete)
_COMPLETE_SEQUENCE = re.compile(
    r"\x1b(?:\[[0-?]*[ -/]*[@-~]|[()*+#%][0-9A-Za-z@]|[=>78DEHMNOZc])"
)

# Longest tail held back while waiting for the rest of a sequence
MAX_PENDING = 4096


def tokenize(text: str) -> list[ControlToken]:
    """Tokenize text containing ANSI control sequences.

    Example:
        >>> [(t.type.value, t.value) for t in tokenize("a\\x1b[1mb")]
        [('TEXT', 'a'), ('SGR', '\\x1b[1m'), ('TEXT', 'b')]
    """
    if not text:
        return []

    tokens: list[ControlToken] = []
    for lark_token in _control_lexer.lex(text):
        start_pos = lark_token.start_pos if lark_token.start_pos is not None else 0
        end_pos = lark_token.end_pos if lark_token.end_pos is not None else 0
        tokens.append(
            ControlToken(
                type=TokenType[lark_token.type],
                value=lark_token.value,
                start_pos=start_pos,
                end_pos=end_pos,
            )
        )
    return tokens


def split_incomplete(text: str) -> tuple[str, str]:
    """Split *text* into a part that lexes completely and a pending tail.

    The tail is an escape sequence or note cut off at the end of a chunk.
    It is returned separately so the caller can prepend it to the next chunk.
    Tails longer than ``MAX_PENDING`` are not held back.
    """
    note_start = text.rfind(NOTE_PREAMBLE)
    if note_start != -1:
        body_start = note_start + len(NOTE_PREAMBLE)
        if NOTE_POSTAMBLE not in text[body_start:]:
            if len(text) - note_start <= MAX_PENDING:
                return text[:note_start], text[note_start:]
            logger.warning(
                "Unterminated note longer than %d characters; rendering as text",
                MAX_PENDING,
            )

    start = text.rfind(ESC)
    if start == -1:
        return text, ""
    tail = text[start:]
    # "\x1b[8m" could still become a note preamble
    if NOTE_PREAMBLE.startswith(tail):
        return text[:start], tail
    if _COMPLETE_SEQUENCE.match(tail) or len(tail) > MAX_PENDING:
        return text, ""
    if len(tail) > 1 and tail[1] not in "[()*+#%":
        # ESC followed by something that never starts a sequence
        return text, ""
    return text[:start], tail
