"""Markup overlay for original text.

``MarkupText`` holds a plain string plus tags attached to character
positions; the text itself is never modified until ``to_html`` renders it.
This is how annotator output is applied to a log line that is stored
without HTML.
"""

from __future__ import annotations

import bisect
import html
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ansiloom.annotator import LineAnnotation

logger = logging.getLogger(__name__)

COMMENT_OPEN = "<!--"
COMMENT_CLOSE = "-->"


class MarkupText:
    """Text with tags attached to positions.

    Tags at the same position render in the order they were added, except
    those added with ``before_existing=True``, which go in front.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self._tags: dict[int, list[str]] = {}

    def add_markup(
        self,
        pos: int,
        markup: str,
        *,
        before_existing: bool = False,
    ) -> None:
        """Attach *markup* at *pos* (``0 <= pos <= len(text)``)."""
        if not 0 <= pos <= len(self.text):
            msg = f"position {pos} outside text of length {len(self.text)}"
            raise IndexError(msg)
        tags = self._tags.setdefault(pos, [])
        if before_existing:
            tags.insert(0, markup)
        else:
            tags.append(markup)

    def add_range(self, start: int, end: int, open_tag: str, close_tag: str) -> None:
        """Surround ``[start, end)`` with a tag pair.

        The closing tag goes before tags already at *end*, so a range ending
        where markup was inserted closes before that markup.
        """
        if start > end:
            msg = f"range start {start} after end {end}"
            raise ValueError(msg)
        self.add_markup(start, open_tag)
        self.add_markup(end, close_tag, before_existing=True)

    def to_html(self, *, escape: bool = True) -> str:
        """Render the text with its tags; text is HTML-escaped if *escape*."""
        parts: list[str] = []
        last = 0
        for pos in sorted(self._tags):
            parts.append(self._segment(last, pos, escape=escape))
            parts.extend(self._tags[pos])
            last = pos
        parts.append(self._segment(last, len(self.text), escape=escape))
        return "".join(parts)

    def _segment(self, start: int, end: int, *, escape: bool) -> str:
        segment = self.text[start:end]
        return html.escape(segment, quote=False) if escape else segment

    def __repr__(self) -> str:
        return f"MarkupText({self.text!r}, tags={len(self._tags)})"


def apply_annotation(line: str, annotation: LineAnnotation) -> MarkupText:
    """Overlay *annotation* on *line*, turning hidden ranges into comments.

    Insertions are added first so that a comment closing at a position
    precedes the markup inserted there, and one opening there follows it.
    """
    text = MarkupText(line)
    for insertion in annotation.insertions:
        text.add_markup(
            insertion.offset,
            insertion.markup,
            before_existing=insertion.before_existing,
        )
    for hidden in annotation.hidden:
        text.add_range(hidden.start, hidden.end, COMMENT_OPEN, COMMENT_CLOSE)
    return text


def strip_hidden(line: str, annotation: LineAnnotation, *, escape: bool = True) -> str:
    """Render *line* with its insertions and without the hidden ranges.

    For a line annotated from scratch the result equals rendering the line
    directly with ``ansiloom.stream.render_html``.
    """
    kept: list[str] = []
    # Cumulative hidden length before each range end, for offset remapping
    ends: list[int] = []
    removed: list[int] = []
    last = 0
    total = 0
    for hidden in annotation.hidden:
        kept.append(line[last : hidden.start])
        total += hidden.end - hidden.start
        ends.append(hidden.end)
        removed.append(total)
        last = hidden.end
    kept.append(line[last:])

    text = MarkupText("".join(kept))
    for insertion in annotation.insertions:
        idx = bisect.bisect_right(ends, insertion.offset)
        shift = removed[idx - 1] if idx else 0
        text.add_markup(
            insertion.offset - shift,
            insertion.markup,
            before_existing=insertion.before_existing,
        )
    logger.debug("Stripped %d hidden range(s), %d characters", len(ends), total)
    return text.to_html(escape=escape)
