"""Offset-correlating annotator.

Instead of producing a new HTML string, the annotator describes how to
decorate the *original* line: markup to insert at given offsets and ranges
(the escape sequences, plus concealed text) to hide.  A consumer that keeps
the raw log text and only overlays markup (see ``ansiloom.markup``) gets the
same visual result as rendering the line directly.

Two cursors advance independently while the renderer runs over the line:

- ``incoming``: offset reached in the original line;
- ``outgoing``: number of visible characters the renderer has written.

Everything between ``outgoing + adjustment`` and ``incoming`` was consumed
without producing visible output.  At each sync point that gap becomes a
hidden range and is added to ``adjustment``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from ansiloom.elements import Category
from ansiloom.lexer import CONTENT_TOKENS, ESC, tokenize
from ansiloom.palette import DEFAULT_PALETTE
from ansiloom.renderer import AttributeStackRenderer, RenderState
from ansiloom.sgr import decode_token

if TYPE_CHECKING:
    from ansiloom.elements import AttributeElement
    from ansiloom.palette import ColorPalette

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Insertion:
    """Markup to insert at ``offset`` of the original line.

    ``before_existing`` places it before markup already inserted at the same
    offset instead of after it.
    """

    offset: int
    markup: str
    before_existing: bool = False


@dataclass(frozen=True, slots=True)
class HiddenRange:
    """Half-open range ``[start, end)`` of the original line to hide."""

    start: int
    end: int


@dataclass(frozen=True, slots=True)
class LineAnnotation:
    """Everything needed to overlay one rendered line on its original text.

    Attributes:
        insertions: Markup insertions, in emission order.
        hidden: Hidden ranges, in ascending order, non-overlapping.
        carried: Renderer state at the end of the line, without the
            default-colour wrapper.  Pass it to the next line.
    """

    insertions: tuple[Insertion, ...] = ()
    hidden: tuple[HiddenRange, ...] = ()
    carried: RenderState = RenderState()

    @property
    def open_elements(self) -> tuple[AttributeElement, ...]:
        """Elements still open at the end of the line."""
        return self.carried.stack

    @property
    def is_empty(self) -> bool:
        return not self.insertions and not self.hidden


@dataclass(slots=True)
class _Cursors:
    incoming: int = 0
    outgoing: int = 0
    adjustment: int = 0
    last_point: int = -1


@dataclass(slots=True)
class RecordingEmitter:
    """Emitter and output sink that record offsets instead of writing HTML."""

    cursors: _Cursors = field(default_factory=_Cursors)
    insertions: list[Insertion] = field(default_factory=list)
    hidden: list[HiddenRange] = field(default_factory=list)

    def emit_markup(self, fragment: str) -> None:
        self._sync_point()
        logger.debug("Insert %r at %d", fragment, self.cursors.incoming)
        self.insertions.append(Insertion(self.cursors.incoming, fragment))

    def emit_invisible(self) -> None:
        self._sync_point()

    def write(self, text: str) -> None:
        """Count visible text; it stays in the original line as-is."""
        self.hide_gap()
        self.cursors.outgoing += len(text)

    def hide_gap(self) -> None:
        """Hide whatever was consumed since the last visible output."""
        c = self.cursors
        start = c.outgoing + c.adjustment
        gap = c.incoming - start
        if gap > 0:
            logger.debug("Hide [%d, %d)", start, c.incoming)
            self.hidden.append(HiddenRange(start, c.incoming))
            c.adjustment += gap

    def _sync_point(self) -> None:
        # Fragments of one control sequence share an insertion point
        if self.cursors.incoming != self.cursors.last_point:
            self.cursors.last_point = self.cursors.incoming
            self.hide_gap()


def annotate_line(
    line: str,
    palette: ColorPalette = DEFAULT_PALETTE,
    carried: RenderState | None = None,
) -> LineAnnotation:
    """Annotate one line of original text.

    Args:
        line: The line, escape sequences included.
        palette: Colours for SGR colour codes and the default wrapper.
        carried: State left by the previous line.

    Returns:
        The annotation.  Lines without escape sequences, carried-over
        state or palette defaults yield an empty annotation.
    """
    carried = carried or RenderState()
    if not line or (
        ESC not in line and carried == RenderState() and not palette.has_defaults
    ):
        return LineAnnotation(carried=carried)

    recorder = RecordingEmitter()
    cursors = recorder.cursors
    renderer = AttributeStackRenderer(palette, recorder, recorder.write, carried)
    renderer.start()

    for token in tokenize(line):
        events = decode_token(token, palette)
        if token.type in CONTENT_TOKENS:
            cursors.incoming = token.start_pos
            for event in events:
                renderer.apply(event)
            cursors.incoming = token.end_pos
        else:
            cursors.incoming = token.end_pos
            for event in events:
                renderer.apply(event)
            recorder.hide_gap()

    remaining = replace(
        renderer.state,
        stack=tuple(
            el for el in renderer.stack if el.category is not Category.DEFAULT
        ),
    )
    cursors.incoming = len(line)
    renderer.close()
    recorder.hide_gap()

    return LineAnnotation(
        insertions=tuple(recorder.insertions),
        hidden=tuple(recorder.hidden),
        carried=remaining,
    )


class LineAnnotator:
    """Annotates consecutive lines, carrying renderer state across lines.

    A colour turned on in line N and never turned off still applies in line
    N+1, so each line is closed at its end and its open elements are
    reopened at the start of the next one.  Concealment and inverse video
    carry over the same way, so consecutive lines annotate like one
    continuous ``HtmlLogWriter`` stream.
    """

    def __init__(self, palette: ColorPalette = DEFAULT_PALETTE) -> None:
        self._palette = palette
        self._carried = RenderState()

    @property
    def carried(self) -> RenderState:
        return self._carried

    @property
    def open_elements(self) -> tuple[AttributeElement, ...]:
        return self._carried.stack

    def annotate(self, line: str) -> LineAnnotation:
        annotation = annotate_line(line, self._palette, self._carried)
        self._carried = annotation.carried
        return annotation

    def reset(self) -> None:
        """Forget carried-over state, e.g. at the start of a new log."""
        self._carried = RenderState()
