"""Tests for the offset-correlating annotator.

The annotator never rewrites the line: it reports markup insertions and
hidden ranges in offsets of the original text.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from ansiloom import elements
from ansiloom.annotator import (
    HiddenRange,
    Insertion,
    LineAnnotation,
    LineAnnotator,
    annotate_line,
)
from ansiloom.markup import strip_hidden
from ansiloom.notes import encode_note
from ansiloom.palette import VGA, XTERM
from ansiloom.stream import render_html
from tests.helpers.ansi import sgr

if TYPE_CHECKING:
    from ansiloom.palette import ColorPalette

GREEN_SPAN = '<span style="color:#00CD00;">'
VGA_DIV = '<div style="background-color:#000000;color:#AAAAAA;">'
OVERLAPPING = (
    "plain" + sgr(32) + "g" + sgr(1) + "bg" + sgr(4) + "ubg" + sgr(31) + "ubr"
) + (sgr(22) + "ur" + sgr(24) + "r")


class TestSkipPath:
    """Lines that need no markup."""

    def test_plain_line(self) -> None:
        annotation = annotate_line("plain text", XTERM)
        assert annotation == LineAnnotation()
        assert annotation.is_empty

    def test_empty_line(self) -> None:
        assert annotate_line("", VGA).is_empty

    def test_plain_line_with_palette_defaults(self) -> None:
        """A default wrapper still needs opening and closing."""
        annotation = annotate_line("plain", VGA)
        assert annotation.insertions == (
            Insertion(0, VGA_DIV),
            Insertion(5, "</div>"),
        )
        assert annotation.hidden == ()


class TestAnnotateLine:
    """Insertions and hidden ranges for single lines."""

    def test_bold(self) -> None:
        annotation = annotate_line(sgr(1) + "hello world")
        assert annotation.insertions == (Insertion(4, "<b>"), Insertion(15, "</b>"))
        assert annotation.hidden == (HiddenRange(0, 4),)

    def test_tic_tac_toe(self) -> None:
        """Fragments of one sequence share the offset right after it."""
        line = sgr(32) + "tic" + sgr(1) + "tac" + sgr(39) + "toe"
        annotation = annotate_line(line)
        assert annotation.insertions == (
            Insertion(5, GREEN_SPAN),
            Insertion(12, "<b>"),
            Insertion(20, "</b>"),
            Insertion(20, "</span>"),
            Insertion(20, "<b>"),
            Insertion(23, "</b>"),
        )
        assert annotation.hidden == (
            HiddenRange(0, 5),
            HiddenRange(8, 12),
            HiddenRange(15, 20),
        )

    def test_invisible_reset_is_hidden(self) -> None:
        annotation = annotate_line(sgr(0))
        assert annotation.insertions == ()
        assert annotation.hidden == (HiddenRange(0, 4),)

    def test_dropped_sequences_hidden(self) -> None:
        annotation = annotate_line("a\x1b[Kb(\x1b(0)")
        assert annotation.insertions == ()
        assert annotation.hidden == (HiddenRange(1, 4), HiddenRange(6, 9))

    def test_concealed_text_hidden(self) -> None:
        line = "a" + sgr(8) + "xyz" + sgr(28) + "b"
        annotation = annotate_line(line)
        assert annotation.insertions == ()
        assert annotation.hidden == (HiddenRange(1, 5), HiddenRange(5, 13))

    def test_concealed_tail_hidden_at_end(self) -> None:
        annotation = annotate_line("a" + sgr(8) + "xyz")
        assert annotation.hidden == (HiddenRange(1, 5), HiddenRange(5, 8))

    def test_note_never_hidden(self) -> None:
        note = encode_note("<b>")
        line = "a" + note + "b"
        annotation = annotate_line(line)
        assert annotation.insertions == ()
        assert annotation.hidden == ()

    def test_concealed_note_not_hidden(self) -> None:
        note = encode_note("<b>")
        line = sgr(8) + note + "x"
        start, end = 4, 4 + len(note)
        annotation = annotate_line(line)
        assert annotation.hidden == (HiddenRange(0, start), HiddenRange(end, end + 1))

    def test_unicode_offsets(self) -> None:
        annotation = annotate_line("日本" + sgr(1) + "語")
        assert annotation.insertions == (Insertion(6, "<b>"), Insertion(7, "</b>"))
        assert annotation.hidden == (HiddenRange(2, 6),)

    def test_open_elements_reported(self) -> None:
        annotation = annotate_line(sgr(32) + "a" + sgr(1) + "b", VGA)
        assert annotation.open_elements == (
            elements.foreground("#00AA00"),
            elements.BOLD,
        )

    def test_trace_logging(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="ansiloom.annotator"):
            annotate_line(sgr(1) + "x")
        assert "Insert '<b>' at 4" in caplog.text
        assert "Hide [0, 4)" in caplog.text


class TestMatchesDirectRendering:
    """Stripping hidden ranges reproduces direct rendering."""

    LINES = (
        "plain",
        sgr(1) + "hello world",
        sgr(32) + "tic" + sgr(1) + "tac" + sgr(39) + "toe",
        OVERLAPPING,
        sgr(0),
        sgr(1) + sgr(0),
        sgr(0, 31, 49) + "red" + sgr(0),
        "there is concealed text here, " + sgr(8) + "CONCEAL" + sgr(0) + ", gone.",
        "a < b" + sgr(1) + " & c" + sgr(22) + ">",
        "(\x1b(0)\x1b[K" + sgr(38, 5, 1) + "x",
        "a" + encode_note("<i>") + sgr(8) + encode_note("</i>") + "hidden",
        "日本" + sgr(91) + "語" + sgr(),
        "trailing lone \x1b",
        sgr(33, 41) + "a" + sgr(7) + "b" + sgr(27) + "c",
        sgr(7) + "x" + sgr(1, 32) + "y" + sgr(0) + "z",
    )

    @pytest.mark.parametrize("line", LINES)
    @pytest.mark.parametrize("palette", [XTERM, VGA], ids=["xterm", "vga"])
    def test_strip_hidden_equals_render(
        self, line: str, palette: ColorPalette
    ) -> None:
        annotation = annotate_line(line, palette)
        assert strip_hidden(line, annotation) == render_html(
            line, palette, escape=True
        )

    def test_oversized_sgr_parameter_hidden(self) -> None:
        line = "a" + "\x1b[" + "9" * 5000 + "m" + "b"
        annotation = annotate_line(line)
        assert annotation.hidden == (HiddenRange(1, 5004),)
        assert strip_hidden(line, annotation) == "ab"

    @pytest.mark.parametrize("line", LINES)
    def test_hidden_ranges_ordered_and_disjoint(self, line: str) -> None:
        hidden = annotate_line(line).hidden
        for earlier, later in zip(hidden, hidden[1:], strict=False):
            assert earlier.start < earlier.end <= later.start


class TestLineAnnotator:
    """Open elements carry over from one line to the next."""

    def test_colour_carries_to_next_line(self) -> None:
        annotator = LineAnnotator(XTERM)
        first = annotator.annotate(sgr(32) + "green\n")
        assert first.insertions[-1] == Insertion(11, "</span>")
        second = annotator.annotate("still green\n")
        assert second.insertions == (
            Insertion(0, GREEN_SPAN),
            Insertion(12, "</span>"),
        )
        assert annotator.open_elements == (elements.foreground("#00CD00"),)

    def test_reset_ends_carry(self) -> None:
        annotator = LineAnnotator(XTERM)
        annotator.annotate(sgr(1) + "bold")
        second = annotator.annotate(sgr(0) + "done")
        assert second.insertions == (Insertion(0, "<b>"), Insertion(4, "</b>"))
        assert annotator.open_elements == ()
        assert annotator.annotate("plain").is_empty

    def test_default_wrapper_not_carried(self) -> None:
        annotator = LineAnnotator(VGA)
        annotator.annotate(sgr(1) + "x")
        assert annotator.open_elements == (elements.BOLD,)
        second = annotator.annotate("y")
        assert second.insertions == (
            Insertion(0, VGA_DIV),
            Insertion(0, "<b>"),
            Insertion(1, "</b>"),
            Insertion(1, "</div>"),
        )

    def test_empty_line_keeps_carry(self) -> None:
        annotator = LineAnnotator(XTERM)
        annotator.annotate(sgr(1) + "x")
        assert annotator.annotate("").is_empty
        assert annotator.open_elements == (elements.BOLD,)

    def test_reset(self) -> None:
        annotator = LineAnnotator(XTERM)
        annotator.annotate(sgr(1) + "x")
        annotator.reset()
        assert annotator.annotate("plain").is_empty

    def test_concealment_carries_to_next_line(self) -> None:
        lines = ["a" + sgr(8) + "secret\n", "more" + sgr(28) + "shown\n"]
        annotator = LineAnnotator(XTERM)
        stripped = [strip_hidden(line, annotator.annotate(line)) for line in lines]
        assert stripped == ["a", "shown\n"]
        assert "".join(stripped) == render_html("".join(lines), escape=True)
        assert not annotator.carried.concealed

    def test_concealed_plain_line_hidden(self) -> None:
        annotator = LineAnnotator(XTERM)
        annotator.annotate(sgr(8))
        annotation = annotator.annotate("secret")
        assert annotation.hidden == (HiddenRange(0, 6),)
        assert annotation.insertions == ()

    def test_inverse_carries_to_next_line(self) -> None:
        annotator = LineAnnotator(XTERM)
        annotator.annotate(sgr(33) + "a" + sgr(7) + "b\n")
        assert annotator.carried.inverse
        line = "c" + sgr(27) + "d\n"
        assert strip_hidden(line, annotator.annotate(line)) == (
            '<span style="background-color:#CDCD00;color:#FFFFFF;">c</span>'
            '<span style="color:#CDCD00;">d\n</span>'
        )
        assert annotator.carried.foreground == "#CDCD00"
        assert not annotator.carried.inverse
