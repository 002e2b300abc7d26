"""Tests for SGR parameter decoding."""

from __future__ import annotations

import logging

import pytest

from ansiloom import elements
from ansiloom.elements import Category
from ansiloom.events import (
    Conceal,
    Inverse,
    PassThroughOpaque,
    Reset,
    ResetAll,
    Reveal,
    SetAttribute,
    Text,
)
from ansiloom.lexer import tokenize
from ansiloom.palette import CSS, XTERM
from ansiloom.sgr import decode_sgr, decode_token


class TestDecodeSgr:
    """Tests for decode_sgr()."""

    @pytest.mark.parametrize("params", ["", "0", "00"])
    def test_reset_all(self, params: str) -> None:
        assert decode_sgr(params, XTERM) == [ResetAll()]

    @pytest.mark.parametrize(
        ("code", "event"),
        [
            ("1", SetAttribute(elements.BOLD)),
            ("3", SetAttribute(elements.ITALIC)),
            ("4", SetAttribute(elements.UNDERLINE)),
            ("21", SetAttribute(elements.DOUBLE_UNDERLINE)),
            ("9", SetAttribute(elements.STRIKEOUT)),
            ("51", SetAttribute(elements.FRAMED)),
            ("53", SetAttribute(elements.OVERLINE)),
            ("8", Conceal()),
            ("28", Reveal()),
            ("22", Reset(Category.BOLD)),
            ("23", Reset(Category.ITALIC)),
            ("24", Reset(Category.UNDERLINE)),
            ("29", Reset(Category.STRIKEOUT)),
            ("54", Reset(Category.FRAMED)),
            ("55", Reset(Category.OVERLINE)),
            ("39", Reset(Category.FOREGROUND)),
            ("49", Reset(Category.BACKGROUND)),
            ("7", Inverse(on=True)),
            ("27", Inverse(on=False)),
        ],
    )
    def test_static_codes(self, code: str, event: object) -> None:
        assert decode_sgr(code, XTERM) == [event]

    @pytest.mark.parametrize(
        ("code", "element"),
        [
            ("30", elements.foreground("#000000")),
            ("32", elements.foreground("#00CD00")),
            ("37", elements.foreground("#E5E5E5")),
            ("90", elements.foreground("#4C4C4C")),
            ("97", elements.foreground("#FFFFFF")),
            ("41", elements.background("#CD0000")),
            ("47", elements.background("#E5E5E5")),
            ("100", elements.background("#4C4C4C")),
            ("107", elements.background("#FFFFFF")),
        ],
    )
    def test_colour_codes(self, code: str, element: elements.AttributeElement) -> None:
        assert decode_sgr(code, XTERM) == [SetAttribute(element)]

    def test_palette_decides_colour(self) -> None:
        assert decode_sgr("32", CSS) == [SetAttribute(elements.foreground("green"))]

    def test_multiple_parameters(self) -> None:
        assert decode_sgr("1;32", XTERM) == [
            SetAttribute(elements.BOLD),
            SetAttribute(elements.foreground("#00CD00")),
        ]

    def test_empty_parameter_is_reset(self) -> None:
        assert decode_sgr(";1", XTERM) == [ResetAll(), SetAttribute(elements.BOLD)]

    def test_reset_then_set(self) -> None:
        assert decode_sgr("0;31;49", XTERM) == [
            ResetAll(),
            SetAttribute(elements.foreground("#CD0000")),
            Reset(Category.BACKGROUND),
        ]

    @pytest.mark.parametrize(
        "params", ["2", "5", "10", "19", "52", "38;5;1", "48;2;1;2;3"]
    )
    def test_ignored_codes(self, params: str) -> None:
        """Faint, blink, fonts, encircled and extended colours."""
        assert decode_sgr(params, XTERM) == []

    def test_extended_colour_arguments_not_reinterpreted(self) -> None:
        """The 1 in 38;5;1 is a colour index, not bold."""
        assert decode_sgr("38;5;1;4", XTERM) == [SetAttribute(elements.UNDERLINE)]
        assert decode_sgr("48;2;1;1;1;1", XTERM) == [SetAttribute(elements.BOLD)]

    def test_truncated_extended_colour(self) -> None:
        assert decode_sgr("38", XTERM) == []
        assert decode_sgr("38;5", XTERM) == []

    def test_malformed_parameter_skipped(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.DEBUG, logger="ansiloom.sgr"):
            assert decode_sgr("x;1", XTERM) == [SetAttribute(elements.BOLD)]
        assert "malformed SGR parameter" in caplog.text

    def test_leading_zeros(self) -> None:
        assert decode_sgr("0001;00032", XTERM) == [
            SetAttribute(elements.BOLD),
            SetAttribute(elements.foreground("#00CD00")),
        ]

    @pytest.mark.parametrize("length", [4, 5000])
    def test_oversized_parameter_skipped(
        self, length: int, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Digit runs too long for any code never reach int()."""
        with caplog.at_level(logging.DEBUG, logger="ansiloom.sgr"):
            assert decode_sgr("9" * length + ";1", XTERM) == [
                SetAttribute(elements.BOLD)
            ]
        assert f"oversized SGR parameter ({length} digits)" in caplog.text

    def test_unsupported_code_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="ansiloom.sgr"):
            decode_sgr("5", XTERM)
        assert "unsupported SGR code 5" in caplog.text


class TestDecodeToken:
    """Tests for decode_token()."""

    def _decode(self, text: str) -> list[object]:
        return [e for t in tokenize(text) for e in decode_token(t, XTERM)]

    def test_text(self) -> None:
        assert self._decode("abc") == [Text("abc")]

    def test_sgr(self) -> None:
        assert self._decode("\x1b[1m") == [SetAttribute(elements.BOLD)]

    def test_oversized_sgr_token(self) -> None:
        assert self._decode("\x1b[" + "9" * 5000 + "mafter") == [Text("after")]

    def test_other_sequences_dropped(self) -> None:
        assert self._decode("\x1b[K(\x1b(0)") == [Text("("), Text(")")]

    def test_lone_esc_kept_as_text(self) -> None:
        assert self._decode("\x1bx") == [Text("\x1b"), Text("x")]

    def test_note(self) -> None:
        from ansiloom.notes import encode_note

        note = encode_note("<b>")
        assert self._decode(note) == [PassThroughOpaque(note)]
