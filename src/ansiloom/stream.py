"""Streaming HTML rendering of ANSI logs.

Logs arrive in chunks, and a chunk boundary can fall in the middle of an
escape sequence or note.  ``HtmlLogWriter`` holds such a tail back and
prepends it to the next chunk, so the rendered HTML does not depend on how
the input was chunked.
"""

from __future__ import annotations

import io
import logging
from typing import TYPE_CHECKING, Literal, Self

from ansiloom.emitters import StreamEmitter
from ansiloom.lexer import split_incomplete
from ansiloom.palette import DEFAULT_PALETTE
from ansiloom.renderer import AttributeStackRenderer

if TYPE_CHECKING:
    from types import TracebackType
    from typing import TextIO

    from ansiloom.emitters import Emitter
    from ansiloom.palette import ColorPalette

logger = logging.getLogger(__name__)


class HtmlLogWriter:
    """Renders ANSI text written in chunks to HTML on *output*.

    Use as a context manager, or call ``close()`` at the end of the log:
    the elements still open are closed only then.

    Args:
        output: Text stream receiving HTML.
        palette: Colours to use; ``xterm`` when omitted.
        escape: HTML-escape plain text.  Disable when the input is already
            HTML with ANSI sequences in it.
        emitter: Where markup goes; inline into *output* when omitted.
    """

    def __init__(
        self,
        output: TextIO,
        palette: ColorPalette | None = None,
        *,
        escape: bool = True,
        emitter: Emitter | None = None,
    ) -> None:
        self._escape = escape
        self._pending = ""
        self._closed = False
        self._renderer = AttributeStackRenderer(
            palette or DEFAULT_PALETTE,
            emitter or StreamEmitter(output),
            output.write,
        )

    @property
    def pending(self) -> str:
        """Input held back until the next chunk completes it."""
        return self._pending

    def write(self, chunk: str) -> None:
        if self._closed:
            msg = "write to closed HtmlLogWriter"
            raise ValueError(msg)
        complete, self._pending = split_incomplete(self._pending + chunk)
        if complete:
            self._renderer.feed(complete, escape=self._escape)

    def close(self) -> None:
        """Flush held-back input and close all open elements."""
        if self._closed:
            return
        self._closed = True
        if self._pending:
            logger.debug("Flushing %d pending character(s)", len(self._pending))
            pending, self._pending = self._pending, ""
            self._renderer.feed(pending, escape=self._escape)
        self._renderer.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def render_html(
    text: str,
    palette: ColorPalette | None = None,
    *,
    escape: bool = False,
) -> str:
    """Render *text* to HTML in one go.

    Unlike ``HtmlLogWriter`` and ``render_bytes``, which take raw log
    input, this does not escape by default: it renders text that is
    already HTML, such as a log page whose plain text was escaped
    upstream.  Pass ``escape=True`` for raw text.

    Example:
        >>> render_html("\\x1b[1mhello world")
        '<b>hello world</b>'
    """
    buffer = io.StringIO()
    with HtmlLogWriter(buffer, palette, escape=escape) as writer:
        writer.write(text)
    return buffer.getvalue()


def render_bytes(
    data: bytes,
    palette: ColorPalette | None = None,
    *,
    encoding: str = "utf-8",
    errors: Literal["strict", "replace"] = "strict",
    escape: bool = True,
) -> str:
    """Decode *data* and render it to HTML.

    Raises:
        UnicodeDecodeError: If *data* is not valid in *encoding* and
            *errors* is ``"strict"``.
    """
    return render_html(data.decode(encoding, errors), palette, escape=escape)
