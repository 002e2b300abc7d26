"""Command-line interface.

Usage:
    ansiloom render [FILE] [--palette NAME] [--no-escape] [--encoding ENC] [-o OUT]
    ansiloom annotate [FILE] [--palette NAME] [--json]
    ansiloom palettes
    ansiloom notes [FILE]

FILE defaults to standard input.  Rendered HTML goes to standard output (or
OUT); diagnostics go to standard error.
"""

from __future__ import annotations

import argparse
import io
import logging
import sys
from contextlib import ExitStack
from typing import TYPE_CHECKING

from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ansiloom import _setup_logging
from ansiloom.annotator import LineAnnotation, LineAnnotator
from ansiloom.config import get_settings
from ansiloom.errors import AnsiloomError
from ansiloom.notes import expand_notes
from ansiloom.palette import BUILTIN_PALETTES
from ansiloom.stream import HtmlLogWriter

if TYPE_CHECKING:
    from typing import TextIO

    from ansiloom.config import Settings

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)

_CHUNK_SIZE = 64 * 1024

_annotations_adapter = TypeAdapter(list[LineAnnotation])


def _build_parser() -> argparse.ArgumentParser:
    """Build argparse parser for ansiloom subcommands."""
    parser = argparse.ArgumentParser(
        prog="ansiloom",
        description="Render ANSI colour sequences as well-formed HTML.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # render
    render_p = sub.add_parser("render", help="Render ANSI text to HTML")
    render_p.add_argument("file", nargs="?", help="Input file (default: stdin)")
    render_p.add_argument("--palette", default=None, help="Palette name")
    render_p.add_argument(
        "--no-escape",
        action="store_true",
        help="Do not HTML-escape plain text (input is already HTML)",
    )
    render_p.add_argument("--encoding", default=None, help="Input encoding")
    render_p.add_argument("-o", "--output", default=None, help="Output file")

    # annotate
    annotate_p = sub.add_parser(
        "annotate", help="Show markup insertions and hidden ranges per line"
    )
    annotate_p.add_argument("file", nargs="?", help="Input file (default: stdin)")
    annotate_p.add_argument("--palette", default=None, help="Palette name")
    annotate_p.add_argument("--json", action="store_true", help="Print JSON")

    # palettes
    sub.add_parser("palettes", help="List built-in and configured palettes")

    # notes
    notes_p = sub.add_parser("notes", help="Expand embedded HTML notes")
    notes_p.add_argument("file", nargs="?", help="Input file (default: stdin)")

    return parser


def _open_input(
    stack: ExitStack,
    path: str | None,
    settings: Settings,
    encoding: str | None = None,
) -> TextIO:
    encoding = encoding or settings.render.encoding
    errors = settings.render.decode_errors
    if path is None or path == "-":
        wrapper = io.TextIOWrapper(sys.stdin.buffer, encoding=encoding, errors=errors)
        # Leave stdin itself open
        stack.callback(wrapper.detach)
        return wrapper
    return stack.enter_context(open(path, encoding=encoding, errors=errors))


def _cmd_render(args: argparse.Namespace, settings: Settings) -> None:
    palette = settings.resolve_palette(args.palette)
    escape_html = settings.render.escape_html and not args.no_escape
    with ExitStack() as stack:
        source = _open_input(stack, args.file, settings, args.encoding)
        if args.output:
            output = stack.enter_context(open(args.output, "w", encoding="utf-8"))
        else:
            output = sys.stdout
        with HtmlLogWriter(output, palette, escape=escape_html) as writer:
            while chunk := source.read(_CHUNK_SIZE):
                writer.write(chunk)
    logger.info("Rendered %s with palette %r", args.file or "stdin", palette.name)


def _cmd_annotate(args: argparse.Namespace, settings: Settings) -> None:
    palette = settings.resolve_palette(args.palette)
    annotator = LineAnnotator(palette)
    with ExitStack() as stack:
        source = _open_input(stack, args.file, settings)
        annotations = [annotator.annotate(line) for line in source]

    if args.json:
        sys.stdout.write(_annotations_adapter.dump_json(annotations, indent=2).decode())
        sys.stdout.write("\n")
        return

    table = Table(title=f"Annotations ({palette.name})")
    table.add_column("Line", justify="right")
    table.add_column("Offset", justify="right")
    table.add_column("Kind")
    table.add_column("Markup", style="cyan")
    for lineno, annotation in enumerate(annotations, start=1):
        for insertion in annotation.insertions:
            table.add_row(
                str(lineno), str(insertion.offset), "insert", escape(insertion.markup)
            )
        for hidden in annotation.hidden:
            table.add_row(
                str(lineno), f"{hidden.start}-{hidden.end}", "hide", "[dim]-[/]"
            )
    console.print(table)


def _cmd_palettes(settings: Settings) -> None:
    table = Table(title="Palettes")
    table.add_column("Name", style="cyan")
    table.add_column("Source")
    table.add_column("Normal")
    table.add_column("Defaults")
    palettes = {**BUILTIN_PALETTES, **settings.palettes}
    for name in sorted(palettes):
        palette = palettes[name]
        source = "custom" if name in settings.palettes else "built-in"
        defaults = (
            f"fg={palette.default_foreground} bg={palette.default_background}"
            if palette.has_defaults
            else "-"
        )
        table.add_row(name, source, " ".join(palette.normal), defaults)
    console.print(table)


def _cmd_notes(args: argparse.Namespace, settings: Settings) -> None:
    with ExitStack() as stack:
        source = _open_input(stack, args.file, settings)
        sys.stdout.write(expand_notes(source.read()))


def main(argv: list[str] | None = None) -> None:
    """Entry point for the ``ansiloom`` command."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        settings = get_settings()
        _setup_logging(settings.log.level, settings.log.log_dir)
        logger.info(
            "Settings loaded: palette=%s, %d custom palette(s), log level %s",
            settings.render.palette,
            len(settings.palettes),
            settings.log.level,
        )
        match args.command:
            case "render":
                _cmd_render(args, settings)
            case "annotate":
                _cmd_annotate(args, settings)
            case "palettes":
                _cmd_palettes(settings)
            case "notes":
                _cmd_notes(args, settings)
    except (AnsiloomError, ValidationError, UnicodeDecodeError, OSError) as exc:
        err_console.print(f"[red]Error:[/] {escape(str(exc))}", highlight=False)
        sys.exit(1)
