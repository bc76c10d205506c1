"""Command-line entry point.

Usage:
    docline transform IN [-o OUT] [--base-dir DIR] [--paste] [--seed N]
    docline import SRC DEST
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import random
import sys
from pathlib import Path

from rich.console import Console

from docline import __version__, _setup_logging
from docline.config import get_settings
from docline.importer import import_document
from docline.paste import transform_paste
from docline.transform.options import TransformOptions
from docline.transform.pipeline import TransformError, transform_html
from docline.transform.resolvers import LocalFileImageResolver

logger = logging.getLogger(__name__)

# Status output goes to stderr; stdout carries the transformed HTML.
console = Console(stderr=True)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docline",
        description="Flatten converted or pasted HTML into editor lines.",
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log debug output to stderr"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # transform
    transform_p = sub.add_parser("transform", help="Transform an HTML file")
    transform_p.add_argument("input", type=Path, help="HTML file to transform")
    transform_p.add_argument(
        "-o", "--output", type=Path, default=None, help="Write here (default: stdout)"
    )
    transform_p.add_argument(
        "--base-dir",
        type=Path,
        default=None,
        help="Directory relative image paths resolve against (default: input's)",
    )
    transform_p.add_argument(
        "--paste",
        action="store_true",
        help="Treat the input as a clipboard fragment",
    )
    transform_p.add_argument(
        "--seed", type=int, default=None, help="Seed identifiers for stable output"
    )

    # import
    import_p = sub.add_parser(
        "import", help="Convert a word-processor document with LibreOffice"
    )
    import_p.add_argument("src", type=Path, help="Document to convert")
    import_p.add_argument("dest", type=Path, help="HTML file to write")

    return parser


def _cmd_transform(args: argparse.Namespace) -> None:
    try:
        markup = args.input.read_text(encoding="utf-8")
    except OSError as exc:
        console.print(f"[red]Error:[/] cannot read {args.input}: {exc}")
        sys.exit(1)

    rng = random.Random(args.seed)
    try:
        if args.paste:
            result = transform_paste(markup, TransformOptions(env="paste", rng=rng))
        else:
            base_dir = args.base_dir or args.input.resolve().parent
            options = TransformOptions(
                image_resolver=LocalFileImageResolver(base_dir), rng=rng
            )
            result = transform_html(markup, options)
    except TransformError as exc:
        console.print(f"[red]Transform failed in stage {exc.stage}:[/] {exc}")
        sys.exit(1)

    if args.output is None:
        sys.stdout.write(result.html)
    else:
        args.output.write_text(result.html, encoding="utf-8")

    status = "modified" if result.modified else "unchanged"
    console.print(f"[green]Done[/] ({status})")


def _cmd_import(args: argparse.Namespace) -> None:
    if not args.src.is_file():
        console.print(f"[red]Error:[/] {args.src} does not exist")
        sys.exit(1)

    handled = asyncio.run(import_document(args.src, args.dest))
    if not handled:
        console.print(f"[red]Import not handled:[/] {args.src} (see log)")
        sys.exit(1)
    console.print(f"[green]Imported[/] {args.src} -> {args.dest}")


def main(argv: list[str] | None = None) -> None:
    """Entry point for the ``docline`` command."""
    parser = _build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    _setup_logging(get_settings().app.log_dir, verbose=args.verbose)

    match args.command:
        case "transform":
            _cmd_transform(args)
        case "import":
            _cmd_import(args)
