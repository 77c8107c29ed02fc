"""Command-line interface for eventdocx.

Usage::

    eventdocx event.json                        # writes <event name>_pengajuan.docx
    eventdocx event.json -o proposal.docx       # explicit output path
    eventdocx event.json -t my_template.docx    # custom template
    eventdocx --write-template template.docx    # dump the built-in template
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from eventdocx import __version__
from eventdocx.converter import ProposalGenerator, TemplateError, load_event
from eventdocx.proposal import EventDataError
from eventdocx.settings import SettingsError, load_settings
from eventdocx.template import write_default_template


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eventdocx",
        description="Generate a Word proposal (.docx) from event JSON.",
    )
    parser.add_argument(
        "input",
        nargs="?",
        help="Path to the event JSON file.",
    )
    parser.add_argument(
        "-o", "--output",
        help="Output .docx path. Defaults to a name derived from the event name.",
    )
    parser.add_argument(
        "-t", "--template",
        help="Proposal template (.docx). Defaults to $EVENTDOCX_TEMPLATE or the built-in one.",
    )
    parser.add_argument(
        "-e", "--encoding",
        default="utf-8",
        help="Input file encoding (default: %(default)s).",
    )
    parser.add_argument(
        "--write-template",
        metavar="PATH",
        help="Write the built-in template to PATH and exit.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print progress information.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.write_template:
        path = write_default_template(args.write_template)
        print(f"Template written: {path}")
        return 0

    if not args.input:
        parser.error("the following argument is required: input")

    input_path = Path(args.input)
    if not input_path.is_file():
        print(f"Error: file not found: {input_path}", file=sys.stderr)
        return 1

    try:
        settings = load_settings()
    except SettingsError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    generator = ProposalGenerator.from_settings(settings)
    if args.template:
        generator.template = Path(args.template)

    try:
        event = load_event(input_path, encoding=args.encoding)
        doc = generator.generate(event)
        output_path = Path(args.output) if args.output else input_path.parent / doc.filename
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(doc.content)
    except (EventDataError, TemplateError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.verbose:
        print(f"Input:      {input_path}")
        print(f"Template:   {generator.template or 'built-in'}")
        print(f"Output:     {output_path}")
        print(f"Hyperlinks: {len(doc.relationships)}")
        print(f"Done. {output_path.stat().st_size} bytes written.")
    else:
        print(f"Generated: {output_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
