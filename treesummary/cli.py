# treesummary/cli.py

"""
Command-line interface.

    treesummary [OPTIONS] INPUT_DIR OUTPUT_FILE
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from treesummary import __version__
from treesummary.content import DEFAULT_SAMPLE_SIZE
from treesummary.errors import SummaryError
from treesummary.matcher import parse_patterns
from treesummary.summary import SummaryConfig, summarize

logger = logging.getLogger("treesummary")


def _positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}") from None
    if n <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value!r}")
    return n


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="treesummary",
        description="Generate a summary of a repository or directory.",
    )
    parser.add_argument("input_dir", type=Path, help="Directory to summarize.")
    parser.add_argument("output_file", type=Path, help="Output file path.")
    parser.add_argument(
        "-e",
        "--exclude",
        action="append",
        metavar="PATTERNS",
        help="Comma-separated glob patterns to exclude (may be repeated).",
    )
    parser.add_argument(
        "--hidden",
        action="store_true",
        help="Include files and directories whose name starts with a dot.",
    )
    parser.add_argument(
        "--no-gitignore",
        action="store_true",
        help="Do not apply .gitignore and .ignore files.",
    )
    parser.add_argument(
        "--sample-size",
        type=_positive_int,
        default=DEFAULT_SAMPLE_SIZE,
        metavar="BYTES",
        help=f"Bytes read per file for binary detection (default: {DEFAULT_SAMPLE_SIZE}).",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Show debug output.")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only show errors.")
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def config_from_args(args: argparse.Namespace) -> SummaryConfig:
    patterns: list[str] = []
    for chunk in args.exclude or []:
        patterns.extend(parse_patterns(chunk))
    return SummaryConfig(
        root=args.input_dir,
        output=args.output_file,
        exclude=tuple(patterns),
        sample_size=args.sample_size,
        include_hidden=args.hidden,
        respect_ignore_files=not args.no_gitignore,
    )


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    level = logging.WARNING
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s", stream=sys.stderr)

    config = config_from_args(args)
    print("Starting directory analysis...")
    try:
        summarize(config)
    except SummaryError as e:
        logger.error("Failed to generate summary: %s", e)
        return 1
    except KeyboardInterrupt:
        logger.error("Interrupted, no output written")
        return 130

    print(f"Summary generated successfully at: {config.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
