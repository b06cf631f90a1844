"""Command-line interface for httpdoc.

Parses the arguments of the ``httpdoc`` formatter with argparse and checks
that the input files can be read.
"""

import argparse
import os
import sys

from httpdoc import __version__
from httpdoc.builder import DEFAULT_MULTIPART_BOUNDARY

EXTENSIONS = (".http", ".rest")


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser for the httpdoc CLI."""
    parser = argparse.ArgumentParser(
        prog="httpdoc",
        description=(
            "httpdoc v{ver}: canonical formatter for .http request files.\n\n"
            "Parses each file into its variables and request blocks and "
            "renders it back with consistent layout, header casing and "
            "pretty-printed JSON and GraphQL bodies. Placeholders such as "
            "{{{{token}}}} are preserved."
        ).format(ver=__version__),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  httpdoc api.http\n"
            "  httpdoc --write requests/*.http\n"
            "  httpdoc --check --no-format-body api.http\n"
        ),
    )

    parser.add_argument(
        "files",
        nargs="+",
        metavar="FILE",
        help="One or more .http or .rest files.",
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--write",
        action="store_true",
        help="Rewrite files in place instead of printing to stdout.",
    )
    mode.add_argument(
        "--check",
        action="store_true",
        help="Only report files that would be reformatted (exit 1 if any).",
    )

    parser.add_argument(
        "--no-format-body",
        action="store_false",
        dest="format_body",
        help="Leave JSON and GraphQL bodies as written.",
    )
    parser.add_argument(
        "--boundary",
        default=DEFAULT_MULTIPART_BOUNDARY,
        help=(
            "Multipart boundary for form data without one "
            f"(default: {DEFAULT_MULTIPART_BOUNDARY})."
        ),
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on bodies that cannot be formatted instead of keeping them.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def validate_args(args: argparse.Namespace) -> None:
    """Validate parsed CLI arguments.

    Raises:
        SystemExit: If an input file is missing, unreadable or not a
            .http/.rest file, or if the boundary is empty.
    """
    for path in args.files:
        if not os.path.isfile(path):
            print(f"Error: File not found: '{path}'", file=sys.stderr)
            sys.exit(1)

        if not os.access(path, os.R_OK):
            print(f"Error: File is not readable: '{path}'", file=sys.stderr)
            sys.exit(1)

        if not path.lower().endswith(EXTENSIONS):
            print(
                f"Error: Not a .http or .rest file: '{path}'",
                file=sys.stderr,
            )
            sys.exit(1)

    if not args.boundary.strip():
        print("Error: Boundary cannot be empty.", file=sys.stderr)
        sys.exit(1)


def parse_cli(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse and validate command-line arguments.

    Args:
        argv: Optional list of arguments (defaults to sys.argv).

    Returns:
        Parsed and validated argument namespace.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    validate_args(args)
    return args
