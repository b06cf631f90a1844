"""httpdoc: main entry point.

Ties together the CLI, parser and builder to reformat .http files.
"""

import logging
import sys

from httpdoc.builder import build_result
from httpdoc.cli import parse_cli
from httpdoc.errors import BodyFormatError
from httpdoc.parser import load_document_file, parse


def main(argv: list[str] | None = None) -> int:
    """Run the httpdoc formatter.

    Args:
        argv: Optional argument list (defaults to sys.argv).

    Returns:
        Exit code (0 = ok, 1 = files would change under --check,
        2 = error).
    """
    args = parse_cli(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    changed: list[str] = []
    for path in args.files:
        try:
            text = load_document_file(path)
        except OSError as exc:
            print(f"Error reading file: {exc}", file=sys.stderr)
            return 2

        document = parse(text)
        if document is None:
            print(f"Error: '{path}' is not a valid .http document", file=sys.stderr)
            return 2

        try:
            result = build_result(
                document,
                format_body=args.format_body,
                boundary=args.boundary,
                strict=args.strict,
            )
        except BodyFormatError as exc:
            print(f"Error formatting '{path}': {exc}", file=sys.stderr)
            return 2

        for error in result.errors:
            print(f"[!] {path}: {error}", file=sys.stderr)

        if not args.check and not args.write:
            sys.stdout.write(result.text)
            continue

        if result.text == text:
            continue
        changed.append(path)

        if args.check:
            print(f"[*] Would reformat {path}", file=sys.stderr)
        elif args.write:
            with open(path, "w", encoding="utf-8") as fh:
                fh.write(result.text)
            print(f"[*] Reformatted {path}", file=sys.stderr)

    if args.check:
        return 1 if changed else 0
    return 0


if __name__ == "__main__":
    sys.exit(main())
