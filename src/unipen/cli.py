"""
UniPen Command Line Interface

Commands:
    unipen statements session.unipen data/    # Decoded statements as JSON
    unipen document session.unipen data/      # Built document as JSON
    unipen info session.unipen data/          # Summary
"""

import argparse
import json
import logging
import sys
from collections import Counter

from . import __version__
from .builder import build
from .errors import UniPenError
from .model import ComponentKind
from .reader import Config, load, parse
from .statements import Keyword


def _config(args) -> Config:
    config = Config.default()
    if args.max_include_depth is not None:
        config.max_include_depth = args.max_include_depth
    if args.encoding:
        config.encoding = args.encoding
    return config


def _dump(value, args) -> None:
    json.dump(value, sys.stdout, indent=args.indent, ensure_ascii=False)
    sys.stdout.write("\n")


def cmd_statements(args):
    """Print the flattened statement stream."""
    statements = parse(args.file, args.include_dir, _config(args))
    _dump([s.to_dict() for s in statements], args)


def cmd_document(args):
    """Print the built document."""
    document = load(args.file, args.include_dir, _config(args))
    _dump(document.to_dict(), args)


def cmd_info(args):
    """Show a document summary."""
    statements = parse(args.file, args.include_dir, _config(args))
    document = build(statements)
    files = sum(1 for s in statements if s.keyword is Keyword.INCLUDE)

    print(f"\nDocument: {args.file}")
    print(f"  Files: {files}")
    print(f"  Statements: {len(statements)}")
    if document.version is not None:
        print(f"  Version: {document.version}")
    if document.data_source:
        print(f"  Source: {document.data_source[:60]}")
    if document.coordinate_order:
        print(f"  Coordinates: {' '.join(c.name for c in document.coordinate_order)}")
    if document.hierarchy:
        print(f"  Hierarchy: {' '.join(document.hierarchy)}")

    print(f"\nComponent sets ({len(document.component_sets)}):")
    for i, component_set in enumerate(document.component_sets):
        if i >= args.limit:
            print(f"  ... ({len(document.component_sets) - args.limit} more)")
            break
        kinds = Counter(c.kind for c in component_set.components)
        print(
            f"  {component_set.name or '<unnamed>'}: "
            f"{len(component_set.coordinates)} points, "
            f"{kinds[ComponentKind.PEN_DOWN]} down, "
            f"{kinds[ComponentKind.PEN_UP]} up, "
            f"{len(component_set.segments)} segments"
        )


def main(argv=None):
    parser = argparse.ArgumentParser(description="UniPen handwriting file reader")
    parser.add_argument("--version", action="version", version=f"unipen {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")

    sub = parser.add_subparsers(dest="command")

    def add_input(p):
        p.add_argument("file")
        p.add_argument("include_dir", nargs="?", help="Directory .INCLUDE paths are relative to")
        p.add_argument("--max-include-depth", type=int)
        p.add_argument("--encoding")
        return p

    s = add_input(sub.add_parser("statements", help="Print decoded statements"))
    s.add_argument("--indent", type=int, default=2)

    d = add_input(sub.add_parser("document", help="Print built document"))
    d.add_argument("--indent", type=int, default=2)

    i = add_input(sub.add_parser("info", help="Show summary"))
    i.add_argument("--limit", type=int, default=20)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    cmds = {
        "statements": cmd_statements, "document": cmd_document, "info": cmd_info,
    }

    if args.command not in cmds:
        parser.print_help()
        return 0

    try:
        cmds[args.command](args)
    except UniPenError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
