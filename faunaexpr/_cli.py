"""faunaexpr command-line interface.

Usage:
    echo '{"a": [1, true]}' | faunaexpr encode
    faunaexpr encode --input doc.json --pretty
    faunaexpr version

`encode` reads plain JSON and prints its wire form: objects come out
wrapped under "object", everything else as the matching wire scalar.
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from . import ExprError, __version__, dumps, loads_expr


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="faunaexpr",
        description="faunaexpr: encode JSON values into the extended-JSON wire format",
    )
    sub = parser.add_subparsers(dest="command")

    # ── encode ──
    enc_p = sub.add_parser("encode", help="Encode JSON input to wire form")
    enc_p.add_argument("--input", "-i", metavar="FILE",
                       help="Read JSON from FILE instead of stdin")
    enc_p.add_argument("--pretty", action="store_true",
                       help="Indent the output")

    # ── version ──
    sub.add_parser("version", help="Print version and exit")

    return parser


def _read_input(filepath: Optional[str]) -> bytes:
    """Read JSON bytes from a file or stdin."""
    if filepath:
        with open(filepath, "rb") as f:
            return f.read()
    if sys.stdin.isatty():
        print("faunaexpr: reading from stdin (Ctrl-D to end)...", file=sys.stderr)
    return sys.stdin.buffer.read()


def _cmd_encode(args: argparse.Namespace) -> None:
    value = loads_expr(_read_input(args.input))
    print(dumps(value, indent=2 if args.pretty else None))


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "version":
        print(f"faunaexpr {__version__}")
        return

    try:
        if args.command == "encode":
            _cmd_encode(args)
    except ExprError as e:
        print(f"faunaexpr: error [{e.code}]: {e}", file=sys.stderr)
        sys.exit(2)
    except RecursionError:
        print("faunaexpr: error [ERR_JSON]: JSON nesting too deep", file=sys.stderr)
        sys.exit(2)
    except OSError as e:
        print(f"faunaexpr: cannot read input: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
