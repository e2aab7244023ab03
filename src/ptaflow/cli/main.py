"""Main CLI dispatcher for ptaflow.

This module provides the main command-line interface for ptaflow,
dispatching sub-commands to the points-to analysis and the CHA call graph
builder.
"""

import sys
import argparse
from pathlib import Path

from ptaflow import __version__
from .pta import add_cha_parser, add_pta_parser


def main(argv=None):
    """Main entry point for the ptaflow CLI.

    Returns:
        int: Exit code (0 for success, non-zero for error).
    """
    parser = argparse.ArgumentParser(
        description="ptaflow - points-to analysis with on-the-fly call graphs",
        prog="ptaflow",
    )

    parser.add_argument("--version", action="version", version="ptaflow %s" % __version__)

    subparsers = parser.add_subparsers(
        dest="command", help="Available commands", required=True
    )

    add_pta_parser(subparsers)
    add_cha_parser(subparsers)

    args = parser.parse_args(argv)

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: Path '{input_path}' not found", file=sys.stderr)
        return 1

    return args.func(input_path, args)


if __name__ == "__main__":
    sys.exit(main())
