"""
CLI functionality for the points-to analysis and the CHA call graph.
"""

import logging
import sys
from pathlib import Path

from ptaflow.analysis.callgraph.cha import CHABuilder
from ptaflow.analysis.callgraph.formats import FORMATTERS
from ptaflow.analysis.pta import solve
from ptaflow.application.context import AnalysisContext
from ptaflow.application.errors import AnalysisError
from ptaflow.application.options import HEAP_MODELS, AnalysisOptions
from ptaflow.language.loader import load_program_file

LOG = logging.getLogger(__name__)


def setup_logging(args):
    level = logging.DEBUG if args.debug else logging.INFO if args.verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def write_output(output, args):
    if args.output:
        with open(args.output, "w") as f:
            f.write(output)
            f.write("\n")
        LOG.info("output written to %s", args.output)
    else:
        print(output)


def run_pta(input_path, args):
    """Run the points-to analysis on a JSON program and print its result."""
    setup_logging(args)
    try:
        program = load_program_file(input_path)
        context = AnalysisContext(program, AnalysisOptions.from_args(args))
        result = solve(context)
        output = FORMATTERS[args.format](result.get_ci_call_graph(), args, result)
        write_output(output, args)
        return 0
    except (AnalysisError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.debug:
            import traceback
            traceback.print_exc()
        return 1


def run_cha(input_path, args):
    """Build the CHA call graph of a JSON program and print it."""
    setup_logging(args)
    try:
        program = load_program_file(input_path)
        AnalysisContext(program).validate()
        call_graph = CHABuilder(program.hierarchy).build(program.entry_method)
        write_output(FORMATTERS[args.format](call_graph, args), args)
        return 0
    except (AnalysisError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.debug:
            import traceback
            traceback.print_exc()
        return 1


def _add_common_arguments(parser):
    parser.add_argument("input", type=Path, help="JSON program to analyze")

    parser.add_argument(
        "--format",
        "-f",
        choices=sorted(FORMATTERS),
        default="text",
        help="Output format (default: text)",
    )

    parser.add_argument(
        "--show-cycles", action="store_true", help="Report call graph cycles"
    )

    parser.add_argument(
        "--output", "-o", type=Path, help="Output file (default: stdout)"
    )

    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose output"
    )

    parser.add_argument(
        "--debug", "-d", action="store_true", help="Debug output"
    )


def add_pta_parser(subparsers):
    """Add the points-to analysis subcommand to the argument parser."""
    parser = subparsers.add_parser(
        "pta", help="Run the points-to analysis and build the call graph on the fly"
    )
    _add_common_arguments(parser)

    parser.add_argument(
        "--cs",
        default="ci",
        help="Context sensitivity: ci, <k>-call, <k>-obj or <k>-type (default: ci)",
    )

    parser.add_argument(
        "--heap",
        choices=HEAP_MODELS,
        default="allocation-site",
        help="Heap abstraction (default: allocation-site)",
    )

    parser.add_argument(
        "--taint-config", type=Path, help="Taint configuration (enables taint analysis)"
    )

    parser.set_defaults(func=run_pta)


def add_cha_parser(subparsers):
    """Add the CHA call graph subcommand to the argument parser."""
    parser = subparsers.add_parser(
        "cha", help="Build a call graph with class hierarchy analysis"
    )
    _add_common_arguments(parser)
    parser.set_defaults(func=run_cha)
