#!/usr/bin/env python3
"""jpq/__main__.py — command-line front end for the JSONPath query engine.

Usage examples
--------------
    # Every author in a document, with normalized paths
    python -m jpq query '$..author' store.json

    # Read the document from stdin, print bare values
    cat store.json | jpq query '$.store.book[?@.price < 10].title' --values

    # Show how a query was parsed
    jpq explain '$.store.book[?match(@.isbn, "0-[0-9-]+")]'

    # Static feature detection and complexity
    jpq analyze '$..book[?@.price > 10 && @.category == "fiction"]' --json

Exit codes
----------
    0   Success.
    1   Syntax or evaluation error in the query.
    2   Infrastructure failure (unreadable file, invalid JSON, etc.).
    3   ``query --fail-empty`` and nothing matched.
    130 Interrupted (Ctrl-C).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import textwrap
from pathlib import Path
from typing import Any, Optional, Sequence, TextIO

from termcolor import colored

from jpq import __version__
from jpq.analysis import analyze
from jpq.engine import JSONPath
from jpq.errors import JSONPathError
from jpq.values import NodeList

_log = logging.getLogger("jpq")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2
EXIT_NO_MATCH: int = 3
EXIT_INTERRUPTED: int = 130


# ===========================================================================
# Helpers
# ===========================================================================

# index = number of -v flags; extra flags stay at DEBUG
_VERBOSITY_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)

_QUIET_FORMAT = "jpq: %(levelname)s: %(message)s"
_DEBUG_FORMAT = "%(asctime)s.%(msecs)03d %(name)-14s %(levelname)-7s %(message)s"

_CLI_HANDLER = "jpq-cli"


class _DocumentError(Exception):
    """The JSON input could not be loaded."""


def _configure_logging(verbosity: int) -> logging.Handler:
    """Send ``jpq`` log records to stderr at the level ``-v`` selects.

    Without ``-vv`` only the message is shown, prefixed like other
    command-line tools.  At DEBUG each record also carries a timestamp and
    the emitting module.  The handler is named so a second ``main()`` in the same process
    replaces it and leaves handlers installed by an embedding program alone.
    """
    level = _VERBOSITY_LEVELS[min(verbosity, len(_VERBOSITY_LEVELS) - 1)]
    if level == logging.DEBUG:
        formatter = logging.Formatter(_DEBUG_FORMAT, datefmt="%H:%M:%S")
    else:
        formatter = logging.Formatter(_QUIET_FORMAT)

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_CLI_HANDLER)
    handler.setFormatter(formatter)

    logger = logging.getLogger("jpq")
    for existing in list(logger.handlers):
        if existing.get_name() == _CLI_HANDLER:
            logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(level)
    return handler


def _document_path(raw: str) -> Path:
    """Map a FILE argument to a readable JSON document path."""
    path = Path(raw).expanduser()
    if not path.exists():
        raise _DocumentError(f"JSON document not found: {path}")
    if path.is_dir():
        raise _DocumentError(f"JSON document is a directory: {path}")
    return path


def _load_document(source: Optional[str], stdin: TextIO) -> Any:
    """Parse the JSON document from *source* (``None`` or ``"-"`` → stdin)."""
    from_stdin = source is None or source == "-"
    where = "<stdin>" if from_stdin else source
    try:
        if from_stdin:
            return json.load(stdin)
        with open(_document_path(source), encoding="utf-8") as fh:
            return json.load(fh)
    except json.JSONDecodeError as exc:
        raise _DocumentError(f"Invalid JSON document {where}: {exc}") from None
    except (OSError, UnicodeDecodeError) as exc:
        raise _DocumentError(f"Cannot read JSON document {where}: {exc}") from None


def _dump(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def _write_nodes(nodes: NodeList, args: argparse.Namespace, out: TextIO) -> None:
    if args.json:
        payload = [{"path": n.path, "value": n.value} for n in nodes]
        out.write(json.dumps(payload, indent=2, ensure_ascii=False) + "\n")
        return
    for node in nodes:
        if args.values:
            out.write(_dump(node.value) + "\n")
        elif args.paths:
            out.write(node.path + "\n")
        else:
            path = node.path if args.no_color else colored(node.path, "cyan")
            out.write(f"{path}\t{_dump(node.value)}\n")


# ===========================================================================
# Subcommands
# ===========================================================================

def cmd_query(args: argparse.Namespace) -> int:
    """Evaluate a query against a JSON document and print the matches."""
    # compile first so a bad query fails before stdin is read
    compiled = JSONPath(args.query)
    nodes = compiled.find(_load_document(args.file, sys.stdin))

    if args.first:
        nodes = NodeList(nodes[:1])
    _write_nodes(nodes, args, sys.stdout)
    _log.info("%d node(s) matched", len(nodes))

    if args.fail_empty and not nodes:
        return EXIT_NO_MATCH
    return EXIT_OK


def cmd_explain(args: argparse.Namespace) -> int:
    """Print the parsed query as an indented tree."""
    compiled = JSONPath(args.query)
    sys.stdout.write(compiled.canonical() + "\n")
    sys.stdout.write(compiled.explain() + "\n")
    return EXIT_OK


def cmd_analyze(args: argparse.Namespace) -> int:
    """Report the features a query uses and its complexity class."""
    stats = analyze(args.query)

    features = stats.features()
    complexity = stats.complexity()
    if args.json:
        payload = {
            "query": args.query,
            "complexity": complexity.value,
            "features": {
                "filters": features.has_filters,
                "functions": features.has_functions,
                "slices": features.has_slices,
                "descendant": features.has_descendant,
                "wildcards": features.has_wildcards,
                "function_names": sorted(features.function_names),
            },
            "stats": {
                "segments": stats.segments,
                "filters": stats.filters,
                "function_calls": stats.function_calls,
                "max_nesting": stats.max_nesting,
            },
        }
        sys.stdout.write(json.dumps(payload, indent=2) + "\n")
        return EXIT_OK

    flags = [name for name, present in (
        ("filters", features.has_filters),
        ("functions", features.has_functions),
        ("slices", features.has_slices),
        ("descendant", features.has_descendant),
        ("wildcards", features.has_wildcards),
    ) if present]
    lines = [
        f"complexity:     {complexity.value}",
        f"features:       {', '.join(flags) or '-'}",
        f"functions:      {', '.join(sorted(features.function_names)) or '-'}",
        f"segments:       {stats.segments}",
        f"filters:        {stats.filters}",
        f"function calls: {stats.function_calls}",
        f"max nesting:    {stats.max_nesting}",
    ]
    sys.stdout.write("\n".join(lines) + "\n")
    return EXIT_OK


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    """Construct the full CLI argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="jpq",
        description="jpq — JSONPath (RFC 9535) queries over JSON documents.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              jpq query '$..author' store.json
              jpq query '$.store.book[?@.price < 10]' store.json --values
              jpq explain '$.a[?@.b == 1]'
              jpq analyze '$..book[?length(@.title) > 10]'
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    # --- query -------------------------------------------------------------
    p_query = subparsers.add_parser(
        "query", help="Evaluate a query against a JSON document.")
    p_query.add_argument("query", help="JSONPath query, e.g. '$.store.book[*]'.")
    p_query.add_argument(
        "file", nargs="?", default=None,
        help="JSON document (default: stdin).")
    mode = p_query.add_mutually_exclusive_group()
    mode.add_argument("--values", action="store_true",
                      help="Print one JSON value per line.")
    mode.add_argument("--paths", action="store_true",
                      help="Print one normalized path per line.")
    mode.add_argument("--json", action="store_true",
                      help="Print a JSON array of {path, value} objects.")
    p_query.add_argument("--first", action="store_true",
                         help="Only print the first match.")
    p_query.add_argument("--no-color", action="store_true",
                         help="Do not colour paths.")
    p_query.add_argument(
        "--fail-empty", action="store_true",
        help=f"Exit with status {EXIT_NO_MATCH} when nothing matches.")
    p_query.set_defaults(func=cmd_query)

    # --- explain -----------------------------------------------------------
    p_explain = subparsers.add_parser(
        "explain", help="Show the canonical form and parse tree of a query.")
    p_explain.add_argument("query", help="JSONPath query.")
    p_explain.set_defaults(func=cmd_explain)

    # --- analyze -----------------------------------------------------------
    p_analyze = subparsers.add_parser(
        "analyze", help="Report query features and complexity.")
    p_analyze.add_argument("query", help="JSONPath query.")
    p_analyze.add_argument("--json", action="store_true",
                           help="Emit the report as JSON.")
    p_analyze.set_defaults(func=cmd_analyze)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the jpq CLI and return its exit code.

    Query problems (``JSONPathError``) exit with ``EXIT_ERROR`` and a document
    that cannot be loaded exits with ``EXIT_INFRA``.  Both are
    reported through the ``jpq`` logger rather than as tracebacks.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    command = getattr(args, "func", None)
    if command is None:
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return command(args)
    except JSONPathError as exc:
        _log.error("%s", exc)
        return EXIT_ERROR
    except _DocumentError as exc:
        _log.error("%s", exc)
        return EXIT_INFRA
    except KeyboardInterrupt:
        _log.info("Interrupted.")
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    raise SystemExit(main())
