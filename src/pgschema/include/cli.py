"""Command-line entry point for resolving a schema file.

Usage:
    python -m pgschema.include main.sql [--root DIR] [--max-depth N] [--output PATH]
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pgschema.include.errors import IncludeError
from pgschema.include.resolver import IncludeResolver
from pgschema.include.settings import DEFAULT_MAX_DEPTH, ResolverSettings

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pgschema-include",
        description="Expand \\i include directives in a SQL schema file into a single document.",
    )
    parser.add_argument("file", help="Root SQL file")
    parser.add_argument(
        "--root",
        help="Sandbox root that include paths are relative to (default: directory of FILE)",
    )
    parser.add_argument("--max-depth", type=int, default=DEFAULT_MAX_DEPTH, help="Maximum include depth")
    parser.add_argument("--encoding", default="utf-8-sig", help="Encoding of the SQL files")
    parser.add_argument("--output", "-o", help="Write the document to this file instead of stdout")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log progress to stderr")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the resolver and return a process exit code."""
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        settings = ResolverSettings(max_depth=args.max_depth, encoding=args.encoding)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    sandbox_root = args.root or Path(args.file).resolve().parent
    try:
        document = IncludeResolver(sandbox_root, settings=settings).resolve(args.file)
    except IncludeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.output:
        # Input BOMs are dropped on read; none is written back
        output_encoding = "utf-8" if settings.encoding == "utf-8-sig" else settings.encoding
        Path(args.output).write_text(document.text, encoding=output_encoding)
        log.info(f"Wrote {args.output}")
    else:
        sys.stdout.write(document.text)
    return 0
