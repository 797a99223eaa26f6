#!/usr/bin/env python3
"""
BibDiff — BibTeX collection comparison CLI.

Unified command-line interface for the BibDiff tools. Every tool is exposed
as a subcommand so the whole workflow runs from one entry point.

Subcommands:
    compare    Show which sources hold each publication (and where they differ)
    indexes    List the years and author surnames across all sources
    export     Write the entries one source is missing as a .bib file

Usage:
    python bibdiff.py compare a.bib b.bib c.bib --only-diff
    python bibdiff.py compare --config bibdiff.yaml --author doe --year 2020
    python bibdiff.py indexes --config bibdiff.yaml
    python bibdiff.py export b.bib a.bib b.bib c.bib -o b.missing.bib
"""

from __future__ import annotations

import sys
from typing import List, Optional

TOOLS = {
    "compare": "Show which sources hold each publication",
    "indexes": "List years and author surnames across all sources",
    "export": "Write the entries one source is missing as a .bib file",
}


def _print_usage() -> None:
    """Print top-level usage information."""
    print("usage: bibdiff <tool> [args ...]\n")
    print("BibDiff — compare BibTeX collections across sources.\n")
    print("Available tools:")
    for name, desc in TOOLS.items():
        print(f"  {name:<12} {desc}")
    print("\nRun 'bibdiff <tool> -h' for tool-specific help.")


def main(argv: Optional[List[str]] = None) -> int:
    """Parse the first positional arg as a tool name and delegate."""
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv or argv[0] in ("-h", "--help"):
        _print_usage()
        return 0

    tool, tool_args = argv[0], argv[1:]

    if tool not in TOOLS:
        print(f"bibdiff: unknown tool '{tool}'")
        _print_usage()
        return 1

    if tool == "compare":
        from comparer import build_parser, run

        parser = build_parser()
        parser.prog = "bibdiff compare"
        return run(parser.parse_args(tool_args))

    if tool == "indexes":
        from comparer import build_index_parser, run_indexes

        parser = build_index_parser()
        parser.prog = "bibdiff indexes"
        return run_indexes(parser.parse_args(tool_args))

    from exporter import build_parser as build_export_parser
    from exporter import run as run_export

    parser = build_export_parser()
    parser.prog = "bibdiff export"
    return run_export(parser.parse_args(tool_args))


def _cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    _cli()
