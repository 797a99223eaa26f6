#!/usr/bin/env python3
"""
Comparer - report which sources hold which publications.

Parses every source, matches entries across sources by normalized title and
prints one block per publication, showing each source's version side by
side. Rows missing from at least one source come first.

Usage:
    python comparer.py a.bib b.bib c.bib
    python comparer.py --config bibdiff.yaml --only-diff
    python comparer.py a.bib b.bib --author doe --year 2020

Output:
    - stdout report
    - logs/<config or first source>.compare.log
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from logging_utils import SEPARATOR_WIDTH, Logger
from matching.filters import RowFilter, collect_surnames, collect_years, filter_rows
from matching.normalize import (
    DEFAULT_IN_CLAUSE_POLICY,
    InClausePolicy,
    NormalizedRecord,
)
from matching.reconcile import (
    ReconciliationRow,
    SourceCollection,
    find_shadowed,
    reconcile,
)
from settings import (
    DEFAULT_CONFIG_NAME,
    DEFAULT_SOURCE_NAMES,
    ConfigError,
    Settings,
    load_settings,
    settings_from_paths,
)
from sources import collection_from_text, load_sources

MISSING_CELL = "—"
UNTITLED = "(no title)"


@dataclass
class ComparisonResult:
    """Everything a presentation layer needs from one comparison pass."""

    sources: List[SourceCollection]
    rows: List[ReconciliationRow]
    visible_rows: List[ReconciliationRow]
    years: List[str]
    surnames: List[str]
    shadowed: List[Tuple[str, NormalizedRecord, NormalizedRecord]] = field(
        default_factory=list
    )

    @property
    def source_names(self) -> List[str]:
        return [source.name for source in self.sources]

    @property
    def complete_count(self) -> int:
        return sum(1 for row in self.rows if row.is_complete)

    @property
    def entry_count(self) -> int:
        return sum(len(source.records) for source in self.sources)


def compare_collections(
    sources: Sequence[SourceCollection],
    row_filter: RowFilter = RowFilter(),
) -> ComparisonResult:
    """Reconcile already-loaded sources and apply the filter."""
    sources = list(sources)
    rows = reconcile(sources)
    shadowed = [
        (source.name, kept, hidden)
        for source in sources
        for kept, hidden in find_shadowed(source.records)
    ]
    return ComparisonResult(
        sources=sources,
        rows=rows,
        visible_rows=filter_rows(rows, row_filter),
        years=collect_years(sources),
        surnames=collect_surnames(sources),
        shadowed=shadowed,
    )


def compare_texts(
    named_texts: Sequence[Tuple[str, str]],
    row_filter: RowFilter = RowFilter(),
    policy: InClausePolicy = DEFAULT_IN_CLAUSE_POLICY,
) -> ComparisonResult:
    """Compare decoded documents given as ``(source name, text)`` pairs."""
    sources = [
        collection_from_text(name, text, policy) for name, text in named_texts
    ]
    return compare_collections(sources, row_filter)


def compare(
    settings: Settings,
    row_filter: RowFilter = RowFilter(),
    log: Optional[Callable[[str], None]] = None,
) -> ComparisonResult:
    """Load every configured source, then compare them."""
    log = log or print
    sources = load_sources(settings, log=log)
    return compare_collections(sources, row_filter)


def format_record(record: Optional[NormalizedRecord]) -> str:
    """One-line summary of a record for the report."""
    if record is None:
        return MISSING_CELL
    parts = [record.title or UNTITLED]
    for value in (record.author, record.year_display, record.venue):
        if value:
            parts.append(value)
    return " | ".join(parts)


def render_rows(
    result: ComparisonResult,
    log: Callable[[str], None] = print,
) -> None:
    """Print one block per visible row, one line per source."""
    names = result.source_names
    width = max([len(name) for name in names] + [6])
    total = len(names)

    log(f"{'Sources':<{width}} | " + ", ".join(names))
    log("-" * SEPARATOR_WIDTH)

    for row in result.visible_rows:
        status = "✅" if row.is_complete else "⚠️ "
        log(f"{status} [{row.present_count}/{total}] {row.display_title}")
        for name, record in zip(names, row.per_source):
            log(f"    {name:<{width}}  {format_record(record)}")

    log("-" * SEPARATOR_WIDTH)


def render_summary(
    result: ComparisonResult,
    log: Callable[[str], None] = print,
) -> None:
    """Print totals, per-source gaps and unreachable sources."""
    rows = result.rows
    partial = len(rows) - result.complete_count

    log(f"📊 Entries parsed: {result.entry_count}")
    log(f"   Publications: {len(rows)}")
    log(f"   In all sources: {result.complete_count}")
    log(f"   Missing somewhere: {partial}")
    log(f"   Shown: {len(result.visible_rows)}")

    for idx, source in enumerate(result.sources):
        missing = sum(1 for row in rows if row.per_source[idx] is None)
        state = f"❌ unavailable ({source.error})" if not source.available else ""
        log(f"   {source.name}: {len(source.records)} entries, missing {missing} {state}".rstrip())

    if result.shadowed:
        log(
            f"\n⚠️  {len(result.shadowed)} entries share a title with an earlier "
            "entry of the same source and are hidden:"
        )
        for source_name, kept, hidden in result.shadowed:
            log(
                f"  - {source_name}: '{hidden.identifier}' hidden by "
                f"'{kept.identifier}' ({kept.title})"
            )
    elif rows:
        log("\n✅ No title collisions inside any source.")


def resolve_settings(args: argparse.Namespace) -> Settings:
    """Settings from --config, positional sources, or the defaults."""
    names = [n.strip() for n in (args.names or "").split(",") if n.strip()]
    if args.sources:
        return settings_from_paths(
            args.sources,
            names=names or None,
            in_clause_min_length=args.in_min_length,
            timeout=args.timeout,
        )

    config_path = Path(args.config) if args.config else Path(DEFAULT_CONFIG_NAME)
    if config_path.exists():
        return load_settings(config_path)
    if args.config:
        raise ConfigError(f"Config file not found: {config_path}")

    return settings_from_paths(
        DEFAULT_SOURCE_NAMES,
        in_clause_min_length=args.in_min_length,
        timeout=args.timeout,
    )


def add_source_arguments(parser: argparse.ArgumentParser) -> None:
    """Arguments shared by every tool that loads sources."""
    parser.add_argument(
        "sources",
        nargs="*",
        help="Source .bib files or URLs, in column order (overrides --config).",
    )
    parser.add_argument(
        "--config",
        type=str,
        default="",
        help=f"YAML config listing the sources (default: ./{DEFAULT_CONFIG_NAME}).",
    )
    parser.add_argument(
        "--names",
        type=str,
        default="",
        help="Comma-separated display names for the positional sources.",
    )
    parser.add_argument(
        "--in-min-length",
        type=int,
        default=DEFAULT_IN_CLAUSE_POLICY.min_length,
        help="Shortest title kept when cutting an inlined 'In: ...' clause (0 disables).",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=10,
        help="Timeout in seconds for URL sources (default: 10).",
    )
    parser.add_argument(
        "--log-dir",
        type=str,
        default="",
        help="Directory to write logs. Default: logs/ in the repo directory.",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compare BibTeX collections and show which sources hold each publication."
    )
    add_source_arguments(parser)
    parser.add_argument(
        "--author",
        type=str,
        default="",
        help="Only rows where some version's author list contains this text.",
    )
    parser.add_argument(
        "--year",
        type=str,
        default="",
        help="Only rows with this year (exact for 4-digit years, substring otherwise).",
    )
    parser.add_argument(
        "--only-diff",
        action="store_true",
        help="Hide publications present in every source.",
    )
    return parser


def log_input_name(settings: Settings) -> str:
    if settings.config_path:
        return str(settings.config_path)
    return settings.sources[0].location if settings.sources else "bibdiff"


def open_run_log(tool_name: str, settings: Settings, log_dir: str = "") -> Logger:
    """Logger for one tool run, headed with the compared sources."""
    return Logger(
        tool_name,
        input_file=log_input_name(settings),
        log_dir=Path(log_dir) if log_dir else None,
        sources=settings.source_names,
    )


def run(args: argparse.Namespace) -> int:
    """Run a comparison from parsed CLI arguments."""
    try:
        settings = resolve_settings(args)
    except (ConfigError, OSError) as e:
        print(f"❌ Error: {e}")
        return 1

    row_filter = RowFilter(
        author=args.author, year=args.year, only_differences=args.only_diff
    )
    with open_run_log("compare", settings, args.log_dir) as logger:
        result = compare(settings, row_filter, log=logger.log)
        logger.log("")
        render_rows(result, log=logger.log)
        render_summary(result, log=logger.log)
    return 0


def build_index_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="List the years and author surnames found across all sources."
    )
    add_source_arguments(parser)
    return parser


def run_indexes(args: argparse.Namespace) -> int:
    """Print the filter indexes: years (newest first) and surnames."""
    try:
        settings = resolve_settings(args)
    except (ConfigError, OSError) as e:
        print(f"❌ Error: {e}")
        return 1

    with open_run_log("indexes", settings, args.log_dir) as logger:
        result = compare(settings, log=logger.log)
        logger.log_section(f"Years ({len(result.years)})")
        logger.log(", ".join(result.years) or "(none)")
        logger.log_section(f"Authors ({len(result.surnames)})")
        for surname in result.surnames:
            logger.log(f"  {surname}")
    return 0


if __name__ == "__main__":
    sys.exit(run(build_parser().parse_args()))
