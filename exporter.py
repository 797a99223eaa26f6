#!/usr/bin/env python3
"""
Exporter - write the entries a source is missing as a .bib file.

For a target source, every publication that some other source holds but the
target does not is written out, using the first other source's version of
the entry. The result can be reviewed and merged into the target.

Usage:
    python exporter.py scholar.bib a.bib scholar.bib c.bib
    python exporter.py fub.bib --config bibdiff.yaml --output fub.missing.bib

Output files:
    - <target>.missing_entries.bib (default, in the current directory)
    - logs/<config or first source>.export.log
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

import bibtexparser
from bibtexparser.bibdatabase import BibDatabase
from bibtexparser.bwriter import BibTexWriter

from comparer import (
    ComparisonResult,
    add_source_arguments,
    compare,
    open_run_log,
    resolve_settings,
)
from matching.normalize import NormalizedRecord
from matching.reconcile import ReconciliationRow
from parsing.latex import escape_latex_literals
from settings import ConfigError

FOUND_IN_FIELD = "foundin"


def record_to_entry(
    record: NormalizedRecord, found_in: Optional[Sequence[str]] = None
) -> Dict[str, str]:
    """Turn a record back into a bibtexparser entry dict.

    Values are stored decoded, so LaTeX special characters are escaped again
    before they are written.
    """
    entry: Dict[str, str] = {
        "ENTRYTYPE": record.type or "misc",
        "ID": record.identifier,
    }
    for name, value in record.fields.items():
        entry[name] = escape_latex_literals(value)
    if found_in:
        entry[FOUND_IN_FIELD] = escape_latex_literals(", ".join(found_in))
    return entry


def missing_rows_for(
    result: ComparisonResult, target: str
) -> List[ReconciliationRow]:
    """Rows the target source lacks, in report order."""
    try:
        idx = result.source_names.index(target)
    except ValueError as e:
        raise KeyError(f"Unknown source '{target}'") from e
    return [row for row in result.rows if row.per_source[idx] is None]


def build_missing_database(
    result: ComparisonResult, target: str, annotate: bool = True
) -> BibDatabase:
    """Collect the target's missing entries into a bibtexparser database."""
    names = result.source_names
    db = BibDatabase()
    for row in missing_rows_for(result, target):
        record = row.representative
        if record is None:
            continue
        found_in = None
        if annotate:
            found_in = [
                name for name, rec in zip(names, row.per_source) if rec is not None
            ]
        db.entries.append(record_to_entry(record, found_in))
    return db


def dumps_database(db: BibDatabase) -> str:
    writer = BibTexWriter()
    writer.indent = "  "
    writer.order_entries_by = None
    return bibtexparser.dumps(db, writer)


def export_missing(
    result: ComparisonResult,
    target: str,
    output: Path,
    annotate: bool = True,
    log: Callable[[str], None] = print,
) -> int:
    """Write the target's missing entries to ``output``; return their count."""
    db = build_missing_database(result, target, annotate=annotate)
    output.parent.mkdir(parents=True, exist_ok=True)

    header = [
        f"% Entries missing from {target}: {len(db.entries)}",
        f"% Compared sources: {', '.join(result.source_names)}",
        "",
    ]
    output.write_text("\n".join(header) + "\n" + dumps_database(db), encoding="utf-8")

    if db.entries:
        log(f"🧾 {len(db.entries)} entries missing from {target} written to {output}")
    else:
        log(f"✅ {target} already holds every publication; wrote empty {output}")
    return len(db.entries)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Export the entries one source is missing compared to the others."
    )
    parser.add_argument("target", type=str, help="Name of the source to complete.")
    add_source_arguments(parser)
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        default="",
        help="Output .bib file (default: <target>.missing_entries.bib).",
    )
    parser.add_argument(
        "--no-annotate",
        action="store_true",
        help=f"Do not add a '{FOUND_IN_FIELD}' field listing the holding sources.",
    )
    return parser


def run(args: argparse.Namespace) -> int:
    try:
        settings = resolve_settings(args)
    except (ConfigError, OSError) as e:
        print(f"❌ Error: {e}")
        return 1

    if args.target not in settings.source_names:
        print(
            f"❌ Error: '{args.target}' is not one of the sources: "
            f"{', '.join(settings.source_names)}"
        )
        return 1

    target_stem = Path(args.target).name
    output = Path(args.output) if args.output else Path(f"{target_stem}.missing_entries.bib")

    with open_run_log("export", settings, args.log_dir) as logger:
        result = compare(settings, log=logger.log)
        export_missing(
            result,
            args.target,
            output,
            annotate=not args.no_annotate,
            log=logger.log,
        )
    return 0


if __name__ == "__main__":
    sys.exit(run(build_parser().parse_args()))
