"""
Row filtering and the index sets behind the filter controls.

Usage:
    from matching.filters import RowFilter, filter_rows

    visible = filter_rows(rows, RowFilter(author="doe", year="2020"))
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from matching.normalize import (
    NormalizedRecord,
    extract_surname,
    extract_year,
    split_authors,
)
from matching.reconcile import ReconciliationRow, SourceCollection, collation_key


@dataclass(frozen=True)
class RowFilter:
    """User constraints on the reconciled rows. Empty strings mean "any"."""

    author: str = ""
    year: str = ""
    only_differences: bool = False

    @property
    def author_needle(self) -> str:
        return self.author.strip().lower()

    @property
    def year_needle(self) -> str:
        return (self.year or "").strip()


def record_matches(
    record: Optional[NormalizedRecord], author_needle: str, year_needle: str
) -> bool:
    """Whether one record satisfies every active constraint."""
    if record is None:
        return False
    if author_needle:
        if author_needle not in (record.author or "").lower():
            return False
    if year_needle:
        year_norm = extract_year(year_needle)
        if year_norm:
            if (record.year_normalized or "").strip() != year_norm:
                return False
        else:
            year_display = (record.year_display or "").strip().lower()
            if year_needle.lower() not in year_display:
                return False
    return True


def row_matches_filters(
    row: ReconciliationRow, author_needle: str, year_needle: str
) -> bool:
    """A row passes when any of its records passes on its own."""
    if not author_needle and not year_needle:
        return True
    return any(
        record_matches(record, author_needle, year_needle)
        for record in row.per_source
    )


def filter_rows(
    rows: Sequence[ReconciliationRow], row_filter: RowFilter = RowFilter()
) -> List[ReconciliationRow]:
    """Select the rows to show, keeping their order."""
    author_needle = row_filter.author_needle
    year_needle = row_filter.year_needle
    selected: List[ReconciliationRow] = []
    for row in rows:
        if row_filter.only_differences and row.is_complete:
            continue
        if not row_matches_filters(row, author_needle, year_needle):
            continue
        selected.append(row)
    return selected


def _all_records(sources: Iterable[SourceCollection]) -> Iterable[NormalizedRecord]:
    for source in sources:
        yield from source.records


def collect_years(sources: Iterable[SourceCollection]) -> List[str]:
    """Distinct normalized years across all sources, newest first."""
    years = set()
    for record in _all_records(sources):
        year = record.year_normalized or extract_year(record.year_display)
        if year:
            years.add(year)
    return sorted(years, key=int, reverse=True)


def collect_surnames(sources: Iterable[SourceCollection]) -> List[str]:
    """Distinct author surnames across all sources, in collation order."""
    surnames = set()
    for record in _all_records(sources):
        for name in split_authors(record.author):
            surname = extract_surname(name)
            if surname:
                surnames.add(surname)
    return sorted(surnames, key=lambda s: (collation_key(s), s))
