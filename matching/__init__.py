"""
Normalization, reconciliation and filtering of parsed BibTeX records.

Re-exports the public functions for convenient access:
    from matching import normalize_records, reconcile, filter_rows
"""

from __future__ import annotations

from matching.filters import (
    RowFilter,
    collect_surnames,
    collect_years,
    filter_rows,
    record_matches,
    row_matches_filters,
)
from matching.normalize import (
    DEFAULT_IN_CLAUSE_POLICY,
    VENUE_FIELDS,
    InClausePolicy,
    NormalizedRecord,
    clean_title_for_display,
    extract_surname,
    extract_venue,
    extract_year,
    matching_key,
    normalize_record,
    normalize_records,
    split_authors,
    strip_in_clause,
)
from matching.reconcile import (
    ReconciliationRow,
    SourceCollection,
    build_title_map,
    collation_key,
    find_shadowed,
    reconcile,
    sort_rows,
)

__all__ = [
    "DEFAULT_IN_CLAUSE_POLICY",
    "VENUE_FIELDS",
    "InClausePolicy",
    "NormalizedRecord",
    "ReconciliationRow",
    "RowFilter",
    "SourceCollection",
    "build_title_map",
    "clean_title_for_display",
    "collation_key",
    "collect_surnames",
    "collect_years",
    "extract_surname",
    "extract_venue",
    "extract_year",
    "filter_rows",
    "find_shadowed",
    "matching_key",
    "normalize_record",
    "normalize_records",
    "reconcile",
    "record_matches",
    "row_matches_filters",
    "sort_rows",
    "split_authors",
    "strip_in_clause",
]
