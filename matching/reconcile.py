"""
Cross-source reconciliation of normalized records.

Given an ordered list of sources, groups records by matching key and
reports, per key, which sources hold the publication:

    sources:  [scholar.bib, fub.bib, computingeducation.bib]
    row:      key="foobar"  per_source=[rec, None, rec]  present_count=2

Within one source the first record with a given key wins; later records with
the same key are shadowed. ``find_shadowed`` lists them so callers can
report the collision.

Usage:
    from matching.reconcile import SourceCollection, reconcile

    rows = reconcile([SourceCollection("a.bib", recs_a),
                      SourceCollection("b.bib", recs_b)])
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from matching.normalize import NormalizedRecord

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass
class SourceCollection:
    """The records of one named source, in document order."""

    name: str
    records: List[NormalizedRecord] = field(default_factory=list)
    location: str = ""
    error: Optional[str] = None

    @property
    def available(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ReconciliationRow:
    """One publication across all sources."""

    key: str
    per_source: Tuple[Optional[NormalizedRecord], ...]

    @property
    def present_count(self) -> int:
        return sum(1 for record in self.per_source if record is not None)

    @property
    def is_complete(self) -> bool:
        return self.present_count == len(self.per_source)

    @property
    def representative(self) -> Optional[NormalizedRecord]:
        """First record present, in source order."""
        return next((r for r in self.per_source if r is not None), None)

    @property
    def display_title(self) -> str:
        record = self.representative
        return (record.title if record else "") or self.key

    def missing_from(self, sources: Sequence[SourceCollection]) -> List[str]:
        """Names of the sources whose slot is empty."""
        return [
            source.name
            for source, record in zip(sources, self.per_source)
            if record is None
        ]


def collation_key(text: str) -> Tuple[str, str]:
    """Case-insensitive, accent-folding sort key.

    Orders like a German-locale comparison for Latin text: ``Ärger`` sorts
    with ``Arger`` and ``ß`` with ``ss``. The second element keeps the order
    stable between strings that only differ by accents.
    """
    folded = _WHITESPACE_RE.sub(" ", (text or "").strip()).casefold()
    base = unicodedata.normalize("NFKD", folded)
    base = "".join(ch for ch in base if not unicodedata.combining(ch))
    return base, folded


def build_title_map(
    records: Sequence[NormalizedRecord],
) -> Dict[str, NormalizedRecord]:
    """Map matching key -> first record carrying it; empty keys are skipped."""
    title_map: Dict[str, NormalizedRecord] = {}
    for record in records:
        key = record.matching_key
        if not key:
            continue
        if key not in title_map:
            title_map[key] = record
    return title_map


def find_shadowed(
    records: Sequence[NormalizedRecord],
) -> List[Tuple[NormalizedRecord, NormalizedRecord]]:
    """Records hidden by first-seen-wins, as ``(kept, shadowed)`` pairs."""
    first_seen: Dict[str, NormalizedRecord] = {}
    shadowed: List[Tuple[NormalizedRecord, NormalizedRecord]] = []
    for record in records:
        key = record.matching_key
        if not key:
            continue
        if key in first_seen:
            shadowed.append((first_seen[key], record))
        else:
            first_seen[key] = record
    return shadowed


def row_sort_key(row: ReconciliationRow) -> Tuple:
    """Incomplete rows first, then more sources first, then by title."""
    return (
        row.is_complete,
        -row.present_count,
        collation_key(row.display_title),
        row.key,
    )


def sort_rows(rows: Sequence[ReconciliationRow]) -> List[ReconciliationRow]:
    return sorted(rows, key=row_sort_key)


def reconcile(sources: Sequence[SourceCollection]) -> List[ReconciliationRow]:
    """Build one row per distinct matching key, in presentation order."""
    title_maps = [build_title_map(source.records) for source in sources]

    all_keys: Dict[str, None] = {}
    for title_map in title_maps:
        for key in title_map:
            all_keys.setdefault(key, None)

    rows = [
        ReconciliationRow(
            key=key,
            per_source=tuple(title_map.get(key) for title_map in title_maps),
        )
        for key in all_keys
    ]
    return sort_rows(rows)
