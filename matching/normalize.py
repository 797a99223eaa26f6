"""
Normalization of parsed records for display and cross-source matching.

Every record gets a cleaned display title, a matching key derived only from
that title, a display year and a normalized 4-digit year, and a venue. The
matching key is what lets two sources agree that they hold the same
publication:

    "Caf\\'{e} Study"  ->  title "Café Study",  key "cafestudy"
    "CAFE STUDY"       ->  title "CAFE STUDY",  key "cafestudy"

Missing fields never raise; they become empty strings, and an empty matching
key keeps the record out of reconciliation.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from typing import Iterable, List, Mapping

from parsing.latex import decode_latex
from parsing.records import FieldMap, RawRecord

VENUE_FIELDS = ("journal", "booktitle", "publisher", "school", "institution")

_YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")
_BRACES_RE = re.compile(r"[{}]")
_WHITESPACE_RE = re.compile(r"\s+")
_LEADING_IN_RE = re.compile(r"^\s*In:\s+", re.IGNORECASE)
_INNER_IN_RE = re.compile(r"\s+In:\s+", re.IGNORECASE)
_TRAILING_PUNCT_RE = re.compile(r"[.:\s]+$")
_AUTHOR_SEP_RE = re.compile(r"\s+and\s+", re.IGNORECASE)
_NON_KEY_RE = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class InClausePolicy:
    """How an inlined ``In: <container>`` clause is cut off a title.

    ``min_length`` is the shortest left-hand part (after trimming trailing
    punctuation) that is accepted as the real title.
    """

    min_length: int = 8
    enabled: bool = True


DEFAULT_IN_CLAUSE_POLICY = InClausePolicy()


@dataclass(frozen=True)
class NormalizedRecord:
    """A parsed record plus the values derived from it for comparison."""

    raw: RawRecord
    title: str
    matching_key: str
    author: str
    year_display: str
    year_normalized: str
    venue: str

    @property
    def identifier(self) -> str:
        return self.raw.identifier

    @property
    def type(self) -> str:
        return self.raw.type

    @property
    def fields(self) -> FieldMap:
        return self.raw.fields


def strip_in_clause(
    title: str, policy: InClausePolicy = DEFAULT_IN_CLAUSE_POLICY
) -> str:
    """Remove an ``In: ...`` container clause some sources inline into titles."""
    t = title or ""
    if not policy.enabled:
        return t
    if _LEADING_IN_RE.match(t):
        t = _LEADING_IN_RE.sub("", t, count=1).strip()

    parts = _INNER_IN_RE.split(t)
    if len(parts) > 1:
        left = _TRAILING_PUNCT_RE.sub("", parts[0]).strip()
        if len(left) >= policy.min_length:
            return left
    return t


def clean_title_for_display(
    title: str, policy: InClausePolicy = DEFAULT_IN_CLAUSE_POLICY
) -> str:
    """Decode, de-brace and trim a raw title field."""
    t = decode_latex(title or "")
    t = _BRACES_RE.sub("", t)
    t = _WHITESPACE_RE.sub(" ", t).strip()
    t = strip_in_clause(t, policy)
    return _WHITESPACE_RE.sub(" ", t).strip()


def matching_key(title: str) -> str:
    """Fold a display title into its identity key.

    Accents are dropped, ß becomes ss, case is folded and everything but
    ASCII letters and digits is removed.
    """
    if not title:
        return ""
    t = unicodedata.normalize("NFD", title)
    t = "".join(ch for ch in t if not "\u0300" <= ch <= "\u036f")
    t = t.replace("ß", "ss").lower().replace("ß", "ss")
    return _NON_KEY_RE.sub("", t)


def extract_year(value: str) -> str:
    """Return the first 19xx/20xx year in ``value``, or ``""``."""
    if not value:
        return ""
    match = _YEAR_RE.search(str(value))
    return match.group() if match else ""


def extract_venue(fields: Mapping[str, str]) -> str:
    """First populated venue-like field (journal, booktitle, publisher, ...)."""
    for name in VENUE_FIELDS:
        value = fields.get(name, "")
        if value:
            return value
    return ""


def split_authors(author_field: str) -> List[str]:
    """Split a BibTeX author list on ``and``."""
    if not author_field:
        return []
    names = [name.strip() for name in _AUTHOR_SEP_RE.split(str(author_field))]
    return [name for name in names if name]


def extract_surname(name: str) -> str:
    """Surname of one author: ``Doe, Jane`` and ``Jane Doe`` both give ``Doe``."""
    if not name:
        return ""
    cleaned = _BRACES_RE.sub("", name).strip()
    if not cleaned:
        return ""
    if "," in cleaned:
        return cleaned.split(",", 1)[0].strip()
    return cleaned.split()[-1]


def normalize_record(
    raw: RawRecord, policy: InClausePolicy = DEFAULT_IN_CLAUSE_POLICY
) -> NormalizedRecord:
    fields = raw.fields
    raw_year = fields.year
    year_from_date = "" if raw_year else extract_year(fields.date)
    title = clean_title_for_display(fields.title, policy)

    return NormalizedRecord(
        raw=raw,
        title=title,
        matching_key=matching_key(title),
        author=fields.author,
        year_display=raw_year or year_from_date,
        year_normalized=extract_year(raw_year) or year_from_date,
        venue=extract_venue(fields),
    )


def normalize_records(
    raws: Iterable[RawRecord], policy: InClausePolicy = DEFAULT_IN_CLAUSE_POLICY
) -> List[NormalizedRecord]:
    return [normalize_record(raw, policy) for raw in raws]
