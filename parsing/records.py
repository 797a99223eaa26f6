"""
Permissive BibTeX record parser.

Scans a whole document for ``@type{...}`` / ``@type(...)`` blocks and turns
each bibliographic entry into a ``RawRecord``. The scanner counts bracket
depth instead of using a grammar, so nested brace groups in field values
are fine. Anything malformed is skipped and scanning continues; one broken
entry never costs the rest of the file.

Usage:
    from parsing.records import parse_bibtex

    records = parse_bibtex(text)
    for record in records:
        print(record.identifier, record.fields.title)
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from parsing.latex import decode_latex
from parsing.tokenizer import split_assignment, split_top_level

# Blocks that keep the document bracket-balanced but are not entries
NON_ENTRY_TYPES = {"comment", "preamble", "string"}

BRACKET_PAIRS = {"{": "}", "(": ")"}

_TYPE_RE = re.compile(r"[A-Za-z]+")
_WHITESPACE_RE = re.compile(r"\s+")
_CONCAT_RE = re.compile(r"\s+#\s+")
_OPEN_BRACE_RE = re.compile(r"\{\s*")
_CLOSE_BRACE_RE = re.compile(r"\s*\}")


class FieldMap(Mapping[str, str]):
    """Read-only mapping of lowercased field name -> decoded value.

    The fields the comparison relies on have typed accessors; every other
    field is still reachable by name through the mapping interface.
    """

    WELL_KNOWN = (
        "title",
        "author",
        "year",
        "date",
        "journal",
        "booktitle",
        "publisher",
        "school",
        "institution",
    )

    def __init__(self, values: Optional[Mapping[str, str]] = None):
        self._values: Dict[str, str] = dict(values or {})

    def __getitem__(self, name: str) -> str:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"FieldMap({self._values!r})"

    def text(self, name: str) -> str:
        """Return a field value, or ``""`` when the field is absent."""
        return self._values.get(name, "")

    @property
    def title(self) -> str:
        return self.text("title")

    @property
    def author(self) -> str:
        return self.text("author")

    @property
    def year(self) -> str:
        return self.text("year")

    @property
    def date(self) -> str:
        return self.text("date")

    @property
    def journal(self) -> str:
        return self.text("journal")

    @property
    def booktitle(self) -> str:
        return self.text("booktitle")

    @property
    def publisher(self) -> str:
        return self.text("publisher")

    @property
    def school(self) -> str:
        return self.text("school")

    @property
    def institution(self) -> str:
        return self.text("institution")

    def other_fields(self) -> Dict[str, str]:
        """Fields outside the well-known set."""
        return {k: v for k, v in self._values.items() if k not in self.WELL_KNOWN}


@dataclass(frozen=True)
class RawRecord:
    """One parsed bibliographic entry, exactly as the source wrote it."""

    identifier: str
    type: str
    fields: FieldMap = field(default_factory=FieldMap)


@dataclass
class ParseStats:
    """Counters for the anomalies skipped while scanning one document."""

    blocks: int = 0
    records: int = 0
    bad_markers: int = 0
    unterminated: int = 0
    non_entries: int = 0
    missing_key: int = 0

    @property
    def skipped(self) -> int:
        return self.bad_markers + self.unterminated + self.missing_key


def clean_value(raw: str) -> str:
    """Clean one raw field value into display text.

    Collapses whitespace, strips one layer of enclosing braces and one of
    enclosing quotes, drops ``#`` concatenation, decodes LaTeX, then removes
    the remaining case-protection braces.
    """
    v = _WHITESPACE_RE.sub(" ", raw or "").strip()
    if len(v) >= 2 and v.startswith("{") and v.endswith("}"):
        v = v[1:-1].strip()
    if len(v) >= 2 and v.startswith('"') and v.endswith('"'):
        v = v[1:-1].strip()
    v = _CONCAT_RE.sub("", v)
    # Decode before dropping braces so \v{s} keeps its argument
    v = decode_latex(v)
    v = _OPEN_BRACE_RE.sub("", v)
    v = _CLOSE_BRACE_RE.sub("", v)
    return _WHITESPACE_RE.sub(" ", v).strip()


def parse_entry_body(body: str, entry_type: str = "") -> Optional[RawRecord]:
    """Build a record from the text between an entry's brackets.

    The citation key runs up to the first comma. Returns None when the body
    has no comma at all.
    """
    key, sep, rest = body.partition(",")
    if not sep:
        return None

    values: Dict[str, str] = {}
    for segment in split_top_level(rest):
        assignment = split_assignment(segment)
        if assignment is None:
            continue
        name, raw_value = assignment
        value = clean_value(raw_value)
        if name and value:
            values[name] = value

    return RawRecord(
        identifier=key.strip(),
        type=entry_type.lower(),
        fields=FieldMap(values),
    )


def _find_body(text: str, start: int, open_ch: str) -> Tuple[Optional[str], int]:
    """Depth-count from just after ``open_ch``.

    Returns ``(body, index after the closing bracket)``, or ``(None, start)``
    when the document ends before the depth returns to zero.
    """
    close_ch = BRACKET_PAIRS[open_ch]
    depth = 1
    i = start
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == open_ch:
            depth += 1
        elif ch == close_ch:
            depth -= 1
            if depth == 0:
                return text[start:i].strip(), i + 1
        i += 1
    return None, start


def scan_bibtex(text: str) -> Tuple[List[RawRecord], ParseStats]:
    """Parse a document and report what was skipped along the way."""
    records: List[RawRecord] = []
    stats = ParseStats()
    text = text or ""
    n = len(text)
    i = 0

    while i < n:
        at = text.find("@", i)
        if at == -1:
            break
        i = at + 1

        type_match = _TYPE_RE.match(text, i)
        if not type_match:
            stats.bad_markers += 1
            continue
        entry_type = type_match.group().lower()
        i = type_match.end()

        while i < n and text[i].isspace():
            i += 1
        if i >= n or text[i] not in BRACKET_PAIRS:
            stats.bad_markers += 1
            i = at + 1
            continue

        body_start = i + 1
        body, after = _find_body(text, body_start, text[i])
        stats.blocks += 1
        if body is None:
            # Unterminated: drop it and look for markers inside the remainder
            stats.unterminated += 1
            i = body_start
            continue
        i = after

        if entry_type in NON_ENTRY_TYPES:
            stats.non_entries += 1
            continue

        record = parse_entry_body(body, entry_type)
        if record is None:
            stats.missing_key += 1
            continue
        records.append(record)

    stats.records = len(records)
    return records, stats


def parse_bibtex(text: str) -> List[RawRecord]:
    """Parse every bibliographic entry in ``text``, in document order."""
    records, _ = scan_bibtex(text)
    return records
