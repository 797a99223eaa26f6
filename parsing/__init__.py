"""
BibTeX parsing package.

Re-exports the parser pieces for convenient access:
    from parsing import parse_bibtex, decode_latex, split_top_level
"""

from __future__ import annotations

from parsing.latex import (
    LATEX_ACCENTS,
    LATEX_SYMBOLS,
    decode_latex,
    escape_latex_literals,
)
from parsing.records import (
    NON_ENTRY_TYPES,
    FieldMap,
    ParseStats,
    RawRecord,
    clean_value,
    parse_bibtex,
    parse_entry_body,
    scan_bibtex,
)
from parsing.tokenizer import split_assignment, split_top_level

__all__ = [
    "LATEX_ACCENTS",
    "LATEX_SYMBOLS",
    "NON_ENTRY_TYPES",
    "FieldMap",
    "ParseStats",
    "RawRecord",
    "clean_value",
    "decode_latex",
    "escape_latex_literals",
    "parse_bibtex",
    "parse_entry_body",
    "scan_bibtex",
    "split_assignment",
    "split_top_level",
]
