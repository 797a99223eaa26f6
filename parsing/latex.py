"""
LaTeX escape decoder for BibTeX field values.

Turns the escapes that bibliography managers write into plain Unicode:

    Caf\\'{e}  ->  Café
    Stra\\ss e ->  Straße
    R\\&D      ->  R&D

Only the escapes that appear in real-world .bib exports are handled.
Anything else is left as literal text, so decoding never fails.

Usage:
    from parsing.latex import decode_latex

    decode_latex(r"G{\\"o}del")  # -> "Gödel"
"""

from __future__ import annotations

import re
import unicodedata
from typing import Dict

# Backslash-escaped punctuation -> bare character
LATEX_LITERALS: Dict[str, str] = {
    r"\&": "&",
    r"\%": "%",
    r"\_": "_",
    r"\#": "#",
    r"\$": "$",
}

# Named symbols -> precomposed character
LATEX_SYMBOLS: Dict[str, str] = {
    "ss": "ß",
    "ae": "æ",
    "AE": "Æ",
    "oe": "œ",
    "OE": "Œ",
    "aa": "å",
    "AA": "Å",
    "o": "ø",
    "O": "Ø",
    "l": "ł",
    "L": "Ł",
    "dh": "ð",
    "DH": "Ð",
    "th": "þ",
    "TH": "Þ",
    "i": "i",
    "j": "j",
}

# Accent selector -> combining mark
LATEX_ACCENTS: Dict[str, str] = {
    "\"": "\u0308",  # diaeresis
    "'": "\u0301",  # acute
    "`": "\u0300",  # grave
    "^": "\u0302",  # circumflex
    "~": "\u0303",  # tilde
    "=": "\u0304",  # macron
    ".": "\u0307",  # dot above
    "u": "\u0306",  # breve
    "v": "\u030c",  # caron
    "H": "\u030b",  # double acute
    "r": "\u030a",  # ring
    "c": "\u0327",  # cedilla
    "k": "\u0328",  # ogonek
}

_LITERAL_RE = re.compile("|".join(re.escape(k) for k in LATEX_LITERALS))

# A bare tilde is a non-breaking space; \~ is the tilde accent
_TIE_RE = re.compile(r"(?<!\\)~")

# Longest names first so \oe wins over \o. A control word ends at the first
# non-letter and swallows an empty group or one following space.
_SYMBOL_RE = re.compile(
    r"\\("
    + "|".join(sorted(LATEX_SYMBOLS, key=len, reverse=True))
    + r")(?![A-Za-z])(?:\{\}|[ \t](?=[A-Za-z]))?"
)

_SYMBOL_SELECTORS = "".join(re.escape(s) for s in LATEX_ACCENTS if not s.isalpha())
_LETTER_SELECTORS = "".join(s for s in LATEX_ACCENTS if s.isalpha())

# \'{e}, \v{s}, \" { u }
_ACCENT_BRACED_RE = re.compile(
    r"\\([" + _SYMBOL_SELECTORS + _LETTER_SELECTORS + r"])\s*\{\s*([A-Za-z])\s*\}"
)
# \'e, \" u
_ACCENT_SYMBOL_RE = re.compile(r"\\([" + _SYMBOL_SELECTORS + r"])\s*([A-Za-z])")
# \v s, \c c (a letter selector needs a space, otherwise it is a macro name)
_ACCENT_LETTER_RE = re.compile(
    r"\\([" + _LETTER_SELECTORS + r"])\s+([A-Za-z])"
)

_MULTI_SPACE_RE = re.compile(r"\s{2,}")

# Bare special characters that must be escaped again when writing BibTeX
_UNESCAPED_LITERAL_RE = re.compile(
    r"(?<!\\)([" + "".join(re.escape(k[1]) for k in LATEX_LITERALS) + r"])"
)


def _compose(match: re.Match) -> str:
    selector, letter = match.group(1), match.group(2)
    return unicodedata.normalize("NFC", letter + LATEX_ACCENTS[selector])


def decode_latex(text: str) -> str:
    """Decode LaTeX escapes and accent macros into Unicode.

    Steps run in a fixed order: escaped punctuation and ties, named symbols,
    accent composition, then whitespace collapsing. Unknown macros are kept
    verbatim.
    """
    if not text:
        return ""

    s = _LITERAL_RE.sub(lambda m: LATEX_LITERALS[m.group()], text)
    s = _TIE_RE.sub(" ", s)
    s = _SYMBOL_RE.sub(lambda m: LATEX_SYMBOLS[m.group(1)], s)

    s = _ACCENT_BRACED_RE.sub(_compose, s)
    s = _ACCENT_SYMBOL_RE.sub(_compose, s)
    s = _ACCENT_LETTER_RE.sub(_compose, s)

    return _MULTI_SPACE_RE.sub(" ", s)


def escape_latex_literals(text: str) -> str:
    """Re-escape the characters ``decode_latex`` turns into bare punctuation.

    ``R&D at 50%`` becomes ``R\\&D at 50\\%``. Characters that are already
    escaped are left alone, so applying this twice changes nothing.
    """
    if not text:
        return ""
    return _UNESCAPED_LITERAL_RE.sub(r"\\\1", text)
