"""
Field tokenizer for BibTeX entry bodies.

Splits ``title = {A, B}, year = 2020`` into ``["title = {A, B}", "year = 2020"]``
without breaking on commas that sit inside brace groups or quoted values.
"""

from __future__ import annotations

from typing import List, Optional, Tuple


def split_top_level(text: str) -> List[str]:
    """Split ``text`` on top-level commas.

    State: brace depth, in-quote flag and escape flag. A backslash escapes
    the next character, so ``\\"`` and ``\\{`` never change the state.
    Quotes only delimit at depth 0; braces are not counted inside quotes.

    Returns trimmed, non-empty segments in order.
    """
    parts: List[str] = []
    buf: List[str] = []
    depth = 0
    in_quotes = False
    escaped = False

    for ch in text or "":
        if escaped:
            escaped = False
            buf.append(ch)
            continue

        if ch == "\\":
            escaped = True
            buf.append(ch)
            continue

        if ch == '"' and depth == 0:
            in_quotes = not in_quotes
        elif not in_quotes:
            if ch == "{":
                depth += 1
            elif ch == "}" and depth > 0:
                depth -= 1
            elif ch == "," and depth == 0:
                segment = "".join(buf).strip()
                if segment:
                    parts.append(segment)
                buf = []
                continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        parts.append(tail)
    return parts


def split_assignment(segment: str) -> Optional[Tuple[str, str]]:
    """Split ``name = value`` on the first ``=``.

    Returns ``(lowercased name, raw value)``, or None when the segment has no
    ``=`` (stray content, dropped by the caller).
    """
    name, sep, value = segment.partition("=")
    if not sep:
        return None
    return name.strip().lower(), value.strip()
