"""
Source loading for BibDiff.

Reads every configured source (local .bib file or http(s) URL), decodes the
bytes and parses them into a ``SourceCollection``. A source that cannot be
loaded still gets its slot, with no records, so the other sources are
compared as usual.

Usage:
    from sources import load_sources

    collections = load_sources(settings, log=print)
"""

from __future__ import annotations

import http.client
import urllib.error
import urllib.request
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from matching.normalize import (
    DEFAULT_IN_CLAUSE_POLICY,
    InClausePolicy,
    normalize_records,
)
from matching.reconcile import SourceCollection
from parsing.records import scan_bibtex
from settings import Settings, SourceSpec

USER_AGENT = "BibDiff/1.0 (bibliography comparison)"


class SourceLoadError(Exception):
    """Raised when the raw bytes of a source cannot be obtained."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


def decode_bytes(data: bytes) -> Tuple[str, str]:
    """Decode source bytes as UTF-8, falling back to Latin-1.

    Returns ``(text, encoding)``. Latin-1 is used as soon as UTF-8 decoding
    would need a replacement character.
    """
    text = data.decode("utf-8", errors="replace")
    if "\ufffd" in text:
        return data.decode("latin-1"), "latin-1"
    return text, "utf-8"


def fetch_url(url: str, timeout: int = 10) -> bytes:
    """Fetch a URL and return the body bytes."""
    try:
        req = urllib.request.Request(url)
        req.add_header("User-Agent", USER_AGENT)
        req.add_header("Cache-Control", "no-store")
        with urllib.request.urlopen(req, timeout=timeout) as response:
            return response.read()
    except urllib.error.HTTPError as e:
        raise SourceLoadError(url, f"HTTP {e.code}: {e.reason}") from e
    except urllib.error.URLError as e:
        raise SourceLoadError(url, f"Network error: {e.reason}") from e
    except TimeoutError as e:
        raise SourceLoadError(url, "Request timed out") from e
    except (http.client.HTTPException, OSError, ValueError) as e:
        raise SourceLoadError(url, f"{type(e).__name__}: {e}") from e


def fetch_source_bytes(spec: SourceSpec, timeout: int = 10) -> bytes:
    """Read the raw bytes of one source."""
    if spec.is_url:
        return fetch_url(spec.location, timeout=timeout)
    path = Path(spec.location)
    try:
        return path.read_bytes()
    except FileNotFoundError as e:
        raise SourceLoadError(spec.location, "file not found") from e
    except OSError as e:
        raise SourceLoadError(spec.location, str(e)) from e


def collection_from_text(
    name: str,
    text: str,
    policy: Optional[InClausePolicy] = None,
    location: str = "",
    log: Optional[Callable[[str], None]] = None,
) -> SourceCollection:
    """Parse and normalize one decoded document."""
    raws, stats = scan_bibtex(text)
    if log and stats.skipped:
        log(
            f"  ⚠️  {name}: skipped {stats.skipped} malformed block(s) "
            f"(bad markers: {stats.bad_markers}, unterminated: {stats.unterminated}, "
            f"no key: {stats.missing_key})"
        )
    records = normalize_records(raws, policy or DEFAULT_IN_CLAUSE_POLICY)
    return SourceCollection(name=name, records=records, location=location)


def load_source(
    spec: SourceSpec,
    policy: Optional[InClausePolicy] = None,
    timeout: int = 10,
    log: Optional[Callable[[str], None]] = None,
) -> SourceCollection:
    """Load one source; failures give an empty collection with ``error`` set."""
    log = log or print
    try:
        data = fetch_source_bytes(spec, timeout=timeout)
    except SourceLoadError as e:
        log(f"  ❌ {spec.name}: could not load ({e.reason})")
        return SourceCollection(
            name=spec.name, records=[], location=spec.location, error=e.reason
        )

    text, encoding = decode_bytes(data)
    if encoding != "utf-8":
        log(f"  ℹ️  {spec.name}: not valid UTF-8, decoded as {encoding}")
    collection = collection_from_text(
        spec.name, text, policy, location=spec.location, log=log
    )
    log(f"  📚 {spec.name}: {len(collection.records)} entries")
    return collection


def load_sources(
    settings: Settings,
    log: Optional[Callable[[str], None]] = None,
) -> List[SourceCollection]:
    """Load all sources in configured order before any comparison starts."""
    log = log or print
    log(f"📥 Loading {len(settings.sources)} sources...")
    return [
        load_source(
            spec,
            policy=settings.in_clause_policy,
            timeout=settings.timeout,
            log=log,
        )
        for spec in settings.sources
    ]
